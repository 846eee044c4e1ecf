"""Cache key builders for maps provider requests.

Every builder is deterministic. The request-specific builders never raise;
``hashed_key`` rejects arguments it cannot encode by value. Coordinates are
rounded to a fixed number of decimals so that requests with the same intent
share a key (four decimals is roughly eleven meters).
"""

import hashlib
import json
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from ...constants import AUTOCOMPLETE_KEY_PRECISION, LOCATION_KEY_PRECISION
from ...domain.models import LocationCoords


def _digest(payload: str, length: int = 16) -> str:
    return hashlib.sha256(payload.encode()).hexdigest()[:length]


def _encode_argument(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, bytes):
        return value.hex()
    raise TypeError(
        f"Cannot build a cache key from {type(value).__name__}; "
        "pass a key_fn that encodes it by value"
    )


def hashed_key(prefix: str, *args: Any, **kwargs: Any) -> str:
    """
    Build ``prefix:<sha256>`` from a canonical JSON form of the arguments.

    Arguments must be JSON values, pydantic models, enums, dates, sets or
    bytes. Anything else raises ``TypeError``: an object without a value
    encoding would get a new key every process and never hit.
    """
    raw = json.dumps(
        {"args": args, "kwargs": kwargs}, sort_keys=True, default=_encode_argument
    )
    return f"{prefix}:{hashlib.sha256(raw.encode()).hexdigest()}"


def format_coords(coords: LocationCoords, precision: int = LOCATION_KEY_PRECISION) -> str:
    return f"{coords.lat:.{precision}f},{coords.lng:.{precision}f}"


def location_key(
    prefix: str, coords: LocationCoords, precision: int = LOCATION_KEY_PRECISION
) -> str:
    return f"{prefix}:{format_coords(coords, precision)}"


def address_key(address: str) -> str:
    return f"geocoding:{address.lower().strip()}"


def reverse_geocode_key(coords: LocationCoords) -> str:
    return location_key("geocode", coords)


def place_details_key(place_id: str, fields: Optional[Iterable[str]] = None) -> str:
    """Key for a place-details lookup; the field mask is part of the key."""
    key = f"place_details:{place_id}"
    if fields:
        key += ":" + _digest(",".join(sorted(set(fields))), 8)
    return key


def nearby_search_key(coords: LocationCoords, radius: int, place_type: str) -> str:
    return f"nearby:{format_coords(coords)}:{radius}:{place_type}"


def text_search_key(query: str, coords: Optional[LocationCoords] = None) -> str:
    key = f"text_search:{query.lower().strip()}"
    if coords is not None:
        key += f":{format_coords(coords)}"
    return key


def autocomplete_key(text: str, coords: LocationCoords) -> str:
    return f"autocomplete:{text.lower()}:{format_coords(coords, AUTOCOMPLETE_KEY_PRECISION)}"
