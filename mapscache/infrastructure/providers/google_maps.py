"""
Google Maps web-service client with cached, budgeted requests.

Every billable request goes through the memoizer: cached responses are
served without a provider round trip, and the daily budget is checked
before a request is sent.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx

from ...application.cache.keys import (
    address_key,
    autocomplete_key,
    format_coords,
    nearby_search_key,
    place_details_key,
    reverse_geocode_key,
    text_search_key,
)
from ...application.memoize import Memoizer
from ...application.usage.costs import optimized_fields
from ...application.usage.sessions import AutocompleteSessions
from ...constants import (
    AUTOCOMPLETE_TTL_SECONDS,
    DEFAULT_AUTOCOMPLETE_RADIUS_METERS,
    DEFAULT_MAPS_BASE_URL,
    GEOCODE_TTL_SECONDS,
    PLACE_DETAILS_TTL_SECONDS,
    PROVIDER_SUCCESS_STATUSES,
    SEARCH_TTL_SECONDS,
)
from ...domain.exceptions import UpstreamError
from ...domain.models import LocationCoords
from ...enums import FieldMaskUseCase, UsageCategory
from ...logging import warning, LogRecord, LogEvent

PROVIDER_NAME = "google_maps"


class MapsClient:
    """
    Maps provider client.

    Provider status contract: ``OK`` and ``ZERO_RESULTS`` are successes and
    their payloads are cached; any other status, or a non-2xx HTTP response,
    raises ``UpstreamError`` and nothing is cached or billed. Transport
    errors propagate unchanged. Requests are never retried.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        memoizer: Memoizer,
        api_key: str,
        sessions: Optional[AutocompleteSessions] = None,
        base_url: str = DEFAULT_MAPS_BASE_URL,
    ):
        self._http = http_client
        self._memoizer = memoizer
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.sessions = sessions or AutocompleteSessions()

        self._geocode_address = memoizer.wrap(
            self._fetch_geocode_address,
            category=UsageCategory.GEOCODING,
            key_fn=address_key,
            ttl_seconds=GEOCODE_TTL_SECONDS,
        )
        self._reverse_geocode = memoizer.wrap(
            self._fetch_reverse_geocode,
            category=UsageCategory.GEOCODING,
            key_fn=reverse_geocode_key,
            ttl_seconds=GEOCODE_TTL_SECONDS,
        )
        self._place_details = memoizer.wrap(
            self._fetch_place_details,
            category=UsageCategory.PLACE_DETAILS,
            key_fn=lambda place_id, fields, session_token=None: place_details_key(
                place_id, fields
            ),
            ttl_seconds=PLACE_DETAILS_TTL_SECONDS,
            weight_fn=lambda place_id, fields, session_token=None: len(fields),
        )
        self._nearby_search = memoizer.wrap(
            self._fetch_nearby_search,
            category=UsageCategory.NEARBY_SEARCH,
            key_fn=nearby_search_key,
            ttl_seconds=SEARCH_TTL_SECONDS,
        )
        self._text_search = memoizer.wrap(
            self._fetch_text_search,
            category=UsageCategory.TEXT_SEARCH,
            key_fn=text_search_key,
            ttl_seconds=SEARCH_TTL_SECONDS,
        )
        self._autocomplete = memoizer.wrap(
            self._fetch_autocomplete,
            category=UsageCategory.AUTOCOMPLETE,
            key_fn=lambda text, coords, session_token=None: autocomplete_key(
                text, coords
            ),
            ttl_seconds=AUTOCOMPLETE_TTL_SECONDS,
        )

    async def geocode_address(self, address: str) -> List[Dict[str, Any]]:
        """Geocode a free-form address into provider results."""
        return await self._geocode_address(address)

    async def reverse_geocode(self, coords: LocationCoords) -> List[Dict[str, Any]]:
        return await self._reverse_geocode(coords)

    async def place_details(
        self,
        place_id: str,
        use_case: Union[FieldMaskUseCase, str] = FieldMaskUseCase.VENUE_BASIC,
        custom_fields: Optional[Sequence[str]] = None,
        session_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Fetch place details restricted to the field mask for ``use_case``.

        Billing is weighted by the number of requested fields. Passing the
        ``session_id`` used for autocomplete closes that session.
        """
        fields = tuple(optimized_fields(use_case, custom_fields))
        session_token = self.sessions.get(session_id) if session_id else None
        try:
            return await self._place_details(place_id, fields, session_token)
        finally:
            if session_id:
                self.sessions.clear(session_id)

    async def nearby_search(
        self, coords: LocationCoords, radius: int, place_type: str
    ) -> List[Dict[str, Any]]:
        return await self._nearby_search(coords, radius, place_type)

    async def text_search(
        self, query: str, coords: Optional[LocationCoords] = None
    ) -> List[Dict[str, Any]]:
        return await self._text_search(query, coords)

    async def autocomplete(
        self,
        text: str,
        coords: LocationCoords,
        session_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Place predictions near ``coords``, grouped under the caller's session."""
        session_token = self.sessions.get_or_create(session_id) if session_id else None
        return await self._autocomplete(text, coords, session_token)

    def record_map_load(self, count: int = 1) -> None:
        """Bill interactive map loads, which never go through this client."""
        self._memoizer.ledger.record_usage(UsageCategory.MAP_LOAD, count=count)

    async def _fetch_geocode_address(self, address: str) -> List[Dict[str, Any]]:
        payload = await self._get("/geocode/json", {"address": address})
        return payload.get("results", [])

    async def _fetch_reverse_geocode(
        self, coords: LocationCoords
    ) -> List[Dict[str, Any]]:
        payload = await self._get("/geocode/json", {"latlng": format_coords(coords, 6)})
        return payload.get("results", [])

    async def _fetch_place_details(
        self,
        place_id: str,
        fields: Tuple[str, ...],
        session_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = {"place_id": place_id, "fields": ",".join(fields)}
        if session_token:
            params["sessiontoken"] = session_token
        payload = await self._get("/place/details/json", params)
        return payload.get("result", {})

    async def _fetch_nearby_search(
        self, coords: LocationCoords, radius: int, place_type: str
    ) -> List[Dict[str, Any]]:
        payload = await self._get(
            "/place/nearbysearch/json",
            {
                "location": format_coords(coords, 6),
                "radius": radius,
                "type": place_type,
            },
        )
        return payload.get("results", [])

    async def _fetch_text_search(
        self, query: str, coords: Optional[LocationCoords] = None
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"query": query}
        if coords is not None:
            params["location"] = format_coords(coords, 6)
        payload = await self._get("/place/textsearch/json", params)
        return payload.get("results", [])

    async def _fetch_autocomplete(
        self,
        text: str,
        coords: LocationCoords,
        session_token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "input": text,
            "location": format_coords(coords, 6),
            "radius": DEFAULT_AUTOCOMPLETE_RADIUS_METERS,
        }
        if session_token:
            params["sessiontoken"] = session_token
        payload = await self._get("/place/autocomplete/json", params)
        return payload.get("predictions", [])

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Issue one provider request and enforce the status contract."""
        response = await self._http.get(
            f"{self._base_url}{path}", params={**params, "key": self._api_key}
        )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._log_failure(path, response.status_code, None)
            raise UpstreamError(
                f"Maps provider returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
                provider_name=PROVIDER_NAME,
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            self._log_failure(path, response.status_code, None)
            raise UpstreamError(
                f"Maps provider returned a non-JSON body for {path}",
                status_code=response.status_code,
                provider_name=PROVIDER_NAME,
            ) from e
        if not isinstance(payload, dict):
            self._log_failure(path, response.status_code, None)
            raise UpstreamError(
                f"Maps provider returned an unexpected payload for {path}",
                status_code=response.status_code,
                provider_name=PROVIDER_NAME,
            )

        status = payload.get("status")
        if status not in PROVIDER_SUCCESS_STATUSES:
            self._log_failure(path, response.status_code, status)
            raise UpstreamError(
                payload.get("error_message")
                or f"Maps provider returned status {status} for {path}",
                status_code=response.status_code,
                provider_status=status,
                provider_name=PROVIDER_NAME,
            )
        return payload

    @staticmethod
    def _log_failure(path: str, status_code: int, provider_status: Optional[str]) -> None:
        warning(
            LogRecord(
                event=LogEvent.REMOTE_CALL_FAILED.value,
                message=f"Maps provider request failed: {path}",
                data={
                    "path": path,
                    "status_code": status_code,
                    "provider_status": provider_status,
                },
            )
        )
