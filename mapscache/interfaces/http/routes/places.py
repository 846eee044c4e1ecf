"""Cached maps provider endpoints."""

from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from ....domain.models import LocationCoords
from ....enums import FieldMaskUseCase

router = APIRouter()


@router.get("/v1/geocode")
async def geocode(
    request: Request,
    address: Optional[str] = None,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
) -> JSONResponse:
    """Forward geocode ``address`` or reverse geocode ``lat``/``lng``."""
    maps_client = request.app.state.components.maps_client
    if address:
        results = await maps_client.geocode_address(address)
    elif lat is not None and lng is not None:
        results = await maps_client.reverse_geocode(LocationCoords(lat=lat, lng=lng))
    else:
        raise ValueError("Either address or lat and lng are required")
    return JSONResponse(content={"results": results})


@router.get("/v1/places/autocomplete")
async def autocomplete(
    request: Request,
    input: str = Query(min_length=1),
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    session_id: Optional[str] = None,
) -> JSONResponse:
    maps_client = request.app.state.components.maps_client
    predictions = await maps_client.autocomplete(
        input, LocationCoords(lat=lat, lng=lng), session_id=session_id
    )
    return JSONResponse(content={"predictions": predictions})


@router.get("/v1/places/nearby")
async def nearby_search(
    request: Request,
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    radius: int = Query(default=1000, gt=0, le=50000),
    type: str = "restaurant",
) -> JSONResponse:
    maps_client = request.app.state.components.maps_client
    results = await maps_client.nearby_search(
        LocationCoords(lat=lat, lng=lng), radius, type
    )
    return JSONResponse(content={"results": results})


@router.get("/v1/places/search")
async def text_search(
    request: Request,
    query: str = Query(min_length=1),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
) -> JSONResponse:
    maps_client = request.app.state.components.maps_client
    coords = None
    if lat is not None and lng is not None:
        coords = LocationCoords(lat=lat, lng=lng)
    results = await maps_client.text_search(query, coords)
    return JSONResponse(content={"results": results})


@router.get("/v1/places/{place_id}")
async def place_details(
    request: Request,
    place_id: str,
    use_case: FieldMaskUseCase = FieldMaskUseCase.VENUE_BASIC,
    session_id: Optional[str] = None,
) -> JSONResponse:
    """Place details limited to the field mask of ``use_case``."""
    maps_client = request.app.state.components.maps_client
    result = await maps_client.place_details(
        place_id, use_case, session_id=session_id
    )
    return JSONResponse(content={"result": result})


@router.post("/v1/usage/map-load")
async def record_map_load(request: Request) -> JSONResponse:
    """Bill one interactive map load rendered by a client."""
    request.app.state.components.maps_client.record_map_load()
    return JSONResponse(content={"status": "recorded"})
