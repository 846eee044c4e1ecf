"""Cache monitoring endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/v1/cache/stats")
async def get_cache_stats(request: Request) -> JSONResponse:
    """Get cache statistics."""
    components = request.app.state.components
    content = {"cache": components.cache.stats().model_dump(mode="json")}
    if components.coalescer is not None:
        content["in_flight"] = len(components.coalescer)
    if components.snapshot_manager is not None:
        content["last_snapshot_entries"] = components.snapshot_manager.last_saved_entries
    return JSONResponse(content=content)


@router.post("/v1/cache/clear")
async def clear_cache(request: Request) -> JSONResponse:
    """Drop every cached entry."""
    request.app.state.components.cache.clear()
    return JSONResponse(content={"status": "cache_cleared"})
