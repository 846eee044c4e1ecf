"""Usage and budget endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ....domain.models import BudgetUpdate

router = APIRouter()


@router.get("/v1/usage")
async def get_usage(request: Request) -> JSONResponse:
    """Today's counters, spend and budget, with cache statistics."""
    components = request.app.state.components
    return JSONResponse(
        content={
            "usage": components.ledger.usage_report().model_dump(mode="json"),
            "cache": components.cache.stats().model_dump(mode="json"),
        }
    )


@router.get("/v1/usage/budget")
async def get_budget(request: Request) -> JSONResponse:
    ledger = request.app.state.components.ledger
    return JSONResponse(content=ledger.budget_status().model_dump(mode="json"))


@router.put("/v1/usage/budget")
async def set_budget(request: Request, update: BudgetUpdate) -> JSONResponse:
    """Change the daily budget; the new status is returned."""
    ledger = request.app.state.components.ledger
    ledger.set_daily_budget(update.amount)
    return JSONResponse(content=ledger.budget_status().model_dump(mode="json"))
