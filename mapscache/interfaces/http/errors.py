import time
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ...domain.models import ErrorDetail, ErrorResponse
from ...enums import ErrorType
from ...logging import error, warning, LogRecord, LogEvent


def build_error_response(
    error_type: ErrorType,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Creates a JSONResponse with the error body."""
    body = ErrorResponse(
        error=ErrorDetail(type=error_type, message=message, details=details or {})
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def log_and_return_error_response(
    request: Request,
    status_code: int,
    error_type: ErrorType,
    error_message: str,
    details: Optional[Dict[str, Any]] = None,
    caught_exception: Optional[Exception] = None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    start_time_mono = getattr(request.state, "start_time_monotonic", time.monotonic())
    duration_ms = (time.monotonic() - start_time_mono) * 1000

    record = LogRecord(
        event=LogEvent.REQUEST_FAILURE.value,
        message=f"Request failed: {error_message}",
        request_id=request_id,
        data={
            "status_code": status_code,
            "duration_ms": duration_ms,
            "error_type": error_type.value,
            "path": request.url.path,
        },
    )
    if status_code >= 500:
        error(record, exc=caught_exception)
    else:
        warning(record, exc=caught_exception)

    return build_error_response(error_type, error_message, status_code, details)
