"""
JSON error responses.

Every failure the gateway returns is a JSON object with at least an "error"
field. Route handlers translate core exceptions through error_response();
ApiError is raised from dependencies and rendered by an app-level handler.
"""

import logging
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from interview_gateway.common.errors import (
    InvalidInputError,
    NotFoundError,
    RateLimitedError,
    ScrapeBlockedError,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An HTTP error with a ready-made JSON body."""

    def __init__(self, status_code: int, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.body = body
        self.headers = headers
        super().__init__(body.get("error", f"HTTP {status_code}"))

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.body, headers=self.headers)


def error_body(message: str, **extra: Any) -> Dict[str, Any]:
    return {"error": message, **extra}


def error_response(exc: Exception, fallback_message: str, log: Optional[logging.Logger] = None) -> JSONResponse:
    """
    Map an exception raised while serving a route to a JSON response.

    Known conditions keep their user-facing message; anything else is
    logged with its traceback and answered with the route's generic message.
    """
    log = log or logger

    if isinstance(exc, ApiError):
        return exc.to_response()
    if isinstance(exc, RateLimitedError):
        log.warning(f"Vendor rate limit: {exc.user_message()}")
        return JSONResponse(status_code=429, content=error_body(exc.user_message()))
    if isinstance(exc, ScrapeBlockedError):
        return JSONResponse(status_code=422, content=error_body(exc.user_message()))
    if isinstance(exc, InvalidInputError):
        return JSONResponse(status_code=400, content=error_body(exc.user_message()))
    if isinstance(exc, NotFoundError):
        return JSONResponse(status_code=404, content=error_body(exc.user_message() or "Not found"))

    log.error(f"{fallback_message}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=error_body(fallback_message))
