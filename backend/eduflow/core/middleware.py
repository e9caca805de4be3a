from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from eduflow.core.config import Settings
from eduflow.core.exceptions import PayloadTooLargeError, ValidationError, error_response


def security_headers(settings: Settings) -> dict[str, str]:
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }
    if settings.security_enable_hsts:
        max_age = max(1, settings.security_hsts_max_age_seconds)
        headers["Strict-Transport-Security"] = f"max-age={max_age}; includeSubDomains"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, settings: Settings) -> None:
        super().__init__(app)
        self._headers = security_headers(settings)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in self._headers.items():
            response.headers.setdefault(name, value)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies by declared Content-Length before any handler reads them."""

    def __init__(self, app, *, max_bytes: int) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)

    async def dispatch(self, request: Request, call_next) -> Response:
        raw_length = request.headers.get("content-length")
        if raw_length is None:
            return await call_next(request)
        try:
            size = int(raw_length)
        except ValueError:
            return error_response(
                ValidationError("Invalid Content-Length header", details={"content_length": raw_length})
            )
        if size > self._max_bytes:
            return error_response(PayloadTooLargeError(size, self._max_bytes))
        return await call_next(request)
