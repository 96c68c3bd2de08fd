"""
Request Middleware

Binds a correlation ID to every request handled by the flow service.
"""
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from waflow.shared.core.constants import HEADER_REQUEST_ID, HEADER_USER_ID
from waflow.shared.core.logging import set_correlation_id

logger = logging.getLogger("http")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Assigns a correlation ID to each request.

    - Reuses an incoming X-Request-ID (the editor's data client always sends one)
    - Generates req-xxxxxxxx otherwise
    - Echoes the ID back in the response headers
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = set_correlation_id(request.headers.get(HEADER_REQUEST_ID))

        response = await call_next(request)

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"(user={request.headers.get(HEADER_USER_ID) or 'anonymous'})"
        )
        response.headers[HEADER_REQUEST_ID] = correlation_id
        return response
