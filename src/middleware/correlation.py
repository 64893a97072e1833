"""Request correlation ID middleware.

Every request gets an id that is:
- taken from the incoming X-Request-ID header, or generated
- visible to log records through services.logging_config.request_id_var
- returned in the X-Request-ID response header

Usage:
    app = FastAPI()
    app.add_middleware(CorrelationIdMiddleware)
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from services.logging_config import request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Incoming ids are echoed into headers and logs, so only plain tokens are accepted
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


def get_request_id() -> Optional[str]:
    """Request id of the current context, or None outside a request."""
    return request_id_var.get()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a request id to the request context and the response."""

    def __init__(
        self,
        app,
        header_name: str = REQUEST_ID_HEADER,
        generator: Optional[Callable[[], str]] = None,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.generator = generator or (lambda: str(uuid.uuid4()))

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        request_id = request.headers.get(self.header_name)
        if not request_id or not _VALID_REQUEST_ID.match(request_id):
            request_id = self.generator()

        token = request_id_var.set(request_id)
        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.header_name] = request_id
            return response
        finally:
            request_id_var.reset(token)
