"""
Rollbook Backend — Request ID Middleware
==========================================

What:  Assigns a correlation id to each request and echoes it in X-Request-ID.
Why:   Lets a client quote the id from an error body and lets us find every
       log line for that request (file saves, deletes, row writes).
How:   Reuses the client's X-Request-ID when sent, otherwise a short UUID.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Stores the request id in request_id_var and request.state."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        # Not reset afterwards: the catch-all 500 handler runs outside this
        # dispatch and still needs the id
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
