"""
LMS Backend — Request Context Middleware
=========================================

What:  Assigns a request ID to each incoming request and records the request
       path, both in context variables, and returns the ID in X-Request-ID.
How:   Client-supplied X-Request-ID is reused; otherwise a short UUID is
       generated. Loggers and the error pipeline read the context variables,
       so every log line and error envelope of one request shares the ID.
Who:   Applied to every request via Starlette middleware.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
request_path_var: ContextVar[str] = ContextVar("request_path", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Use the client's X-Request-ID header if present, else a new short UUID
        2. Store it (and the URL path) in ContextVars for loggers and error handlers
        3. Store it in request.state for route handlers
        4. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request_path_var.set(request.url.path)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
