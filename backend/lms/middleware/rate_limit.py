"""
LMS Backend — Rate Limiting Middleware & Dependencies
======================================================

What:  Applies rate limiters to incoming requests.
How:   RateLimitMiddleware applies the general `api` preset to every /api/*
       request. Endpoints that need a stricter preset (login, search,
       uploads) add `Depends(rate_limit(<limiter>))` on top; presets keep
       separate counters, so both limits apply independently.
Who:   Middleware registered in main.create_app(); dependency used by routes.

Rejections are rendered by the error pipeline: 429 with the standard error
envelope, `details.retryAfter` and a Retry-After header.
"""

import logging
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from lms.config import settings
from lms.error_handling import error_response
from lms.exceptions import RateLimitExceededError
from lms.services.rate_limiter import RateLimiter, api_limiter

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    General per-client limit for the JSON API.

    Excluded paths:
        Anything outside /api (health checks, OpenAPI docs).

    Response headers on success:
        X-RateLimit-Limit:     max requests per window
        X-RateLimit-Remaining: requests left in the current window
    """

    API_PREFIX = "/api/"

    def __init__(self, app, limiter: RateLimiter = api_limiter, **kwargs):
        super().__init__(app, **kwargs)
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if not settings.rate_limit_enabled or not path.startswith(self.API_PREFIX):
            return await call_next(request)

        try:
            remaining = self.limiter.check(request)
        except RateLimitExceededError as exc:
            return error_response(exc, path=path)

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


def rate_limit(limiter: RateLimiter) -> Callable[[Request], Awaitable[None]]:
    """
    FastAPI dependency factory applying ``limiter`` to one route.

    Usage:
        @router.post("/login", dependencies=[Depends(rate_limit(auth_limiter))])
    """

    async def dependency(request: Request) -> None:
        if settings.rate_limit_enabled:
            limiter.check(request)

    return dependency
