"""
LMS Backend — Fixed-Window Rate Limiter
========================================

What:  Bounds how many requests one client may send to one class of endpoint
       within a time window.
How:   Each client gets a RateLimitEntry (count + reset time) per limiter.
       The first request of a window creates the entry; later requests
       increment it until max_requests is reached, after which requests are
       rejected with RateLimitExceededError until the window resets.
       A background task sweeps expired entries every 60 seconds.
Who:   The `rate_limit()` dependency and RateLimitMiddleware call check();
       the app lifespan calls start_all() / stop_all().

Algorithm (per check, now in epoch ms):
    entry missing or entry.reset_time < now  → new entry (count=1, reset=now+window)
    entry.count >= max_requests              → reject, retryAfter = ceil((reset-now)/1000)
    otherwise                                → count += 1

Presets:
    auth    5 requests / 15 minutes
    api     100 requests / 1 minute
    upload  10 requests / 1 hour
    search  30 requests / 1 minute

Keys are "<limiter name>:<client id>", so presets applied to the same client
keep independent counters even though they share one store.
"""

import asyncio
import contextlib
import logging
import math
import time
from typing import Callable, Dict, Mapping, Optional, Union

from starlette.datastructures import Headers
from starlette.requests import HTTPConnection

from lms.exceptions import RateLimitExceededError
from lms.services.rate_limit_store import RateLimitEntry, RateLimitStore, default_store

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 60.0
UNKNOWN_CLIENT = "unknown"


def _now_ms() -> float:
    return time.time() * 1000


def get_client_id(source: Union[HTTPConnection, Mapping[str, str]]) -> str:
    """
    Identify the client behind a request.

    Precedence: first value of X-Forwarded-For → X-Real-IP → "unknown".
    Accepts a request or a plain header mapping (matched case-insensitively).
    """
    if isinstance(source, HTTPConnection):
        headers = source.headers
    else:
        headers = Headers(headers=dict(source))

    forwarded_for = headers.get("x-forwarded-for", "")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT


class RateLimiter:
    """
    One named rate-limit configuration.

    Args:
        name:           Namespace for this limiter's keys in the store
        max_requests:   Requests allowed per window
        window_ms:      Window length in milliseconds
        message:        Message carried by the rejection error
        store:          Counter storage (default: the process-wide in-memory store)
        clock:          Returns "now" in epoch milliseconds (injectable for tests)
        sweep_interval: Seconds between background sweeps

    Concurrency:
        check() is synchronous, so read-check-increment cannot interleave
        with another request on the same event loop. Nothing is shared
        between processes (see rate_limit_store).
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_ms: int,
        *,
        message: Optional[str] = None,
        store: Optional[RateLimitStore] = None,
        clock: Optional[Callable[[], float]] = None,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")

        self.name = name
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.message = message
        self.store = store if store is not None else default_store
        self.sweep_interval = sweep_interval
        self._clock = clock or _now_ms
        self._prefix = f"{name}:"
        self._task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return (
            f"<RateLimiter(name='{self.name}', max_requests={self.max_requests}, "
            f"window_ms={self.window_ms})>"
        )

    # ── Counting ──────────────────────────────────────────────────────────

    def key_for(self, client_id: str) -> str:
        return f"{self._prefix}{client_id}"

    def hit(self, client_id: str) -> int:
        """
        Count one request from ``client_id``.

        Returns:
            Requests still allowed in the current window.

        Raises:
            RateLimitExceededError: the client already used max_requests in
                this window. The counter is not incremented.
        """
        now = self._clock()
        key = self.key_for(client_id)
        entry = self.store.get(key)

        if entry is None or entry.is_expired(now):
            self.store.set(key, RateLimitEntry(count=1, reset_time=now + self.window_ms))
            return self.max_requests - 1

        if entry.count >= self.max_requests:
            retry_after = max(1, math.ceil((entry.reset_time - now) / 1000))
            logger.warning(
                "Rate limit '%s' exceeded for %s: %d requests, retry in %ds",
                self.name,
                client_id,
                entry.count,
                retry_after,
            )
            raise RateLimitExceededError(retry_after=retry_after, message=self.message)

        entry.count += 1
        self.store.set(key, entry)
        return self.max_requests - entry.count

    def check(self, request: Union[HTTPConnection, Mapping[str, str]]) -> int:
        """Identify the client of ``request`` and count it (see hit())."""
        self._ensure_sweeper()
        return self.hit(get_client_id(request))

    # ── Housekeeping ──────────────────────────────────────────────────────

    def sweep(self, now: Optional[float] = None) -> int:
        """Delete this limiter's expired entries. Returns how many were removed."""
        now = self._clock() if now is None else now
        removed = 0
        for key, entry in self.store.entries():
            if key.startswith(self._prefix) and entry.is_expired(now):
                self.store.delete(key)
                removed += 1
        if removed:
            logger.debug("Rate limit '%s': swept %d expired entries", self.name, removed)
        return removed

    def reset(self) -> None:
        """Forget every counter of this limiter."""
        for key, _ in self.store.entries():
            if key.startswith(self._prefix):
                self.store.delete(key)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """
        Start the periodic sweep on the running event loop. Idempotent.

        Raises:
            RuntimeError: called outside a running event loop.
        """
        loop = asyncio.get_running_loop()
        if self.running:
            previous = self._task
            previous_loop = previous.get_loop()
            if previous_loop is loop:
                return
            # A closed loop can never resume its tasks
            if not previous_loop.is_closed():
                previous_loop.call_soon_threadsafe(previous.cancel)
            logger.debug("Rate limit '%s': sweeper moved to a new event loop", self.name)
        self._task = loop.create_task(
            self._sweep_forever(), name=f"rate-limit-sweep:{self.name}"
        )
        logger.debug("Rate limit '%s': sweeper started", self.name)

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish. Idempotent."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Rate limit '%s': sweeper stopped", self.name)

    def _ensure_sweeper(self) -> None:
        # Lazy start on first use; synchronous callers without a loop skip it
        if self.running:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self.start()

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            self.sweep()


def configure_rate_limiter(
    name: str,
    max_requests: int,
    window_ms: int,
    message: Optional[str] = None,
    store: Optional[RateLimitStore] = None,
) -> RateLimiter:
    """Create a limiter bound to ``max_requests`` per ``window_ms``."""
    return RateLimiter(name, max_requests, window_ms, message=message, store=store)


# ══════════════════════════════════════════════════════════════════════════
# Presets
# ══════════════════════════════════════════════════════════════════════════

auth_limiter = configure_rate_limiter(
    "auth",
    max_requests=5,
    window_ms=15 * 60 * 1000,
    message="Too many authentication attempts. Please try again later.",
)

api_limiter = configure_rate_limiter(
    "api",
    max_requests=100,
    window_ms=60 * 1000,
    message="Too many requests. Please slow down.",
)

upload_limiter = configure_rate_limiter(
    "upload",
    max_requests=10,
    window_ms=60 * 60 * 1000,
    message="Too many upload attempts. Please try again later.",
)

search_limiter = configure_rate_limiter(
    "search",
    max_requests=30,
    window_ms=60 * 1000,
    message="Too many search requests. Please slow down.",
)

RATE_LIMITERS: Dict[str, RateLimiter] = {
    limiter.name: limiter
    for limiter in (auth_limiter, api_limiter, upload_limiter, search_limiter)
}


def start_all() -> None:
    for limiter in RATE_LIMITERS.values():
        limiter.start()


async def stop_all() -> None:
    for limiter in RATE_LIMITERS.values():
        await limiter.stop()


def running_limiters() -> Dict[str, bool]:
    """Preset name → whether its sweeper task is alive."""
    return {name: limiter.running for name, limiter in RATE_LIMITERS.items()}
