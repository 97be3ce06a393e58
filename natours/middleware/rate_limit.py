"""
Natours Backend — Rate Limiting Stage
=======================================

What:  Per-client fixed window request quota for the API prefix.
How:   Counts requests per client address in an injected RateLimitStore.
       The 101st request inside one window is rejected with 429 and never
       reaches a router.
When:  Third in the pipeline, after the security headers and the dev logger;
       only requests under the protected prefix (default /api) are counted.

Algorithm: Fixed Window Counter
    1. Look up (or create) the client's entry: {count, window_start}
    2. If now > window_start + window_ms, restart the window with count = 0
    3. count += 1
    4. If count > max → reject; otherwise forward

Concurrency:
    The entry table is the only state shared between requests. The store
    performs steps 1-3 under one lock, so a burst of N requests from the
    same client yields exactly `max` successes whether requests interleave
    on the event loop or run on worker threads.

Memory:
    Expired entries are swept every SWEEP_INTERVAL increments. Nothing is
    persisted; a restart forgets every window.
"""

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from starlette.responses import Response

from natours.exceptions import RateLimitExceededError
from natours.middleware.base import Continue, Fail, Outcome, Stage
from natours.middleware.context import RequestContext

logger = logging.getLogger(__name__)

_QUOTA_KEY = "rate_limit"


@dataclass
class RateLimitEntry:
    count: int
    window_start: float  # epoch milliseconds


# ══════════════════════════════════════════════════════════════════════════
# Stores
# ══════════════════════════════════════════════════════════════════════════

class RateLimitStore(ABC):
    """Storage for rate-limit entries, keyed by client identity."""

    @abstractmethod
    def increment(self, key: str, now_ms: float, window_ms: int) -> RateLimitEntry:
        """
        Count one request for `key` and return a snapshot of its entry.

        Must be atomic per key: two concurrent increments never both observe
        the same count.
        """

    @abstractmethod
    def get(self, key: str) -> Optional[RateLimitEntry]:
        """Snapshot of the entry for `key`, or None."""

    @abstractmethod
    def reset(self, key: Optional[str] = None) -> None:
        """Forget one client's entry, or every entry when key is None."""


class InMemoryRateLimitStore(RateLimitStore):
    """
    Process-local store guarded by a single lock.

    Good for one uvicorn worker. With several workers each process counts
    separately, so the effective limit becomes max × workers.
    """

    SWEEP_INTERVAL = 1000

    def __init__(self):
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._increments = 0

    def increment(self, key: str, now_ms: float, window_ms: int) -> RateLimitEntry:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now_ms > entry.window_start + window_ms:
                entry = RateLimitEntry(count=0, window_start=now_ms)
                self._entries[key] = entry
            entry.count += 1

            self._increments += 1
            if self._increments % self.SWEEP_INTERVAL == 0:
                self._sweep_expired(now_ms, window_ms)

            return RateLimitEntry(count=entry.count, window_start=entry.window_start)

    def get(self, key: str) -> Optional[RateLimitEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return RateLimitEntry(count=entry.count, window_start=entry.window_start)

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep_expired(self, now_ms: float, window_ms: int) -> None:
        # Caller holds the lock
        expired = [
            key for key, entry in self._entries.items()
            if now_ms > entry.window_start + window_ms
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Swept %d expired rate-limit entries", len(expired))


# ══════════════════════════════════════════════════════════════════════════
# Stage
# ══════════════════════════════════════════════════════════════════════════

def _now_ms() -> float:
    return time.time() * 1000


class RateLimitStage(Stage):
    """
    Rejects clients that exceed `max_requests` per `window_ms` under
    `scope_path`.

    Response headers (requests under the prefix only):
        X-RateLimit-Limit:      max requests per window
        X-RateLimit-Remaining:  requests left in the current window
        X-RateLimit-Reset:      epoch seconds when the window restarts
        Retry-After:            on 429 only, seconds until the reset
    """

    def __init__(
        self,
        store: RateLimitStore,
        max_requests: int = 100,
        window_ms: int = 60 * 60 * 1000,
        scope_path: str = "/api",
        message: str = "Too many requests, please try again later.",
        clock: Callable[[], float] = _now_ms,
    ):
        self.store = store
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.scope_path = scope_path.rstrip("/") or "/"
        self.message = message
        self._clock = clock

    def applies_to(self, path: str) -> bool:
        """True for the prefix itself and for paths below it."""
        if self.scope_path == "/":
            return True
        return path == self.scope_path or path.startswith(self.scope_path + "/")

    async def process(self, ctx: RequestContext) -> Outcome:
        if not self.applies_to(ctx.path):
            return Continue(ctx)

        now = self._clock()
        entry = self.store.increment(ctx.client_id, now, self.window_ms)
        reset_at = entry.window_start + self.window_ms

        ctx.annotations[_QUOTA_KEY] = {
            "limit": self.max_requests,
            "remaining": max(0, self.max_requests - entry.count),
            "reset": int(math.ceil(reset_at / 1000)),
        }

        if entry.count > self.max_requests:
            retry_after = max(1, int(math.ceil((reset_at - now) / 1000)))
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %dms window",
                ctx.client_id,
                entry.count,
                self.window_ms,
            )
            return Fail(
                RateLimitExceededError(
                    message=self.message,
                    retry_after=retry_after,
                    context={"client": ctx.client_id, "limit": self.max_requests},
                )
            )

        return Continue(ctx)

    def on_response(self, ctx: RequestContext, response: Response) -> None:
        quota = ctx.annotations.get(_QUOTA_KEY)
        if not quota:
            return
        response.headers["X-RateLimit-Limit"] = str(quota["limit"])
        response.headers["X-RateLimit-Remaining"] = str(quota["remaining"])
        response.headers["X-RateLimit-Reset"] = str(quota["reset"])
