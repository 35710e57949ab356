"""
In-process request budget for upstream APIs.

Each endpoint key and the limiter as a whole get a fixed one-minute window.
A window drops back to zero once its reset point has passed, so a burst
straddling the boundary can briefly see twice the threshold.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .errors import RateLimitExceeded

logger = logging.getLogger(__name__)


# Neynar starter plan: 300 RPM per endpoint, 500 RPM global
DEFAULT_ENDPOINT_LIMIT = 300
DEFAULT_GLOBAL_LIMIT = 500
DEFAULT_OVERRIDES: Dict[str, int] = {
    "/frame/validate": 5000,
}
# matched anywhere in the endpoint, e.g. /signer/developer_managed
DEFAULT_SUBSTRING_OVERRIDES: Dict[str, int] = {
    "/signer": 3000,
}


@dataclass
class RateWindow:
    count: int
    reset_at: float

    def current(self, now: float) -> int:
        return 0 if now > self.reset_at else self.count


class RateLimiter:
    """
    Per-endpoint and global request counters.

    ``allow`` only reads. ``record`` is the sole mutator and must be called
    once the caller has committed to dispatching the request.
    """

    def __init__(
        self,
        name: str = "upstream",
        default_limit: int = DEFAULT_ENDPOINT_LIMIT,
        global_limit: int = DEFAULT_GLOBAL_LIMIT,
        overrides: Optional[Dict[str, int]] = None,
        substring_overrides: Optional[Dict[str, int]] = None,
        window_seconds: int = 60,
        warn_ratio: float = 0.9,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.default_limit = default_limit
        self.global_limit = global_limit
        self.overrides = dict(DEFAULT_OVERRIDES if overrides is None else overrides)
        self.substring_overrides = dict(
            DEFAULT_SUBSTRING_OVERRIDES if substring_overrides is None else substring_overrides
        )
        self.window_seconds = window_seconds
        self.warn_ratio = warn_ratio
        self._clock = clock
        self._windows: Dict[str, RateWindow] = {}
        self._global = RateWindow(count=0, reset_at=clock() + window_seconds)

    def limit_for(self, endpoint: str) -> int:
        """Threshold for an endpoint: exact override, then substring override, then default."""
        if endpoint in self.overrides:
            return self.overrides[endpoint]

        for pattern, limit in self.substring_overrides.items():
            if pattern in endpoint:
                return limit

        return self.default_limit

    def allow(self, endpoint: str) -> bool:
        now = self._clock()
        window = self._windows.get(endpoint)
        endpoint_count = window.current(now) if window else 0

        within_endpoint = endpoint_count < self.limit_for(endpoint)
        within_global = self._global.current(now) < self.global_limit
        return within_endpoint and within_global

    def record(self, endpoint: str) -> None:
        now = self._clock()

        window = self._windows.get(endpoint)
        if window is None or now > window.reset_at:
            window = RateWindow(count=0, reset_at=now + self.window_seconds)
            self._windows[endpoint] = window
        if now > self._global.reset_at:
            self._global = RateWindow(count=0, reset_at=now + self.window_seconds)

        window.count += 1
        self._global.count += 1

        limit = self.limit_for(endpoint)
        if window.count > limit * self.warn_ratio:
            logger.warning(
                "[%s] Approaching rate limit for %s (%d/%d)",
                self.name, endpoint, window.count, limit,
            )
        if self._global.count > self.global_limit * self.warn_ratio:
            logger.warning(
                "[%s] Approaching global rate limit (%d/%d)",
                self.name, self._global.count, self.global_limit,
            )

    def retry_after(self, endpoint: str) -> int:
        """Seconds until every window blocking ``endpoint`` has reset."""
        now = self._clock()
        waits = []
        window = self._windows.get(endpoint)
        if window and window.current(now) >= self.limit_for(endpoint):
            waits.append(window.reset_at - now)
        if self._global.current(now) >= self.global_limit:
            waits.append(self._global.reset_at - now)
        return max(0, math.ceil(max(waits, default=0)))

    def rejection(self, endpoint: str) -> RateLimitExceeded:
        return RateLimitExceeded(
            endpoint=endpoint,
            limit=self.limit_for(endpoint),
            window_seconds=self.window_seconds,
            retry_after=self.retry_after(endpoint),
        )

    def snapshot(self) -> Dict[str, Any]:
        now = self._clock()
        return {
            "name": self.name,
            "global": {
                "count": self._global.current(now),
                "limit": self.global_limit,
            },
            "endpoints": {
                endpoint: {"count": window.current(now), "limit": self.limit_for(endpoint)}
                for endpoint, window in self._windows.items()
            },
        }

    def reset(self) -> None:
        self._windows.clear()
        self._global = RateWindow(count=0, reset_at=self._clock() + self.window_seconds)


__all__ = ["RateLimiter", "RateWindow", "RateLimitExceeded"]
