"""Fixed-window rate limiting for user actions."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Final

import redis

from townsquare.core.settings import settings
from townsquare.services.errors import RateLimited

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Budget:
    """Number of actions allowed per window."""

    limit: int
    window_seconds: int


BUDGETS: Final[dict[str, Budget]] = {
    "post": Budget(limit=1, window_seconds=60),
    "comment": Budget(limit=5, window_seconds=60),
    "vote": Budget(limit=10, window_seconds=60),
    "community": Budget(limit=3, window_seconds=3600),
    "membership": Budget(limit=10, window_seconds=3600),
    "event": Budget(limit=5, window_seconds=3600),
    "rsvp": Budget(limit=20, window_seconds=3600),
    "document": Budget(limit=10, window_seconds=3600),
    "channel": Budget(limit=5, window_seconds=3600),
    "chat": Budget(limit=1, window_seconds=1),
    "invite": Budget(limit=20, window_seconds=3600),
}

_MESSAGES: Final[dict[str, str]] = {
    "post": "You're posting too quickly. Please wait a minute.",
    "comment": "You're commenting too quickly. Please slow down.",
    "vote": "You're voting too quickly. Please slow down.",
    "chat": "You're sending messages too quickly.",
    "invite": "You're sending invites too quickly. Please wait before trying again.",
}


class RateLimiter:
    """Count actions per user in fixed windows.

    Counters live in Redis when ``REDIS_URL`` is configured and in a
    process-local cache otherwise.
    """

    def __init__(self, redis_url: str | None = None, enabled: bool | None = None) -> None:
        url = settings.redis_url if redis_url is None else redis_url
        self._enabled = settings.rate_limit_enabled if enabled is None else enabled
        self._redis: redis.Redis | None = redis.from_url(url) if url else None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def hit(self, action: str, user_id: int, *, now: float | None = None) -> bool:
        """Record one action and return True while the caller is within budget.

        Args:
            action: Budget name, one of ``BUDGETS``.
            user_id: Acting user.
            now: Optional epoch seconds used to pick the window.

        Returns:
            True if the action is allowed, False once the window is exhausted.
        """
        if not self._enabled:
            return True
        budget = BUDGETS[action]
        moment = time.time() if now is None else now
        window = max(1, budget.window_seconds)
        slot = int(math.floor(moment / window))
        key = f"rl:{action}:{user_id}:{slot}:{window}"

        if self._redis is not None:
            try:
                pipe = self._redis.pipeline(transaction=True)
                pipe.incr(key)
                pipe.expire(key, window)
                count, _ = pipe.execute()
                return int(count) <= budget.limit
            except redis.RedisError:
                logger.warning("Redis unavailable for rate limiting; using local counters")
                self._redis = None

        expires_at = (slot + 1) * window
        with _CACHE_LOCK:
            _prune(moment)
            count, _ = _WINDOW_CACHE.get(key, (0, expires_at))
            count += 1
            _WINDOW_CACHE[key] = (count, expires_at)
        return count <= budget.limit

    def check(self, action: str, user_id: int) -> None:
        """Raise ``RateLimited`` when the action would exceed its budget."""
        if not self.hit(action, user_id):
            message = _MESSAGES.get(action, "Too many requests. Please try again later.")
            raise RateLimited(message)


def _prune(now: float) -> None:
    expired = [key for key, (_, expires_at) in _WINDOW_CACHE.items() if expires_at <= now]
    for key in expired:
        _WINDOW_CACHE.pop(key, None)


def reset_local_counters() -> None:
    """Clear the in-process counters."""
    with _CACHE_LOCK:
        _WINDOW_CACHE.clear()


_WINDOW_CACHE: dict[str, tuple[int, float]] = {}
_CACHE_LOCK = Lock()


class _RateLimiterSingleton:
    """Singleton wrapper for RateLimiter."""

    _instance: RateLimiter | None = None

    @classmethod
    def get_instance(cls) -> RateLimiter:
        if cls._instance is None:
            cls._instance = RateLimiter()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None


def get_rate_limiter() -> RateLimiter:
    """Return the shared rate limiter bound to the current settings."""
    return _RateLimiterSingleton.get_instance()


def reset_rate_limiter() -> None:
    """Drop the shared limiter so the next call rebuilds it from settings."""
    _RateLimiterSingleton.reset()
