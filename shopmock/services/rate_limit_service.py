"""
In-memory rate limiter.

Fixed window per client key with a separate, stricter counter for
authentication endpoints. Windows are reset lazily on the next request after
they expire; there is no background timer.
"""
import enum
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from shopmock.exceptions import RateLimitError
from shopmock.models import Identity

logger = logging.getLogger(__name__)


class TrustTier(enum.Enum):
    ANONYMOUS = "ANONYMOUS"
    AUTHENTICATED = "AUTHENTICATED"
    ADMIN = "ADMIN"

    @classmethod
    def for_identity(cls, identity: Optional[Identity]) -> 'TrustTier':
        if identity is None:
            return cls.ANONYMOUS
        return cls.ADMIN if identity.is_admin else cls.AUTHENTICATED


@dataclass
class _Window:
    count: int
    auth_count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitStatus:
    """Result of an admitted request, used for X-RateLimit-* headers."""
    limit: int
    remaining: int
    reset_at: float

    def headers(self) -> Dict[str, str]:
        return {
            'X-RateLimit-Limit': str(self.limit),
            'X-RateLimit-Remaining': str(self.remaining),
            'X-RateLimit-Reset': str(math.ceil(self.reset_at)),
        }


class RateLimiter:
    """Admission control by client key and trust tier."""

    def __init__(
        self,
        window_seconds: int = 15 * 60,
        limits: Dict[TrustTier, int] = None,
        auth_limit: int = 10,
        auth_paths: Iterable[str] = ('/api/login', '/api/register', '/api/refresh'),
        clock: Callable[[], float] = time.time
    ):
        self.window_seconds = window_seconds
        self.limits = limits or {
            TrustTier.ANONYMOUS: 100,
            TrustTier.AUTHENTICATED: 500,
            TrustTier.ADMIN: 1000,
        }
        self.auth_limit = auth_limit
        self.auth_paths = frozenset(auth_paths)
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._next_prune = 0.0
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config, clock=time.time) -> 'RateLimiter':
        return cls(
            window_seconds=config.get('RATE_LIMIT_WINDOW_SECONDS', 15 * 60),
            limits={
                TrustTier.ANONYMOUS: config.get('RATE_LIMIT_ANONYMOUS', 100),
                TrustTier.AUTHENTICATED: config.get('RATE_LIMIT_AUTHENTICATED', 500),
                TrustTier.ADMIN: config.get('RATE_LIMIT_ADMIN', 1000),
            },
            auth_limit=config.get('RATE_LIMIT_AUTH_ENDPOINTS', 10),
            auth_paths=config.get('RATE_LIMIT_AUTH_PATHS', ('/api/login', '/api/register', '/api/refresh')),
            clock=clock
        )

    def _retry_after(self, window: _Window, now: float) -> int:
        return max(0, math.ceil(window.reset_at - now))

    def check(self, client_key: str, tier: TrustTier = TrustTier.ANONYMOUS, path: str = '') -> RateLimitStatus:
        """
        Count one request for ``client_key``.

        Raises:
            RateLimitError: limit reached; counters are left untouched
        """
        now = self._clock()
        limit = self.limits[tier]
        is_auth_path = path in self.auth_paths

        with self._lock:
            if now >= self._next_prune:
                self._prune(now)
            window = self._windows.get(client_key)
            if window is None or now >= window.reset_at:
                window = _Window(count=0, auth_count=0, reset_at=now + self.window_seconds)
                self._windows[client_key] = window

            if is_auth_path and window.auth_count >= self.auth_limit:
                logger.warning(f"[RATE] Auth limit reached for {client_key}")
                raise RateLimitError(self._retry_after(window, now), 'Too many attempts. Try again later.')

            if window.count >= limit:
                logger.warning(f"[RATE] {tier.value} limit {limit} reached for {client_key}")
                raise RateLimitError(self._retry_after(window, now))

            if is_auth_path:
                window.auth_count += 1
            window.count += 1

            return RateLimitStatus(limit=limit, remaining=limit - window.count, reset_at=window.reset_at)

    def _prune(self, now: float) -> None:
        """Drop expired windows; runs at most once per window length. Caller holds the lock."""
        expired = [key for key, w in self._windows.items() if now >= w.reset_at]
        for key in expired:
            del self._windows[key]
        self._next_prune = now + self.window_seconds

    def __len__(self):
        return len(self._windows)

    def reset(self, client_key: str = None) -> None:
        with self._lock:
            if client_key is None:
                self._windows.clear()
            else:
                self._windows.pop(client_key, None)
