"""
Latency injection for quirky identities.

Delays are the only suspension points of the commerce engine. Other requests
may interleave while one is sleeping; nothing cancels a started delay.
"""
import asyncio
import enum
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

from shopmock.models import BehaviorType, Identity

logger = logging.getLogger(__name__)


class LatencyPoint(enum.Enum):
    """Where in a request a delay can be injected."""
    LOGIN = "LOGIN"
    INVENTORY = "INVENTORY"
    CHECKOUT = "CHECKOUT"


class LatencyInjector:
    """Awaitable delay parameterized by behavior type and request point."""

    def __init__(
        self,
        durations: Dict[Tuple[BehaviorType, LatencyPoint], float] = None,
        sleep: Callable[[float], Awaitable[None]] = None
    ):
        self._durations = dict(durations or {})
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_config(cls, config, sleep=None) -> 'LatencyInjector':
        return cls({
            (BehaviorType.PERFORMANCE, LatencyPoint.LOGIN): config.get('LOGIN_DELAY_SECONDS', 2.5),
            (BehaviorType.PERFORMANCE, LatencyPoint.INVENTORY): config.get('INVENTORY_DELAY_SECONDS', 3.0),
            (BehaviorType.ERROR, LatencyPoint.CHECKOUT): config.get('CHECKOUT_FAILURE_DELAY_SECONDS', 2.0),
        }, sleep=sleep)

    def duration_for(self, identity: Optional[Identity], point: LatencyPoint) -> float:
        if identity is None:
            return 0.0
        return float(self._durations.get((identity.behavior, point), 0.0))

    async def inject(self, identity: Optional[Identity], point: LatencyPoint) -> float:
        """Sleep for the configured duration; returns the seconds applied."""
        seconds = self.duration_for(identity, point)
        if identity is not None and (identity.behavior, point) in self._durations:
            logger.info(f"[LATENCY] {identity.username} ({identity.behavior.value}) {point.value}: {seconds}s")
            await self._sleep(seconds)
        return seconds
