"""
Dependency health aggregation for the Guestbook service.
"""

import asyncio
from typing import Awaitable, Callable, TYPE_CHECKING

from shared.logging import get_logger
from .models import HealthReport, HealthStatus

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .persistence.postgres import PostgreSQLStore
    from .cache.redis_cache import RedisCache


DEFAULT_HEALTH_TIMEOUT = 2.0


class HealthAggregator:
    """Pings store and cache independently and combines the results."""

    def __init__(self, store: "PostgreSQLStore", cache: "RedisCache", timeout: float = DEFAULT_HEALTH_TIMEOUT):
        self.store = store
        self.cache = cache
        self.timeout = timeout
        self.logger = get_logger("guestbook.health")

    async def check_health(self) -> HealthReport:
        database, cache = await asyncio.gather(
            self._check_dependency("database", self.store.ping),
            self._check_dependency("cache", self.cache.ping),
        )

        if database is HealthStatus.HEALTHY and cache is HealthStatus.HEALTHY:
            overall = HealthStatus.HEALTHY
        else:
            overall = HealthStatus.DEGRADED

        return HealthReport(status=overall, database=database, cache=cache)

    async def _check_dependency(self, name: str, ping: Callable[[], Awaitable[None]]) -> HealthStatus:
        try:
            await asyncio.wait_for(ping(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning("Dependency check timed out", dependency=name, timeout=self.timeout)
            return HealthStatus.UNHEALTHY
        except Exception as e:
            self.logger.warning("Dependency check failed", dependency=name, error=str(e))
            return HealthStatus.UNHEALTHY
        return HealthStatus.HEALTHY
