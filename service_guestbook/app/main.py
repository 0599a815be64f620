"""
Guestbook service: entries API, dependency health and usage statistics.
"""

from typing import List, Optional

from fastapi import Response
from shared.base_service import BaseService
from shared.config import ServiceConfig

from .models import Entry, EntryCreateRequest, HealthReport, StatsReport, HealthStatus
from .persistence.postgres import PostgreSQLStore
from .cache.redis_cache import RedisCache
from .entries.service import EntryService
from .entries.strategy import ReadThroughWithTTL
from .health import HealthAggregator
from .stats import StatsAggregator


class GuestbookService(BaseService):
    """Guestbook service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        store: Optional[PostgreSQLStore] = None,
        cache: Optional[RedisCache] = None,
    ):
        super().__init__("guestbook", config)

        self.store = store or PostgreSQLStore(
            self.config.postgres_dsn,
            min_size=self.config.db_pool_min_size,
            max_size=self.config.db_pool_max_size,
            timeout=self.config.operation_timeout,
            metrics=self.metrics
        )
        self.cache = cache or RedisCache(self.config.redis_url, timeout=self.config.operation_timeout)

        self.entries = EntryService(
            self.store,
            self.cache,
            strategy=ReadThroughWithTTL(self.cache, self.config.listing_cache_ttl, metrics=self.metrics),
            metrics=self.metrics
        )
        self.health = HealthAggregator(self.store, self.cache, timeout=self.config.health_timeout)
        self.stats = StatsAggregator(self.store, self.cache)

        self._setup_guestbook_routes()

    def _setup_guestbook_routes(self):
        """Set up guestbook-specific routes."""

        @self.app.get("/health", response_model=HealthReport)
        async def health_check():
            """Report store and cache health; always 200."""
            report = await self.health.check_health()
            self.metrics.record_health_check(report.status.value)
            if report.status is not HealthStatus.HEALTHY:
                self.logger.warning(
                    "Service degraded",
                    database=report.database.value,
                    cache=report.cache.value
                )
            return report

        @self.app.get("/api/entries", response_model=List[Entry])
        async def list_entries(response: Response):
            """List all entries; X-Cache tells whether the cache served them."""
            result = await self.entries.list_entries()
            response.headers["X-Cache"] = result.cache_outcome.value
            return result.entries

        @self.app.post("/api/entries", response_model=Entry, status_code=201)
        async def create_entry(request: EntryCreateRequest, response: Response):
            """Create an entry."""
            result = await self.entries.create_entry(request.name, request.message)
            if not result.fully_applied:
                response.headers["X-Degraded-Effects"] = ",".join(result.failed_effects)
            return result.entry

        @self.app.get("/api/stats", response_model=StatsReport, response_model_exclude_none=True)
        async def get_stats():
            """Store count plus best-effort cache counters."""
            return await self.stats.get_stats()

    async def start(self):
        """Start guestbook service components."""
        await self.store.start()
        await self.cache.start()
        self.logger.info("Guestbook service started")

    async def stop(self):
        """Stop guestbook service components."""
        await self.store.stop()
        await self.cache.stop()
        self.logger.info("Guestbook service stopped")


def create_app(
    config: Optional[ServiceConfig] = None,
    *,
    store: Optional[PostgreSQLStore] = None,
    cache: Optional[RedisCache] = None,
):
    """Create guestbook service application."""
    service = GuestbookService(config, store=store, cache=cache)
    return service.app


if __name__ == "__main__":
    service = GuestbookService()
    service.run()
