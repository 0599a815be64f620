"""
Usage statistics for the Guestbook service.
"""

from typing import TYPE_CHECKING

from shared.logging import get_logger
from shared.errors import CacheError
from .models import StatsReport
from .entries.service import COUNTER_KEY

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .persistence.postgres import PostgreSQLStore
    from .cache.redis_cache import RedisCache


class StatsAggregator:
    """Combines the store row count with cache-resident counters.

    The store count is mandatory; everything read from the cache is
    best-effort and dropped as a whole when any cache call fails.
    """

    def __init__(self, store: "PostgreSQLStore", cache: "RedisCache", info_section: str = "stats"):
        self.store = store
        self.cache = cache
        self.info_section = info_section
        self.logger = get_logger("guestbook.stats")

    async def get_stats(self) -> StatsReport:
        total_in_store = await self.store.count_entries()

        try:
            raw_counter = await self.cache.get(COUNTER_KEY)
            cache_info = await self.cache.server_info(self.info_section)
        except CacheError as e:
            self.logger.warning("Cache statistics unavailable", error=e.message)
            return StatsReport(total_entries_db=total_in_store, cache_available=False)

        return StatsReport(
            total_entries_db=total_in_store,
            total_entries_created=self._parse_counter(raw_counter),
            cache_available=True,
            cache_info=cache_info
        )

    def _parse_counter(self, raw) -> int:
        if raw is None:
            return 0
        try:
            return int(raw)
        except (TypeError, ValueError):
            self.logger.warning("Non-integer entry counter", value=raw)
            return 0
