"""
Cache read strategies for the Guestbook service.
"""

from typing import Awaitable, Callable, Optional, Tuple, TypeVar, TYPE_CHECKING

from shared.logging import get_logger
from shared.errors import CacheError, CacheCorruptionError
from ..models import CacheOutcome

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..cache.redis_cache import RedisCache
    from shared.metrics import MetricsCollector

T = TypeVar("T")

DEFAULT_LISTING_TTL = 30


class ReadThroughWithTTL:
    """Cache-aside read: try the cache, fall back to the loader, write back with a TTL.

    No stampede control: concurrent misses each call the loader and each
    write the same value back.
    """

    def __init__(
        self,
        cache: "RedisCache",
        ttl_seconds: int = DEFAULT_LISTING_TTL,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.metrics = metrics
        self.logger = get_logger("guestbook.entries.strategy")

    async def read(
        self,
        key: str,
        load: Callable[[], Awaitable[T]],
        encode: Callable[[T], str],
        decode: Callable[[str], T],
    ) -> Tuple[T, CacheOutcome]:
        """Return the value for ``key`` and whether it came from the cache.

        Raises CacheCorruptionError when a cached value cannot be decoded.
        Loader errors propagate untouched and nothing is written back.
        """
        cache_reachable = True
        try:
            cached = await self.cache.get(key)
        except CacheError as e:
            self.logger.warning("Cache unreachable, reading from store", cache_key=key, error=e.message)
            cache_reachable = False
            cached = None

        if cached is not None:
            try:
                value = decode(cached)
            except Exception as e:
                self.logger.error("Undecodable cache value", cache_key=key, error=str(e))
                raise CacheCorruptionError(key) from e
            self._record(CacheOutcome.HIT)
            return value, CacheOutcome.HIT

        value = await load()
        self._record(CacheOutcome.MISS)

        if cache_reachable:
            try:
                await self.cache.set(key, encode(value), self.ttl_seconds)
            except CacheError as e:
                self.logger.warning("Cache write-back failed", cache_key=key, error=e.message)

        return value, CacheOutcome.MISS

    def _record(self, outcome: CacheOutcome):
        if self.metrics is not None:
            self.metrics.increment_counter("cache_lookups_total", outcome=outcome.value)
