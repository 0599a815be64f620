"""
Entry service: cache-aside listing and write-then-invalidate creation.
"""

import json
from typing import List, Optional, TYPE_CHECKING

from shared.logging import get_logger
from shared.errors import ValidationError, CacheError
from ..models import (
    Entry, EntryList, ListEntriesResult, CreateEntryResult, SideEffectOutcome
)
from .strategy import ReadThroughWithTTL

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..persistence.postgres import PostgreSQLStore
    from ..cache.redis_cache import RedisCache
    from shared.metrics import MetricsCollector


LISTING_KEY = "entries:all"
COUNTER_KEY = "stats:total_entries"

EFFECT_INVALIDATE = "invalidate_listing"
EFFECT_INCREMENT = "increment_counter"


def encode_entries(entries: List[Entry]) -> str:
    return json.dumps([entry.model_dump(mode="json") for entry in entries])


def decode_entries(raw: str) -> List[Entry]:
    return EntryList.validate_json(raw)


class EntryService:
    """Lists and creates guestbook entries."""

    def __init__(
        self,
        store: "PostgreSQLStore",
        cache: "RedisCache",
        *,
        strategy: Optional[ReadThroughWithTTL] = None,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.cache = cache
        self.strategy = strategy or ReadThroughWithTTL(cache, metrics=metrics)
        self.metrics = metrics
        self.logger = get_logger("guestbook.entries.service")

    async def list_entries(self) -> ListEntriesResult:
        """List all entries, served from the cache when possible."""
        entries, outcome = await self.strategy.read(
            LISTING_KEY,
            self.store.list_all_entries,
            encode_entries,
            decode_entries,
        )
        return ListEntriesResult(entries=entries, cache_outcome=outcome)

    async def create_entry(self, name: Optional[str], message: Optional[str]) -> CreateEntryResult:
        """Persist a new entry, then invalidate the listing and bump the counter.

        Only validation and store failures raise. Cache failures after the
        insert are reported on the result.
        """
        name = (name or "").strip()
        message = (message or "").strip()

        missing = [field for field, value in (("name", name), ("message", message)) if not value]
        if missing:
            raise ValidationError("Name and message are required", {"missing": missing})

        entry = await self.store.insert_entry(name, message)

        side_effects = [
            await self._run_effect(EFFECT_INVALIDATE, self.cache.delete(LISTING_KEY)),
            await self._run_effect(EFFECT_INCREMENT, self.cache.increment(COUNTER_KEY)),
        ]

        result = CreateEntryResult(entry=entry, side_effects=side_effects)
        if result.fully_applied:
            self.logger.info("Entry created", entry_id=entry.id)
        else:
            self.logger.warning(
                "Entry created with failed side effects",
                entry_id=entry.id,
                failed=result.failed_effects
            )
        return result

    async def _run_effect(self, name: str, operation) -> SideEffectOutcome:
        try:
            await operation
        except CacheError as e:
            self.logger.warning("Side effect failed", effect=name, error=e.message, details=e.details)
            if self.metrics is not None:
                self.metrics.increment_counter("side_effect_failures_total", effect=name)
            return SideEffectOutcome(name=name, succeeded=False, error=e.message)
        return SideEffectOutcome(name=name, succeeded=True)
