"""
Data models for the Guestbook service.
"""

from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, TypeAdapter


class CacheOutcome(str, Enum):
    """Whether a listing was served from the cache."""
    HIT = "HIT"
    MISS = "MISS"


class HealthStatus(str, Enum):
    """Health status values."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


class Entry(BaseModel):
    """A stored guestbook entry."""
    id: int = Field(..., description="Store-assigned identifier")
    name: str = Field(..., description="Author name")
    message: str = Field(..., description="Entry text")
    created_at: datetime = Field(..., description="Store-assigned creation time")


EntryList = TypeAdapter(List[Entry])


class EntryCreateRequest(BaseModel):
    """Request model for creating an entry."""
    name: str = Field("", description="Author name")
    message: str = Field("", description="Entry text")


@dataclass
class ListEntriesResult:
    """Entries plus where they were served from."""
    entries: List[Entry]
    cache_outcome: CacheOutcome


@dataclass
class SideEffectOutcome:
    """Result of one secondary effect run after a committed write."""
    name: str
    succeeded: bool
    error: Optional[str] = None


@dataclass
class CreateEntryResult:
    """A committed entry and the fate of its secondary effects."""
    entry: Entry
    side_effects: List[SideEffectOutcome] = field(default_factory=list)

    @property
    def fully_applied(self) -> bool:
        return all(effect.succeeded for effect in self.side_effects)

    @property
    def failed_effects(self) -> List[str]:
        return [effect.name for effect in self.side_effects if not effect.succeeded]


class HealthReport(BaseModel):
    """Combined dependency health."""
    status: HealthStatus
    database: HealthStatus
    cache: HealthStatus


class StatsReport(BaseModel):
    """Aggregate usage statistics."""
    total_entries_db: int
    total_entries_created: Optional[int] = None
    cache_available: bool
    cache_info: Optional[Dict[str, Any]] = None
