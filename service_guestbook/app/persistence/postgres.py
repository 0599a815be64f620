"""
PostgreSQL persistence layer for the Guestbook service.
"""

from contextlib import nullcontext
from typing import List, Optional, TYPE_CHECKING

import asyncpg
from shared.logging import get_logger
from shared.errors import StoreError
from ..models import Entry

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class PostgreSQLStore:
    """Durable store for guestbook entries."""

    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = 10,
        timeout: float = 5.0,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger("guestbook.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Open the connection pool and make sure the table exists.

        An unreachable database is logged, not raised, so the service still
        comes up and reports the store as unhealthy. The pool is then
        created on first use.
        """
        try:
            self.pool = await self._connect()
            self.logger.info("PostgreSQL store started")
        except Exception as e:
            self.logger.warning("PostgreSQL unavailable at startup", error=str(e))

    async def stop(self):
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.logger.info("PostgreSQL store stopped")

    async def _connect(self) -> asyncpg.Pool:
        pool = await asyncpg.create_pool(
            self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=self.timeout,
            timeout=self.timeout
        )
        try:
            await self._create_tables(pool)
        except Exception:
            await pool.close()
            raise
        return pool

    async def _create_tables(self, pool: asyncpg.Pool):
        """Create database tables."""
        async with pool.acquire(timeout=self.timeout) as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS entries (
                    id SERIAL PRIMARY KEY,
                    name TEXT NOT NULL,
                    message TEXT NOT NULL,
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)

    async def _require_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            try:
                self.pool = await self._connect()
            except Exception as e:
                self.logger.error("PostgreSQL unavailable", error=str(e))
                raise StoreError("Store unavailable", {"error": str(e)}) from e
            self.logger.info("PostgreSQL store connected")
        return self.pool

    def _timed(self, operation: str):
        if self.metrics is not None:
            return self.metrics.time_operation("store_operation_duration_seconds", operation=operation)
        return nullcontext()

    async def ping(self) -> None:
        """Round-trip a trivial query; raises StoreError on failure."""
        pool = await self._require_pool()
        try:
            async with pool.acquire(timeout=self.timeout) as conn:
                await conn.fetchval("SELECT 1", timeout=self.timeout)
        except Exception as e:
            raise StoreError("Ping failed", {"error": str(e)}) from e

    async def insert_entry(self, name: str, message: str) -> Entry:
        """Insert an entry; id and created_at come back from the store."""
        pool = await self._require_pool()
        try:
            with self._timed("insert"):
                async with pool.acquire(timeout=self.timeout) as conn:
                    row = await conn.fetchrow(
                        "INSERT INTO entries (name, message) VALUES ($1, $2) RETURNING id, created_at",
                        name, message,
                        timeout=self.timeout
                    )
        except Exception as e:
            self.logger.error("Error inserting entry", error=str(e))
            raise StoreError("Failed to insert entry", {"error": str(e)}) from e

        self.logger.info("Entry inserted", entry_id=row["id"])
        return Entry(id=row["id"], name=name, message=message, created_at=row["created_at"])

    async def list_all_entries(self) -> List[Entry]:
        """Load every entry in insertion order."""
        pool = await self._require_pool()
        try:
            with self._timed("list"):
                async with pool.acquire(timeout=self.timeout) as conn:
                    rows = await conn.fetch(
                        "SELECT id, name, message, created_at FROM entries ORDER BY id ASC",
                        timeout=self.timeout
                    )
        except Exception as e:
            self.logger.error("Error listing entries", error=str(e))
            raise StoreError("Failed to list entries", {"error": str(e)}) from e

        return [self._row_to_entry(row) for row in rows]

    async def count_entries(self) -> int:
        """Get total number of entries."""
        pool = await self._require_pool()
        try:
            with self._timed("count"):
                async with pool.acquire(timeout=self.timeout) as conn:
                    count = await conn.fetchval("SELECT COUNT(*) FROM entries", timeout=self.timeout)
        except Exception as e:
            self.logger.error("Error counting entries", error=str(e))
            raise StoreError("Failed to count entries", {"error": str(e)}) from e

        return count or 0

    def _row_to_entry(self, row) -> Entry:
        """Convert database row to Entry."""
        return Entry(
            id=row["id"],
            name=row["name"],
            message=row["message"],
            created_at=row["created_at"]
        )
