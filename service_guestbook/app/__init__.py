"""
Guestbook Service package.

Stores guestbook entries in PostgreSQL and serves the listing through a
Redis cache-aside layer. It provides:

- app.main: API surface for entries, health and statistics.
- app.entries: Entry service and the read-through cache strategy.
- app.cache: Redis adapter.
- app.persistence: PostgreSQL adapter.

Guidelines:
- PostgreSQL is the source of truth; Redis only accelerates reads.
- A Redis outage never fails a request that the store can serve.
"""
