"""
Entries package.

- service: list (cache-aside) and create (insert, invalidate, count).
- strategy: the read-through-with-TTL cache strategy used for listings.
"""
