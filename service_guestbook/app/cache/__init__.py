"""
Cache package for the Guestbook Service.

Wraps a shared redis.asyncio client; command failures surface as
CacheError so callers can degrade instead of failing.
"""
