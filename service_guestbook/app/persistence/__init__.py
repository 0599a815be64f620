"""
Persistence package for the Guestbook Service (PostgreSQL via asyncpg).
"""
