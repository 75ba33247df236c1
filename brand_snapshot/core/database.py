"""
Async PostgreSQL connection pool for the Brand Snapshot backend.

Holds a module-level asyncpg pool shared by the record repository and the
snapshot storage service.

Key Components:
- init_db(): Create the pool at application startup
- get_db_pool(): Get the pool, creating it lazily if needed
- close_db(): Close the pool at application shutdown

Pool sizing and the per-query timeout come from Settings
(db_pool_min_size, db_pool_max_size, db_command_timeout). The command
timeout is the only timeout applied to record fetching.

Usage:
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch("SELECT * FROM monthly_metrics WHERE year = $1", 2025)
"""

from typing import Optional

import asyncpg
from asyncpg import Pool

from brand_snapshot.core.config import get_settings


# Global connection pool instance - None until init_db() is called
_pool: Optional[Pool] = None


async def init_db() -> Pool:
    """
    Initialize the database connection pool.

    Idempotent: returns the existing pool if one was already created.

    Raises:
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()
        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing if needed.

    Prefer calling init_db() at startup; lazy initialization adds the
    connection latency to the first request.
    """
    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Idempotent; a later get_db_pool() call creates a new pool.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
