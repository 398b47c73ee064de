# -*- coding: utf-8 -*-
"""
Async PostgreSQL access for RavenLoom.

Thin wrapper over an asyncpg pool: every call is one short round trip
(acquire, run a single statement, release). Nothing in the graph or fact
pipeline spans a transaction; correctness under races comes from unique
constraints.

Vectors travel as pgvector text literals ('[0.1,0.2,...]') cast with
::vector in the SQL.
"""
# Standard library
import asyncio
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

# Third-party
import asyncpg
import numpy as np

# Config imports (direct)
from config.extraction_config import DATABASE_CONFIG

# Local
from ravenloom.utils.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent.parent / 'schema.sql'


def vec_to_pg(vec: Optional[Sequence[float]]) -> Optional[str]:
    """Convert an embedding to a pgvector literal, passing None through."""
    if vec is None:
        return None
    values = np.asarray(vec, dtype=float).flatten().tolist()
    return '[' + ','.join(map(str, values)) + ']'


def parse_command_count(result: Optional[str]) -> int:
    """Parse row count from an asyncpg command tag (e.g. 'UPDATE 3' -> 3)."""
    try:
        return int(result.split()[-1])
    except (ValueError, IndexError, AttributeError):
        return 0


class Database:
    """
    Owns (or borrows) an asyncpg pool and exposes the four query shapes the
    services need.

    Example:
        db = Database()
        await db.connect()
        row = await db.fetchrow("SELECT 1 AS one")
        await db.close()
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        pool: Optional[asyncpg.Pool] = None,
        min_size: int = DATABASE_CONFIG['min_size'],
        max_size: int = DATABASE_CONFIG['max_size'],
        command_timeout: float = DATABASE_CONFIG['command_timeout'],
    ):
        """
        Args:
            dsn: PostgreSQL DSN (defaults to DATABASE_URL). Ignored when pool is given.
            pool: Existing pool. The caller keeps ownership and closes it.
        """
        self.dsn = dsn or DATABASE_CONFIG['dsn']
        self.pool = pool
        self._owns_pool = pool is None
        self._connect_lock = asyncio.Lock()
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout

    async def connect(self) -> None:
        """Create the pool if we don't have one yet. Concurrent callers share one pool."""
        if self.pool is not None:
            return
        async with self._connect_lock:
            if self.pool is not None:
                return
            if not self.dsn:
                raise DatabaseConnectionError("DATABASE_URL is not configured")
            try:
                self.pool = await asyncpg.create_pool(
                    dsn=self.dsn,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    command_timeout=self.command_timeout,
                )
            except (asyncpg.PostgresError, OSError) as e:
                raise DatabaseConnectionError(f"Failed to create database pool: {e}", cause=e) from e
        logger.info("Database pool created (min=%d, max=%d)", self.min_size, self.max_size)

    async def close(self) -> None:
        """Close the pool if this wrapper created it."""
        if self._owns_pool and self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def __aenter__(self) -> 'Database':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Query shapes
    # ------------------------------------------------------------------

    async def fetch(self, query: str, *args: Any) -> List[asyncpg.Record]:
        await self.connect()
        async with self.pool.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> Optional[asyncpg.Record]:
        await self.connect()
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        await self.connect()
        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        await self.connect()
        async with self.pool.acquire() as conn:
            return await conn.execute(query, *args)

    async def initialize_schema(self, schema_path: Path = SCHEMA_PATH) -> None:
        """Apply schema.sql (idempotent: every statement uses IF NOT EXISTS)."""
        sql = Path(schema_path).read_text(encoding='utf-8')
        await self.execute(sql)
        logger.info("Schema applied from %s", schema_path)
