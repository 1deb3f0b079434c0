"""
PostgreSQL access for the sync table — connection pool, schema
initialisation, health check and the record store used by the engine.

Uses ``asyncpg``. Every statement is a single, parameterized command, so a
write either applies fully or leaves the row as it was.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import asyncpg

from ..models.mapping import FieldMap
from .statements import SyncStatements, build_statements

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Connection pool
# ---------------------------------------------------------------------------


async def create_pool(dsn: str, min_size: int = 1, max_size: int = 10) -> asyncpg.Pool:
    """Create and return an ``asyncpg`` connection pool.

    Raises:
        asyncpg.PostgresError, OSError: If the connection cannot be established.
    """
    pool = await asyncpg.create_pool(dsn=dsn, min_size=min_size, max_size=max_size)
    logger.info(f"Database pool created (min_size={min_size}, max_size={max_size})")
    return pool


async def health_check(pool: asyncpg.Pool) -> bool:
    """Return ``True`` if ``SELECT 1`` succeeds."""
    try:
        return await pool.fetchval("SELECT 1") == 1
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        logger.error(f"Database health check failed: {e}")
        return False


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------


def _command_count(status: str) -> int:
    # asyncpg command status: "INSERT 0 1", "UPDATE 1"
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError, IndexError):
        logger.debug(f"Unexpected command status string: {status}")
        return 0


class RecordStore:
    """Reads and writes Airtable records in one PostgreSQL table.

    Args:
        pool: An ``asyncpg`` pool (or connection) created via :func:`create_pool`.
        table: Target table name, ``table`` or ``schema.table``.
        field_map: Mapping table that fixes the column list and order.
    """

    def __init__(self, pool: asyncpg.Pool, table: str, field_map: FieldMap) -> None:
        self._pool = pool
        self.field_map = field_map
        self.statements: SyncStatements = build_statements(table, field_map)

    @property
    def table(self) -> str:
        return self.statements.table

    async def init_schema(self) -> None:
        """Create the table and the unique external-key index if missing.

        Idempotent (IF NOT EXISTS). Existing columns are never altered.
        """
        async with self._pool.acquire() as conn:
            await conn.execute(self.statements.create_table)
            await conn.execute(self.statements.create_key_index)
        logger.info(f"Schema ready for table {self.table}")

    async def find_by_airtable_id(self, airtable_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored row for ``airtable_id``, or None."""
        row = await self._pool.fetchrow(self.statements.select_by_key, airtable_id)
        return dict(row) if row is not None else None

    async def insert(self, airtable_id: str, values: List[Any]) -> None:
        """Insert a new row. ``values`` follow ``field_map.mapped_columns()``."""
        status = await self._pool.execute(self.statements.insert, airtable_id, *values)
        logger.debug(f"Inserted {airtable_id} into {self.table} ({status})")

    async def update(self, airtable_id: str, values: List[Any]) -> int:
        """Overwrite every mapped column of the row. Returns rows updated."""
        status = await self._pool.execute(self.statements.update, *values, airtable_id)
        updated = _command_count(status)
        logger.debug(f"Updated {airtable_id} in {self.table} ({status})")
        return updated

    async def upsert(self, airtable_id: str, values: List[Any]) -> bool:
        """Insert or overwrite in one statement. Returns True if inserted."""
        inserted = await self._pool.fetchval(self.statements.upsert, airtable_id, *values)
        return bool(inserted)

    async def ping(self) -> bool:
        return await health_check(self._pool)

    async def count(self) -> int:
        return await self._pool.fetchval(f"SELECT COUNT(*) FROM {self.table}") or 0
