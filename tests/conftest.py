"""
Shared fixtures: field maps and an in-memory record store that behaves like
the PostgreSQL table (unique external key, single-statement writes).
"""

from typing import Any, Dict, List, Optional

import asyncpg
import pytest

from airsync.models.mapping import FieldMap, load_field_map


class InMemoryRecordStore:
    """Stand-in for ``RecordStore`` keeping rows in a dict.

    ``fail_with`` makes the next write raise that exception without touching
    the stored rows.
    """

    def __init__(self, field_map: FieldMap, table: str = "airtable_contacts") -> None:
        self.field_map = field_map
        self.table = table
        self.rows: List[Dict[str, Any]] = []
        self.reads = 0
        self.writes = 0
        self.fail_with: Optional[BaseException] = None

    def _row_for(self, airtable_id: str) -> Optional[Dict[str, Any]]:
        for row in self.rows:
            if row[self.field_map.key_column] == airtable_id:
                return row
        return None

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc

    def rows_for(self, airtable_id: str) -> List[Dict[str, Any]]:
        return [r for r in self.rows if r[self.field_map.key_column] == airtable_id]

    async def ping(self) -> bool:
        return True

    async def count(self) -> int:
        return len(self.rows)

    async def find_by_airtable_id(self, airtable_id: str) -> Optional[Dict[str, Any]]:
        self.reads += 1
        row = self._row_for(airtable_id)
        return dict(row) if row is not None else None

    async def insert(self, airtable_id: str, values: List[Any]) -> None:
        self.writes += 1
        self._maybe_fail()
        if self._row_for(airtable_id) is not None:
            raise asyncpg.exceptions.UniqueViolationError(
                f'duplicate key value violates unique constraint "{self.table}_airtable_id_key"'
            )
        self.rows.append(dict(zip(self.field_map.columns(), [airtable_id] + list(values))))

    async def update(self, airtable_id: str, values: List[Any]) -> int:
        self.writes += 1
        self._maybe_fail()
        row = self._row_for(airtable_id)
        if row is None:
            return 0
        row.update(zip(self.field_map.mapped_columns(), values))
        return 1

    async def upsert(self, airtable_id: str, values: List[Any]) -> bool:
        self.writes += 1
        self._maybe_fail()
        row = self._row_for(airtable_id)
        if row is None:
            self.rows.append(dict(zip(self.field_map.columns(), [airtable_id] + list(values))))
            return True
        row.update(zip(self.field_map.mapped_columns(), values))
        return False


@pytest.fixture
def field_map() -> FieldMap:
    return load_field_map()


@pytest.fixture
def store(field_map) -> InMemoryRecordStore:
    return InMemoryRecordStore(field_map)
