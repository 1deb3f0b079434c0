"""
Sync engine that reconciles Airtable change events into PostgreSQL.
"""

import logging
from typing import Any, Mapping, Union

from ..models.sync import SyncAction, SyncResult, SyncStrategy
from ..storage.postgres import RecordStore

logger = logging.getLogger(__name__)


class SyncEngine:
    """
    Makes the stored row for an Airtable record converge with the latest event.

    Each call performs one read and one write against the store (``lookup``
    strategy) or a single insert-or-update statement (``upsert`` strategy).
    Storage errors are never caught here: they reach the caller unchanged, and
    because every write is a single statement the row is left as it was.
    """

    def __init__(self, store: RecordStore, strategy: Union[SyncStrategy, str] = SyncStrategy.LOOKUP):
        """
        Initialize the sync engine.

        Args:
            store: Record store for the target table
            strategy: ``lookup`` (select, then insert or update) or ``upsert``
        """
        self.store = store
        self.strategy = SyncStrategy(strategy)

    @property
    def field_map(self):
        return self.store.field_map

    async def sync(self, airtable_id: str, fields: Mapping[str, Any]) -> SyncResult:
        """
        Create or fully overwrite the row for ``airtable_id``.

        Mapped fields missing from ``fields`` are written as NULL; unmapped
        fields are ignored.

        Args:
            airtable_id: Airtable record id (non-empty string)
            fields: Airtable field name to value

        Returns:
            SyncResult with the action taken

        Raises:
            ValueError: If the identifier or fields have the wrong shape
        """
        if not isinstance(airtable_id, str) or not airtable_id:
            raise ValueError("airtable_id must be a non-empty string")
        if not isinstance(fields, Mapping):
            raise ValueError("fields must be a mapping of field name to value")

        values = self.field_map.extract_values(fields)

        if self.strategy == SyncStrategy.UPSERT:
            inserted = await self.store.upsert(airtable_id, values)
            action = SyncAction.CREATED if inserted else SyncAction.UPDATED
        else:
            existing = await self.store.find_by_airtable_id(airtable_id)
            if existing is None:
                # A concurrent insert for the same id fails here on the
                # unique key and is reported, not retried as an update.
                await self.store.insert(airtable_id, values)
                action = SyncAction.CREATED
            else:
                await self.store.update(airtable_id, values)
                action = SyncAction.UPDATED

        logger.info(f"Record {airtable_id} {action.value} in {self.store.table}")
        return SyncResult(airtable_id=airtable_id, action=action)
