"""
Sync engine for reconciling Airtable records into PostgreSQL.
"""

from .sync import SyncEngine

__all__ = [
    "SyncEngine",
]
