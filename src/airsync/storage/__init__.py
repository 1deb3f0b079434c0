"""
PostgreSQL storage for synced Airtable records.
"""

from .postgres import RecordStore, create_pool, health_check
from .statements import SyncStatements, build_statements, validate_table_name

__all__ = [
    "RecordStore",
    "create_pool",
    "health_check",
    "SyncStatements",
    "build_statements",
    "validate_table_name",
]
