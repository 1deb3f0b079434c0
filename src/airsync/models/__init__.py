"""
Models for the airsync service.
"""

from .mapping import (
    EXTERNAL_KEY_COLUMN, MISSING, DEFAULT_FIELD_MAPPINGS,
    FieldMapping, FieldMap, build_field_map, load_field_map
)
from .sync import AirtablePayload, SyncAction, SyncResult, SyncStrategy

__all__ = [
    # Field mapping
    "EXTERNAL_KEY_COLUMN",
    "MISSING",
    "DEFAULT_FIELD_MAPPINGS",
    "FieldMapping",
    "FieldMap",
    "build_field_map",
    "load_field_map",

    # Sync
    "AirtablePayload",
    "SyncAction",
    "SyncResult",
    "SyncStrategy",
]
