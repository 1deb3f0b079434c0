"""
Models for inbound change events and sync results.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class SyncAction(str, Enum):
    """Transition taken by a sync call."""
    CREATED = "created"
    UPDATED = "updated"


class SyncStrategy(str, Enum):
    """How the engine reaches the create/update decision."""
    LOOKUP = "lookup"
    UPSERT = "upsert"


class AirtablePayload(BaseModel):
    """
    Change event posted by the Airtable automation.

    Both keys are optional here so the webhook can answer a malformed event
    with its own 400 response instead of FastAPI's validation error.
    """
    id: Optional[str] = Field(None, description="Airtable record id, e.g. recXXXXXXXXXXXXXX")
    fields: Optional[Dict[str, Any]] = Field(None, description="Airtable field name to value")

    model_config = {"extra": "ignore"}

    def is_complete(self) -> bool:
        return bool(self.id) and self.fields is not None


class SyncResult(BaseModel):
    """Outcome of one sync call."""
    airtable_id: str
    action: SyncAction

    def to_response(self) -> Dict[str, Any]:
        return {"success": True, "action": self.action.value}
