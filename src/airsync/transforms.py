"""
Value coercions applied to Airtable fields before they are written.
"""

import json
import logging
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)

TRANSFORMS = (
    "string",
    "int",
    "float",
    "round",
    "round_to_cents",
    "bool",
    "uppercase",
    "lowercase",
    "strip",
    "date",
    "datetime",
    "json",
)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class FieldTransformer:
    """
    Coerces Airtable values to the Python types asyncpg expects for a column.
    """

    @staticmethod
    def apply_transform(value: Any, transform: Optional[str]) -> Any:
        """
        Apply a transformation to a value.

        A failed coercion is logged and the original value is returned, so the
        storage layer reports the mismatch.

        Args:
            value: The value to transform
            transform: The transformation to apply

        Returns:
            Transformed value
        """
        if not transform or value is None:
            return value

        try:
            if transform == "string":
                return str(value)
            elif transform == "int":
                return int(float(value))
            elif transform == "float":
                return float(value)
            elif transform == "round":
                return round(float(value))
            elif transform == "round_to_cents":
                return round(float(value), 2)
            elif transform == "bool":
                if isinstance(value, str):
                    return value.strip().lower() in ("1", "true", "yes", "y", "on")
                return bool(value)
            elif transform == "uppercase":
                return str(value).upper()
            elif transform == "lowercase":
                return str(value).lower()
            elif transform == "strip":
                return str(value).strip()
            elif transform == "date":
                if isinstance(value, date) and not isinstance(value, datetime):
                    return value
                return _parse_datetime(value).date()
            elif transform == "datetime":
                return _parse_datetime(value)
            elif transform == "json":
                # Linked records, attachments and multi-selects arrive as lists
                return json.dumps(value)
            else:
                logger.warning(f"Unknown transform: {transform}")
                return value

        except (ValueError, TypeError) as e:
            logger.error(f"Transform '{transform}' failed for value '{value}': {e}")
            return value
