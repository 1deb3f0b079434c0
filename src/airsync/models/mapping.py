"""
Field mapping models: the naming contract between Airtable fields and
PostgreSQL columns.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..exceptions import ConfigurationError
from ..transforms import TRANSFORMS, FieldTransformer

logger = logging.getLogger(__name__)

EXTERNAL_KEY_COLUMN = "airtable_id"

# Written for a mapped field the event does not carry; stored as NULL.
MISSING = None

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def is_valid_identifier(name: str) -> bool:
    """Whether ``name`` can be used unquoted as a PostgreSQL identifier."""
    return bool(_IDENTIFIER_RE.match(name or ""))


class FieldMapping(BaseModel):
    """Maps one Airtable field to one PostgreSQL column."""
    source_field: str = Field(..., min_length=1, description="Field name in Airtable")
    target_field: str = Field(..., description="Column name in PostgreSQL")
    transform: Optional[str] = Field(None, description="Optional coercion applied before writing")
    column_type: str = Field("TEXT", description="Column type used when creating the table")

    @field_validator("target_field")
    @classmethod
    def validate_target_field(cls, v: str) -> str:
        if not is_valid_identifier(v):
            raise ValueError(f"'{v}' is not a valid column name")
        return v

    @field_validator("transform")
    @classmethod
    def validate_transform(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in TRANSFORMS:
            raise ValueError(f"Unknown transform '{v}', expected one of: {', '.join(TRANSFORMS)}")
        return v

    @field_validator("column_type")
    @classmethod
    def validate_column_type(cls, v: str) -> str:
        # Types are interpolated into DDL, so only plain type names are allowed
        if not re.match(r"^[A-Za-z][A-Za-z0-9_ ]*(\(\d+(,\s*\d+)?\))?(\[\])?$", v):
            raise ValueError(f"'{v}' is not a supported column type")
        return v


class FieldMap(BaseModel):
    """
    Ordered, immutable field mapping table.

    Declaration order fixes the column order of generated statements and the
    positional order of their parameters.
    """
    mappings: List[FieldMapping]
    key_column: str = EXTERNAL_KEY_COLUMN

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_mappings(self) -> "FieldMap":
        if not self.mappings:
            raise ValueError("At least one field mapping is required")

        sources = [m.source_field for m in self.mappings]
        if len(set(sources)) != len(sources):
            raise ValueError("Duplicate source field in field mappings")

        targets = [m.target_field.lower() for m in self.mappings]
        if len(set(targets)) != len(targets):
            raise ValueError("Duplicate target column in field mappings")
        if self.key_column.lower() in targets:
            raise ValueError(f"Column '{self.key_column}' is reserved for the external key")
        return self

    def columns(self) -> List[str]:
        """Column names in statement order, external-key column first."""
        return [self.key_column] + self.mapped_columns()

    def mapped_columns(self) -> List[str]:
        return [m.target_field for m in self.mappings]

    def extract_values(self, fields: Mapping[str, Any]) -> List[Any]:
        """
        Pull one value per mapping from an Airtable ``fields`` object.

        Fields absent from the event yield ``MISSING``; fields the table does
        not know are ignored. Transforms only apply to present, non-null values.
        """
        values = []
        for mapping in self.mappings:
            if mapping.source_field not in fields:
                values.append(MISSING)
                continue
            values.append(FieldTransformer.apply_transform(fields[mapping.source_field], mapping.transform))
        return values

    def to_dict(self) -> Dict[str, str]:
        """Plain ``{source_field: target_field}`` view, in declared order."""
        return {m.source_field: m.target_field for m in self.mappings}


DEFAULT_FIELD_MAPPINGS = [
    FieldMapping(source_field="record_id", target_field="record_id"),
    FieldMapping(source_field="Startup name", target_field="Startup_Name"),
    FieldMapping(source_field="PH1_Constitution_Location", target_field="PH1_Constitution_Location"),
    FieldMapping(source_field="date_sourced", target_field="date_sourced"),
]


def build_field_map(entries: Sequence[Union[FieldMapping, Dict[str, Any]]]) -> FieldMap:
    """Build a validated ``FieldMap``, raising ``ConfigurationError`` on bad input."""
    try:
        return FieldMap(mappings=[
            entry if isinstance(entry, FieldMapping) else FieldMapping(**entry)
            for entry in entries
        ])
    except (ValidationError, TypeError) as e:
        raise ConfigurationError(f"Invalid field mapping: {e}") from e


def load_field_map(path: Optional[str] = None) -> FieldMap:
    """
    Load the field mapping table.

    Args:
        path: JSON file holding a list of mapping objects, or an object with a
              ``mappings`` list. When None, the default table is used.

    Returns:
        Validated FieldMap
    """
    if not path:
        return build_field_map(DEFAULT_FIELD_MAPPINGS)

    file_path = Path(path)
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read field mapping file {file_path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("mappings")
    if not isinstance(data, list):
        raise ConfigurationError(f"Field mapping file {file_path} must contain a list of mappings")

    field_map = build_field_map(data)
    logger.info(f"Loaded {len(field_map.mappings)} field mappings from {file_path}")
    return field_map
