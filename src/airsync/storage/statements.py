"""
SQL statement generation for the sync table.

Statements are built once from the table name and the field map, so their
column list and parameter order only depend on the mapping's declared order.
All values travel as positional parameters ($1, $2, ...); only validated
identifiers are interpolated.
"""

from dataclasses import dataclass
from typing import List

from ..exceptions import ConfigurationError
from ..models.mapping import FieldMap, is_valid_identifier


def validate_table_name(table: str) -> str:
    """Accept ``table`` or ``schema.table`` made of plain identifiers."""
    parts = (table or "").split(".")
    if len(parts) > 2 or not all(is_valid_identifier(p) for p in parts):
        raise ConfigurationError(f"Invalid table name: '{table}'")
    return table


def _placeholders(start: int, count: int) -> List[str]:
    return [f"${i}" for i in range(start, start + count)]


@dataclass(frozen=True)
class SyncStatements:
    table: str
    select_by_key: str
    insert: str
    update: str
    upsert: str
    create_table: str
    create_key_index: str


def build_statements(table: str, field_map: FieldMap) -> SyncStatements:
    table = validate_table_name(table)
    key = field_map.key_column
    columns = field_map.columns()
    mapped = field_map.mapped_columns()

    select_by_key = f"SELECT * FROM {table} WHERE {key} = $1"

    # $1 is the external key, then one parameter per mapped column
    insert = (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES ({', '.join(_placeholders(1, len(columns)))})"
    )

    # Mapped columns take $1..$n, the external key goes last
    set_clause = ", ".join(
        f"{col} = {ph}" for col, ph in zip(mapped, _placeholders(1, len(mapped)))
    )
    update = f"UPDATE {table} SET {set_clause} WHERE {key} = ${len(mapped) + 1}"

    # Same parameters as insert; xmax is 0 only for a freshly inserted tuple
    excluded = ", ".join(f"{col} = EXCLUDED.{col}" for col in mapped)
    upsert = (
        f"{insert} ON CONFLICT ({key}) DO UPDATE SET {excluded} "
        f"RETURNING (xmax = 0) AS inserted"
    )

    column_defs = [f"{key} TEXT NOT NULL"] + [
        f"{m.target_field} {m.column_type}" for m in field_map.mappings
    ]
    create_table = (
        f"CREATE TABLE IF NOT EXISTS {table} (\n    "
        + ",\n    ".join(column_defs)
        + "\n)"
    )

    # Covers tables created before this service owned the schema
    index_name = f"{table.replace('.', '_')}_{key}_key"
    create_key_index = f"CREATE UNIQUE INDEX IF NOT EXISTS {index_name} ON {table} ({key})"

    return SyncStatements(
        table=table,
        select_by_key=select_by_key,
        insert=insert,
        update=update,
        upsert=upsert,
        create_table=create_table,
        create_key_index=create_key_index,
    )
