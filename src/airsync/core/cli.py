"""Command line interface for the Airtable to PostgreSQL sync service."""

import sys
import json
import asyncio
import logging
from typing import Optional

import click

from .config import setup_logging, load_environment, load_settings, get_optional_env
from ..engine.sync import SyncEngine
from ..exceptions import ConfigurationError, classify_storage_error
from ..models.mapping import FieldMap, load_field_map
from ..storage.postgres import RecordStore, create_pool


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set the logging level')
@click.option('--env-file', type=click.Path(exists=True), help='Path to .env file')
def cli(log_level: str, env_file: Optional[str]) -> None:
    """Airtable to PostgreSQL record sync."""
    setup_logging(log_level)
    load_environment(env_file)


async def _with_store(callback):
    """Open a short-lived pool, run ``callback(store, settings)`` and close it."""
    settings = load_settings()
    field_map = load_field_map(settings.field_mapping_file)
    pool = await create_pool(settings.database_url, min_size=1, max_size=2)
    try:
        store = RecordStore(pool, settings.table_name, field_map)
        return await callback(store, settings)
    finally:
        await pool.close()


def _fail(prefix: str, error: Exception) -> None:
    click.echo(f"{prefix}: {error}", err=True)
    sys.exit(1)


@cli.command()
@click.option('--host', default='0.0.0.0', help='Interface to bind')
@click.option('--port', type=int, help='Port to listen on (default: $PORT or 8000)')
def serve(host: str, port: Optional[int]) -> None:
    """Run the webhook API."""
    import uvicorn

    port = port or int(get_optional_env("PORT", "8000"))
    click.echo(f"Server listening on port {port}")
    uvicorn.run("airsync.api.app:app", host=host, port=port)


@cli.command()
def init_db() -> None:
    """Create the sync table and its unique external-key index."""
    async def _init(store: RecordStore, settings) -> str:
        await store.init_schema()
        return store.table

    try:
        table = asyncio.run(_with_store(_init))
        click.echo(f"Table {table} is ready")
    except ConfigurationError as e:
        _fail("Configuration Error", e)
    except Exception as e:
        logging.exception("Schema initialisation failed")
        _fail(f"Database Error ({classify_storage_error(e).value})", e)


@cli.command()
@click.argument('record_id')
@click.option('--fields', 'fields_json', help='Airtable fields as a JSON object')
@click.option('--fields-file', type=click.Path(exists=True), help='File holding the fields JSON object')
def sync(record_id: str, fields_json: Optional[str], fields_file: Optional[str]) -> None:
    """Sync one record by hand, as the webhook would."""
    try:
        if fields_file:
            with open(fields_file, encoding='utf-8') as f:
                fields = json.load(f)
        else:
            fields = json.loads(fields_json or '{}')
    except (OSError, json.JSONDecodeError) as e:
        _fail("Invalid fields", e)

    if not isinstance(fields, dict):
        _fail("Invalid fields", ValueError("expected a JSON object"))

    async def _sync(store: RecordStore, settings):
        engine = SyncEngine(store, strategy=settings.sync_strategy)
        return await engine.sync(record_id, fields)

    try:
        result = asyncio.run(_with_store(_sync))
        click.echo(json.dumps(result.to_response()))
    except ConfigurationError as e:
        _fail("Configuration Error", e)
    except ValueError as e:
        _fail("Sync Error", e)
    except Exception as e:
        logging.exception("Sync failed")
        _fail(f"Sync Error ({classify_storage_error(e).value})", e)


@cli.command()
@click.option('--output', type=click.Choice(['table', 'json']), default='table',
              help='Output format')
@click.option('--mapping-file', type=click.Path(exists=True),
              help='Field mapping file (default: $FIELD_MAPPING_FILE or built-in table)')
def show_mapping(output: str, mapping_file: Optional[str]) -> None:
    """Show the field mapping table."""
    try:
        field_map = load_field_map(mapping_file or get_optional_env("FIELD_MAPPING_FILE") or None)
    except ConfigurationError as e:
        _fail("Configuration Error", e)

    if output == 'json':
        click.echo(json.dumps([m.model_dump() for m in field_map.mappings], indent=2))
    else:
        _display_mapping_table(field_map)


def _display_mapping_table(field_map: FieldMap) -> None:
    """Display mappings in a table format."""
    click.echo(f"{'Airtable field':<32} {'Column':<32} {'Type':<12} {'Transform':<12}")
    click.echo("-" * 90)
    click.echo(f"{'(record id)':<32} {field_map.key_column:<32} {'TEXT':<12} {'-':<12}")
    for m in field_map.mappings:
        click.echo(f"{m.source_field:<32} {m.target_field:<32} {m.column_type:<12} {m.transform or '-':<12}")


@cli.command()
def stats() -> None:
    """Check the database and count synced rows."""
    async def _stats(store: RecordStore, settings):
        return await store.ping(), await store.count()

    try:
        healthy, rows = asyncio.run(_with_store(_stats))
    except ConfigurationError as e:
        _fail("Configuration Error", e)
    except Exception as e:
        _fail(f"Database Error ({classify_storage_error(e).value})", e)

    click.echo(f"Database: {'reachable' if healthy else 'unreachable'}")
    click.echo(f"Rows: {rows}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
