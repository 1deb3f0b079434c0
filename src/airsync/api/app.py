"""
FastAPI application receiving Airtable webhooks.
"""

import hmac
import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import asyncpg
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..core.config import Settings, load_settings, setup_logging
from ..engine.sync import SyncEngine
from ..exceptions import StorageErrorKind, classify_storage_error
from ..models.mapping import load_field_map
from ..models.sync import AirtablePayload
from ..services.secrets import SecretManagerService
from ..storage.postgres import RecordStore, create_pool, health_check as db_health_check
from ..version import __version__

logger = logging.getLogger(__name__)

# Global services (initialized in lifespan)
settings: Optional[Settings] = None
db_pool: Optional[asyncpg.Pool] = None
sync_engine: Optional[SyncEngine] = None

STORAGE_ERROR_STATUS = {
    StorageErrorKind.CONSTRAINT_VIOLATION: 409,
    StorageErrorKind.TYPE_MISMATCH: 422,
    StorageErrorKind.UNAVAILABLE: 503,
    StorageErrorKind.UNKNOWN: 500,
}


def _create_secret_service() -> Optional[SecretManagerService]:
    if not os.getenv("GOOGLE_CLOUD_PROJECT"):
        return None
    try:
        service = SecretManagerService()
        logger.info("Secret Manager service initialized successfully")
        return service
    except Exception as e:
        logger.error(f"Failed to initialize Secret Manager service: {e}")
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Resolve configuration, open the pool and build the engine."""
    global settings, db_pool, sync_engine

    # Configuration errors abort startup
    settings = load_settings(_create_secret_service())
    field_map = load_field_map(settings.field_mapping_file)

    db_pool = await create_pool(
        settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )
    store = RecordStore(db_pool, settings.table_name, field_map)
    sync_engine = SyncEngine(store, strategy=settings.sync_strategy)
    logger.info(
        f"Syncing into table {store.table} with {len(field_map.mappings)} mapped fields "
        f"({settings.sync_strategy.value} strategy)"
    )

    yield

    await db_pool.close()
    db_pool = None
    sync_engine = None
    logger.info("Application shutdown")


app = FastAPI(
    title="airsync",
    description="Syncs Airtable record changes into PostgreSQL",
    version=__version__,
    lifespan=lifespan
)


# Dependency injection
def get_settings() -> Settings:
    if settings is None:
        raise HTTPException(status_code=500, detail="Settings not loaded")
    return settings

def get_sync_engine() -> SyncEngine:
    if sync_engine is None:
        raise HTTPException(status_code=500, detail="Sync engine not initialized")
    return sync_engine

def get_db_pool() -> Optional[asyncpg.Pool]:
    return db_pool


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.get("/health")
async def health_check(pool: Optional[asyncpg.Pool] = Depends(get_db_pool)):
    """Liveness plus a database round trip."""
    return {
        "status": "ok",
        "version": __version__,
        "database": await db_health_check(pool) if pool is not None else False,
    }


@app.get("/api/v1/mapping")
async def get_mapping(engine: SyncEngine = Depends(get_sync_engine)):
    """Describe the active field mapping table."""
    field_map = engine.field_map
    return {
        "table": engine.store.table,
        "key_column": field_map.key_column,
        "columns": field_map.columns(),
        "mappings": [m.model_dump() for m in field_map.mappings],
    }


@app.post("/airtable-webhook")
async def airtable_webhook(
    request: Request,
    config: Settings = Depends(get_settings),
    engine: SyncEngine = Depends(get_sync_engine),
):
    """Sync one Airtable record change."""
    if config.webhook_secret:
        header = request.headers.get("X-Webhook-Secret") or ""
        if not hmac.compare_digest(header.encode(), config.webhook_secret.encode()):
            return _error(401, "Invalid webhook secret")

    try:
        payload = AirtablePayload.model_validate(await request.json())
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        logger.warning(f"Rejected malformed webhook body: {e}")
        return _error(400, "Invalid payload")

    if not payload.is_complete():
        return _error(400, "Invalid payload")

    try:
        result = await engine.sync(payload.id, payload.fields)
    except Exception as e:
        kind = classify_storage_error(e)
        logger.error(f"Sync failed for record {payload.id} ({kind.value}): {e}")
        return _error(STORAGE_ERROR_STATUS[kind], str(e) or "Internal server error")

    return result.to_response()


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
