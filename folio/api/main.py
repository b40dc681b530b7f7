import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from folio.adapters.sqlite.migrator import SQLiteMigrator
from folio.api.deps import get_rules, get_settings

logging.basicConfig(
    level=os.environ.get("FOLIO_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules on startup (fail-fast)
    try:
        rules = get_rules()
    except (FileNotFoundError, ValueError):
        logger.critical("Rules load failed from %s", settings.rules_path, exc_info=True)
        raise
    logger.info(
        "Rules %s loaded from %s (storage backend: %s)",
        rules.project.rules_version,
        settings.rules_path,
        settings.storage_backend or rules.storage.backend,
    )

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
    if applied:
        logger.info("Applied migrations: %s", ", ".join(applied))

    yield


app = FastAPI(
    title="Folio API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from folio.api.routes import posts, uploads  # noqa: E402

app.include_router(posts.router, prefix="/api/posts", tags=["Posts"])
app.include_router(uploads.router, prefix="/api/uploads", tags=["Uploads"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "folio"}
