"""
clubhouse.api.main — FastAPI application entry point
=====================================================

Run with::

    uvicorn clubhouse.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

load_dotenv()

from clubhouse.api.deps import get_config, get_engine  # noqa: E402
from clubhouse.api.routes.clubs import router as clubs_router  # noqa: E402
from clubhouse.api.routes.registry import router as registry_router  # noqa: E402
from clubhouse.database.engine import init_db, run_db  # noqa: E402
from clubhouse.errors import (  # noqa: E402
    ClubhouseError,
    NotAuthorized,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from clubhouse.services import registry_service  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — create tables, bootstrap the registry."""
    engine = get_engine()
    await run_db(init_db, engine)

    cfg = get_config()
    if cfg.deployer_address and not await run_db(registry_service.is_initialized, engine):
        await run_db(registry_service.initialize_registry, engine, cfg.deployer_address, cfg)

    logger.info("Clubhouse API started — %s (%s)", cfg.community_name, engine.url.database)
    yield
    logger.info("Clubhouse API shutting down")


app = FastAPI(
    title="Clubhouse API",
    version="1.0.0",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Domain error → HTTP status
# ---------------------------------------------------------------------------
def status_for(exc: ClubhouseError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotAuthorized):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, StateConflictError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(ClubhouseError)
async def clubhouse_error_handler(request: Request, exc: ClubhouseError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content={"detail": str(exc), "kind": exc.kind},
    )


# Mount routers
app.include_router(registry_router, prefix="/api")
app.include_router(clubs_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
