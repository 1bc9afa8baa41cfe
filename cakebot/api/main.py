"""
cakebot.api.main — FastAPI application entry point
===================================================

Read-only leaderboard API over the same database the bot writes to.

Run with::

    uvicorn cakebot.api.main:app --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

load_dotenv()

from cakebot.api.deps import get_engine  # noqa: E402
from cakebot.api.routes.public import router as public_router  # noqa: E402
from cakebot.database.engine import close_db, init_db  # noqa: E402
from cakebot.errors import InvalidArgument, StorageError  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    init_db(engine)
    logger.info("Cakebot API started — engine ready (%s)", engine.url.database)
    yield
    close_db(engine)
    logger.info("Cakebot API shutting down")


app = FastAPI(
    title="Cakebot Leaderboard API",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


# Mount routers
app.include_router(public_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
