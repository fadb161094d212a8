# -*- coding: utf-8 -*-
"""FastAPI application: ledger, summaries, coach chat and the sync socket."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .aggregation.api import router as summary_router
from .coach.api import commands_router
from .coach.api import router as coach_router
from .config import settings
from .errors import BucketWriteError, UnknownBucketError
from .ledger.api import library_router
from .ledger.api import router as ledger_router
from .sync.websocket import sync_websocket_endpoint

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Fitledger",
    description="Local nutrition, workout, water and weight ledger with a chat coach.",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BucketWriteError)
async def _bucket_write_failed(request: Request, exc: BucketWriteError):
    logger.error("Write to %s failed: %s", exc.bucket, exc.reason)
    return JSONResponse(status_code=500, content={"detail": f"Failed to save entry: {exc.reason}"})


@app.exception_handler(UnknownBucketError)
async def _unknown_bucket(request: Request, exc: UnknownBucketError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


app.include_router(summary_router)
app.include_router(coach_router)
app.include_router(commands_router)
app.include_router(library_router)
# Last: its DELETE /api/{kind}/{record_id} route is a catch-all for two segments.
app.include_router(ledger_router)


@app.get("/api/health")
def health_check():
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.websocket("/ws/sync")
async def sync_websocket(
    websocket: WebSocket,
    surface_id: Optional[str] = None,
    topics: Optional[str] = None,
):
    """Storage change notifications for the other surfaces' writes."""
    await sync_websocket_endpoint(websocket, surface_id, topics)


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("fitledger.api:app", host=settings.host, port=settings.port, reload=False)
