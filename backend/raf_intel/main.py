"""FastAPI application for RAF Gap Intelligence.

Serve with:
    raf-serve
    uvicorn raf_intel.main:app --reload
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from raf_intel import __version__
from raf_intel.api import (
    agents_router,
    chat_router,
    dashboard_router,
    members_router,
    simulation_router,
    upload_router,
)
from raf_intel.core.config import settings
from raf_intel.core.snapshot import get_snapshot_store, load_snapshot

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup loads the dataset from ``settings.data_dir`` into an immutable
    snapshot and swaps it into the store before any request is served.
    """
    startup_start = time.perf_counter()

    snapshot = load_snapshot(settings.data_dir)
    get_snapshot_store().swap(snapshot)

    total_startup_ms = (time.perf_counter() - startup_start) * 1000
    logger.info(f"Server ready - total startup time: {total_startup_ms:.0f}ms")
    app.state.startup_time_ms = total_startup_ms

    yield


app = FastAPI(
    title=settings.app_name,
    description=(
        "Evidence-backed suspect risk-adjustment gaps, financial impact, compliance review, "
        "what-if simulation and executive chat over member and claims data."
    ),
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(dashboard_router)
app.include_router(members_router)
app.include_router(agents_router)
app.include_router(simulation_router)
app.include_router(chat_router)
app.include_router(upload_router)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint (liveness probe).

    Use /ready for dataset status.
    """
    return {
        "status": "healthy",
        "service": "raf-gap-intelligence",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, Any]:
    """Readiness check endpoint.

    Reports the snapshot currently being served.
    """
    snapshot = get_snapshot_store().current
    return {
        "status": "ready",
        "service": "raf-gap-intelligence",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
        "startup_time_ms": getattr(app.state, "startup_time_ms", 0),
        "data_loaded": snapshot.member_count > 0,
        "snapshot": snapshot.get_stats(),
        "narrative_enabled": settings.narrative_enabled,
    }


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "service": "RAF Gap Intelligence API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
    }


def serve() -> None:
    """Run the API with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run("raf_intel.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    serve()
