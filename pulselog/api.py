# -*- coding: utf-8 -*-
"""
pulselog API

Heart-rate session endpoints plus the health store they talk to.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import settings
from .healthstore.api import router as healthstore_router
from .session.api import get_controller, shutdown_controller
from .session.api import router as session_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="pulselog",
    description="Record heart-rate samples and review the last 24 hours",
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


@app.on_event("startup")
async def _startup_check_permissions() -> None:
    controller = get_controller()
    state = await controller.refresh_permissions()
    logger.info("Session started (backend=%s, permissions_granted=%s)", settings.store_backend, state.permissions_granted)


@app.on_event("shutdown")
def _shutdown_session() -> None:
    shutdown_controller()


app.include_router(healthstore_router)
app.include_router(session_router)


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok", "store_backend": settings.store_backend}
