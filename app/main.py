from __future__ import annotations

import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.api.deps import get_report_service, handle_service_error
from app.api.routers import analytics, boundaries, upload, violations
from app.domain.errors import ViolationMonitorError
from app.domain.models import SeedResultRead, now_utc
from app.infra.db import check_db_ready, create_db_and_tables
from app.infra.seed import SEED_ON_STARTUP, seed_database, seed_if_empty
from app.services.report_service import ReportService

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "1").strip().lower() in {"1", "true", "yes"}
CORS_ORIGINS = [item.strip() for item in os.getenv("CORS_ORIGINS", "*").split(",") if item.strip()]

logger.remove()
logger.add(sys.stdout, level=LOG_LEVEL)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if AUTO_CREATE_TABLES:
        create_db_and_tables()
    if SEED_ON_STARTUP:
        seed_if_empty(get_report_service())
    yield
    logger.info("shutdown complete")


app = FastAPI(
    title="drone-violation-monitor",
    description="Ingestion, query and analytics over drone-reported site violations.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload.router, prefix="/api/upload", tags=["upload"])
app.include_router(violations.router, prefix="/api/violations", tags=["violations"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])
app.include_router(boundaries.router, prefix="/api/boundaries", tags=["boundaries"])


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
def readyz() -> dict[str, object]:
    db_ok = check_db_ready()
    checks = {"db": "ok" if db_ok else "fail"}
    if not db_ok:
        raise HTTPException(
            status_code=503,
            detail={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}


@app.get("/api/health")
def api_health() -> dict[str, str]:
    return {"status": "OK", "timestamp": now_utc().isoformat()}


@app.post("/api/seed", response_model=SeedResultRead)
def seed(service: Annotated[ReportService, Depends(get_report_service)]) -> SeedResultRead:
    try:
        return seed_database(service)
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise
