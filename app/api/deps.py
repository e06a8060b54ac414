from __future__ import annotations

from fastapi import HTTPException, status
from loguru import logger

from app.domain.errors import (
    ConflictError,
    InputValidationError,
    MalformedInputError,
    NotFoundError,
    StorageError,
)
from app.infra.db import get_engine
from app.services.analytics_service import AnalyticsService
from app.services.boundary_service import BoundaryService
from app.services.report_service import ReportService
from app.services.violation_query_service import ViolationQueryService


def get_report_service() -> ReportService:
    return ReportService(get_engine())


def get_violation_query_service() -> ViolationQueryService:
    return ViolationQueryService(get_engine())


def get_analytics_service() -> AnalyticsService:
    return AnalyticsService(get_engine())


def get_boundary_service() -> BoundaryService:
    return BoundaryService()


def handle_service_error(exc: Exception) -> None:
    if isinstance(exc, InputValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_detail()) from exc
    if isinstance(exc, MalformedInputError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, StorageError):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="internal server error",
        ) from exc
    logger.error("unmapped service error: {!r}", exc)
    raise exc
