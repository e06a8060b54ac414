from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_analytics_service, handle_service_error
from app.domain.errors import ViolationMonitorError
from app.domain.models import (
    AnalyticsRead,
    AnalyticsSummaryRead,
    DailyCountRead,
    DroneBreakdownRead,
    KpiRead,
    LocationCountRead,
    NamedCountRead,
)
from app.domain.validation import validate_violation_filters
from app.services.analytics_service import AnalyticsService

router = APIRouter()

Service = Annotated[AnalyticsService, Depends(get_analytics_service)]


@router.get("", response_model=AnalyticsRead)
def get_analytics(service: Service) -> AnalyticsRead:
    try:
        return service.analytics()
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/kpis", response_model=KpiRead)
def get_kpis(service: Service) -> KpiRead:
    try:
        return service.aggregate().kpis()
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/charts/pie", response_model=list[NamedCountRead])
def get_type_distribution(service: Service) -> list[NamedCountRead]:
    try:
        return service.aggregate().type_distribution()
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/charts/timeseries", response_model=list[DailyCountRead])
def get_time_series(request: Request, service: Service) -> list[DailyCountRead]:
    try:
        window = validate_violation_filters(request.query_params)
        return service.aggregate().time_series(window.date_from, window.date_to)
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/charts/drones", response_model=list[DroneBreakdownRead])
def get_drone_performance(service: Service) -> list[DroneBreakdownRead]:
    try:
        return service.aggregate().drone_performance()
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/charts/locations", response_model=list[LocationCountRead])
def get_location_breakdown(service: Service) -> list[LocationCountRead]:
    try:
        return service.aggregate().location_breakdown()
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/summary", response_model=AnalyticsSummaryRead)
def get_summary(service: Service) -> AnalyticsSummaryRead:
    try:
        return service.summary()
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise
