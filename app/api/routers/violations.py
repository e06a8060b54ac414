from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_violation_query_service, handle_service_error
from app.domain.errors import ViolationMonitorError
from app.domain.models import (
    FilterOptionsRead,
    MapMarkersRead,
    ViolationPageRead,
    ViolationRead,
    ViolationSearchPageRead,
)
from app.domain.validation import validate_search, validate_violation_filters, validate_violation_query
from app.services.violation_query_service import ViolationQueryService

router = APIRouter()

Service = Annotated[ViolationQueryService, Depends(get_violation_query_service)]


@router.get("", response_model=ViolationPageRead)
def list_violations(request: Request, service: Service) -> ViolationPageRead:
    try:
        query = validate_violation_query(request.query_params)
        return service.query(query)
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/filters", response_model=FilterOptionsRead)
def get_filter_options(service: Service) -> FilterOptionsRead:
    try:
        return service.filter_options()
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/map", response_model=MapMarkersRead)
def get_map_markers(request: Request, service: Service) -> MapMarkersRead:
    try:
        filters = validate_violation_filters(request.query_params)
        return service.map_markers(filters)
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/search/{term}", response_model=ViolationSearchPageRead)
def search_violations(term: str, request: Request, service: Service) -> ViolationSearchPageRead:
    try:
        search = validate_search(term, request.query_params)
        return service.search(search)
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/{violation_id}", response_model=ViolationRead)
def get_violation(violation_id: str, service: Service) -> ViolationRead:
    try:
        return service.get_by_id(violation_id)
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise
