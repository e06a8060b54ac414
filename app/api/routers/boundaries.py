from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.deps import get_boundary_service, handle_service_error
from app.domain.errors import MalformedInputError, ViolationMonitorError
from app.services.boundary_service import KML_MEDIA_TYPE, BoundaryService

router = APIRouter()

Service = Annotated[BoundaryService, Depends(get_boundary_service)]


def _handle_boundary_error(exc: Exception) -> None:
    # unparsable boundary data is a server-side configuration fault
    if isinstance(exc, MalformedInputError):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="failed to load boundary data",
        ) from exc
    handle_service_error(exc)


@router.get("")
def get_boundaries(service: Service) -> dict[str, Any]:
    try:
        return service.geojson()
    except ViolationMonitorError as exc:
        _handle_boundary_error(exc)
        raise


@router.get("/kml")
def get_boundaries_kml(service: Service) -> Response:
    try:
        document = service.kml()
    except ViolationMonitorError as exc:
        _handle_boundary_error(exc)
        raise
    return Response(content=document, media_type=KML_MEDIA_TYPE)
