from __future__ import annotations

import os
from pathlib import PurePath
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status

from app.api.deps import get_analytics_service, get_report_service, handle_service_error
from app.domain.errors import ViolationMonitorError
from app.domain.models import ReportRead, UploadResultRead, UploadStatusRead
from app.services.analytics_service import AnalyticsService
from app.services.report_service import ReportService

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
JSON_CONTENT_TYPES = {"application/json", "text/json"}

router = APIRouter()

Reports = Annotated[ReportService, Depends(get_report_service)]
Analytics = Annotated[AnalyticsService, Depends(get_analytics_service)]


def _upload_result(report: ReportRead) -> UploadResultRead:
    return UploadResultRead(
        report_id=report.report_id,
        drone_id=report.drone_id,
        date=report.date,
        location=report.location,
        violations_count=len(report.violations),
        uploaded_at=report.uploaded_at,
    )


@router.post("/json", response_model=UploadResultRead, status_code=status.HTTP_201_CREATED)
def upload_json(service: Reports, payload: Annotated[Any, Body()] = None) -> UploadResultRead:
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="please provide drone violation report data",
        )
    try:
        return _upload_result(service.ingest(payload))
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.post("/report", response_model=UploadResultRead, status_code=status.HTTP_201_CREATED)
def upload_report_file(service: Reports, report: Annotated[UploadFile, File()]) -> UploadResultRead:
    filename = report.filename or ""
    if report.content_type not in JSON_CONTENT_TYPES and PurePath(filename).suffix.lower() != ".json":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="only JSON files are allowed for drone reports",
        )
    content = report.file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="the uploaded file exceeds the maximum size limit",
        )
    try:
        return _upload_result(service.ingest_json_document(content))
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise


@router.get("/status", response_model=UploadStatusRead)
def upload_status(service: Analytics) -> UploadStatusRead:
    try:
        return service.upload_status()
    except ViolationMonitorError as exc:
        handle_service_error(exc)
        raise
