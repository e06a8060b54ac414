from __future__ import annotations

import datetime as dt
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict
from sqlalchemy import CheckConstraint, Index, UniqueConstraint
from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(UTC)


class Report(SQLModel, table=True):
    __tablename__ = "reports"
    __table_args__ = (
        UniqueConstraint("drone_id", "date", name="uq_reports_drone_date"),
    )

    report_id: str = Field(primary_key=True)
    drone_id: str = Field(index=True)
    date: dt.date = Field(index=True)
    location: str
    uploaded_at: datetime = Field(default_factory=now_utc, index=True)


class Violation(SQLModel, table=True):
    __tablename__ = "violations"
    __table_args__ = (
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_violations_latitude_range"),
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_violations_longitude_range"),
        Index("ix_violations_date_timestamp", "date", "timestamp"),
        Index("ix_violations_drone_type", "drone_id", "type"),
    )

    seq: int | None = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True)
    report_id: str = Field(foreign_key="reports.report_id", index=True)
    drone_id: str = Field(index=True)
    date: dt.date = Field(index=True)
    location: str = Field(index=True)
    type: str = Field(index=True)
    timestamp: str = Field(max_length=8)
    latitude: float
    longitude: float
    image_url: str
    uploaded_at: datetime = Field(default_factory=now_utc, index=True)


class ORMReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ViolationRead(ORMReadModel):
    id: str
    report_id: str
    drone_id: str
    date: dt.date
    location: str
    type: str
    timestamp: str
    latitude: float
    longitude: float
    image_url: str
    uploaded_at: datetime


class ReportRead(ORMReadModel):
    report_id: str
    drone_id: str
    date: dt.date
    location: str
    uploaded_at: datetime
    violations: list[ViolationRead]


class UploadResultRead(BaseModel):
    report_id: str
    drone_id: str
    date: dt.date
    location: str
    violations_count: int
    uploaded_at: datetime


class UploadStatusRead(BaseModel):
    total_reports: int
    total_violations: int
    unique_drones: int
    unique_locations: int
    last_upload: datetime | None


class PaginationRead(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    per_page: int


class ViolationPageRead(BaseModel):
    items: list[ViolationRead]
    pagination: PaginationRead


class SearchInfoRead(BaseModel):
    term: str
    results_count: int


class ViolationSearchPageRead(ViolationPageRead):
    search: SearchInfoRead


class DateRangeRead(BaseModel):
    min: dt.date | None
    max: dt.date | None
    all: list[dt.date]


class FilterOptionsRead(BaseModel):
    drone_ids: list[str]
    violation_types: list[str]
    locations: list[str]
    dates: DateRangeRead


class MapMarkersRead(BaseModel):
    markers: list[ViolationRead]
    count: int


class KpiRead(BaseModel):
    total_violations: int
    unique_drones: int
    unique_locations: int
    violation_types: int


class NamedCountRead(BaseModel):
    name: str
    value: int


class DailyCountRead(BaseModel):
    date: dt.date
    violations: int


class DroneBreakdownRead(BaseModel):
    drone_id: str
    total_violations: int
    violation_breakdown: dict[str, int]


class LocationCountRead(BaseModel):
    location: str
    violations: int


class AnalyticsChartsRead(BaseModel):
    type_distribution: list[NamedCountRead]
    time_series: list[DailyCountRead]
    drone_performance: list[DroneBreakdownRead]
    location_breakdown: list[LocationCountRead]


class AnalyticsRead(BaseModel):
    kpis: KpiRead
    charts: AnalyticsChartsRead


class AnalyticsSummaryRead(BaseModel):
    kpis: KpiRead
    recent_violations: list[ViolationRead]
    top_violation_types: list[NamedCountRead]
    active_drones: list[DroneBreakdownRead]


class SeedResultRead(BaseModel):
    inserted: int
    skipped: int
