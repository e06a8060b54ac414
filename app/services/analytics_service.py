from __future__ import annotations

import datetime as dt
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from app.domain.models import (
    AnalyticsChartsRead,
    AnalyticsRead,
    AnalyticsSummaryRead,
    DailyCountRead,
    DroneBreakdownRead,
    KpiRead,
    LocationCountRead,
    NamedCountRead,
    Report,
    UploadStatusRead,
    Violation,
    ViolationRead,
)
from app.infra.db import storage_errors
from app.services.violation_query_service import NEWEST_FIRST

RECENT_VIOLATIONS_LIMIT = 5
TOP_TYPES_LIMIT = 3
TOP_DRONES_LIMIT = 5


@dataclass(frozen=True)
class AggregateCell:
    drone_id: str
    type: str
    location: str
    date: dt.date
    count: int


@dataclass
class ViolationAggregate:
    """Roll-ups derived from one (drone, type, location, date) grouped read.

    Every count, ranking and KPI comes from these counters. Only the recent
    violations in the summary need full rows, so `AnalyticsService.summary`
    reads them separately in the same session.
    """

    total: int = 0
    by_type: Counter[str] = field(default_factory=Counter)
    by_date: Counter[dt.date] = field(default_factory=Counter)
    by_location: Counter[str] = field(default_factory=Counter)
    by_drone: Counter[str] = field(default_factory=Counter)
    by_drone_type: Counter[tuple[str, str]] = field(default_factory=Counter)

    @classmethod
    def from_cells(cls, cells: Iterable[AggregateCell]) -> ViolationAggregate:
        aggregate = cls()
        for cell in cells:
            aggregate.total += cell.count
            aggregate.by_type[cell.type] += cell.count
            aggregate.by_date[cell.date] += cell.count
            aggregate.by_location[cell.location] += cell.count
            aggregate.by_drone[cell.drone_id] += cell.count
            aggregate.by_drone_type[(cell.drone_id, cell.type)] += cell.count
        return aggregate

    def kpis(self) -> KpiRead:
        return KpiRead(
            total_violations=self.total,
            unique_drones=len(self.by_drone),
            unique_locations=len(self.by_location),
            violation_types=len(self.by_type),
        )

    def drone_type_breakdown(self) -> dict[str, dict[str, int]]:
        nested: dict[str, dict[str, int]] = {}
        for (drone_id, violation_type), count in sorted(self.by_drone_type.items()):
            nested.setdefault(drone_id, {})[violation_type] = count
        return nested

    def type_distribution(self) -> list[NamedCountRead]:
        return [NamedCountRead(name=name, value=value) for name, value in sorted(self.by_type.items())]

    def time_series(
        self,
        date_from: dt.date | None = None,
        date_to: dt.date | None = None,
    ) -> list[DailyCountRead]:
        return [
            DailyCountRead(date=day, violations=count)
            for day, count in sorted(self.by_date.items())
            if (date_from is None or day >= date_from) and (date_to is None or day <= date_to)
        ]

    def drone_performance(self) -> list[DroneBreakdownRead]:
        breakdown = self.drone_type_breakdown()
        return [
            DroneBreakdownRead(
                drone_id=drone_id,
                total_violations=self.by_drone[drone_id],
                violation_breakdown=breakdown[drone_id],
            )
            for drone_id in sorted(self.by_drone)
        ]

    def location_breakdown(self) -> list[LocationCountRead]:
        return [
            LocationCountRead(location=location, violations=count)
            for location, count in sorted(self.by_location.items())
        ]

    def top_types(self, limit: int = TOP_TYPES_LIMIT) -> list[NamedCountRead]:
        ranked = sorted(self.by_type.items(), key=lambda item: (-item[1], item[0]))
        return [NamedCountRead(name=name, value=value) for name, value in ranked[:limit]]

    def top_drones(self, limit: int = TOP_DRONES_LIMIT) -> list[DroneBreakdownRead]:
        ranked = sorted(self.drone_performance(), key=lambda item: (-item.total_violations, item.drone_id))
        return ranked[:limit]


class AnalyticsService:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    def _aggregate(self, session: Session) -> ViolationAggregate:
        statement = select(
            Violation.drone_id,
            Violation.type,
            Violation.location,
            Violation.date,
            func.count(col(Violation.seq)),
        ).group_by(
            col(Violation.drone_id),
            col(Violation.type),
            col(Violation.location),
            col(Violation.date),
        )
        cells = (
            AggregateCell(drone_id=drone_id, type=violation_type, location=location, date=day, count=int(count))
            for drone_id, violation_type, location, day, count in session.exec(statement).all()
        )
        return ViolationAggregate.from_cells(cells)

    def aggregate(self) -> ViolationAggregate:
        with storage_errors("violation aggregate"), self._session() as session:
            return self._aggregate(session)

    def analytics(self) -> AnalyticsRead:
        aggregate = self.aggregate()
        return AnalyticsRead(
            kpis=aggregate.kpis(),
            charts=AnalyticsChartsRead(
                type_distribution=aggregate.type_distribution(),
                time_series=aggregate.time_series(),
                drone_performance=aggregate.drone_performance(),
                location_breakdown=aggregate.location_breakdown(),
            ),
        )

    def summary(self) -> AnalyticsSummaryRead:
        with storage_errors("analytics summary"), self._session() as session:
            aggregate = self._aggregate(session)
            recent = session.exec(
                select(Violation).order_by(*NEWEST_FIRST).limit(RECENT_VIOLATIONS_LIMIT)
            ).all()
        return AnalyticsSummaryRead(
            kpis=aggregate.kpis(),
            recent_violations=[ViolationRead.model_validate(item) for item in recent],
            top_violation_types=aggregate.top_types(),
            active_drones=aggregate.top_drones(),
        )

    def upload_status(self) -> UploadStatusRead:
        with storage_errors("upload status"), self._session() as session:
            aggregate = self._aggregate(session)
            total_reports = int(session.exec(select(func.count()).select_from(Report)).one())
            last_upload = session.exec(select(func.max(Report.uploaded_at))).one()
        kpis = aggregate.kpis()
        return UploadStatusRead(
            total_reports=total_reports,
            total_violations=kpis.total_violations,
            unique_drones=kpis.unique_drones,
            unique_locations=kpis.unique_locations,
            last_upload=last_upload,
        )
