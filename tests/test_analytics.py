from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from app.domain.validation import validate_violation_query
from app.infra.db import build_engine
from app.services.analytics_service import AggregateCell, AnalyticsService, ViolationAggregate
from app.services.report_service import ReportService
from app.services.violation_query_service import ViolationQueryService


@pytest.fixture()
def analytics_engine(tmp_path: Path) -> Engine:
    engine = build_engine(f"sqlite:///{tmp_path / 'analytics_test.db'}")
    SQLModel.metadata.create_all(engine)
    return engine


def _violation(violation_id: str, violation_type: str, timestamp: str = "10:00:00") -> dict[str, Any]:
    return {
        "id": violation_id,
        "type": violation_type,
        "timestamp": timestamp,
        "latitude": 23.0,
        "longitude": 85.0,
        "image_url": f"https://x/{violation_id}",
    }


def _seed(engine: Engine) -> None:
    service = ReportService(engine)
    service.ingest(
        {
            "drone_id": "D1",
            "date": "2025-01-01",
            "location": "Zone A",
            "violations": [
                _violation("v1", "Fire Detected", "10:00:00"),
                _violation("v2", "No PPE Kit", "09:00:00"),
            ],
        }
    )
    service.ingest(
        {
            "drone_id": "D2",
            "date": "2025-01-01",
            "location": "Zone B",
            "violations": [_violation("v3", "Fire Detected", "11:00:00")],
        }
    )
    service.ingest(
        {
            "drone_id": "D1",
            "date": "2025-01-02",
            "location": "Zone A",
            "violations": [
                _violation("v4", "Fire Detected", "08:00:00"),
                _violation("v5", "Fire Detected", "12:00:00"),
                _violation("v6", "Unauthorized Vehicle", "13:00:00"),
            ],
        }
    )
    service.ingest(
        {
            "drone_id": "D3",
            "date": "2025-01-03",
            "location": "Zone C",
            "violations": [_violation("v7", "No PPE Kit", "07:00:00")],
        }
    )


def test_kpis_match_unfiltered_query(analytics_engine: Engine) -> None:
    _seed(analytics_engine)

    kpis = AnalyticsService(analytics_engine).aggregate().kpis()
    page = ViolationQueryService(analytics_engine).query(validate_violation_query({"limit": "100"}))

    assert kpis.total_violations == page.pagination.total_items == 7
    assert kpis.unique_drones == 3
    assert kpis.unique_locations == 3
    assert kpis.violation_types == 3


def test_analytics_charts(analytics_engine: Engine) -> None:
    _seed(analytics_engine)

    result = AnalyticsService(analytics_engine).analytics()

    assert [(item.name, item.value) for item in result.charts.type_distribution] == [
        ("Fire Detected", 4),
        ("No PPE Kit", 2),
        ("Unauthorized Vehicle", 1),
    ]
    assert [(item.date, item.violations) for item in result.charts.time_series] == [
        (dt.date(2025, 1, 1), 3),
        (dt.date(2025, 1, 2), 3),
        (dt.date(2025, 1, 3), 1),
    ]
    assert [(item.location, item.violations) for item in result.charts.location_breakdown] == [
        ("Zone A", 5),
        ("Zone B", 1),
        ("Zone C", 1),
    ]
    drones = {item.drone_id: item for item in result.charts.drone_performance}
    assert drones["D1"].total_violations == 5
    assert drones["D1"].violation_breakdown == {
        "Fire Detected": 3,
        "No PPE Kit": 1,
        "Unauthorized Vehicle": 1,
    }
    assert drones["D3"].violation_breakdown == {"No PPE Kit": 1}
    for drone in result.charts.drone_performance:
        assert sum(drone.violation_breakdown.values()) == drone.total_violations


def test_time_series_window(analytics_engine: Engine) -> None:
    _seed(analytics_engine)
    aggregate = AnalyticsService(analytics_engine).aggregate()

    window = aggregate.time_series(dt.date(2025, 1, 2), dt.date(2025, 1, 3))

    assert [item.date for item in window] == [dt.date(2025, 1, 2), dt.date(2025, 1, 3)]
    assert aggregate.time_series(date_from=dt.date(2026, 1, 1)) == []


def test_summary_recent_and_ranked(analytics_engine: Engine) -> None:
    _seed(analytics_engine)

    summary = AnalyticsService(analytics_engine).summary()

    assert [item.id for item in summary.recent_violations] == ["v7", "v6", "v5", "v4", "v3"]
    assert [(item.name, item.value) for item in summary.top_violation_types] == [
        ("Fire Detected", 4),
        ("No PPE Kit", 2),
        ("Unauthorized Vehicle", 1),
    ]
    assert [item.drone_id for item in summary.active_drones] == ["D1", "D2", "D3"]
    assert summary.kpis.total_violations == 7


def test_top_rankings_break_ties_by_label() -> None:
    cells = [
        AggregateCell(drone_id=drone_id, type=violation_type, location="Zone A", date=dt.date(2025, 1, 1), count=1)
        for drone_id, violation_type in [("D9", "Smoke"), ("D2", "Fire"), ("D5", "Dust"), ("D1", "Noise")]
    ]
    aggregate = ViolationAggregate.from_cells(cells)

    assert [item.name for item in aggregate.top_types()] == ["Dust", "Fire", "Noise"]
    assert [item.drone_id for item in aggregate.top_drones(limit=2)] == ["D1", "D2"]


def test_breakdown_keeps_labels_with_delimiters(analytics_engine: Engine) -> None:
    service = ReportService(analytics_engine)
    service.ingest(
        {
            "drone_id": "D:1",
            "date": "2025-01-01",
            "location": "Zone A",
            "violations": [
                _violation("v1", "Fire:Level,2"),
                _violation("v2", "Smoke, light"),
                _violation("v3", "Fire:Level,2"),
            ],
        }
    )

    breakdown = AnalyticsService(analytics_engine).aggregate().drone_type_breakdown()

    assert breakdown == {"D:1": {"Fire:Level,2": 2, "Smoke, light": 1}}


def test_analytics_on_empty_store(analytics_engine: Engine) -> None:
    service = AnalyticsService(analytics_engine)

    result = service.analytics()
    status = service.upload_status()

    assert result.kpis.total_violations == 0
    assert result.charts.type_distribution == []
    assert service.summary().recent_violations == []
    assert status.total_reports == 0
    assert status.last_upload is None


def test_upload_status_counts_reports(analytics_engine: Engine) -> None:
    _seed(analytics_engine)

    status = AnalyticsService(analytics_engine).upload_status()

    assert status.total_reports == 4
    assert status.total_violations == 7
    assert status.unique_drones == 3
    assert status.unique_locations == 3
    assert status.last_upload is not None
