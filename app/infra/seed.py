from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from loguru import logger

from app.domain.errors import ConflictError
from app.domain.models import SeedResultRead
from app.services.report_service import ReportService

SAMPLE_REPORTS_PATH = Path(__file__).resolve().parents[1] / "data" / "sample_reports.json"
SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "0").strip().lower() in {"1", "true", "yes"}


def load_sample_reports(path: Path = SAMPLE_REPORTS_PATH) -> list[dict[str, Any]]:
    return json.loads(path.read_text(encoding="utf-8"))


def seed_database(service: ReportService, reports: list[dict[str, Any]] | None = None) -> SeedResultRead:
    inserted = 0
    skipped = 0
    for raw in reports if reports is not None else load_sample_reports():
        try:
            service.ingest(raw)
        except ConflictError as exc:
            logger.info("skipping sample report: {}", exc)
            skipped += 1
            continue
        inserted += 1
    logger.info("seeded {} sample reports, skipped {}", inserted, skipped)
    return SeedResultRead(inserted=inserted, skipped=skipped)


def seed_if_empty(service: ReportService) -> SeedResultRead | None:
    count = service.report_count()
    if count:
        logger.info("database already contains {} reports", count)
        return None
    return seed_database(service)
