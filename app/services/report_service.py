from __future__ import annotations

import datetime as dt
import json
from typing import Any
from uuid import uuid4

from loguru import logger
from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from app.domain.errors import (
    DuplicateReportError,
    DuplicateViolationError,
    MalformedInputError,
    StorageError,
    ViolationMonitorError,
)
from app.domain.models import Report, ReportRead, Violation, ViolationRead, now_utc
from app.domain.validation import ReportSubmission, validate_report
from app.infra.db import storage_errors


class ReportService:
    """Turns validated submissions into one Report row plus its Violation rows."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    def _find_report(self, session: Session, drone_id: str, date: dt.date) -> Report | None:
        return session.exec(
            select(Report)
            .where(Report.drone_id == drone_id)
            .where(Report.date == date)
        ).first()

    def _existing_violation_ids(self, session: Session, violation_ids: list[str]) -> list[str]:
        rows = session.exec(select(Violation.id).where(col(Violation.id).in_(violation_ids))).all()
        return sorted(rows)

    @staticmethod
    def derive_report_id(drone_id: str, date: dt.date, ingested_at: dt.datetime) -> str:
        # the random suffix keeps ids distinct for ingestions in the same millisecond
        epoch_ms = int(ingested_at.timestamp() * 1000)
        return f"{drone_id}_{date.isoformat()}_{epoch_ms}_{uuid4().hex[:8]}"

    def _conflict_for(self, session: Session, submission: ReportSubmission) -> ViolationMonitorError:
        if self._find_report(session, submission.drone_id, submission.date) is not None:
            logger.warning(
                "duplicate report rejected by storage constraint drone={} date={}",
                submission.drone_id,
                submission.date,
            )
            return DuplicateReportError(submission.drone_id, submission.date.isoformat())
        taken = self._existing_violation_ids(session, [item.id for item in submission.violations])
        if taken:
            logger.warning("report rejected, violation ids already stored: {}", taken)
            return DuplicateViolationError(taken)
        logger.error(
            "integrity failure without a matching duplicate drone={} date={}",
            submission.drone_id,
            submission.date,
        )
        return StorageError()

    def ingest(self, raw: Any) -> ReportRead:
        submission = validate_report(raw)
        return self.ingest_submission(submission)

    def ingest_json_document(self, content: bytes) -> ReportRead:
        try:
            raw = json.loads(content)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedInputError("uploaded file contains invalid JSON") from exc
        return self.ingest(raw)

    def ingest_submission(self, submission: ReportSubmission) -> ReportRead:
        try:
            with self._session() as session:
                if self._find_report(session, submission.drone_id, submission.date) is not None:
                    logger.warning(
                        "duplicate report rejected drone={} date={}",
                        submission.drone_id,
                        submission.date,
                    )
                    raise DuplicateReportError(submission.drone_id, submission.date.isoformat())

                ingested_at = now_utc()
                report = Report(
                    report_id=self.derive_report_id(submission.drone_id, submission.date, ingested_at),
                    drone_id=submission.drone_id,
                    date=submission.date,
                    location=submission.location,
                    uploaded_at=ingested_at,
                )
                violations = [
                    Violation(
                        id=item.id,
                        report_id=report.report_id,
                        drone_id=submission.drone_id,
                        date=submission.date,
                        location=submission.location,
                        type=item.type,
                        timestamp=item.timestamp,
                        latitude=item.latitude,
                        longitude=item.longitude,
                        image_url=item.image_url,
                        uploaded_at=ingested_at,
                    )
                    for item in submission.violations
                ]
                try:
                    session.add(report)
                    session.flush()
                    session.add_all(violations)
                    session.commit()
                except IntegrityError as exc:
                    session.rollback()
                    raise self._conflict_for(session, submission) from exc
        except SQLAlchemyError as exc:
            logger.exception(
                "storage failure while ingesting report drone={} date={}",
                submission.drone_id,
                submission.date,
            )
            raise StorageError() from exc

        logger.info(
            "ingested report {} with {} violations",
            report.report_id,
            len(violations),
        )
        return ReportRead(
            report_id=report.report_id,
            drone_id=report.drone_id,
            date=report.date,
            location=report.location,
            uploaded_at=report.uploaded_at,
            violations=[ViolationRead.model_validate(item) for item in violations],
        )

    def report_count(self) -> int:
        with storage_errors("report count"), self._session() as session:
            return int(session.exec(select(func.count()).select_from(Report)).one())
