"""Structural validation of incoming reports and query parameters.

Both entry points collect every violated constraint before failing, so a
client can fix a submission in one round trip.
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator

from app.domain.errors import FieldError, InputValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_OF_DAY_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d:[0-5]\d$")

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10

_URI_ADAPTER = TypeAdapter(AnyUrl)


def _parse_calendar_date(value: Any) -> Any:
    if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
        return value
    if not isinstance(value, str) or DATE_PATTERN.match(value) is None:
        raise ValueError("must match YYYY-MM-DD")
    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"{value} is not a valid calendar date") from exc


def _reject_blank(value: str) -> str:
    # values are kept exactly as submitted; only whitespace-only input fails
    if not value.strip():
        raise ValueError("must not be blank")
    return value


class ViolationSubmission(BaseModel):
    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    timestamp: str
    latitude: float = Field(ge=-90, le=90, strict=True, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, strict=True, allow_inf_nan=False)
    image_url: str

    @field_validator("id", "type")
    @classmethod
    def _check_not_blank(cls, value: str) -> str:
        return _reject_blank(value)

    @field_validator("timestamp")
    @classmethod
    def _check_time_of_day(cls, value: str) -> str:
        if TIME_OF_DAY_PATTERN.match(value) is None:
            raise ValueError("must match HH:MM:SS with hours 00-23 and minutes/seconds 00-59")
        return value

    @field_validator("image_url")
    @classmethod
    def _check_uri(cls, value: str) -> str:
        try:
            _URI_ADAPTER.validate_python(value)
        except ValidationError as exc:
            raise ValueError("must be a well-formed URI") from exc
        # stored verbatim; AnyUrl would normalise trailing slashes
        return value


class ReportSubmission(BaseModel):
    drone_id: str = Field(min_length=1)
    date: dt.date
    location: str = Field(min_length=1)
    violations: list[ViolationSubmission] = Field(min_length=1)

    @field_validator("drone_id", "location")
    @classmethod
    def _check_not_blank(cls, value: str) -> str:
        return _reject_blank(value)

    @field_validator("date", mode="before")
    @classmethod
    def _check_date(cls, value: Any) -> Any:
        return _parse_calendar_date(value)

    @model_validator(mode="after")
    def _check_unique_violation_ids(self) -> ReportSubmission:
        seen: set[str] = set()
        duplicates: list[str] = []
        for item in self.violations:
            if item.id in seen and item.id not in duplicates:
                duplicates.append(item.id)
            seen.add(item.id)
        if duplicates:
            raise ValueError(f"duplicate violation ids in report: {', '.join(duplicates)}")
        return self


class SortField(StrEnum):
    DATE = "date"
    TIMESTAMP = "timestamp"
    TYPE = "type"
    DRONE_ID = "drone_id"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


class ViolationFilters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    drone_id: str | None = None
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    violation_type: str | None = None
    location: str | None = None

    @field_validator("drone_id", "violation_type", "location", mode="before")
    @classmethod
    def _blank_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _check_date(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return _parse_calendar_date(value)

    @model_validator(mode="after")
    def _check_date_window(self) -> ViolationFilters:
        if self.date_from is not None and self.date_to is not None and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self


class PageParams(BaseModel):
    model_config = ConfigDict(extra="forbid")

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


class ViolationQuery(ViolationFilters, PageParams):
    sort_by: SortField = SortField.DATE
    sort_order: SortOrder = SortOrder.DESC


class SearchQuery(PageParams):
    term: str = Field(min_length=1)

    @field_validator("term")
    @classmethod
    def _check_term(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("search term must not be blank")
        return value.strip()


def _field_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for item in exc.errors():
        loc = ".".join(str(part) for part in item["loc"]) or "body"
        errors.append(FieldError(loc=loc, message=item["msg"]))
    return errors


def validate_report(raw: Any) -> ReportSubmission:
    try:
        return ReportSubmission.model_validate(raw)
    except ValidationError as exc:
        raise InputValidationError(_field_errors(exc), "report validation failed") from exc


def validate_violation_query(raw: Mapping[str, Any]) -> ViolationQuery:
    try:
        return ViolationQuery.model_validate(dict(raw))
    except ValidationError as exc:
        raise InputValidationError(_field_errors(exc), "invalid query parameters") from exc


def validate_violation_filters(raw: Mapping[str, Any]) -> ViolationFilters:
    try:
        return ViolationFilters.model_validate(dict(raw))
    except ValidationError as exc:
        raise InputValidationError(_field_errors(exc), "invalid query parameters") from exc


def validate_search(term: str, raw: Mapping[str, Any]) -> SearchQuery:
    try:
        return SearchQuery.model_validate({**dict(raw), "term": term})
    except ValidationError as exc:
        raise InputValidationError(_field_errors(exc), "invalid search parameters") from exc
