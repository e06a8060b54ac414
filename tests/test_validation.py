from __future__ import annotations

import datetime as dt
from typing import Any

import pytest

from app.domain.errors import InputValidationError
from app.domain.validation import (
    SortField,
    SortOrder,
    validate_report,
    validate_search,
    validate_violation_filters,
    validate_violation_query,
)


def _violation(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": "v1",
        "type": "Fire Detected",
        "timestamp": "10:00:00",
        "latitude": 23.0,
        "longitude": 85.0,
        "image_url": "https://x/1",
    }
    payload.update(overrides)
    return payload


def _report(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "drone_id": "D1",
        "date": "2025-01-01",
        "location": "Zone A",
        "violations": [_violation()],
    }
    payload.update(overrides)
    return payload


def _error_locs(exc: InputValidationError) -> set[str]:
    return {item.loc for item in exc.errors}


def test_valid_report_keeps_strings_as_submitted() -> None:
    submission = validate_report(
        _report(drone_id="  D1 ", location="Zone A ", violations=[_violation(id=" v1", type="Fire Detected ")])
    )

    assert submission.drone_id == "  D1 "
    assert submission.location == "Zone A "
    assert submission.violations[0].id == " v1"
    assert submission.violations[0].type == "Fire Detected "
    assert submission.date == dt.date(2025, 1, 1)
    assert submission.violations[0].image_url == "https://x/1"
    assert submission.violations[0].latitude == 23.0


def test_report_failure_lists_every_offending_field() -> None:
    raw = _report(
        drone_id="",
        date="2025/01/01",
        violations=[
            _violation(latitude=91, timestamp="24:00:00", image_url="not a uri"),
            _violation(id="v2", longitude=-181, type=""),
        ],
    )

    with pytest.raises(InputValidationError) as exc_info:
        validate_report(raw)

    assert {
        "drone_id",
        "date",
        "violations.0.latitude",
        "violations.0.timestamp",
        "violations.0.image_url",
        "violations.1.longitude",
        "violations.1.type",
    } <= _error_locs(exc_info.value)


def test_whitespace_only_strings_are_rejected() -> None:
    raw = _report(drone_id="   ", location="\t", violations=[_violation(id=" ", type="  ")])

    with pytest.raises(InputValidationError) as exc_info:
        validate_report(raw)

    assert _error_locs(exc_info.value) == {"drone_id", "location", "violations.0.id", "violations.0.type"}


def test_report_rejects_impossible_calendar_date() -> None:
    with pytest.raises(InputValidationError) as exc_info:
        validate_report(_report(date="2025-02-30"))
    assert _error_locs(exc_info.value) == {"date"}


def test_report_requires_at_least_one_violation() -> None:
    with pytest.raises(InputValidationError) as exc_info:
        validate_report(_report(violations=[]))
    assert "violations" in _error_locs(exc_info.value)


@pytest.mark.parametrize("timestamp", ["9:05:00", "12:60:00", "12:00:60", "12:00", "noon"])
def test_time_of_day_must_be_two_digit_and_in_range(timestamp: str) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        validate_report(_report(violations=[_violation(timestamp=timestamp)]))
    assert _error_locs(exc_info.value) == {"violations.0.timestamp"}


def test_coordinates_must_be_numeric() -> None:
    with pytest.raises(InputValidationError) as exc_info:
        validate_report(_report(violations=[_violation(latitude="23.0")]))
    assert _error_locs(exc_info.value) == {"violations.0.latitude"}


def test_duplicate_violation_ids_within_report_rejected() -> None:
    raw = _report(violations=[_violation(), _violation(type="No PPE Kit")])

    with pytest.raises(InputValidationError) as exc_info:
        validate_report(raw)

    assert any("duplicate violation ids" in item.message for item in exc_info.value.errors)


def test_non_object_report_rejected() -> None:
    with pytest.raises(InputValidationError) as exc_info:
        validate_report(["not", "a", "report"])
    assert _error_locs(exc_info.value) == {"body"}


def test_query_defaults() -> None:
    query = validate_violation_query({})

    assert query.page == 1
    assert query.limit == 10
    assert query.sort_by == SortField.DATE
    assert query.sort_order == SortOrder.DESC
    assert query.drone_id is None


def test_query_parses_string_parameters_and_treats_blank_filters_as_absent() -> None:
    query = validate_violation_query(
        {
            "page": "3",
            "limit": "25",
            "sort_by": "drone_id",
            "sort_order": "asc",
            "drone_id": "",
            "location": "   ",
            "date_from": "",
            "date_to": "2025-01-31",
        }
    )

    assert query.page == 3
    assert query.limit == 25
    assert query.sort_by == SortField.DRONE_ID
    assert query.sort_order == SortOrder.ASC
    assert query.drone_id is None
    assert query.location is None
    assert query.date_from is None
    assert query.date_to == dt.date(2025, 1, 31)


def test_query_reports_all_malformed_parameters() -> None:
    with pytest.raises(InputValidationError) as exc_info:
        validate_violation_query({"page": "0", "limit": "101", "sort_by": "latitude", "sort_order": "DESC"})

    assert _error_locs(exc_info.value) == {"page", "limit", "sort_by", "sort_order"}


@pytest.mark.parametrize("params", [{"page": "abc"}, {"limit": "2.5"}, {"date_from": "2025-1-1"}, {"color": "red"}])
def test_query_rejects_malformed_or_unknown_values(params: dict[str, str]) -> None:
    with pytest.raises(InputValidationError):
        validate_violation_query(params)


def test_query_rejects_inverted_date_window() -> None:
    with pytest.raises(InputValidationError) as exc_info:
        validate_violation_filters({"date_from": "2025-02-01", "date_to": "2025-01-01"})
    assert "date_from must not be after date_to" in exc_info.value.errors[0].message


def test_search_term_is_required_and_paged() -> None:
    search = validate_search(" fire ", {"page": "2"})
    assert search.term == "fire"
    assert search.page == 2
    assert search.limit == 10

    with pytest.raises(InputValidationError):
        validate_search("   ", {})
    with pytest.raises(InputValidationError):
        validate_search("fire", {"limit": "0"})
