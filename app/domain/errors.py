from __future__ import annotations

from dataclasses import dataclass


class ViolationMonitorError(Exception):
    pass


@dataclass(frozen=True)
class FieldError:
    loc: str
    message: str


class InputValidationError(ViolationMonitorError):
    """Raised with every offending field of a submission, not just the first."""

    def __init__(self, errors: list[FieldError], message: str = "validation failed") -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors

    def to_detail(self) -> dict[str, object]:
        return {
            "message": self.message,
            "errors": [{"loc": item.loc, "message": item.message} for item in self.errors],
        }


class ConflictError(ViolationMonitorError):
    pass


class DuplicateReportError(ConflictError):
    def __init__(self, drone_id: str, date: str) -> None:
        super().__init__(f"report for drone {drone_id} on {date} already exists")
        self.drone_id = drone_id
        self.date = date


class DuplicateViolationError(ConflictError):
    def __init__(self, violation_ids: list[str]) -> None:
        super().__init__(f"violation id already exists: {', '.join(violation_ids)}")
        self.violation_ids = violation_ids


class NotFoundError(ViolationMonitorError):
    pass


class MalformedInputError(ViolationMonitorError):
    pass


class StorageError(ViolationMonitorError):
    def __init__(self, message: str = "storage operation failed") -> None:
        super().__init__(message)
