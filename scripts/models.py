"""Issue records, day buckets and the error types of the report pipeline."""

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class IssueRecord:
    """One normalized issue. created_at is always tz-aware UTC."""

    id: int
    state: str
    title: str
    repository: str
    created_at: datetime

    @property
    def day(self) -> date:
        return self.created_at.date()


@dataclass(frozen=True)
class DayBucket:
    day: date
    occurrences: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.occurrences.values())


@dataclass(frozen=True)
class TopDayResult:
    day: date
    occurrences: dict[str, int] = field(default_factory=dict)


class IssueReportError(Exception):
    """Base class for report pipeline errors."""


class FetchError(IssueReportError):
    """A repository could not be fetched."""

    def __init__(self, repository: str, reason: str):
        super().__init__(f"{repository}: {reason}")
        self.repository = repository
        self.reason = reason


class NormalizationError(IssueReportError):
    """A raw issue record could not be turned into an IssueRecord."""

    def __init__(self, repository: str, field: str, reason: str, raw_id=None):
        super().__init__(f"{repository} issue {raw_id}: {field} {reason}")
        self.repository = repository
        self.field = field
        self.reason = reason
        self.raw_id = raw_id


class NoDataError(IssueReportError):
    """There are no issues to pick a top day from."""
