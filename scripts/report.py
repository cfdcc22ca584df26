"""Report assembly: the pure pipeline from raw issues to the final report."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import timezone

from aggregator import aggregate, build_histogram, resolve_top_day
from models import IssueRecord, NoDataError, NormalizationError, TopDayResult
from normalizer import normalize_source

log = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True)
class Report:
    issues: list[dict] = field(default_factory=list)
    top_day: dict | None = None
    # Records left out of the report, not part of the serialized output
    skipped: list[NormalizationError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"issues": self.issues, "top_day": self.top_day}


def format_timestamp(record: IssueRecord) -> str:
    return record.created_at.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def assemble(
    records: Sequence[IssueRecord],
    top_day: TopDayResult | None,
    skipped: Sequence[NormalizationError] = (),
) -> Report:
    """Project records and the top day result into the public report shape."""
    issues = [
        {
            "id": r.id,
            "state": r.state,
            "title": r.title,
            "repository": r.repository,
            "created_at": format_timestamp(r),
        }
        for r in records
    ]

    top_day_data = None
    if top_day is not None:
        top_day_data = {
            "day": top_day.day.isoformat(),
            "occurrences": dict(top_day.occurrences),
        }

    return Report(issues=issues, top_day=top_day_data, skipped=list(skipped))


def build_report(
    raw_by_source: Mapping[str, Sequence[dict]], requested_sources: Sequence[str]
) -> Report:
    """Run normalize -> aggregate -> histogram -> top day -> assemble.

    Requested sources absent from raw_by_source (failed fetches) contribute no
    issues but still show up with 0 in the top day occurrences.
    """
    per_source = {}
    skipped = []
    for repository in requested_sources:
        records, errors = normalize_source(raw_by_source.get(repository, []), repository)
        per_source[repository] = records
        skipped.extend(errors)

    ordered = aggregate(per_source)
    histogram = build_histogram(ordered, requested_sources)

    try:
        top_day = resolve_top_day(histogram)
    except NoDataError:
        log.warning("No issues found in any repository, top_day will be empty")
        top_day = None

    log.info(f"Report: {len(ordered)} issues across {len(requested_sources)} repositories")
    return assemble(ordered, top_day, skipped)
