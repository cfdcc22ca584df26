"""Chronological aggregation, per-day histogram and top day selection."""

from collections.abc import Iterable, Mapping, Sequence
from datetime import date

from models import DayBucket, IssueRecord, NoDataError, TopDayResult


def aggregate(per_source: Mapping[str, Sequence[IssueRecord]]) -> list[IssueRecord]:
    """Merge records from all sources, oldest first.

    sorted() is stable, so equal timestamps keep source order and then
    within-source order.
    """
    merged = []
    for records in per_source.values():
        merged.extend(records)
    return sorted(merged, key=lambda r: r.created_at)


def build_histogram(
    records: Iterable[IssueRecord], requested_sources: Sequence[str]
) -> dict[date, DayBucket]:
    """Count issues per UTC day and per source in one pass.

    Every day that has an issue gets a zero entry for each requested source.
    Quiet days are not materialized.
    """
    counts: dict[date, dict[str, int]] = {}

    for record in records:
        day = record.day
        occurrences = counts.get(day)
        if occurrences is None:
            occurrences = dict.fromkeys(requested_sources, 0)
            counts[day] = occurrences
        occurrences[record.repository] = occurrences.get(record.repository, 0) + 1

    return {day: DayBucket(day, occurrences) for day, occurrences in counts.items()}


def resolve_top_day(histogram: Mapping[date, DayBucket]) -> TopDayResult:
    """Pick the day with the most issues; on equal totals the later day wins."""
    if not histogram:
        raise NoDataError("no issues to pick a top day from")

    best = None
    for bucket in histogram.values():
        if best is None or bucket.total > best.total:
            best = bucket
        elif bucket.total == best.total and bucket.day > best.day:
            best = bucket

    return TopDayResult(day=best.day, occurrences=dict(best.occurrences))
