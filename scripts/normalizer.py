"""Conversion of raw issue payloads into IssueRecords."""

import logging
from datetime import datetime, timezone

from models import IssueRecord, NormalizationError

log = logging.getLogger(__name__)

REQUIRED_FIELDS = ["id", "state", "title", "created_at"]


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp with an explicit offset or Z suffix into UTC."""
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError(f"no timezone offset in {value!r}")
    return parsed.astimezone(timezone.utc)


def normalize(raw: dict, repository: str) -> IssueRecord | NormalizationError:
    """Build an IssueRecord from a raw record.

    The repository is always the identifier the caller asked for, never
    anything derived from URLs in the payload. Problems are returned as a
    NormalizationError rather than raised.
    """
    if not isinstance(raw, dict):
        return NormalizationError(repository, "record", "is not an object")

    raw_id = raw.get("id")

    for name in REQUIRED_FIELDS:
        if raw.get(name) is None:
            return NormalizationError(repository, name, "is missing", raw_id)

    try:
        issue_id = int(raw_id)
    except (TypeError, ValueError):
        return NormalizationError(repository, "id", f"is not an integer: {raw_id!r}", raw_id)

    try:
        created_at = parse_timestamp(raw["created_at"])
    except (ValueError, OverflowError) as e:
        return NormalizationError(repository, "created_at", f"is unparseable ({e})", raw_id)

    return IssueRecord(
        id=issue_id,
        state=str(raw["state"]),
        title=str(raw["title"]),
        repository=repository,
        created_at=created_at,
    )


def normalize_source(
    raw_records: list[dict], repository: str
) -> tuple[list[IssueRecord], list[NormalizationError]]:
    """Normalize every raw record of one source, skipping the bad ones."""
    records = []
    errors = []

    for raw in raw_records:
        result = normalize(raw, repository)
        if isinstance(result, NormalizationError):
            log.warning(f"Skipping malformed issue: {result}")
            errors.append(result)
        else:
            records.append(result)

    if errors:
        log.warning(f"{repository}: skipped {len(errors)} of {len(raw_records)} issues")

    return records, errors
