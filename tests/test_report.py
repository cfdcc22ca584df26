"""Tests for report assembly and the end-to-end pipeline."""

import sys
from datetime import date, datetime, timedelta, timezone

sys.path.insert(0, "scripts")

from models import IssueRecord, TopDayResult
from renderer import render_json
from report import assemble, build_report


def raw_issue(issue_id, created_at, state="open", title=None):
    return {
        "id": issue_id,
        "state": state,
        "title": title or f"Issue {issue_id}",
        "created_at": created_at,
    }


class TestAssemble:
    """Test projection into the report shape."""

    def test_issue_fields(self):
        record = IssueRecord(
            id=38,
            state="open",
            title="Found a bug",
            repository="owner1/repository1",
            created_at=datetime(2011, 4, 22, 13, 33, 48, 250000, tzinfo=timezone.utc),
        )
        report = assemble([record], None)
        assert report.issues == [{
            "id": 38,
            "state": "open",
            "title": "Found a bug",
            "repository": "owner1/repository1",
            "created_at": "2011-04-22T13:33:48Z",
        }]

    def test_non_utc_offset_formatted_as_utc(self):
        record = IssueRecord(
            id=1, state="open", title="t", repository="a/x",
            created_at=datetime(2011, 4, 22, 23, 30, tzinfo=timezone(timedelta(hours=-2))),
        )
        report = assemble([record], None)
        assert report.issues[0]["created_at"] == "2011-04-23T01:30:00Z"

    def test_top_day_projection(self):
        top_day = TopDayResult(day=date(2011, 4, 22), occurrences={"a/x": 2, "b/y": 0})
        report = assemble([], top_day)
        assert report.top_day == {"day": "2011-04-22", "occurrences": {"a/x": 2, "b/y": 0}}

    def test_empty_top_day_is_none(self):
        report = assemble([], None)
        assert report.to_dict() == {"issues": [], "top_day": None}


class TestBuildReport:
    """End-to-end pipeline scenarios."""

    def test_example_report(self):
        """Two issues on one day beat one issue on another day."""
        raw = {
            "a/x": [
                raw_issue(38, "2011-04-22T13:33:48Z", title="Found a bug"),
                raw_issue(23, "2011-04-22T18:24:32Z", title="Found a bug 2"),
            ],
            "b/y": [raw_issue(24, "2011-05-08T09:15:20Z", state="closed", title="Feature request")],
        }
        report = build_report(raw, ["a/x", "b/y"]).to_dict()

        assert [i["id"] for i in report["issues"]] == [38, 23, 24]
        assert [i["repository"] for i in report["issues"]] == ["a/x", "a/x", "b/y"]
        assert report["top_day"] == {
            "day": "2011-04-22",
            "occurrences": {"a/x": 2, "b/y": 0},
        }

    def test_tie_resolves_to_later_day(self):
        raw = {
            "a/x": [raw_issue(1, "2011-04-22T10:00:00Z")],
            "b/y": [raw_issue(2, "2011-06-01T10:00:00Z")],
        }
        report = build_report(raw, ["a/x", "b/y"])
        assert report.top_day["day"] == "2011-06-01"
        assert report.top_day["occurrences"] == {"a/x": 0, "b/y": 1}

    def test_failed_source_appears_with_zero(self):
        """A source missing from the fetched data still shows up with 0."""
        raw = {
            "b/y": [
                raw_issue(1, "2011-04-22T08:00:00Z"),
                raw_issue(2, "2011-04-22T09:00:00Z"),
                raw_issue(3, "2011-04-22T10:00:00Z"),
            ],
        }
        report = build_report(raw, ["a/x", "b/y"])
        assert len(report.issues) == 3
        assert report.top_day == {"day": "2011-04-22", "occurrences": {"a/x": 0, "b/y": 3}}

    def test_unparseable_timestamp_excluded(self):
        raw = {
            "a/x": [
                raw_issue(1, "2011-04-22T08:00:00Z"),
                raw_issue(2, "garbage"),
                raw_issue(3, "2011-04-23T08:00:00Z"),
            ],
        }
        report = build_report(raw, ["a/x"])
        assert [i["id"] for i in report.issues] == [1, 3]

    def test_skipped_records_returned_to_caller(self):
        raw = {
            "a/x": [raw_issue(1, "garbage"), raw_issue(2, "2011-04-22T08:00:00Z")],
            "b/y": [{"id": 3, "state": "open", "created_at": "2011-04-22T09:00:00Z"}],
        }
        report = build_report(raw, ["a/x", "b/y"])
        assert [(e.repository, e.raw_id, e.field) for e in report.skipped] == [
            ("a/x", 1, "created_at"),
            ("b/y", 3, "title"),
        ]
        assert "skipped" not in report.to_dict()

    def test_out_of_range_timestamp_does_not_abort(self):
        raw = {"a/x": [raw_issue(1, "0001-01-01T00:00:00+01:00"), raw_issue(2, "2011-04-22T08:00:00Z")]}
        report = build_report(raw, ["a/x"])
        assert [i["id"] for i in report.issues] == [2]
        assert report.top_day == {"day": "2011-04-22", "occurrences": {"a/x": 1}}

    def test_no_repositories(self):
        report = build_report({}, [])
        assert report.to_dict() == {"issues": [], "top_day": None}

    def test_all_repositories_empty(self):
        report = build_report({"a/x": [], "b/y": []}, ["a/x", "b/y"])
        assert report.to_dict() == {"issues": [], "top_day": None}

    def test_repository_url_ignored(self):
        raw = {"a/x": [{
            **raw_issue(1, "2011-04-22T08:00:00Z"),
            "repository_url": "https://api.github.com/repos/a/x",
        }]}
        report = build_report(raw, ["a/x"])
        assert report.issues[0]["repository"] == "a/x"
        assert report.top_day["occurrences"] == {"a/x": 1}

    def test_issues_ordered(self):
        raw = {
            "a/x": [raw_issue(i, f"2011-04-{day:02d}T10:00:00Z") for i, day in enumerate([5, 1, 9])],
            "b/y": [raw_issue(10 + i, f"2011-04-{day:02d}T09:00:00Z") for i, day in enumerate([3, 9])],
        }
        issues = build_report(raw, ["a/x", "b/y"]).issues
        stamps = [i["created_at"] for i in issues]
        assert stamps == sorted(stamps)

    def test_rerun_is_identical(self):
        raw = {
            "a/x": [raw_issue(1, "2011-04-22T08:00:00Z"), raw_issue(2, "2011-04-22T08:00:00Z")],
            "b/y": [raw_issue(3, "2011-04-22T08:00:00+00:00")],
        }
        first = render_json(build_report(raw, ["a/x", "b/y"]))
        second = render_json(build_report(raw, ["a/x", "b/y"]))
        assert first == second
