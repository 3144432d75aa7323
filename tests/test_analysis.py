"""Tests for docdiagrams/analysis.py - document summaries."""

from datetime import date

from docdiagrams.analysis import record_dates, summarize_document

from .conftest import MIXED_DOC


class TestSummarizeDocument:

    def test_mixed_document(self, pipeline):
        records, errors = pipeline.records(MIXED_DOC)
        assert errors == []
        summary = summarize_document(records)

        assert summary.total_diagrams == 4
        assert summary.diagrams_by_kind == {
            "mermaid": 1, "text-flow": 1, "timeline": 1, "gantt-chart": 1,
        }
        assert summary.timeline_events == 3
        assert summary.gantt_tasks == 2
        assert summary.flow_steps == 3
        assert summary.interactive_features is True
        assert summary.date_span.start == date(2024, 1, 1)
        assert summary.date_span.end == date(2024, 3, 1)

    def test_to_dict(self, pipeline):
        records, _ = pipeline.records(MIXED_DOC)
        data = summarize_document(records).to_dict()
        assert data["date_span"] == {"start": "2024-01-01", "end": "2024-03-01", "days": 60}
        assert data["titles"][1] == "Release Process"
        assert data["issue_count"] == 0

    def test_empty(self):
        summary = summarize_document([])
        assert summary.total_diagrams == 0
        assert summary.interactive_features is False
        assert summary.to_dict()["date_span"] is None


class TestRecordDates:

    def test_only_dated_kinds(self, pipeline):
        records, _ = pipeline.records(MIXED_DOC)
        by_kind = {r.kind.value: r for r in records}
        assert record_dates(by_kind["mermaid"]) == []
        assert record_dates(by_kind["gantt-chart"]) == [
            date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 16), date(2024, 2, 1),
        ]
