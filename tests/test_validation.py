"""Tests for docdiagrams/validation.py - structural record checks."""

from datetime import date

from docdiagrams.models import (
    DiagramKind,
    GanttChart,
    GanttMilestone,
    GanttTask,
    OrgChart,
    OrgChartEdge,
    OrgChartNode,
    SourceDiagram,
    TextFlow,
    TextFlowEdge,
    Timeline,
    TimelineEvent,
)
from docdiagrams.structure import parse_org_chart, parse_text_flow
from docdiagrams.timeline import parse_gantt_tasks, parse_timeline_events
from docdiagrams.validation import IssueSeverity, ValidationIssue, validate_record, validation_summary

from .conftest import GANTT_DOC, ORG_DOC, PROCESS_DOC, TIMELINE_DOC


def _severities(issues):
    return [i.severity for i in issues]


def _task(task_id, start, end, deps=()):
    return GanttTask(id=task_id, name=task_id.title(), start=start, end=end, dependencies=list(deps))


class TestParsedRecordsAreValid:

    def test_parsed_records(self, make_record):
        """Everything the parsers produce from the sample documents passes."""
        records = [
            make_record(DiagramKind.TEXT_FLOW, parse_text_flow(PROCESS_DOC)),
            make_record(DiagramKind.ORG_CHART, parse_org_chart(ORG_DOC.split("\n", 1)[1])),
            make_record(DiagramKind.TIMELINE, Timeline(events=parse_timeline_events(TIMELINE_DOC))),
            make_record(DiagramKind.GANTT_CHART, parse_gantt_tasks(GANTT_DOC)),
        ]
        for record in records:
            assert validate_record(record) == [], record.kind


class TestTextFlow:

    def test_too_few_steps(self, make_record):
        issues = validate_record(make_record(DiagramKind.TEXT_FLOW, TextFlow(steps=["Only"])))
        assert _severities(issues) == [IssueSeverity.ERROR]

    def test_edge_out_of_range(self, make_record):
        flow = TextFlow(steps=["A", "B"], edges=[TextFlowEdge(from_index=0, to_index=5)])
        [issue] = validate_record(make_record(DiagramKind.TEXT_FLOW, flow))
        assert issue.severity == IssueSeverity.ERROR
        assert issue.ref == "edge:0-5"

    def test_self_edge_is_warning(self, make_record):
        flow = TextFlow(steps=["A", "B"], edges=[TextFlowEdge(from_index=1, to_index=1)])
        assert _severities(validate_record(make_record(DiagramKind.TEXT_FLOW, flow))) == [IssueSeverity.WARNING]


class TestOrgChart:

    def test_cycle(self, make_record):
        chart = OrgChart(
            nodes=[OrgChartNode(id="a", name="A", level=0), OrgChartNode(id="b", name="B", level=1)],
            edges=[OrgChartEdge(parent="a", child="b"), OrgChartEdge(parent="b", child="a")],
        )
        messages = [i.message for i in validate_record(make_record(DiagramKind.ORG_CHART, chart))]
        assert any(m.startswith("Reporting cycle") for m in messages)

    def test_missing_node(self, make_record):
        chart = OrgChart(
            nodes=[OrgChartNode(id="a", name="A"), OrgChartNode(id="b", name="B", level=1)],
            edges=[OrgChartEdge(parent="a", child="zzz")],
        )
        [issue] = validate_record(make_record(DiagramKind.ORG_CHART, chart))
        assert issue.severity == IssueSeverity.ERROR

    def test_child_not_deeper_is_warning(self, make_record):
        chart = OrgChart(
            nodes=[OrgChartNode(id="a", name="A", level=1), OrgChartNode(id="b", name="B", level=1)],
            edges=[OrgChartEdge(parent="a", child="b")],
        )
        assert _severities(validate_record(make_record(DiagramKind.ORG_CHART, chart))) == [IssueSeverity.WARNING]


class TestTimeline:

    def test_unsorted_events(self, make_record):
        events = [
            TimelineEvent(id="a", date=date(2024, 2, 1), title="Later"),
            TimelineEvent(id="b", date=date(2024, 1, 1), title="Earlier"),
        ]
        [issue] = validate_record(make_record(DiagramKind.TIMELINE, Timeline(events=events)))
        assert issue.severity == IssueSeverity.ERROR
        assert issue.ref == "event:b"

    def test_empty_is_info(self, make_record):
        assert _severities(validate_record(make_record(DiagramKind.TIMELINE, Timeline()))) == [IssueSeverity.INFO]


class TestGantt:

    def test_unknown_dependency(self, make_record):
        chart = GanttChart(tasks=[_task("a", date(2024, 1, 1), date(2024, 1, 2), deps=["ghost"])])
        [issue] = validate_record(make_record(DiagramKind.GANTT_CHART, chart))
        assert issue.severity == IssueSeverity.ERROR
        assert "ghost" in issue.message

    def test_overlapping_dependency_is_warning(self, make_record):
        chart = GanttChart(tasks=[
            _task("a", date(2024, 1, 1), date(2024, 1, 10)),
            _task("b", date(2024, 1, 5), date(2024, 1, 12), deps=["a"]),
        ])
        [issue] = validate_record(make_record(DiagramKind.GANTT_CHART, chart))
        assert issue.severity == IssueSeverity.WARNING
        assert issue.message == "B starts before A ends"

    def test_cycle_is_warning(self, make_record):
        chart = GanttChart(tasks=[
            _task("a", date(2024, 1, 10), date(2024, 1, 10), deps=["b"]),
            _task("b", date(2024, 1, 10), date(2024, 1, 10), deps=["a"]),
        ])
        issues = validate_record(make_record(DiagramKind.GANTT_CHART, chart))
        assert IssueSeverity.ERROR not in _severities(issues)
        assert any(i.message.startswith("Dependency cycle") for i in issues)

    def test_milestone_unknown_dependency(self, make_record):
        chart = GanttChart(
            tasks=[_task("a", date(2024, 1, 1), date(2024, 1, 2))],
            milestones=[GanttMilestone(id="milestone-go", name="Go", date=date(2024, 1, 3), dependencies=["x"])],
        )
        [issue] = validate_record(make_record(DiagramKind.GANTT_CHART, chart))
        assert issue.ref == "milestone:milestone-go"


class TestMismatchAndSummary:

    def test_content_kind_mismatch(self, make_record):
        record = make_record(DiagramKind.GANTT_CHART, SourceDiagram(source="x"))
        [issue] = validate_record(record)
        assert issue.severity == IssueSeverity.ERROR

    def test_empty_source_is_info(self, make_record):
        issues = validate_record(make_record(DiagramKind.MERMAID, SourceDiagram(source="  ")))
        assert _severities(issues) == [IssueSeverity.INFO]

    def test_summary(self):
        issues = [
            ValidationIssue(IssueSeverity.ERROR, "bad"),
            ValidationIssue(IssueSeverity.WARNING, "hmm", "task:a"),
            ValidationIssue(IssueSeverity.INFO, "fyi"),
        ]
        assert validation_summary(issues) == {
            "total": 3, "errors": 1, "warnings": 1, "info": 1, "valid": False,
        }
        assert issues[1].to_dict() == {"type": "warning", "message": "hmm", "ref": "task:a"}
        assert "ref" not in issues[0].to_dict()
