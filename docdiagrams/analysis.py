"""
Document analysis - Summaries of the diagrams found in a document.

Provides summary functions used by the API, the MCP tools and the CLI to
describe a document without rendering it.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date

from .models import DiagramKind, DiagramRecord, GanttChart, OrgChart, TextFlow, Timeline
from .validation import IssueSeverity, validate_record


@dataclass
class DateSpan:
    """First and last date covered by a timeline or Gantt chart."""
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days


@dataclass
class DocumentSummary:
    """Counts and coverage of the diagrams in one document."""
    total_diagrams: int
    diagrams_by_kind: dict[str, int]
    timeline_events: int = 0
    milestones: int = 0
    gantt_tasks: int = 0
    flow_steps: int = 0
    org_nodes: int = 0
    interactive_features: bool = False
    date_span: DateSpan | None = None
    titles: list[str] = field(default_factory=list)
    issue_count: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_diagrams": self.total_diagrams,
            "diagrams_by_kind": self.diagrams_by_kind,
            "timeline_events": self.timeline_events,
            "milestones": self.milestones,
            "gantt_tasks": self.gantt_tasks,
            "flow_steps": self.flow_steps,
            "org_nodes": self.org_nodes,
            "interactive_features": self.interactive_features,
            "date_span": {
                "start": self.date_span.start.isoformat(),
                "end": self.date_span.end.isoformat(),
                "days": self.date_span.days,
            } if self.date_span else None,
            "titles": self.titles,
            "issue_count": self.issue_count,
        }


def record_dates(record: DiagramRecord) -> list[date]:
    """Every date a timeline or Gantt record mentions (empty for other kinds)."""
    content = record.content
    if isinstance(content, Timeline):
        return [e.date for e in content.events]
    if isinstance(content, GanttChart):
        dates = [d for t in content.tasks for d in (t.start, t.end)]
        return dates + [m.date for m in content.milestones]
    return []


def summarize_document(records: list[DiagramRecord]) -> DocumentSummary:
    """
    Generate a summary of a document's normalized diagrams.

    Args:
        records: Normalized records, as produced by DiagramPipeline.normalize

    Returns:
        DocumentSummary with counts by kind, dated items, and the overall
        date span of all timelines and Gantt charts
    """
    kind_counts: dict[str, int] = defaultdict(int)
    summary = DocumentSummary(total_diagrams=len(records), diagrams_by_kind={})
    all_dates: list[date] = []

    for record in records:
        kind_counts[record.kind.value] += 1
        summary.titles.append(record.title)
        content = record.content

        if isinstance(content, Timeline):
            summary.timeline_events += len(content.events)
            summary.milestones += len([e for e in content.events if e.is_milestone])
        elif isinstance(content, GanttChart):
            summary.gantt_tasks += len(content.tasks)
            summary.milestones += len(content.milestones)
        elif isinstance(content, TextFlow):
            summary.flow_steps += len(content.steps)
        elif isinstance(content, OrgChart):
            summary.org_nodes += len(content.nodes)

        all_dates.extend(record_dates(record))
        summary.issue_count += len([
            i for i in validate_record(record) if i.severity != IssueSeverity.INFO
        ])

    summary.diagrams_by_kind = dict(kind_counts)
    summary.interactive_features = any(
        r.kind in (DiagramKind.TIMELINE, DiagramKind.GANTT_CHART) for r in records
    )
    if all_dates:
        summary.date_span = DateSpan(start=min(all_dates), end=max(all_dates))
    return summary
