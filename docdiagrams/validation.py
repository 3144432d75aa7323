"""
Record validation - Check normalized diagrams for structural issues.

Used by the pipeline as a last gate before layout, and by the API and MCP
tools to report on what a document contains.
"""

from dataclasses import dataclass
from enum import Enum

from .models import (
    DiagramKind,
    DiagramRecord,
    GanttChart,
    OrgChart,
    SourceDiagram,
    TextFlow,
    Timeline,
)


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Broken invariant, the record must not be rendered
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a record."""
    severity: IssueSeverity
    message: str
    ref: str | None = None  # e.g. "task:design", "node:node-2"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.ref:
            result["ref"] = self.ref
        return result


def _find_cycle(graph: dict[str, list[str]]) -> list[str] | None:
    """Return one cycle (as a node path) in a directed graph, or None."""
    visiting: set[str] = set()
    done: set[str] = set()
    path: list[str] = []

    def visit(node: str) -> list[str] | None:
        visiting.add(node)
        path.append(node)
        for target in graph.get(node, []):
            if target in visiting:
                return path[path.index(target):] + [target]
            if target not in done:
                cycle = visit(target)
                if cycle:
                    return cycle
        visiting.discard(node)
        done.add(node)
        path.pop()
        return None

    for node in graph:
        if node not in done:
            cycle = visit(node)
            if cycle:
                return cycle
    return None


def _validate_text_flow(flow: TextFlow) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if len(flow.steps) < 2:
        issues.append(ValidationIssue(IssueSeverity.ERROR, "Process flow has fewer than two steps"))

    for i, step in enumerate(flow.steps):
        if not step.strip():
            issues.append(ValidationIssue(IssueSeverity.WARNING, "Step has an empty label", f"step:{i}"))

    for edge in flow.edges:
        ref = f"edge:{edge.from_index}-{edge.to_index}"
        if edge.from_index >= len(flow.steps) or edge.to_index >= len(flow.steps):
            issues.append(ValidationIssue(IssueSeverity.ERROR, "Edge references a missing step", ref))
        elif edge.from_index == edge.to_index:
            issues.append(ValidationIssue(IssueSeverity.WARNING, "Self-referencing edge", ref))
    return issues


def _validate_org_chart(chart: OrgChart) -> list[ValidationIssue]:
    """
    Checks:
    - Fewer than two nodes - ERROR
    - Duplicate node ids - ERROR
    - Edges to unknown nodes - ERROR
    - A node with more than one parent - ERROR
    - Cycles - ERROR
    - A child not deeper than its parent - WARNING
    """
    issues: list[ValidationIssue] = []
    if len(chart.nodes) < 2:
        issues.append(ValidationIssue(IssueSeverity.ERROR, "Organization chart has fewer than two nodes"))

    nodes = {}
    for node in chart.nodes:
        if node.id in nodes:
            issues.append(ValidationIssue(IssueSeverity.ERROR, f"Duplicate node id {node.id}", f"node:{node.id}"))
        nodes[node.id] = node

    parents: dict[str, str] = {}
    children: dict[str, list[str]] = {}
    for edge in chart.edges:
        ref = f"edge:{edge.parent}-{edge.child}"
        if edge.parent not in nodes or edge.child not in nodes:
            issues.append(ValidationIssue(IssueSeverity.ERROR, "Reporting line references a missing node", ref))
            continue
        if edge.child in parents:
            issues.append(ValidationIssue(
                IssueSeverity.ERROR, f"Node {edge.child} has more than one parent", f"node:{edge.child}"
            ))
        parents[edge.child] = edge.parent
        children.setdefault(edge.parent, []).append(edge.child)
        if nodes[edge.child].level <= nodes[edge.parent].level:
            issues.append(ValidationIssue(
                IssueSeverity.WARNING, f"{nodes[edge.child].name} is not indented below its manager", ref
            ))

    cycle = _find_cycle(children)
    if cycle:
        issues.append(ValidationIssue(IssueSeverity.ERROR, f"Reporting cycle: {' -> '.join(cycle)}"))
    return issues


def _validate_timeline(timeline: Timeline) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if not timeline.events:
        issues.append(ValidationIssue(IssueSeverity.INFO, "Timeline has no events"))
        return issues

    for previous, event in zip(timeline.events, timeline.events[1:]):
        if event.date < previous.date:
            issues.append(ValidationIssue(
                IssueSeverity.ERROR, "Events are not sorted by date", f"event:{event.id}"
            ))

    seen: set[str] = set()
    for event in timeline.events:
        if event.id in seen:
            issues.append(ValidationIssue(IssueSeverity.ERROR, f"Duplicate event id {event.id}", f"event:{event.id}"))
        seen.add(event.id)
        if event.title in ("Event", "Milestone"):
            issues.append(ValidationIssue(IssueSeverity.WARNING, "Event has no title", f"event:{event.id}"))
    return issues


def _validate_gantt(chart: GanttChart) -> list[ValidationIssue]:
    """
    Checks:
    - No tasks - INFO
    - Duplicate ids - ERROR
    - Dependencies on unknown or own tasks - ERROR
    - Dependency cycles - WARNING
    - A task starting before a predecessor ends - WARNING
    """
    issues: list[ValidationIssue] = []
    if not chart.tasks:
        issues.append(ValidationIssue(IssueSeverity.INFO, "Gantt chart has no tasks"))

    tasks = {}
    for item in [*chart.tasks, *chart.milestones]:
        if item.id in tasks:
            issues.append(ValidationIssue(IssueSeverity.ERROR, f"Duplicate id {item.id}", f"task:{item.id}"))
        tasks[item.id] = item

    task_ids = {t.id for t in chart.tasks}
    graph: dict[str, list[str]] = {}
    for task in chart.tasks:
        graph[task.id] = []
        for dependency in task.dependencies:
            ref = f"task:{task.id}"
            if dependency == task.id:
                issues.append(ValidationIssue(IssueSeverity.ERROR, "Task depends on itself", ref))
            elif dependency not in task_ids:
                issues.append(ValidationIssue(IssueSeverity.ERROR, f"Unknown dependency {dependency}", ref))
            else:
                graph[task.id].append(dependency)
                if task.start < tasks[dependency].end:
                    issues.append(ValidationIssue(
                        IssueSeverity.WARNING,
                        f"{task.name} starts before {tasks[dependency].name} ends",
                        ref,
                    ))

    for milestone in chart.milestones:
        for dependency in milestone.dependencies:
            if dependency not in task_ids:
                issues.append(ValidationIssue(
                    IssueSeverity.ERROR, f"Unknown dependency {dependency}", f"milestone:{milestone.id}"
                ))

    cycle = _find_cycle(graph)
    if cycle:
        issues.append(ValidationIssue(IssueSeverity.WARNING, f"Dependency cycle: {' -> '.join(cycle)}"))
    return issues


def _validate_source(diagram: SourceDiagram) -> list[ValidationIssue]:
    if not diagram.source.strip():
        return [ValidationIssue(IssueSeverity.INFO, "Diagram source is empty")]
    return []


_VALIDATORS = {
    DiagramKind.MERMAID: (SourceDiagram, _validate_source),
    DiagramKind.PLANTUML: (SourceDiagram, _validate_source),
    DiagramKind.TEXT_FLOW: (TextFlow, _validate_text_flow),
    DiagramKind.ORG_CHART: (OrgChart, _validate_org_chart),
    DiagramKind.TIMELINE: (Timeline, _validate_timeline),
    DiagramKind.GANTT_CHART: (GanttChart, _validate_gantt),
}


def validate_record(record: DiagramRecord) -> list[ValidationIssue]:
    """
    Validate a normalized record and return a list of issues.

    A content type that does not match the record's kind is an ERROR.

    Args:
        record: The record to validate

    Returns:
        List of ValidationIssue objects
    """
    expected, validator = _VALIDATORS[record.kind]
    if not isinstance(record.content, expected):
        return [ValidationIssue(
            IssueSeverity.ERROR,
            f"{record.kind.value} record holds {type(record.content).__name__} content"
        )]
    return validator(record.content)


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    errors = len([i for i in issues if i.severity == IssueSeverity.ERROR])
    return {
        "total": len(issues),
        "errors": errors,
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": errors == 0
    }
