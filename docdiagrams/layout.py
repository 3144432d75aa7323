"""
Layout algorithms for diagram records.

One strategy per diagram kind, each a pure function of (record, options):
- Flow (Mermaid): a row of evenly spaced boxes joined left-to-right
- Sequence (PlantUML): participant boxes with message arrows between them
- Text-flow: a vertical stack of step boxes
- Org-chart: boxes placed by list index and level, joined parent -> child
- Timeline: one horizontal date axis with staggered label rows
- Gantt: one row per task, bars scaled to the chart's date range

Layouts never mutate the record; they return a new DiagramLayout whose
element `ref`s point back at the record ("task:<id>", "event:<id>", ...).
"""

from datetime import date, timedelta
from typing import Callable, Optional

from pydantic import Field

from .errors import UnsupportedDiagramError
from .models import (
    Arrow,
    DiagramKind,
    DiagramLayout,
    DiagramRecord,
    Diamond,
    EventType,
    FrozenModel,
    GanttChart,
    Line,
    OrgChart,
    Rectangle,
    SourceDiagram,
    Text,
    TextFlow,
    Timeline,
)


# Default layout parameters
TITLE_Y = 20
TITLE_FONT_SIZE = 14

FLOW_STEP_HEIGHT = 60
FLOW_BOX_WIDTH = 120
FLOW_BOX_HEIGHT = 40

ORG_COLUMNS = 4
ORG_COLUMN_STRIDE = 110
ORG_LEVEL_HEIGHT = 80
ORG_BOX_WIDTH = 100
ORG_BOX_HEIGHT = 40

TIMELINE_MARGIN = 50
TIMELINE_AXIS_Y = 70
TIMELINE_ROW_HEIGHT = 60
MARKER_SIZE = 8
MILESTONE_SIZE = 10

GANTT_TOP = 60
GANTT_RIGHT_MARGIN = 40


class LayoutOptions(FrozenModel):
    """Canvas sizes and Gantt row geometry."""
    flow_width: float = 400
    sequence_width: float = 400
    org_width: float = 500
    timeline_width: float = 600
    gantt_width: float = 800
    gantt_label_width: float = 200
    row_height: float = Field(default=40, gt=0)
    bar_height: float = Field(default=20, gt=0)
    min_bar_width: float = Field(default=4.0, gt=0)


def _title(record: DiagramRecord, width: float) -> Text:
    return Text(
        x=width / 2, y=TITLE_Y, text=record.title, anchor="middle",
        font_size=TITLE_FONT_SIZE, bold=True, role="diagram-title",
    )


def _empty(record: DiagramRecord, width: float, height: float) -> DiagramLayout:
    return DiagramLayout(
        kind=record.kind, title=record.title, width=width, height=height,
        elements=[_title(record, width)],
    )


def _scale(value: date, start: date, days: int, length: float) -> float:
    return (value - start).days / days * length


# --- Mermaid / PlantUML placeholders ---

def layout_flow(record: DiagramRecord, options: LayoutOptions) -> DiagramLayout:
    """
    Evenly spaced boxes left-to-right, one per label, joined by arrows.

    Mermaid is not parsed deeply, so this is a visual placeholder built from
    the node labels found in the source.
    """
    content: SourceDiagram = record.content
    labels = content.labels
    box_width, box_height, stride = 80, 40, 130
    width = max(options.flow_width, 50 + len(labels) * stride)
    elements = [_title(record, width)]

    for i, label in enumerate(labels):
        x = 50 + i * stride
        elements.append(Rectangle(x=x, y=60, width=box_width, height=box_height, rx=5,
                                  role="mermaid-node", ref=f"node:{i}"))
        elements.append(Text(x=x + box_width / 2, y=85, text=label, anchor="middle",
                             font_size=12, max_chars=12, keep_chars=9,
                             role="mermaid-text", ref=f"node:{i}"))
        if i:
            elements.append(Arrow(points=[(x - stride + box_width, 80), (x, 80)],
                                  role="mermaid-edge", ref=f"edge:{i - 1}-{i}"))

    return DiagramLayout(kind=record.kind, title=record.title, width=width,
                         height=160, elements=elements)


def layout_sequence(record: DiagramRecord, options: LayoutOptions) -> DiagramLayout:
    """Participant boxes across the top; messages alternate between neighbours."""
    content: SourceDiagram = record.content
    participants = content.labels
    actor_width, stride = 60, 120
    width = max(options.sequence_width, 50 + len(participants) * stride)
    top = 50
    message_gap = 30
    lifeline_bottom = top + 80 + max(1, len(content.messages)) * message_gap + 20
    elements = [_title(record, width)]

    centers = []
    for i, name in enumerate(participants):
        x = 50 + i * stride
        centers.append(x + actor_width / 2)
        elements.append(Rectangle(x=x, y=top, width=actor_width, height=40,
                                  role="plantuml-actor", ref=f"participant:{i}"))
        elements.append(Text(x=x + actor_width / 2, y=top + 25, text=name, anchor="middle",
                             max_chars=10, keep_chars=7,
                             role="plantuml-name", ref=f"participant:{i}"))
        elements.append(Line(x1=x + actor_width / 2, y1=top + 40,
                             x2=x + actor_width / 2, y2=lifeline_bottom,
                             dashed=True, role="plantuml-lifeline"))

    messages = content.messages if len(centers) > 1 else []
    for i, message in enumerate(messages):
        pair = i % (len(centers) - 1)
        left, right = centers[pair], centers[pair + 1]
        y = top + 70 + i * message_gap
        points = [(left, y), (right, y)] if i % 2 == 0 else [(right, y), (left, y)]
        elements.append(Arrow(points=points, role="plantuml-message", ref=f"message:{i}"))
        elements.append(Text(x=(left + right) / 2, y=y - 5, text=message, anchor="middle",
                             role="plantuml-text", ref=f"message:{i}"))

    return DiagramLayout(kind=record.kind, title=record.title, width=width,
                         height=lifeline_bottom + 30, elements=elements)


# --- Text-flow / org-chart ---

def layout_text_flow(record: DiagramRecord, options: LayoutOptions) -> DiagramLayout:
    """
    A vertical stack of step boxes with an arrow along each edge.

    Args:
        record: Record whose content is a TextFlow
        options: Canvas sizes

    Returns:
        Layout sized 400 x max(300, steps * 60 + 100)
    """
    flow: TextFlow = record.content
    width = options.flow_width
    height = max(300, len(flow.steps) * FLOW_STEP_HEIGHT + 100)
    center_x = width / 2
    box_x = center_x - FLOW_BOX_WIDTH / 2
    elements = [_title(record, width)]

    for i, step in enumerate(flow.steps):
        y = 50 + i * FLOW_STEP_HEIGHT
        elements.append(Rectangle(x=box_x, y=y, width=FLOW_BOX_WIDTH, height=FLOW_BOX_HEIGHT,
                                  rx=5, role="flow-step", ref=f"step:{i}"))
        elements.append(Text(x=center_x, y=y + 25, text=step, anchor="middle", font_size=10,
                             max_chars=15, keep_chars=12, role="flow-text", ref=f"step:{i}"))

    for edge in flow.edges:
        y1 = 50 + edge.from_index * FLOW_STEP_HEIGHT + FLOW_BOX_HEIGHT
        y2 = 50 + edge.to_index * FLOW_STEP_HEIGHT
        elements.append(Arrow(points=[(center_x, y1), (center_x, y2)], title=edge.label,
                              role="flow-arrow", ref=f"edge:{edge.from_index}-{edge.to_index}"))

    return DiagramLayout(kind=record.kind, title=record.title, width=width,
                         height=height, elements=elements)


def layout_org_chart(record: DiagramRecord, options: LayoutOptions) -> DiagramLayout:
    """
    Place org-chart nodes by list position and level.

    x = 50 + (index mod 4) * 110, y = 50 + level * 80. Connector lines are
    emitted first so boxes paint over their ends.

    Args:
        record: Record whose content is an OrgChart
        options: Canvas sizes

    Returns:
        Layout sized 500 x max(300, (deepest level + 1) * 80 + 100)
    """
    chart: OrgChart = record.content
    width = options.org_width
    max_level = max((n.level for n in chart.nodes), default=0)
    height = max(300, (max_level + 1) * ORG_LEVEL_HEIGHT + 100)

    positions: dict[str, tuple[float, float]] = {}
    for i, node in enumerate(chart.nodes):
        positions[node.id] = (
            50 + (i % ORG_COLUMNS) * ORG_COLUMN_STRIDE,
            50 + node.level * ORG_LEVEL_HEIGHT,
        )

    elements = [_title(record, width)]
    for edge in chart.edges:
        if edge.parent not in positions or edge.child not in positions:
            continue
        px, py = positions[edge.parent]
        cx, cy = positions[edge.child]
        elements.append(Line(x1=px + ORG_BOX_WIDTH / 2, y1=py + ORG_BOX_HEIGHT,
                             x2=cx + ORG_BOX_WIDTH / 2, y2=cy,
                             role="org-line", ref=f"edge:{edge.parent}-{edge.child}"))

    for node in chart.nodes:
        x, y = positions[node.id]
        ref = f"node:{node.id}"
        elements.append(Rectangle(x=x, y=y, width=ORG_BOX_WIDTH, height=ORG_BOX_HEIGHT,
                                  rx=5, role="org-node", ref=ref))
        name_y = y + 18 if node.title else y + 25
        elements.append(Text(x=x + ORG_BOX_WIDTH / 2, y=name_y, text=node.name, anchor="middle",
                             font_size=9, max_chars=12, keep_chars=10, role="org-text", ref=ref))
        if node.title:
            elements.append(Text(x=x + ORG_BOX_WIDTH / 2, y=y + 32, text=node.title,
                                 anchor="middle", font_size=8, max_chars=16, keep_chars=13,
                                 role="org-subtitle", ref=ref))

    return DiagramLayout(kind=record.kind, title=record.title, width=width,
                         height=height, elements=elements)


# --- Time scales ---

def _add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    return date(value.year + month_index // 12, month_index % 12 + 1, 1)


def time_scale_marks(start: date, end: date) -> list[tuple[date, str]]:
    """
    Tick marks for a date range.

    - Up to 31 days: one mark per day, labelled with the day of month
    - Up to 366 days: one mark per month, labelled with the month name
    - Longer: one mark per year

    The first mark is always the range start.
    """
    total_days = (end - start).days
    if total_days <= 31:
        return [(start + timedelta(days=i), str((start + timedelta(days=i)).day))
                for i in range(total_days + 1)]

    if total_days <= 366:
        marks = [(start, start.strftime("%b"))]
        current = _add_months(start, 1)
        while current <= end:
            marks.append((current, current.strftime("%b")))
            current = _add_months(current, 1)
        return marks

    marks = [(start, str(start.year))]
    for year in range(start.year + 1, end.year + 1):
        marks.append((date(year, 1, 1), str(year)))
    return marks


def _scale_ticks(start: date, end: date, left: float, length: float,
                 y: float, role: str) -> list:
    """Tick lines and labels for the range, at their date positions."""
    days = max(1, (end - start).days)
    elements: list = []
    for mark, label in time_scale_marks(start, end):
        x = left + _scale(mark, start, days, length)
        elements.append(Line(x1=x, y1=y - 6, x2=x, y2=y + 6, role=role))
        elements.append(Text(x=x, y=y + 18, text=label, anchor="middle",
                             font_size=9, role=f"{role}-label"))
    return elements


# --- Timeline ---

def _event_marker(x: float, y: float, event_type: EventType, ref: Optional[str]):
    if event_type == EventType.MILESTONE:
        return Diamond(cx=x, cy=y, size=MILESTONE_SIZE, role="timeline-milestone", ref=ref)
    # Rounded square with full corner radius: a circle marker
    return Rectangle(x=x - MARKER_SIZE, y=y - MARKER_SIZE, width=2 * MARKER_SIZE,
                     height=2 * MARKER_SIZE, rx=MARKER_SIZE,
                     role=f"timeline-{event_type.value}", ref=ref)


def _timeline_legend(y: float) -> list:
    elements: list = [Text(x=10, y=y, text="Legend:", bold=True, role="legend-text")]
    x = 70
    for event_type in (EventType.EVENT, EventType.MILESTONE, EventType.DEADLINE):
        elements.append(_event_marker(x, y - 4, event_type, ref=None))
        elements.append(Text(x=x + 14, y=y, text=event_type.value.capitalize(),
                             font_size=10, role="legend-text"))
        x += 100
    return elements


def layout_timeline(record: DiagramRecord, options: LayoutOptions) -> DiagramLayout:
    """
    Lay events along one horizontal date axis.

    x = (date - first) / (last - first) * axis_width. When every event shares
    one date, markers sit at the axis midpoint. Each event gets its own label
    row below the axis (staggered, so labels never collide), joined to its
    marker by a dashed leader line.

    Args:
        record: Record whose content is a Timeline (events sorted by date)
        options: Canvas sizes

    Returns:
        Layout sized 600 x max(200, events * 60 + 100); title only when empty
    """
    timeline: Timeline = record.content
    events = timeline.events
    width = options.timeline_width
    height = max(200, len(events) * TIMELINE_ROW_HEIGHT + 100)
    if not events:
        return _empty(record, width, height)

    left = TIMELINE_MARGIN
    axis_width = width - 2 * TIMELINE_MARGIN
    axis_y = TIMELINE_AXIS_Y
    start = min(e.date for e in events)
    end = max(e.date for e in events)
    days = (end - start).days

    elements = [_title(record, width)]
    elements.append(Line(x1=left, y1=axis_y, x2=left + axis_width, y2=axis_y, role="timeline-line"))
    if days:
        elements.extend(_scale_ticks(start, end, left, axis_width, axis_y, "timeline-tick"))

    for i, event in enumerate(events):
        x = left + (_scale(event.date, start, days, axis_width) if days else axis_width / 2)
        label_y = axis_y + 45 + i * TIMELINE_ROW_HEIGHT
        ref = f"event:{event.id}"
        elements.append(Line(x1=x, y1=axis_y + MILESTONE_SIZE, x2=x, y2=label_y - 12,
                             dashed=True, role="timeline-leader", ref=ref))
        elements.append(_event_marker(x, axis_y, event.event_type, ref))
        anchor = "start" if x < left + axis_width / 3 else "end" if x > left + 2 * axis_width / 3 else "middle"
        elements.append(Text(x=x, y=label_y, text=event.title, anchor=anchor,
                             max_chars=40, keep_chars=37, role="timeline-text", ref=ref))
        elements.append(Text(x=x, y=label_y + 13, text=event.date.isoformat(), anchor=anchor,
                             font_size=9, role="timeline-date", ref=ref))

    elements.extend(_timeline_legend(height - 12))
    return DiagramLayout(kind=record.kind, title=record.title, width=width,
                         height=height, elements=elements)


# --- Gantt ---

def gantt_range(chart: GanttChart) -> Optional[tuple[date, date]]:
    """Earliest and latest date over all tasks and milestones."""
    starts = [t.start for t in chart.tasks] + [m.date for m in chart.milestones]
    ends = [t.end for t in chart.tasks] + [m.date for m in chart.milestones]
    if not starts:
        return None
    return min(starts), max(ends)


def _elbow(from_x: float, from_y: float, to_x: float, to_y: float, gap_y: float) -> list[tuple[float, float]]:
    """Orthogonal route: out of the predecessor, along the row gap, into the target."""
    out_x = from_x + 8
    in_x = to_x - 8
    return [(from_x, from_y), (out_x, from_y), (out_x, gap_y), (in_x, gap_y), (in_x, to_y), (to_x, to_y)]


def _gantt_legend(y: float) -> list:
    return [
        Rectangle(x=20, y=y - 10, width=20, height=10, rx=2, role="gantt-task"),
        Text(x=45, y=y, text="Task", font_size=10, role="legend-text"),
        Rectangle(x=100, y=y - 10, width=20, height=10, rx=2, role="gantt-progress"),
        Text(x=125, y=y, text="Progress", font_size=10, role="legend-text"),
        Diamond(cx=200, cy=y - 5, size=6, role="gantt-milestone"),
        Text(x=210, y=y, text="Milestone", font_size=10, role="legend-text"),
    ]


def layout_gantt(record: DiagramRecord, options: LayoutOptions) -> DiagramLayout:
    """
    One row per task, then one per milestone.

    Bars: x = (start - range_start) / duration * chart_width and
    width = (end - start) / duration * chart_width, never narrower than
    options.min_bar_width. A range of zero days counts as one day.
    Dependency arrows leave the predecessor's bar end, run along the gap
    just above the dependent row and enter the dependent bar's start, so
    they never cross a bar.

    Args:
        record: Record whose content is a GanttChart
        options: Canvas sizes and row geometry

    Returns:
        Layout sized 800 x max(300, rows * 40 + 120); title only when empty
    """
    chart: GanttChart = record.content
    width = options.gantt_width
    rows = len(chart.tasks) + len(chart.milestones)
    height = max(300, rows * options.row_height + 120)
    date_range = gantt_range(chart)
    if date_range is None:
        return _empty(record, width, height)

    left = options.gantt_label_width
    chart_width = width - left - GANTT_RIGHT_MARGIN
    range_start, range_end = date_range
    days = max(1, (range_end - range_start).days)
    row_gap = options.row_height - options.bar_height

    def row_y(index: int) -> float:
        return GANTT_TOP + index * options.row_height

    elements = [_title(record, width)]
    elements.append(Text(x=20, y=45, text="Task", font_size=11, bold=True, role="gantt-header"))
    elements.extend(_scale_ticks(range_start, range_end, left, chart_width, 40, "gantt-tick"))

    bars: dict[str, tuple[float, float, float]] = {}  # id -> (x, end_x, mid_y)
    for i, task in enumerate(chart.tasks):
        y = row_y(i)
        x = left + _scale(task.start, range_start, days, chart_width)
        bar_width = max(options.min_bar_width, task.duration_days / days * chart_width)
        bars[task.id] = (x, x + bar_width, y + options.bar_height / 2)
        ref = f"task:{task.id}"

        elements.append(Text(x=20, y=y + 15, text=task.name, font_size=10,
                             max_chars=28, keep_chars=25, role="gantt-text", ref=ref))
        elements.append(Rectangle(x=x, y=y, width=bar_width, height=options.bar_height,
                                  rx=3, role="gantt-task", ref=ref))
        if task.progress:
            elements.append(Rectangle(x=x, y=y, width=bar_width * task.progress / 100,
                                      height=options.bar_height, rx=3,
                                      role="gantt-progress", ref=ref))
        if task.priority is not None:
            elements.append(Rectangle(x=x - 6, y=y, width=3, height=options.bar_height,
                                      role=f"gantt-priority-{task.priority.value}", ref=ref))

    milestone_points: dict[str, tuple[float, float]] = {}
    for j, milestone in enumerate(chart.milestones):
        y = row_y(len(chart.tasks) + j)
        x = left + _scale(milestone.date, range_start, days, chart_width)
        mid_y = y + options.bar_height / 2
        milestone_points[milestone.id] = (x - MILESTONE_SIZE, mid_y)
        ref = f"milestone:{milestone.id}"
        elements.append(Text(x=20, y=y + 15, text=milestone.name, font_size=10,
                             max_chars=28, keep_chars=25, role="gantt-text", ref=ref))
        elements.append(Diamond(cx=x, cy=mid_y, size=MILESTONE_SIZE,
                                role="gantt-milestone", ref=ref))

    def connect(predecessor: str, target_x: float, target_y: float, target_row: int, target: str) -> None:
        if predecessor not in bars:
            return
        _, end_x, mid_y = bars[predecessor]
        gap_y = row_y(target_row) - row_gap / 2
        elements.append(Arrow(points=_elbow(end_x, mid_y, target_x, target_y, gap_y),
                              role="gantt-dependency", ref=f"dep:{predecessor}->{target}"))

    for i, task in enumerate(chart.tasks):
        x, _, mid_y = bars[task.id]
        for dependency in task.dependencies:
            connect(dependency, x, mid_y, i, task.id)
    for j, milestone in enumerate(chart.milestones):
        x, mid_y = milestone_points[milestone.id]
        for dependency in milestone.dependencies:
            connect(dependency, x, mid_y, len(chart.tasks) + j, milestone.id)

    elements.extend(_gantt_legend(height - 15))
    return DiagramLayout(kind=record.kind, title=record.title, width=width,
                         height=height, elements=elements)


LAYOUTS: dict[DiagramKind, Callable[[DiagramRecord, LayoutOptions], DiagramLayout]] = {
    DiagramKind.MERMAID: layout_flow,
    DiagramKind.PLANTUML: layout_sequence,
    DiagramKind.TEXT_FLOW: layout_text_flow,
    DiagramKind.ORG_CHART: layout_org_chart,
    DiagramKind.TIMELINE: layout_timeline,
    DiagramKind.GANTT_CHART: layout_gantt,
}


def compute_layout(record: DiagramRecord, options: Optional[LayoutOptions] = None) -> DiagramLayout:
    """
    Compute the layout for a normalized diagram record.

    Args:
        record: The diagram to lay out
        options: Canvas sizes (defaults if None)

    Returns:
        A new DiagramLayout

    Raises:
        UnsupportedDiagramError: No layout strategy for the record's kind
    """
    strategy = LAYOUTS.get(record.kind)
    if strategy is None:
        raise UnsupportedDiagramError(record.kind, "layout")
    return strategy(record, options or LayoutOptions())
