"""
Core data models for document diagrams.

These models define the data contract between pipeline stages:
- Candidates found by the extractor (raw, unvalidated spans of text)
- Structural records produced by the parsers (flows, org charts, timelines, Gantt charts)
- Layout shapes computed by the layout engine and serialized by the renderer
- The caller-supplied theme

Every record is frozen: stages create new records and never mutate old ones.

Field Naming Convention:
- Python attributes are snake_case
- Text-flow edges serialize as `from`/`to` (aliases of `from_index`/`to_index`,
  since `from` is a Python keyword)
"""

import re
from datetime import date as CalendarDate
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DiagramKind(str, Enum):
    """Diagram kinds the extractor recognizes."""
    MERMAID = "mermaid"
    PLANTUML = "plantuml"
    TEXT_FLOW = "text-flow"
    ORG_CHART = "org-chart"
    TIMELINE = "timeline"
    GANTT_CHART = "gantt-chart"


class ShapeKind(str, Enum):
    """Primitive shapes the renderer knows how to serialize."""
    RECTANGLE = "rectangle"
    DIAMOND = "diamond"
    LINE = "line"
    ARROW = "arrow"
    POLYGON = "polygon"
    TEXT = "text"


class EventType(str, Enum):
    """Timeline event classification (drives marker color)."""
    MILESTONE = "milestone"
    EVENT = "event"
    DEADLINE = "deadline"


class Priority(str, Enum):
    """Gantt task priority inferred from keywords."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FrozenModel(BaseModel):
    """Base for immutable records."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# --- Extraction ---

class DiagramCandidate(FrozenModel):
    """A span of document text that may describe a diagram."""
    kind: DiagramKind
    raw_text: str
    source_offset: int = Field(ge=0)
    original_text: str = ""
    title: Optional[str] = None
    subtype: Optional[str] = None  # e.g. "sequence" for a PlantUML block


class ExtractionResult(BaseModel):
    """Result of scanning one document."""
    success: bool = True
    diagrams: list[DiagramCandidate] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return self.model_dump(mode="json")


# --- Structural records ---

class TextFlowEdge(FrozenModel):
    """A connection between two steps, by step index."""
    from_index: int = Field(alias="from", ge=0)
    to_index: int = Field(alias="to", ge=0)
    label: Optional[str] = None


class TextFlow(FrozenModel):
    """A numbered-list process flow."""
    steps: list[str] = Field(default_factory=list)
    edges: list[TextFlowEdge] = Field(default_factory=list)


class OrgChartNode(FrozenModel):
    """A person or unit in an organization chart."""
    id: str
    name: str
    title: Optional[str] = None
    level: int = Field(default=0, ge=0)


class OrgChartEdge(FrozenModel):
    """A reporting line (parent -> child)."""
    parent: str
    child: str


class OrgChart(FrozenModel):
    """An organization chart reconstructed from indentation."""
    nodes: list[OrgChartNode] = Field(default_factory=list)
    edges: list[OrgChartEdge] = Field(default_factory=list)

    @property
    def roots(self) -> list[OrgChartNode]:
        """Nodes with no parent."""
        children = {e.child for e in self.edges}
        return [n for n in self.nodes if n.id not in children]


class TimelineEvent(FrozenModel):
    """A dated event on a timeline."""
    id: str = ""
    date: CalendarDate
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    is_milestone: bool = False
    event_type: EventType = EventType.EVENT


class Timeline(FrozenModel):
    """Timeline events, sorted ascending by date."""
    events: list[TimelineEvent] = Field(default_factory=list)


class GanttTask(FrozenModel):
    """A task bar on a Gantt chart."""
    id: str
    name: str
    start: CalendarDate
    end: CalendarDate
    dependencies: list[str] = Field(default_factory=list)
    progress: int = Field(default=0, ge=0, le=100)
    assignee: Optional[str] = None
    priority: Optional[Priority] = None

    @model_validator(mode="after")
    def check_dates(self) -> "GanttTask":
        """A task cannot end before it starts."""
        if self.start > self.end:
            raise ValueError(f"Task {self.id!r} ends before it starts")
        return self

    @property
    def duration_days(self) -> int:
        return (self.end - self.start).days


class GanttMilestone(FrozenModel):
    """A zero-duration marker on a Gantt chart."""
    id: str
    name: str
    date: CalendarDate
    dependencies: list[str] = Field(default_factory=list)


class GanttChart(FrozenModel):
    """Tasks and milestones of one Gantt chart."""
    tasks: list[GanttTask] = Field(default_factory=list)
    milestones: list[GanttMilestone] = Field(default_factory=list)


class SourceDiagram(FrozenModel):
    """A Mermaid or PlantUML block kept as source (not deeply parsed)."""
    source: str = ""
    subtype: Optional[str] = None
    labels: list[str] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)


DiagramContent = Union[TextFlow, OrgChart, Timeline, GanttChart, SourceDiagram]


class DiagramRecord(FrozenModel):
    """A normalized diagram: the candidate it came from plus its structure."""
    kind: DiagramKind
    title: str
    content: DiagramContent
    source_offset: int = 0


# --- Layout shapes ---

class ShapeBase(FrozenModel):
    """Fields shared by every primitive shape."""
    role: str = ""            # CSS class in the rendered SVG
    ref: Optional[str] = None  # Back-reference to the source record, e.g. "task:design"


class Rectangle(ShapeBase):
    kind: Literal["rectangle"] = "rectangle"
    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)
    rx: float = 0  # Corner radius
    fill: Optional[str] = None  # Overrides the stylesheet fill


class Diamond(ShapeBase):
    kind: Literal["diamond"] = "diamond"
    cx: float
    cy: float
    size: float = Field(default=10, gt=0)  # Half-diagonal
    fill: Optional[str] = None

    @property
    def points(self) -> list[tuple[float, float]]:
        """The four corners: left, top, right, bottom."""
        return [
            (self.cx - self.size, self.cy),
            (self.cx, self.cy - self.size),
            (self.cx + self.size, self.cy),
            (self.cx, self.cy + self.size),
        ]


class Line(ShapeBase):
    kind: Literal["line"] = "line"
    x1: float
    y1: float
    x2: float
    y2: float
    dashed: bool = False


class Arrow(ShapeBase):
    """A polyline ending in the shared arrowhead marker."""
    kind: Literal["arrow"] = "arrow"
    points: list[tuple[float, float]] = Field(min_length=2)
    title: Optional[str] = None

    @property
    def is_straight(self) -> bool:
        return len(self.points) == 2


class Polygon(ShapeBase):
    kind: Literal["polygon"] = "polygon"
    points: list[tuple[float, float]] = Field(min_length=3)
    fill: Optional[str] = None


class Text(ShapeBase):
    kind: Literal["text"] = "text"
    x: float
    y: float
    text: str
    anchor: Literal["start", "middle", "end"] = "start"
    font_size: float = 11
    bold: bool = False
    max_chars: Optional[int] = None   # Truncate when longer than this...
    keep_chars: Optional[int] = None  # ...keeping this many characters plus "..."


Shape = Annotated[
    Union[Rectangle, Diamond, Line, Arrow, Polygon, Text],
    Field(discriminator="kind"),
]


class DiagramLayout(FrozenModel):
    """Positioned shapes for one diagram."""
    kind: DiagramKind
    title: str
    width: float
    height: float
    elements: list[Shape] = Field(default_factory=list)

    def find(self, ref: str) -> list[Shape]:
        """All elements that represent the given source record."""
        return [e for e in self.elements if e.ref == ref]


# --- Theme ---

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def check_hex_color(value: str) -> str:
    if not _HEX_COLOR.match(value):
        raise ValueError(f"Expected a hex color like #2E86AB, got {value!r}")
    return value


def check_font_family(value: str) -> str:
    # The font is written verbatim into the SVG stylesheet
    if any(ch in value for ch in "<>&\"{};"):
        raise ValueError(f"Invalid font family: {value!r}")
    return value


class Theme(FrozenModel):
    """Brand colors and font applied by the renderer."""
    primary_color: str = Field(default="#2E86AB", alias="primaryColor")
    secondary_color: str = Field(default="#A23B72", alias="secondaryColor")
    accent_color: str = Field(default="#F18F01", alias="accentColor")
    font_family: str = Field(default="Arial, sans-serif", alias="fontFamily")
    background_color: str = Field(default="#FFFFFF", alias="backgroundColor")
    text_color: str = Field(default="#333333", alias="textColor")

    @field_validator(
        "primary_color", "secondary_color", "accent_color", "background_color", "text_color"
    )
    @classmethod
    def check_hex(cls, value: str) -> str:
        return check_hex_color(value)

    @field_validator("font_family")
    @classmethod
    def check_font(cls, value: str) -> str:
        return check_font_family(value)
