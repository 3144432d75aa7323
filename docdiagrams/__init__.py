"""
docdiagrams - Find diagrams in document text, lay them out and render them as SVG.

This package provides the core functionality used by the HTTP API, the MCP
tools and the CLI, ensuring a single source of truth for all diagram logic.
"""

from .models import (
    # Enums
    DiagramKind,
    ShapeKind,
    EventType,
    Priority,
    # Extraction
    DiagramCandidate,
    ExtractionResult,
    # Structural records
    TextFlow,
    TextFlowEdge,
    OrgChart,
    OrgChartNode,
    OrgChartEdge,
    TimelineEvent,
    Timeline,
    GanttTask,
    GanttMilestone,
    GanttChart,
    SourceDiagram,
    DiagramRecord,
    # Layout shapes
    Rectangle,
    Diamond,
    Line,
    Arrow,
    Polygon,
    Text,
    DiagramLayout,
    Theme,
)

from .errors import DiagramError, UnsupportedDiagramError
from .dates import normalize_date, parse_date, find_date_token
from .extraction import scan, extract
from .timeline import parse_timeline_events, parse_gantt_tasks
from .structure import parse_text_flow, parse_org_chart
from .layout import LayoutOptions, compute_layout
from .render import render_svg
from .interactive import InteractiveOptions, render_interactive, interaction_contract
from .validation import validate_record, validation_summary, ValidationIssue, IssueSeverity
from .analysis import summarize_document, DocumentSummary
from .pipeline import DiagramPipeline, DocumentResult, RenderedDiagram

__all__ = [
    # Enums
    "DiagramKind",
    "ShapeKind",
    "EventType",
    "Priority",
    # Models
    "DiagramCandidate",
    "ExtractionResult",
    "TextFlow",
    "TextFlowEdge",
    "OrgChart",
    "OrgChartNode",
    "OrgChartEdge",
    "TimelineEvent",
    "Timeline",
    "GanttTask",
    "GanttMilestone",
    "GanttChart",
    "SourceDiagram",
    "DiagramRecord",
    "Rectangle",
    "Diamond",
    "Line",
    "Arrow",
    "Polygon",
    "Text",
    "DiagramLayout",
    "Theme",
    # Errors
    "DiagramError",
    "UnsupportedDiagramError",
    # Dates
    "normalize_date",
    "parse_date",
    "find_date_token",
    # Extraction and parsing
    "scan",
    "extract",
    "parse_timeline_events",
    "parse_gantt_tasks",
    "parse_text_flow",
    "parse_org_chart",
    # Layout and rendering
    "LayoutOptions",
    "compute_layout",
    "render_svg",
    "InteractiveOptions",
    "render_interactive",
    "interaction_contract",
    # Validation and analysis
    "validate_record",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    "summarize_document",
    "DocumentSummary",
    # Pipeline
    "DiagramPipeline",
    "DocumentResult",
    "RenderedDiagram",
]
