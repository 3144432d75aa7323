"""
Diagram pipeline - document text in, rendered diagrams out.

    extract -> normalize -> validate -> layout -> render

Each candidate is processed on its own: a candidate that fails to normalize
is skipped, and one that raises is reported in `errors` without affecting the
others. A pipeline holds only immutable configuration, so one instance can be
shared by any number of callers.
"""

import logging
from typing import Callable, Optional

from pydantic import BaseModel, Field

from .config import Settings
from .errors import UnsupportedDiagramError
from .extraction import scan
from .interactive import InteractiveOptions, render_interactive
from .layout import LayoutOptions, compute_layout
from .models import (
    DiagramCandidate,
    DiagramKind,
    DiagramLayout,
    DiagramRecord,
    ExtractionResult,
    SourceDiagram,
    Theme,
    Timeline,
)
from .render import render_svg
from .structure import parse_mermaid_labels, parse_org_chart, parse_plantuml_sequence, parse_text_flow
from .timeline import parse_gantt_tasks, parse_timeline_events
from .validation import IssueSeverity, validate_record

logger = logging.getLogger(__name__)

Renderer = Callable[[DiagramLayout, Theme], str]

DEFAULT_TITLES = {
    DiagramKind.MERMAID: "Mermaid Diagram",
    DiagramKind.PLANTUML: "Plantuml Diagram",
    DiagramKind.TEXT_FLOW: "Process Flow",
    DiagramKind.ORG_CHART: "Organization Chart",
    DiagramKind.TIMELINE: "Project Timeline",
    DiagramKind.GANTT_CHART: "Project Gantt Chart",
}


class RenderedDiagram(BaseModel):
    """One diagram of a processed document."""
    kind: DiagramKind
    title: str
    source_offset: int
    record: DiagramRecord
    svg: str
    warnings: list[str] = Field(default_factory=list)


class DocumentResult(BaseModel):
    """Result of processing one document end to end."""
    success: bool = True
    diagrams: list[RenderedDiagram] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return self.model_dump(mode="json", by_alias=True)


class DiagramPipeline:
    """
    Caller-constructed diagram pipeline.

    Args:
        theme: Brand colors and font for every render (defaults if None)
        layout_options: Canvas sizes and Gantt geometry (defaults if None)
        interactive_options: Interactions for interactive renders (defaults if None)
        renderer: Replaces the built-in static SVG renderer; any callable
            taking (DiagramLayout, Theme) and returning markup
    """

    def __init__(
        self,
        theme: Optional[Theme] = None,
        layout_options: Optional[LayoutOptions] = None,
        interactive_options: Optional[InteractiveOptions] = None,
        renderer: Optional[Renderer] = None,
    ):
        self.theme = theme or Theme()
        self.layout_options = layout_options or LayoutOptions()
        self.interactive_options = interactive_options or InteractiveOptions()
        self.renderer: Renderer = renderer or render_svg

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "DiagramPipeline":
        """Build a pipeline whose theme and bar width come from settings."""
        theme = Theme(
            primary_color=settings.primary_color,
            secondary_color=settings.secondary_color,
            accent_color=settings.accent_color,
            font_family=settings.font_family,
        )
        options = LayoutOptions(min_bar_width=settings.min_bar_width)
        return cls(theme=theme, layout_options=options, **kwargs)

    # --- Stages ---

    def extract(self, text: str) -> ExtractionResult:
        return scan(text)

    def normalize(self, candidate: DiagramCandidate) -> Optional[DiagramRecord]:
        """
        Build the structural record for a candidate.

        Returns None for candidates that turn out not to be diagrams: flows
        and org charts with fewer than two items, timelines and Gantt charts
        without events or tasks.
        """
        kind = candidate.kind
        text = candidate.raw_text

        if kind == DiagramKind.MERMAID:
            content = SourceDiagram(source=text, subtype=candidate.subtype,
                                    labels=parse_mermaid_labels(text))
        elif kind == DiagramKind.PLANTUML:
            participants, messages = parse_plantuml_sequence(text)
            content = SourceDiagram(source=text, subtype=candidate.subtype,
                                    labels=participants, messages=messages)
        elif kind == DiagramKind.TEXT_FLOW:
            content = parse_text_flow(text)
            if len(content.steps) < 2:
                return None
        elif kind == DiagramKind.ORG_CHART:
            content = parse_org_chart(text)
            if len(content.nodes) < 2:
                return None
        elif kind == DiagramKind.TIMELINE:
            events = parse_timeline_events(text)
            if not events:
                return None
            content = Timeline(events=events)
        elif kind == DiagramKind.GANTT_CHART:
            content = parse_gantt_tasks(text)
            if not content.tasks:
                return None
        else:
            raise UnsupportedDiagramError(kind, "normalize")

        return DiagramRecord(
            kind=kind,
            title=candidate.title or DEFAULT_TITLES[kind],
            content=content,
            source_offset=candidate.source_offset,
        )

    def layout(self, record: DiagramRecord) -> DiagramLayout:
        return compute_layout(record, self.layout_options)

    def render(self, record: DiagramRecord, interactive: bool = False) -> str:
        """
        Lay out and render one record.

        Interactive renders always use the built-in overlay; the pluggable
        renderer only replaces static output.
        """
        layout = self.layout(record)
        if interactive:
            return render_interactive(layout, self.theme, self.interactive_options)
        return self.renderer(layout, self.theme)

    # --- Whole documents ---

    def records(self, text: str) -> tuple[list[DiagramRecord], list[str]]:
        """Normalized records for a document, plus any errors along the way."""
        result = self.extract(text)
        records: list[DiagramRecord] = []
        errors = list(result.errors)
        for candidate in result.diagrams:
            try:
                record = self.normalize(candidate)
            except Exception as e:
                logger.exception("Failed to normalize %s at offset %d", candidate.kind.value, candidate.source_offset)
                errors.append(f"{candidate.kind.value} at offset {candidate.source_offset}: {e}")
                continue
            if record is None:
                logger.debug("Skipping %s candidate at offset %d", candidate.kind.value, candidate.source_offset)
                continue
            records.append(record)
        return records, errors

    def process_document(self, text: str, interactive: bool = False) -> DocumentResult:
        """
        Extract, normalize, validate, lay out and render every diagram.

        Never raises: failures are collected in `errors` and clear `success`.
        A document without diagrams is a success with no diagrams.

        Args:
            text: Document body
            interactive: Render timelines and Gantt charts with interactions

        Returns:
            DocumentResult with one RenderedDiagram per accepted candidate
        """
        records, errors = self.records(text)
        diagrams: list[RenderedDiagram] = []

        for record in records:
            where = f"{record.kind.value} at offset {record.source_offset}"
            issues = validate_record(record)
            blocking = [i.message for i in issues if i.severity == IssueSeverity.ERROR]
            if blocking:
                logger.warning("Rejecting %s: %s", where, "; ".join(blocking))
                errors.append(f"{where}: {'; '.join(blocking)}")
                continue
            try:
                svg = self.render(record, interactive=interactive)
            except Exception as e:
                logger.exception("Failed to render %s", where)
                errors.append(f"{where}: {e}")
                continue
            diagrams.append(RenderedDiagram(
                kind=record.kind,
                title=record.title,
                source_offset=record.source_offset,
                record=record,
                svg=svg,
                warnings=[i.message for i in issues if i.severity == IssueSeverity.WARNING],
            ))

        logger.info("Rendered %d diagrams (%d errors)", len(diagrams), len(errors))
        return DocumentResult(success=not errors, diagrams=diagrams, errors=errors)

    def with_overrides(
        self,
        theme: Optional[Theme] = None,
        interactive_options: Optional[InteractiveOptions] = None,
    ) -> "DiagramPipeline":
        """A copy of this pipeline with a per-call theme or interaction set."""
        return DiagramPipeline(
            theme=theme or self.theme,
            layout_options=self.layout_options,
            interactive_options=interactive_options or self.interactive_options,
            renderer=self.renderer,
        )
