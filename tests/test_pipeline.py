"""Tests for docdiagrams/pipeline.py - end-to-end document processing."""

from concurrent.futures import ThreadPoolExecutor

from docdiagrams import pipeline as pipeline_module
from docdiagrams.config import Settings
from docdiagrams.interactive import InteractiveOptions
from docdiagrams.layout import LayoutOptions
from docdiagrams.models import DiagramCandidate, DiagramKind, Theme
from docdiagrams.pipeline import DiagramPipeline
from docdiagrams.validation import validate_record

from .conftest import GANTT_DOC, MIXED_DOC, PROCESS_DOC, TIMELINE_DOC


class TestNormalize:

    def test_text_flow(self, pipeline):
        [candidate] = pipeline.extract(PROCESS_DOC).diagrams
        record = pipeline.normalize(candidate)
        assert record.kind == DiagramKind.TEXT_FLOW
        assert record.title == "Process"
        assert record.content.steps == ["Design", "Build", "Ship"]
        assert [(e.from_index, e.to_index) for e in record.content.edges] == [(0, 1), (1, 2)]

    def test_small_candidates_dropped(self, pipeline):
        candidate = DiagramCandidate(kind=DiagramKind.ORG_CHART, raw_text="- Alone", source_offset=0)
        assert pipeline.normalize(candidate) is None

    def test_mermaid_keeps_source(self, pipeline):
        candidate = DiagramCandidate(
            kind=DiagramKind.MERMAID, raw_text="graph TD\nA[Go] --> B[Stop]", source_offset=3,
        )
        record = pipeline.normalize(candidate)
        assert record.content.source == "graph TD\nA[Go] --> B[Stop]"
        assert record.content.labels == ["Go", "Stop"]
        assert record.title == "Mermaid Diagram"
        assert record.source_offset == 3


class TestProcessDocument:

    def test_empty_document(self, pipeline):
        """A document without diagrams renders nothing and still succeeds."""
        result = pipeline.process_document("No diagrams in here.")
        assert result.to_json_dict() == {"success": True, "diagrams": [], "errors": []}

    def test_mixed_document(self, pipeline):
        result = pipeline.process_document(MIXED_DOC)
        assert result.success is True
        assert [d.kind for d in result.diagrams] == [
            DiagramKind.MERMAID, DiagramKind.TEXT_FLOW, DiagramKind.TIMELINE, DiagramKind.GANTT_CHART,
        ]
        assert all(d.svg.startswith("<?xml") for d in result.diagrams)

    def test_timeline_scenario(self, pipeline):
        [diagram] = pipeline.process_document(TIMELINE_DOC).diagrams
        events = diagram.record.content.events
        assert [e.title for e in events] == ["Kickoff", "Launch"]
        assert events[1].is_milestone is True

    def test_interactive(self, pipeline):
        result = pipeline.process_document(MIXED_DOC, interactive=True)
        by_kind = {d.kind: d.svg for d in result.diagrams}
        assert 'id="gantt-interactive"' in by_kind[DiagramKind.GANTT_CHART]
        assert 'id="timeline-interactive"' in by_kind[DiagramKind.TIMELINE]
        assert "<script" not in by_kind[DiagramKind.TEXT_FLOW]

    def test_json_uses_aliases(self, pipeline):
        data = pipeline.process_document(PROCESS_DOC).to_json_dict()
        assert data["diagrams"][0]["record"]["content"]["edges"][0] == {"from": 0, "to": 1, "label": None}

    def test_render_failure_is_reported(self):
        def broken(layout, theme):
            raise RuntimeError("renderer down")

        failing = DiagramPipeline(renderer=broken)
        result = failing.process_document(PROCESS_DOC)
        assert result.success is False
        assert result.diagrams == []
        assert result.errors == ["text-flow at offset 0: renderer down"]

    def test_normalize_failure_is_reported(self, pipeline, monkeypatch):
        def broken(text):
            raise ValueError("bad list")

        monkeypatch.setattr(pipeline_module, "parse_text_flow", broken)
        result = pipeline.process_document(PROCESS_DOC)
        assert result.success is False
        assert result.errors == ["text-flow at offset 0: bad list"]

    def test_invalid_record_rejected(self, pipeline, monkeypatch):
        from docdiagrams.models import TextFlow, TextFlowEdge

        def dangling(text):
            return TextFlow(steps=["A", "B"], edges=[TextFlowEdge(from_index=0, to_index=9)])

        monkeypatch.setattr(pipeline_module, "parse_text_flow", dangling)
        result = pipeline.process_document(PROCESS_DOC)
        assert result.success is False
        assert result.diagrams == []
        assert "Edge references a missing step" in result.errors[0]

    def test_four_space_org_chart(self, pipeline):
        text = "## Team\n- CEO\n    - CTO\n    - CFO\n        - Controller\n"
        [record], errors = pipeline.records(text)
        assert errors == []
        names = {n.id: n.name for n in record.content.nodes}
        assert [(names[e.parent], names[e.child]) for e in record.content.edges] == [
            ("CEO", "CTO"), ("CEO", "CFO"), ("CFO", "Controller"),
        ]
        assert validate_record(record) == []

    def test_concurrent_use(self, pipeline):
        expected = pipeline.process_document(MIXED_DOC).to_json_dict()
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: pipeline.process_document(MIXED_DOC).to_json_dict(), range(6)))
        assert all(r == expected for r in results)


class TestConfiguration:

    def test_custom_renderer(self):
        seen = []

        def renderer(layout, theme):
            seen.append((layout.kind, theme.primary_color))
            return "<svg/>"

        pipeline = DiagramPipeline(theme=Theme(primaryColor="#000000"), renderer=renderer)
        [diagram] = pipeline.process_document(GANTT_DOC).diagrams
        assert diagram.svg == "<svg/>"
        assert seen == [(DiagramKind.GANTT_CHART, "#000000")]

    def test_from_settings(self):
        settings = Settings(primary_color="#111111", min_bar_width=9)
        pipeline = DiagramPipeline.from_settings(settings)
        assert pipeline.theme.primary_color == "#111111"
        assert pipeline.layout_options.min_bar_width == 9

    def test_with_overrides_leaves_original(self, pipeline):
        theme = Theme(accentColor="#00FF00")
        options = InteractiveOptions(draggable=True)
        copy = pipeline.with_overrides(theme=theme, interactive_options=options)
        assert copy.theme is theme
        assert copy.interactive_options.draggable is True
        assert pipeline.theme == Theme()
        assert pipeline.interactive_options.draggable is False
        assert copy.layout_options is pipeline.layout_options

    def test_layout_options_used(self):
        pipeline = DiagramPipeline(layout_options=LayoutOptions(gantt_width=1000))
        [diagram] = pipeline.process_document(GANTT_DOC).diagrams
        assert 'width="1000"' in diagram.svg
