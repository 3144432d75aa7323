"""Tests for cli.py - the command-line interface."""

import json

import pytest

import cli

from .conftest import GANTT_DOC, MIXED_DOC, PROCESS_DOC


def _run(capsys, *argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(list(argv))
    return exc.value.code, json.loads(capsys.readouterr().out)


@pytest.fixture
def doc(tmp_path):
    def _write(text, name="doc.md"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


class TestExtract:

    def test_extract(self, capsys, doc):
        code, data = _run(capsys, "extract", doc(PROCESS_DOC))
        assert code == 0
        assert [d["kind"] for d in data["diagrams"]] == ["text-flow"]

    def test_missing_file(self, capsys, tmp_path):
        code, data = _run(capsys, "extract", str(tmp_path / "nope.md"))
        assert code == 1
        assert data["status"] == "error"


class TestRender:

    def test_render_inline(self, capsys, doc):
        code, data = _run(capsys, "render", doc(GANTT_DOC))
        assert code == 0
        assert data["success"] is True
        assert data["diagrams"][0]["svg"].startswith("<?xml")

    def test_render_to_directory(self, capsys, doc, tmp_path):
        out = tmp_path / "svg"
        code, data = _run(capsys, "render", doc(MIXED_DOC), "--index", "1", "--out", str(out))
        assert code == 0
        [diagram] = data["diagrams"]
        assert diagram["kind"] == "text-flow"
        assert diagram["path"].endswith("diagram-1-text-flow.svg")
        assert (out / "diagram-1-text-flow.svg").read_text(encoding="utf-8").startswith("<?xml")

    def test_index_out_of_range(self, capsys, doc):
        code, data = _run(capsys, "render", doc(PROCESS_DOC), "--index", "3")
        assert code == 1
        assert "out of range" in data["error"]

    def test_theme_flags(self, capsys, doc):
        code, data = _run(capsys, "render", doc(GANTT_DOC), "--primary-color", "#ABCDEF")
        assert code == 0
        assert "#ABCDEF" in data["diagrams"][0]["svg"]

    def test_invalid_theme(self, capsys, doc):
        code, data = _run(capsys, "render", doc(GANTT_DOC), "--primary-color", "blue")
        assert code == 1
        assert data["error"].startswith("Invalid theme")

    def test_interactive(self, capsys, doc):
        code, data = _run(capsys, "render", doc(GANTT_DOC), "--interactive")
        assert code == 0
        assert 'id="gantt-interactive"' in data["diagrams"][0]["svg"]


class TestSettings:

    def test_invalid_color_setting(self, capsys, doc, monkeypatch):
        monkeypatch.setenv("DOCDIAGRAMS_PRIMARY_COLOR", "blue")
        code, data = _run(capsys, "extract", doc(PROCESS_DOC))
        assert code == 1
        assert data["status"] == "error"
        assert data["error"].startswith("Invalid settings: DOCDIAGRAMS_PRIMARY_COLOR")

    def test_invalid_font_setting_with_log_level_flag(self, capsys, doc, monkeypatch):
        monkeypatch.setenv("DOCDIAGRAMS_FONT_FAMILY", "<script>")
        code, data = _run(capsys, "--log-level", "DEBUG", "render", doc(GANTT_DOC))
        assert code == 1
        assert "DOCDIAGRAMS_FONT_FAMILY" in data["error"]


class TestSummary:

    def test_summary(self, capsys, doc):
        code, data = _run(capsys, "summary", doc(MIXED_DOC))
        assert code == 0
        assert data["summary"]["diagrams_by_kind"]["timeline"] == 1
        assert len(data["diagrams"]) == 4
