"""Tests for backend/main.py - the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from backend.main import create_app
from docdiagrams.pipeline import DiagramPipeline

from .conftest import GANTT_DOC, MIXED_DOC, PROCESS_DOC


@pytest.fixture
def client():
    return TestClient(create_app(DiagramPipeline()))


class TestHealthAndEnums:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["service"] == "docdiagrams"

    def test_kinds(self, client):
        kinds = client.get("/api/enums/kinds").json()["kinds"]
        assert kinds == ["mermaid", "plantuml", "text-flow", "org-chart", "timeline", "gantt-chart"]

    def test_shapes(self, client):
        shapes = client.get("/api/enums/shapes").json()["shapes"]
        assert set(shapes) == {"rectangle", "diamond", "line", "arrow", "polygon", "text"}


class TestExtract:

    def test_candidates(self, client):
        data = client.post("/api/extract", json={"text": PROCESS_DOC}).json()
        assert data["success"] is True
        assert data["errors"] == []
        [candidate] = data["diagrams"]
        assert candidate["kind"] == "text-flow"
        assert candidate["title"] == "Process"

    def test_empty_document(self, client):
        data = client.post("/api/extract", json={"text": "plain prose"}).json()
        assert data == {"success": True, "diagrams": [], "errors": []}


class TestRender:

    def test_all_diagrams(self, client):
        data = client.post("/api/render", json={"text": MIXED_DOC}).json()
        assert data["success"] is True
        assert [d["kind"] for d in data["diagrams"]] == ["mermaid", "text-flow", "timeline", "gantt-chart"]
        assert all(d["svg"].startswith("<?xml") for d in data["diagrams"])

    def test_index(self, client):
        data = client.post("/api/render", json={"text": MIXED_DOC, "index": 3}).json()
        [diagram] = data["diagrams"]
        assert diagram["kind"] == "gantt-chart"

    def test_index_out_of_range(self, client):
        response = client.post("/api/render", json={"text": PROCESS_DOC, "index": 5})
        assert response.status_code == 400

    def test_negative_index_rejected(self, client):
        response = client.post("/api/render", json={"text": PROCESS_DOC, "index": -1})
        assert response.status_code == 422

    def test_theme(self, client):
        payload = {"text": GANTT_DOC, "theme": {"primaryColor": "#010203"}}
        svg = client.post("/api/render", json=payload).json()["diagrams"][0]["svg"]
        assert "#010203" in svg

    def test_bad_theme(self, client):
        payload = {"text": GANTT_DOC, "theme": {"primaryColor": "blue"}}
        assert client.post("/api/render", json=payload).status_code == 422

    def test_interactive_contract(self, client):
        payload = {
            "text": GANTT_DOC,
            "interactive": True,
            "options": {"draggable": True, "editMode": True},
        }
        [diagram] = client.post("/api/render", json=payload).json()["diagrams"]
        assert "drag-handle" in diagram["svg"]
        assert "Add New Task" in diagram["svg"]
        assert diagram["interaction"]["handlers"] == [
            "ganttTaskClickHandler", "ganttZoomHandler", "ganttTaskDragHandler", "ganttAddTaskHandler",
        ]


class TestSummary:

    def test_summary(self, client):
        data = client.post("/api/summary", json={"text": MIXED_DOC}).json()
        assert data["success"] is True
        assert data["summary"]["total_diagrams"] == 4
        assert data["summary"]["gantt_tasks"] == 2
        assert len(data["diagrams"]) == 4
        assert all(d["summary"]["valid"] for d in data["diagrams"])

    def test_warnings_reported(self, client):
        text = (
            "Design|2024-01-01|2024-01-15|Alice\n"
            "Build|2024-01-10|2024-02-01|depends on: Design\n"
        )
        [diagram] = client.post("/api/summary", json={"text": text}).json()["diagrams"]
        assert diagram["issues"] == [
            {"type": "warning", "message": "Build starts before Design ends", "ref": "task:build"},
        ]
