#!/usr/bin/env python3
"""
docdiagrams MCP Server

Provides MCP tools for AI agents to find and render diagrams in documents.
Every tool is a thin wrapper over the docdiagrams HTTP API, which must be
running (see `docdiagrams serve`).
"""

import json
import os
from pathlib import Path
from typing import Optional

import httpx
from mcp.server.fastmcp import FastMCP

# Backend API URL
API_BASE = os.environ.get("DOCDIAGRAMS_API_BASE", "http://127.0.0.1:8766/api")

# Create MCP server
mcp = FastMCP("docdiagrams")


# --- HTTP Client Helper ---

def api_request(method: str, endpoint: str, **kwargs) -> dict:
    """Make a request to the docdiagrams backend."""
    url = f"{API_BASE}{endpoint}"
    with httpx.Client(timeout=30.0) as client:
        if method == "GET":
            response = client.get(url, params=kwargs.get("params"))
        elif method == "POST":
            response = client.post(url, json=kwargs.get("json"), params=kwargs.get("params"))
        else:
            raise ValueError(f"Unknown method: {method}")

        if response.status_code >= 400:
            error = response.json().get("detail", "Unknown error")
            raise Exception(f"API error: {error}")

        return response.json()


def _document_text(text: Optional[str], file_path: Optional[str]) -> str:
    """Document body from inline text or a file on disk."""
    if text is not None:
        return text
    if file_path is None:
        raise ValueError("Provide either text or file_path")
    return Path(file_path).expanduser().read_text(encoding="utf-8")


# ============================================================================
# INSPECTION TOOLS
# ============================================================================

@mcp.tool()
def diagram_health() -> str:
    """
    Check that the docdiagrams backend is reachable.

    Returns the backend's status and version.
    """
    result = api_request("GET", "/health")
    return json.dumps(result, indent=2)


@mcp.tool()
def diagram_extract(text: Optional[str] = None, file_path: Optional[str] = None) -> str:
    """
    Find diagram candidates in a document.

    Args:
        text: Document body (markdown or plain text)
        file_path: Read the document from this file instead of `text`

    Recognizes fenced Mermaid and PlantUML blocks, numbered process lists,
    indented team lists, dated timeline lines and Gantt task rows.
    Returns {success, diagrams, errors}; each diagram has its kind, title,
    source offset and raw text.
    """
    result = api_request("POST", "/extract", json={"text": _document_text(text, file_path)})
    return json.dumps(result, indent=2)


@mcp.tool()
def diagram_summary(text: Optional[str] = None, file_path: Optional[str] = None) -> str:
    """
    Summarize and validate the diagrams in a document.

    Args:
        text: Document body
        file_path: Read the document from this file instead of `text`

    Returns counts by kind, timeline events, Gantt tasks, milestones, the
    overall date span, and validation issues per diagram.
    """
    result = api_request("POST", "/summary", json={"text": _document_text(text, file_path)})
    return json.dumps(result, indent=2)


# ============================================================================
# RENDERING TOOLS
# ============================================================================

def _without_none(values: dict) -> dict:
    return {key: value for key, value in values.items() if value is not None}


@mcp.tool()
def diagram_render(
    text: Optional[str] = None,
    file_path: Optional[str] = None,
    index: Optional[int] = None,
    interactive: bool = False,
    primary_color: Optional[str] = None,
    secondary_color: Optional[str] = None,
    accent_color: Optional[str] = None,
    font_family: Optional[str] = None,
    clickable: Optional[bool] = None,
    zoomable: Optional[bool] = None,
    draggable: Optional[bool] = None,
    edit_mode: Optional[bool] = None,
    real_time_updates: Optional[bool] = None,
    output_dir: Optional[str] = None,
) -> str:
    """
    Render the diagrams of a document to SVG.

    Args:
        text: Document body
        file_path: Read the document from this file instead of `text`
        index: Only render this diagram (0-based, in document order)
        interactive: Add click/zoom handlers to timelines and Gantt charts
        primary_color: Brand color as hex, e.g. "#2E86AB"
        secondary_color: Second brand color as hex
        accent_color: Accent color as hex
        font_family: CSS font family for all text
        clickable: Interactive only; emit click handlers (default true)
        zoomable: Interactive only; add zoom controls (default true)
        draggable: Interactive only; add drag handles to Gantt bars
        edit_mode: Interactive only; add the edit toolbar
        real_time_updates: Interactive only; report every drag move, not
            just the drop
        output_dir: Write each SVG to this directory and return file paths
            instead of markup

    Returns each diagram's kind, title and SVG (or written path).
    """
    theme = _without_none({
        "primaryColor": primary_color,
        "secondaryColor": secondary_color,
        "accentColor": accent_color,
        "fontFamily": font_family,
    })
    options = _without_none({
        "clickable": clickable,
        "zoomable": zoomable,
        "draggable": draggable,
        "editMode": edit_mode,
        "realTimeUpdates": real_time_updates,
    })
    payload = {
        "text": _document_text(text, file_path),
        "interactive": interactive,
        "index": index,
        "theme": theme or None,
        "options": options or None,
    }
    result = api_request("POST", "/render", json=payload)

    if output_dir:
        out = Path(output_dir).expanduser()
        out.mkdir(parents=True, exist_ok=True)
        for i, diagram in enumerate(result.get("diagrams", [])):
            path = out / f"diagram-{index if index is not None else i}-{diagram['kind']}.svg"
            path.write_text(diagram.pop("svg"), encoding="utf-8")
            diagram["path"] = str(path)

    return json.dumps(result, indent=2)


@mcp.tool()
def diagram_list_kinds() -> str:
    """
    List the diagram kinds and layout shapes the backend supports.
    """
    kinds = api_request("GET", "/enums/kinds")
    shapes = api_request("GET", "/enums/shapes")
    return json.dumps({**kinds, **shapes}, indent=2)


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    mcp.run()
