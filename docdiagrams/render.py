"""
SVG rendering for computed layouts.

The document is built as a string, one small function per primitive shape:
- render_rectangle: <rect>, optional corner radius
- render_diamond:   <polygon> through the diamond's four corners
- render_line:      <line>, optionally dashed
- render_arrow:     <line> or <polyline> ending in the shared arrowhead marker
- render_polygon:   <polygon>
- render_text:      <text>, truncated to the shape's max_chars with "..."

Colors come from a per-kind stylesheet keyed by each shape's role, so the
layout stays theme-free. All text and attribute values are XML-escaped.
"""

from html import escape
from typing import Callable, Optional

from .models import (
    Arrow,
    DiagramKind,
    DiagramLayout,
    Diamond,
    Line,
    Polygon,
    Rectangle,
    Text,
    Theme,
)

ARROW_MARKER_ID = "arrow"
DEADLINE_COLOR = "#FF6B6B"
LOW_PRIORITY_COLOR = "#8BC34A"
MUTED_TEXT_COLOR = "#666666"
ELLIPSIS = "..."


def _num(value: float) -> str:
    """Compact coordinate: at most two decimals, no trailing zeros."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _attrs(**attributes) -> str:
    parts = []
    for name, value in attributes.items():
        if value is None or value is False:
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = _num(value)
        parts.append(f'{name.rstrip("_").replace("_", "-")}="{escape(str(value))}"')
    return " ".join(parts)


def _points(points) -> str:
    return " ".join(f"{_num(x)},{_num(y)}" for x, y in points)


def truncate(text: str, max_chars: Optional[int], keep_chars: Optional[int] = None) -> str:
    """Shorten text longer than max_chars to keep_chars plus an ellipsis."""
    if max_chars is None or len(text) <= max_chars:
        return text
    keep = keep_chars if keep_chars is not None else max(0, max_chars - len(ELLIPSIS))
    return text[:keep] + ELLIPSIS


# --- Primitive shapes ---

def render_rectangle(shape: Rectangle) -> str:
    return "<rect {} />".format(_attrs(
        x=shape.x, y=shape.y, width=shape.width, height=shape.height,
        rx=shape.rx or None, class_=shape.role or None, fill=shape.fill,
    ))


def render_diamond(shape: Diamond) -> str:
    return "<polygon {} />".format(_attrs(
        points=_points(shape.points), class_=shape.role or None, fill=shape.fill,
    ))


def render_line(shape: Line) -> str:
    return "<line {} />".format(_attrs(
        x1=shape.x1, y1=shape.y1, x2=shape.x2, y2=shape.y2,
        class_=shape.role or None, stroke_dasharray="4,3" if shape.dashed else None,
    ))


def render_arrow(shape: Arrow) -> str:
    marker = f"url(#{ARROW_MARKER_ID})"
    title = f"<title>{escape(shape.title)}</title>" if shape.title else ""
    if shape.is_straight:
        (x1, y1), (x2, y2) = shape.points
        attrs = _attrs(x1=x1, y1=y1, x2=x2, y2=y2, class_=shape.role or None, marker_end=marker)
        tag = "line"
    else:
        attrs = _attrs(points=_points(shape.points), class_=shape.role or None,
                       fill="none", marker_end=marker)
        tag = "polyline"
    if title:
        return f"<{tag} {attrs}>{title}</{tag}>"
    return f"<{tag} {attrs} />"


def render_polygon(shape: Polygon) -> str:
    return "<polygon {} />".format(_attrs(
        points=_points(shape.points), class_=shape.role or None, fill=shape.fill,
    ))


def render_text(shape: Text) -> str:
    attrs = _attrs(
        x=shape.x, y=shape.y, class_=shape.role or None,
        text_anchor=shape.anchor if shape.anchor != "start" else None,
        font_size=shape.font_size, font_weight="bold" if shape.bold else None,
    )
    shown = truncate(shape.text, shape.max_chars, shape.keep_chars)
    title = f"<title>{escape(shape.text)}</title>" if shown != shape.text else ""
    return f"<text {attrs}>{title}{escape(shown)}</text>"


SHAPE_RENDERERS: dict[type, Callable] = {
    Rectangle: render_rectangle,
    Diamond: render_diamond,
    Line: render_line,
    Arrow: render_arrow,
    Polygon: render_polygon,
    Text: render_text,
}


def render_shape(shape) -> str:
    """Serialize one shape; anything outside the shape union is a TypeError."""
    renderer = SHAPE_RENDERERS.get(type(shape))
    if renderer is None:
        raise TypeError(f"Cannot render shape of type {type(shape).__name__}")
    return renderer(shape)


# --- Stylesheets ---

def _common_styles(theme: Theme) -> dict[str, str]:
    return {
        "text": f"font-family: {theme.font_family}; fill: {theme.text_color};",
        ".diagram-title": "font-size: 14px; font-weight: bold;",
        ".legend-text": "font-size: 10px;",
    }


def _mermaid_styles(theme: Theme) -> dict[str, str]:
    return {
        ".mermaid-node": f"fill: {theme.primary_color}; stroke: {theme.secondary_color}; stroke-width: 2;",
        ".mermaid-text": "fill: white;",
        ".mermaid-edge": f"stroke: {theme.accent_color}; stroke-width: 2;",
    }


def _plantuml_styles(theme: Theme) -> dict[str, str]:
    return {
        ".plantuml-actor": f"fill: {theme.primary_color}; stroke: {theme.secondary_color};",
        ".plantuml-lifeline": f"stroke: {theme.secondary_color}; stroke-width: 1;",
        ".plantuml-message": f"stroke: {theme.accent_color}; stroke-width: 2;",
        ".plantuml-name": "fill: white;",
    }


def _text_flow_styles(theme: Theme) -> dict[str, str]:
    return {
        ".flow-step": f"fill: {theme.primary_color}; stroke: {theme.secondary_color}; stroke-width: 2;",
        ".flow-text": "fill: white;",
        ".flow-arrow": f"stroke: {theme.accent_color}; stroke-width: 2;",
    }


def _org_chart_styles(theme: Theme) -> dict[str, str]:
    return {
        ".org-node": f"fill: {theme.primary_color}; stroke: {theme.secondary_color}; stroke-width: 2;",
        ".org-text": "fill: white;",
        ".org-subtitle": "fill: white; font-style: italic;",
        ".org-line": f"stroke: {theme.accent_color}; stroke-width: 2;",
    }


def _timeline_styles(theme: Theme) -> dict[str, str]:
    return {
        ".timeline-line": f"stroke: {theme.primary_color}; stroke-width: 3;",
        ".timeline-event": f"fill: {theme.primary_color}; stroke: {theme.secondary_color}; stroke-width: 2;",
        ".timeline-milestone": f"fill: {theme.accent_color}; stroke: {theme.primary_color}; stroke-width: 2;",
        ".timeline-deadline": f"fill: {DEADLINE_COLOR}; stroke: {theme.primary_color}; stroke-width: 2;",
        ".timeline-leader": f"stroke: {MUTED_TEXT_COLOR}; stroke-width: 1;",
        ".timeline-tick": f"stroke: {theme.text_color}; stroke-width: 1;",
        ".timeline-tick-label": f"fill: {MUTED_TEXT_COLOR};",
        ".timeline-date": f"fill: {MUTED_TEXT_COLOR};",
    }


def _gantt_styles(theme: Theme) -> dict[str, str]:
    return {
        ".gantt-task": f"fill: {theme.primary_color}; stroke: {theme.secondary_color}; stroke-width: 1;",
        ".gantt-progress": f"fill: {theme.accent_color}; opacity: 0.8;",
        ".gantt-milestone": f"fill: {theme.accent_color}; stroke: {theme.primary_color}; stroke-width: 2;",
        ".gantt-dependency": f"stroke: {theme.secondary_color}; stroke-width: 1.5;",
        ".gantt-tick": f"stroke: {MUTED_TEXT_COLOR}; stroke-width: 1;",
        ".gantt-tick-label": f"fill: {MUTED_TEXT_COLOR};",
        ".gantt-priority-high": f"fill: {DEADLINE_COLOR};",
        ".gantt-priority-medium": f"fill: {theme.accent_color};",
        ".gantt-priority-low": f"fill: {LOW_PRIORITY_COLOR};",
    }


STYLESHEETS: dict[DiagramKind, Callable[[Theme], dict[str, str]]] = {
    DiagramKind.MERMAID: _mermaid_styles,
    DiagramKind.PLANTUML: _plantuml_styles,
    DiagramKind.TEXT_FLOW: _text_flow_styles,
    DiagramKind.ORG_CHART: _org_chart_styles,
    DiagramKind.TIMELINE: _timeline_styles,
    DiagramKind.GANTT_CHART: _gantt_styles,
}


def stylesheet(kind: DiagramKind, theme: Theme) -> str:
    """The <style> block for a diagram kind under the given theme."""
    rules = _common_styles(theme)
    rules.update(STYLESHEETS[kind](theme))
    body = "\n".join(f"    {selector} {{ {css} }}" for selector, css in rules.items())
    return f"  <style>\n{body}\n  </style>"


def arrow_marker(theme: Theme) -> str:
    """The single arrowhead marker every arrow in a document points at."""
    return (
        f'<marker id="{ARROW_MARKER_ID}" markerWidth="10" markerHeight="10" refX="9" refY="3" '
        f'orient="auto" markerUnits="strokeWidth">'
        f'<path d="M0,0 L0,6 L9,3 z" fill="{escape(theme.accent_color)}" /></marker>'
    )


def svg_document(
    layout: DiagramLayout,
    theme: Theme,
    body: list[str],
    extra_defs: str = "",
    extra_attrs: str = "",
) -> str:
    """Wrap rendered body lines in the SVG root with styles and the marker."""
    root = _attrs(
        width=layout.width, height=layout.height,
        viewBox=f"0 0 {_num(layout.width)} {_num(layout.height)}",
        xmlns="http://www.w3.org/2000/svg",
    )
    if extra_attrs:
        root = f"{root} {extra_attrs}"
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f"<svg {root}>",
        stylesheet(layout.kind, theme),
        f"  <defs>{arrow_marker(theme)}{extra_defs}</defs>",
        f'  <rect width="100%" height="100%" fill="{escape(theme.background_color)}" />',
    ]
    lines.extend(f"  {line}" for line in body)
    lines.append("</svg>")
    return "\n".join(lines)


def render_svg(layout: DiagramLayout, theme: Optional[Theme] = None) -> str:
    """
    Render a layout to a standalone SVG document.

    Args:
        layout: Positioned shapes from compute_layout
        theme: Brand colors and font (defaults if None)

    Returns:
        The SVG markup

    Raises:
        TypeError: An element is not one of the known shapes
    """
    theme = theme or Theme()
    return svg_document(layout, theme, [render_shape(e) for e in layout.elements])
