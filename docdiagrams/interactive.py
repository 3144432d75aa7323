"""
Interactive SVG for timelines and Gantt charts.

The overlay annotates a computed layout; it never moves anything:
- Elements sharing a `ref` are wrapped in one <g> with a stable id
  ("event-<id>", "task-<id>", "milestone-<id>")
- clickable / draggable add CSS classes and inline onclick handlers
- draggable adds drag handles at a bar's start and end, or either side of a marker
- zoomable adds zoom controls; editMode adds a toolbar with an "add" button
- A CDATA script block wires the handlers to the hosting page

The hosting page receives events through functions on window.parent; see
interaction_contract() for the names each configuration needs.
"""

import logging
from html import escape
from typing import Optional

from pydantic import Field

from .models import (
    DiagramKind,
    DiagramLayout,
    Diamond,
    FrozenModel,
    Rectangle,
    Theme,
)
from .render import render_shape, render_svg, svg_document

logger = logging.getLogger(__name__)

INTERACTIVE_KINDS = (DiagramKind.TIMELINE, DiagramKind.GANTT_CHART)

# ref prefix -> (group id prefix, click handler)
_GROUPS = {
    "event": ("event-", "handleEventClick"),
    "task": ("task-", "handleTaskClick"),
    "milestone": ("milestone-", "handleTaskClick"),
}

_HOST_HANDLERS = {
    DiagramKind.TIMELINE: {
        "click": "timelineEventClickHandler",
        "zoom": "timelineZoomHandler",
        "drag": "timelineEventDragHandler",
        "add": "timelineAddEventHandler",
    },
    DiagramKind.GANTT_CHART: {
        "click": "ganttTaskClickHandler",
        "zoom": "ganttZoomHandler",
        "drag": "ganttTaskDragHandler",
        "add": "ganttAddTaskHandler",
    },
}


class InteractiveOptions(FrozenModel):
    """Which interactions to emit."""
    clickable: bool = True
    zoomable: bool = True
    draggable: bool = False
    real_time_updates: bool = Field(default=False, alias="realTimeUpdates")
    edit_mode: bool = Field(default=False, alias="editMode")


def interaction_contract(kind: DiagramKind, options: Optional[InteractiveOptions] = None) -> dict:
    """
    Describe what a hosting page must provide for an interactive diagram.

    Args:
        kind: Diagram kind
        options: Enabled interactions (defaults if None)

    Returns:
        Dict with `interactive`, `groupIdPrefixes` and the `handlers` the page
        should define on window (empty for kinds without interactivity)
    """
    options = options or InteractiveOptions()
    names = _HOST_HANDLERS.get(kind)
    if names is None:
        return {"kind": kind.value, "interactive": False, "groupIdPrefixes": [], "handlers": []}

    handlers = []
    if options.clickable:
        handlers.append(names["click"])
    if options.zoomable:
        handlers.append(names["zoom"])
    if options.draggable:
        handlers.append(names["drag"])
    if options.edit_mode:
        handlers.append(names["add"])

    prefixes = ["event-"] if kind == DiagramKind.TIMELINE else ["task-", "milestone-"]
    return {
        "kind": kind.value,
        "interactive": True,
        "groupIdPrefixes": prefixes,
        "handlers": handlers,
        "realTimeUpdates": options.real_time_updates,
    }


# --- Markup pieces ---

def _handle(cx: float, cy: float, edge: str, tip: str, theme: Theme) -> str:
    return (
        f'<circle cx="{cx:g}" cy="{cy:g}" r="4" class="drag-handle" data-edge="{edge}" '
        f'fill="{theme.accent_color}" stroke="white" stroke-width="1">'
        f"<title>{tip}</title></circle>"
    )


def _drag_handles(elements: list, prefix: str, theme: Theme) -> list[str]:
    """Handles at a bar's ends, or either side of a point marker."""
    for element in elements:
        if prefix == "task" and isinstance(element, Rectangle) and element.role == "gantt-task":
            mid_y = element.y + element.height / 2
            return [
                _handle(element.x, mid_y, "start", "Drag to adjust start date", theme),
                _handle(element.x + element.width, mid_y, "end", "Drag to adjust end date", theme),
            ]
        if isinstance(element, Diamond):
            cx, cy, offset = element.cx, element.cy, element.size + 4
        elif isinstance(element, Rectangle) and element.role.startswith("timeline-"):
            cx, cy = element.x + element.width / 2, element.y + element.height / 2
            offset = element.width / 2 + 4
        else:
            continue
        return [
            _handle(cx - offset, cy, "before", "Drag to adjust date", theme),
            _handle(cx + offset, cy, "after", "Drag to adjust date", theme),
        ]
    return []


def _zoom_controls(layout: DiagramLayout, theme: Theme) -> str:
    x = layout.width - 130
    buttons = []
    for i, (action, label, color, tip) in enumerate((
        ("zoomIn()", "+", theme.primary_color, "Zoom In"),
        ("zoomOut()", "-", theme.secondary_color, "Zoom Out"),
        ("resetZoom()", "o", theme.accent_color, "Reset Zoom"),
    )):
        cx = 20 + i * 35
        buttons.append(
            f'<circle cx="{cx}" cy="15" r="11" fill="{color}" class="clickable" onclick="{action}">'
            f"<title>{tip}</title></circle>"
            f'<text x="{cx}" y="20" text-anchor="middle" font-size="14" fill="white">{label}</text>'
        )
    return f'<g class="zoom-controls" transform="translate({x:g}, 4)">{"".join(buttons)}</g>'


def _edit_toolbar(kind: DiagramKind, theme: Theme) -> str:
    label, action = ("Add New Event", "addNewEvent()") if kind == DiagramKind.TIMELINE else ("Add New Task", "addNewTask()")
    return (
        '<g class="edit-toolbar" transform="translate(10, 4)">'
        f'<rect width="110" height="24" rx="4" fill="{theme.primary_color}" class="clickable" '
        f'onclick="{action}" />'
        f'<text x="55" y="16" text-anchor="middle" font-size="11" fill="white">{label}</text>'
        "</g>"
    )


def _hover_filter() -> str:
    return (
        '<filter id="hover-glow" x="-20%" y="-20%" width="140%" height="140%">'
        '<feGaussianBlur stdDeviation="2" result="blur" />'
        '<feMerge><feMergeNode in="blur" /><feMergeNode in="SourceGraphic" /></feMerge>'
        "</filter>"
    )


def _script(kind: DiagramKind, options: InteractiveOptions) -> str:
    names = _HOST_HANDLERS[kind]
    group_selector = ".interactive-event" if kind == DiagramKind.TIMELINE else ".interactive-task"
    root_id = "timeline-interactive" if kind == DiagramKind.TIMELINE else "gantt-interactive"
    notify_click = f"notifyHost({names['click']!r}, [id]);" if options.clickable else ""
    lines = [
        "<script type=\"text/javascript\"><![CDATA[",
        f"var REAL_TIME_UPDATES = {'true' if options.real_time_updates else 'false'};",
        "function notifyHost(name, args) {",
        "  if (window.parent && typeof window.parent[name] === 'function') {",
        "    window.parent[name].apply(null, args);",
        "  }",
        "}",
        "function handleEventClick(id) {",
        f"  {notify_click}",
        "}",
        "function handleTaskClick(id) {",
        f"  {notify_click}",
        "}",
    ]
    if options.zoomable:
        lines += [
            "var zoomLevel = 1;",
            "function applyZoom(svg) {",
            "  var w = svg.width.baseVal.value / zoomLevel, h = svg.height.baseVal.value / zoomLevel;",
            "  svg.setAttribute('viewBox', '0 0 ' + w + ' ' + h);",
            "}",
            "function zoom(direction) {",
            f"  var svg = document.getElementById({root_id!r});",
            "  zoomLevel = direction === 'in' ? zoomLevel * 1.25 : direction === 'out' ? zoomLevel / 1.25 : 1;",
            "  if (svg) { applyZoom(svg); }",
            f"  notifyHost({names['zoom']!r}, [direction, zoomLevel]);",
            "}",
            "function zoomIn() { zoom('in'); }",
            "function zoomOut() { zoom('out'); }",
            "function resetZoom() { zoom('reset'); }",
        ]
    if options.edit_mode:
        lines += [
            f"function addNewTask() {{ notifyHost({names['add']!r}, []); }}",
            f"function addNewEvent() {{ notifyHost({names['add']!r}, []); }}",
        ]
    if options.draggable:
        lines += [
            "var dragging = null, dragStartX = 0, dragDelta = 0;",
            "document.addEventListener('mousedown', function(e) {",
            "  if (!e.target.classList.contains('drag-handle')) { return; }",
            f"  dragging = e.target.closest({group_selector!r});",
            "  dragStartX = e.clientX; dragDelta = 0;",
            "  e.preventDefault();",
            "});",
            "document.addEventListener('mousemove', function(e) {",
            "  if (!dragging) { return; }",
            "  dragDelta = e.clientX - dragStartX;",
            "  dragging.setAttribute('transform', 'translate(' + dragDelta + ', 0)');",
            "  if (REAL_TIME_UPDATES) {",
            f"    notifyHost({names['drag']!r}, [dragging.getAttribute('data-ref'), dragDelta, false]);",
            "  }",
            "});",
            "document.addEventListener('mouseup', function() {",
            "  if (!dragging) { return; }",
            f"  notifyHost({names['drag']!r}, [dragging.getAttribute('data-ref'), dragDelta, true]);",
            "  dragging = null;",
            "});",
        ]
    lines += [
        "document.addEventListener('DOMContentLoaded', function() {",
        f"  document.querySelectorAll({group_selector!r}).forEach(function(el) {{",
        "    el.addEventListener('mouseenter', function() { this.style.filter = 'url(#hover-glow)'; });",
        "    el.addEventListener('mouseleave', function() { this.style.filter = 'none'; });",
        "  });",
        "});",
        "]]></script>",
    ]
    return "\n".join(line for line in lines if line.strip())


def _group(ref: str, elements: list, options: InteractiveOptions, theme: Theme) -> str:
    prefix, _, record_id = ref.partition(":")
    id_prefix, click_handler = _GROUPS[prefix]
    classes = [f"interactive-{'event' if prefix == 'event' else 'task'}"]
    if options.clickable:
        classes.append("clickable")
    if options.draggable:
        classes.append("draggable")

    group_id = record_id if record_id.startswith(id_prefix) else id_prefix + record_id
    attrs = f'id="{escape(group_id)}" class="{" ".join(classes)}" data-ref="{escape(record_id)}"'
    if options.clickable:
        attrs += f' onclick="{click_handler}(&apos;{escape(record_id)}&apos;)"'
    parts = [render_shape(e) for e in elements]
    if options.draggable:
        parts += _drag_handles(elements, prefix, theme)
    return f"<g {attrs}>{''.join(parts)}</g>"


def render_interactive(
    layout: DiagramLayout,
    theme: Optional[Theme] = None,
    options: Optional[InteractiveOptions] = None,
) -> str:
    """
    Render a timeline or Gantt layout as interactive SVG.

    Other diagram kinds have no interactions and render as static SVG.

    Args:
        layout: Positioned shapes from compute_layout (not modified)
        theme: Brand colors and font (defaults if None)
        options: Enabled interactions (defaults if None)

    Returns:
        SVG markup with interaction groups, controls and a script block
    """
    theme = theme or Theme()
    options = options or InteractiveOptions()
    if layout.kind not in INTERACTIVE_KINDS:
        logger.debug("No interactions for %s diagrams, rendering static SVG", layout.kind.value)
        return render_svg(layout, theme)

    # Group elements by ref, each group at its first element's position
    order: list = []
    grouped: dict[str, list] = {}
    for element in layout.elements:
        prefix = (element.ref or "").partition(":")[0]
        if prefix in _GROUPS:
            if element.ref not in grouped:
                grouped[element.ref] = []
                order.append(element.ref)
            grouped[element.ref].append(element)
        else:
            order.append(element)

    body = []
    for item in order:
        if isinstance(item, str):
            body.append(_group(item, grouped[item], options, theme))
        else:
            body.append(render_shape(item))
    if options.zoomable:
        body.append(_zoom_controls(layout, theme))
    if options.edit_mode:
        body.append(_edit_toolbar(layout.kind, theme))
    body.append(_script(layout.kind, options))

    kind_name = "timeline" if layout.kind == DiagramKind.TIMELINE else "gantt"
    return svg_document(
        layout, theme, body,
        extra_defs=_hover_filter(),
        extra_attrs=f'class="docdiagrams-interactive-{kind_name}" id="{kind_name}-interactive"',
    )
