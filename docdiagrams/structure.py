"""
Structural normalization for list-based diagrams.

- Text-flow: a numbered list becomes a chain of steps (no branching is inferred)
- Org-chart: an indented bullet list becomes a forest, using indentation alone

Both functions are pure and accept the list text found by the extractor.
"""

import logging
import re

from .models import OrgChart, OrgChartEdge, OrgChartNode, TextFlow, TextFlowEdge

logger = logging.getLogger(__name__)

INDENT_WIDTH = 2  # Spaces per org-chart level

_NUMBERED_ITEM = re.compile(r"^\s*\d+[.)]\s*(.+?)\s*$")
_BULLET_MARKER = re.compile(r"^[-*+]\s*")


def parse_text_flow(text: str) -> TextFlow:
    """
    Parse a numbered list into steps joined as a simple chain.

    Lines that are not numbered items are ignored.

    Args:
        text: The numbered list, one item per line

    Returns:
        TextFlow with steps in list order and edges (i-1 -> i)
    """
    steps: list[str] = []
    for line in text.splitlines():
        match = _NUMBERED_ITEM.match(line)
        if match:
            steps.append(match.group(1))

    edges = [TextFlowEdge(from_index=i - 1, to_index=i) for i in range(1, len(steps))]
    return TextFlow(steps=steps, edges=edges)


def _split_name_title(item: str) -> tuple[str, str | None]:
    name, sep, title = item.partition(":")
    title = title.strip() if sep else ""
    return name.strip(), title or None


def parse_org_chart(text: str) -> OrgChart:
    """
    Rebuild an organization chart from an indented bullet list.

    Each line's level is its leading indentation divided by INDENT_WIDTH
    (tabs count as one level). A parent stack is kept per level:
    - level 0 resets the stack to the new node (a new root)
    - otherwise the stack is cut to `level` entries, the node's parent is the
      top of the stack (if any), and the node is pushed

    So every non-root node's parent is the nearest preceding node with a
    shallower indentation.

    Args:
        text: Bullet list such as "- CEO: Chief Executive\\n  - CTO"

    Returns:
        OrgChart with nodes in list order and parent -> child edges
    """
    nodes: list[OrgChartNode] = []
    edges: list[OrgChartEdge] = []
    parent_stack: list[tuple[int, str]] = []

    lines = [line.expandtabs(INDENT_WIDTH) for line in text.splitlines() if line.strip()]
    for index, line in enumerate(lines):
        stripped = line.strip()
        level = (len(line) - len(line.lstrip(" "))) // INDENT_WIDTH

        name, title = _split_name_title(_BULLET_MARKER.sub("", stripped))
        if not name:
            logger.debug("Skipping org-chart line without a name: %r", line)
            continue

        node_id = f"node-{index}"
        nodes.append(OrgChartNode(id=node_id, name=name, title=title, level=level))

        if level == 0:
            parent_stack = [(level, node_id)]
            continue

        while parent_stack and parent_stack[-1][0] >= level:
            parent_stack.pop()
        if parent_stack:
            edges.append(OrgChartEdge(parent=parent_stack[-1][1], child=node_id))
        parent_stack.append((level, node_id))

    return OrgChart(nodes=nodes, edges=edges)


# --- Mermaid / PlantUML placeholders ---

MAX_FLOW_LABELS = 5
MAX_PARTICIPANTS = 4
MAX_MESSAGES = 6

DEFAULT_FLOW_LABELS = ("Start", "Process", "End")
DEFAULT_PARTICIPANTS = ("Actor A", "Actor B")
DEFAULT_MESSAGES = ("Request", "Response")

_MERMAID_NODE = re.compile(r"\b[A-Za-z]\w*\s*[\[({]+\s*\"?([^\])}\"]+?)\"?\s*[\])}]+")
_PLANTUML_PARTICIPANT = re.compile(
    r"^\s*(?:participant|actor|boundary|control|entity|database|collections|queue)\s+"
    r"(?:\"([^\"]+)\"|(\S+))",
    re.IGNORECASE | re.MULTILINE,
)
_PLANTUML_MESSAGE = re.compile(
    r"^\s*\"?([\w ]+?)\"?\s*-+>>?\s*\"?([\w ]+?)\"?\s*(?::\s*(.*?))?\s*$", re.MULTILINE
)


def parse_mermaid_labels(source: str) -> list[str]:
    """Node labels from definitions like A[Label], B(Label), C{Label}, in order."""
    labels: list[str] = []
    for match in _MERMAID_NODE.finditer(source):
        label = match.group(1).strip()
        if label and label not in labels:
            labels.append(label)
        if len(labels) == MAX_FLOW_LABELS:
            break
    return labels or list(DEFAULT_FLOW_LABELS)


def parse_plantuml_sequence(source: str) -> tuple[list[str], list[str]]:
    """
    Participants and message labels of a PlantUML sequence diagram.

    Participants come from declarations, then from message endpoints in order
    of appearance. Either list falls back to a two-item placeholder.
    """
    participants: list[str] = []

    def add(name: str) -> None:
        name = name.strip()
        if name and name not in participants and len(participants) < MAX_PARTICIPANTS:
            participants.append(name)

    for match in _PLANTUML_PARTICIPANT.finditer(source):
        add(match.group(1) or match.group(2))

    messages: list[str] = []
    for match in _PLANTUML_MESSAGE.finditer(source):
        add(match.group(1))
        add(match.group(2))
        if len(messages) < MAX_MESSAGES:
            messages.append((match.group(3) or "").strip() or "message")

    if len(participants) < 2:
        participants = list(DEFAULT_PARTICIPANTS)
    return participants, messages or list(DEFAULT_MESSAGES)
