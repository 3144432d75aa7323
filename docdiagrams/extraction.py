"""
Pattern extraction - find diagram candidates in free-form document text.

Each diagram kind has its own recognizer, run against the full text:
- Mermaid / PlantUML: fenced code blocks tagged with the language
- Text-flow: a heading about a process (process, workflow, steps...) followed by a numbered list
- Org-chart: a heading about a team (team, organization, structure...) followed by a bullet list
- Timeline: runs of dated lines, or an explicit "timeline:" block
- Gantt: runs of task rows, or an explicit "gantt chart:" block

Extraction is permissive: overlapping matches from different recognizers are
all kept, and downstream consumers decide what to use. Patterns are compiled
once at import; every call iterates with a fresh finditer, so no match
position is shared between calls.
"""

import logging
import re
from typing import Callable, Iterator, Optional

from .models import DiagramCandidate, DiagramKind, ExtractionResult
from .structure import parse_org_chart, parse_text_flow
from .timeline import is_gantt_line, is_timeline_line, parse_gantt_tasks, parse_timeline_events

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 50
MAX_LABEL_LENGTH = 80  # "Release process:" style headings are short lines

MERMAID_BLOCK = re.compile(r"```[ \t]*mermaid[^\S\n]*\n(?P<body>.*?)\n?```", re.IGNORECASE | re.DOTALL)
PLANTUML_BLOCK = re.compile(r"```[ \t]*(?:plantuml|puml)[^\S\n]*\n(?P<body>.*?)\n?```", re.IGNORECASE | re.DOTALL)


def _section_pattern(keywords: str, item: str) -> re.Pattern:
    """A heading containing one of the keywords, then a list of `item` lines."""
    heading = (
        rf"(?:[ \t]{{0,3}}\#{{1,6}}[ \t]*(?P<heading>(?=[^\n]*?(?:{keywords}))[^\n]*)"
        rf"|(?P<label>[^\n\#|:]{{0,{MAX_LABEL_LENGTH}}}?(?:{keywords})[^\n|:]{{0,{MAX_LABEL_LENGTH}}}):[ \t]*)\n"
    )
    return re.compile(
        rf"^{heading}(?:[ \t]*\n)*(?P<body>(?:{item}(?:\n|$))+)",
        re.IGNORECASE | re.MULTILINE,
    )


TEXT_FLOW_SECTION = _section_pattern(
    r"process|workflow|steps|procedure|method", r"[ \t]*\d+[.)][ \t]+[^\n]*\S[^\n]*"
)
ORG_CHART_SECTION = _section_pattern(
    r"team|organi[sz]ation|structure|hierarchy", r"[ \t]*[-*+][ \t]+[^\n]*\S[^\n]*"
)

_BLOCK_BODY = r"(?:[ \t]*\n)*(?P<body>(?:[ \t]*\S[^\n]*(?:\n|$))+)"
TIMELINE_BLOCK = re.compile(
    r"^[ \t]*(?:\#{1,6}[ \t]*(?P<heading>(?=[^\n]*?\btimeline\b)[^\n]*)"
    r"|timeline\b[ \t]*:?[ \t]*(?P<label>[^\n]*))\n" + _BLOCK_BODY,
    re.IGNORECASE | re.MULTILINE,
)
GANTT_BLOCK = re.compile(
    r"^[ \t]*(?:\#{1,6}[ \t]*(?P<heading>(?=[^\n]*?\bgantt\b)[^\n]*)"
    r"|gantt(?:[ \t]*chart)?[ \t]*:[ \t]*(?P<label>[^\n]*))\n" + _BLOCK_BODY,
    re.IGNORECASE | re.MULTILINE,
)

_HEADING_LINE = re.compile(r"^[ \t]{0,3}#{1,6}[ \t]*(.+?)[ \t#]*$")
_TITLE_DIRECTIVE = re.compile(r"^\s*title\s*:?\s+(.+?)\s*$", re.IGNORECASE | re.MULTILINE)

_MERMAID_DECLARATIONS = {
    "flowchart": "flowchart",
    "graph": "flowchart",
    "sequencediagram": "sequence",
    "gantt": "gantt",
    "pie": "pie",
    "timeline": "timeline",
    "classdiagram": "class",
    "statediagram": "state",
    "statediagram-v2": "state",
    "erdiagram": "er",
}


# --- Titles and subtypes ---

def _truncate_title(line: str) -> str:
    if len(line) > MAX_TITLE_LENGTH:
        return line[: MAX_TITLE_LENGTH - 3] + "..."
    return line


def _meaningful_lines(content: str) -> Iterator[str]:
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith(("%", "//", "'", "---")):
            yield line


def detect_mermaid_type(content: str) -> str:
    """Diagram type from the declaration line (flowchart if unknown)."""
    for line in _meaningful_lines(content):
        first_word = line.split()[0].lower()
        if first_word in _MERMAID_DECLARATIONS:
            return _MERMAID_DECLARATIONS[first_word]
        if first_word.startswith("title"):
            continue
        break
    return "flowchart"


def detect_plantuml_type(content: str) -> str:
    """Diagram type from characteristic keywords (sequence if unknown)."""
    if re.search(r"^\s*class\s", content, re.MULTILINE):
        return "class"
    if "usecase" in content or re.search(r"\(\s*[^)]+\s*\)\s*$", content, re.MULTILINE) and "actor" in content:
        return "usecase"
    if re.search(r"^\s*(?:start|stop)\s*$", content, re.MULTILINE) or "activity" in content:
        return "activity"
    if re.search(r"^\s*(?:component|\[[^\]]+\])", content, re.MULTILINE):
        return "component"
    return "sequence"


def extract_diagram_title(content: str, kind: DiagramKind) -> str:
    """A `title` directive, else the first meaningful non-declaration line."""
    m = _TITLE_DIRECTIVE.search(content)
    if m:
        return _truncate_title(m.group(1))
    for line in _meaningful_lines(content):
        lowered = line.lower()
        if kind == DiagramKind.MERMAID and lowered.split()[0] in _MERMAID_DECLARATIONS:
            continue
        if kind == DiagramKind.PLANTUML and lowered.startswith(("@start", "@end")):
            continue
        return _truncate_title(line)
    return f"{kind.value.capitalize()} Diagram"


def _heading_above(text: str, offset: int) -> Optional[str]:
    """The markdown heading directly above offset (blank lines allowed)."""
    for line in reversed(text[:offset].splitlines()):
        if not line.strip():
            continue
        m = _HEADING_LINE.match(line)
        return m.group(1) if m else None
    return None


def _section_title(match: re.Match, default: str) -> str:
    title = match.group("heading") or match.group("label") or ""
    return title.strip().strip("*_ ") or default


# --- Recognizers ---

def _fenced_blocks(text: str, pattern: re.Pattern, kind: DiagramKind) -> list[DiagramCandidate]:
    detect = detect_mermaid_type if kind == DiagramKind.MERMAID else detect_plantuml_type
    candidates = []
    for match in pattern.finditer(text):
        body = match.group("body")
        subtype = detect(body)
        candidates.append(DiagramCandidate(
            kind=kind,
            raw_text=body,
            source_offset=match.start(),
            original_text=match.group(0),
            title=extract_diagram_title(body, kind),
            subtype=subtype,
        ))
        logger.debug("Found %s %s diagram at offset %d", kind.value, subtype, match.start())
    return candidates


def find_mermaid_blocks(text: str) -> list[DiagramCandidate]:
    return _fenced_blocks(text, MERMAID_BLOCK, DiagramKind.MERMAID)


def find_plantuml_blocks(text: str) -> list[DiagramCandidate]:
    return _fenced_blocks(text, PLANTUML_BLOCK, DiagramKind.PLANTUML)


def find_text_flows(text: str) -> list[DiagramCandidate]:
    """Numbered lists under a process heading; lists of one step are not flows."""
    candidates = []
    for match in TEXT_FLOW_SECTION.finditer(text):
        body = match.group("body").rstrip("\n")
        flow = parse_text_flow(body)
        if len(flow.steps) < 2:
            continue
        candidates.append(DiagramCandidate(
            kind=DiagramKind.TEXT_FLOW,
            raw_text=body,
            source_offset=match.start(),
            original_text=match.group(0),
            title=_section_title(match, "Process Flow"),
        ))
        logger.debug("Found text-based process flow with %d steps", len(flow.steps))
    return candidates


def find_org_charts(text: str) -> list[DiagramCandidate]:
    """Bullet lists under a team heading; fewer than two nodes is not a chart."""
    candidates = []
    for match in ORG_CHART_SECTION.finditer(text):
        body = match.group("body").rstrip("\n")
        chart = parse_org_chart(body)
        if len(chart.nodes) < 2:
            continue
        candidates.append(DiagramCandidate(
            kind=DiagramKind.ORG_CHART,
            raw_text=body,
            source_offset=match.start(),
            original_text=match.group(0),
            title=_section_title(match, "Organization Chart"),
        ))
        logger.debug("Found organization chart with %d nodes", len(chart.nodes))
    return candidates


def _line_runs(text: str, predicate: Callable[[str], bool]) -> Iterator[tuple[int, int]]:
    """(start, end) offsets of maximal runs of consecutive lines matching predicate."""
    run_start = None
    offset = 0
    run_end = 0
    for line in text.splitlines(keepends=True):
        if predicate(line.rstrip("\r\n")):
            if run_start is None:
                run_start = offset
            run_end = offset + len(line)
        elif run_start is not None:
            yield run_start, run_end
            run_start = None
        offset += len(line)
    if run_start is not None:
        yield run_start, run_end


def _blocks_and_runs(
    text: str,
    block_pattern: re.Pattern,
    predicate: Callable[[str], bool],
) -> Iterator[tuple[int, str, str, Optional[str]]]:
    """(offset, body, original, title) for explicit blocks, then line runs outside them."""
    spans = []
    for match in block_pattern.finditer(text):
        spans.append((match.start(), match.end()))
        yield match.start(), match.group("body").rstrip("\n"), match.group(0), _section_title(match, "")
    for start, end in _line_runs(text, predicate):
        if any(s <= start < e for s, e in spans):
            continue
        body = text[start:end].rstrip("\n")
        yield start, body, body, _heading_above(text, start)


def find_timelines(text: str) -> list[DiagramCandidate]:
    """Timeline blocks and runs of dated lines that yield at least one event."""
    candidates = []
    for offset, body, original, title in _blocks_and_runs(text, TIMELINE_BLOCK, is_timeline_line):
        events = parse_timeline_events(body)
        if not events:
            continue
        candidates.append(DiagramCandidate(
            kind=DiagramKind.TIMELINE,
            raw_text=body,
            source_offset=offset,
            original_text=original,
            title=title or "Project Timeline",
        ))
        logger.debug("Found timeline with %d events at offset %d", len(events), offset)
    return candidates


def find_gantt_charts(text: str) -> list[DiagramCandidate]:
    """Gantt blocks and runs of task rows that yield at least one task."""
    candidates = []
    for offset, body, original, title in _blocks_and_runs(text, GANTT_BLOCK, is_gantt_line):
        chart = parse_gantt_tasks(body)
        if not chart.tasks:
            continue
        candidates.append(DiagramCandidate(
            kind=DiagramKind.GANTT_CHART,
            raw_text=body,
            source_offset=offset,
            original_text=original,
            title=title or "Project Gantt Chart",
        ))
        logger.debug("Found Gantt chart with %d tasks at offset %d", len(chart.tasks), offset)
    return candidates


RECOGNIZERS: tuple[tuple[DiagramKind, Callable[[str], list[DiagramCandidate]]], ...] = (
    (DiagramKind.MERMAID, find_mermaid_blocks),
    (DiagramKind.PLANTUML, find_plantuml_blocks),
    (DiagramKind.TEXT_FLOW, find_text_flows),
    (DiagramKind.ORG_CHART, find_org_charts),
    (DiagramKind.TIMELINE, find_timelines),
    (DiagramKind.GANTT_CHART, find_gantt_charts),
)


# --- Entry points ---

def scan(text: str) -> ExtractionResult:
    """
    Run every recognizer over the document.

    A recognizer that raises is reported in `errors` and marks the result
    unsuccessful; candidates from the other recognizers are still returned.
    Finding nothing is a success.

    Args:
        text: Document body

    Returns:
        ExtractionResult with candidates in source-offset order
    """
    if text is None:
        text = ""
    if not isinstance(text, str):
        return ExtractionResult(
            success=False,
            errors=[f"Expected document text, got {type(text).__name__}"],
        )

    found: list[tuple[int, int, DiagramCandidate]] = []
    errors: list[str] = []
    for order, (kind, recognizer) in enumerate(RECOGNIZERS):
        try:
            for candidate in recognizer(text):
                found.append((candidate.source_offset, order, candidate))
        except Exception as e:
            logger.exception("%s recognizer failed", kind.value)
            errors.append(f"{kind.value}: {e}")

    found.sort(key=lambda item: (item[0], item[1]))
    diagrams = [candidate for _, _, candidate in found]
    logger.info("Found %d diagram candidates in document", len(diagrams))
    return ExtractionResult(success=not errors, diagrams=diagrams, errors=errors)


def extract(text: str) -> list[DiagramCandidate]:
    """Diagram candidates in source-offset order; never raises."""
    return scan(text).diagrams
