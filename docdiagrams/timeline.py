"""
Timeline and Gantt chart parsing.

Turns the text of a timeline or Gantt candidate into typed records:
- Timeline lines: "<date> - <title> (<description>) [<category>]"
- Gantt rows:     "<name>|<start>|<end>|<assignee>" (markdown table pipes allowed)
                  "Task: <name> start: <date> end: <date>"
- Gantt milestones: any line containing "milestone" plus a date

Rows that match no pattern are skipped; a task is only built once all of its
fields are known to be valid.
"""

import logging
import re
from typing import Optional

from .dates import find_date_token, normalize_date
from .models import EventType, GanttChart, GanttMilestone, GanttTask, Priority, TimelineEvent

logger = logging.getLogger(__name__)

_MILESTONE_WORD = re.compile(r"milestone", re.IGNORECASE)
_MILESTONE_MARKER = re.compile(r"\bmilestones?\b\s*:?", re.IGNORECASE)
_DESCRIPTION = re.compile(r"\(([^)]*)\)")
_CATEGORY = re.compile(r"\[([^\]]*)\]")
_EDGE_JUNK = re.compile(r"^[\s\-–—:|*•]+|[\s\-–—:|(]+$")
_SPACES = re.compile(r"\s+")

_LAUNCH_WORDS = re.compile(r"\b(?:release|launch)", re.IGNORECASE)
_DEADLINE_WORDS = re.compile(r"\b(?:deadline|due|finish)", re.IGNORECASE)

_DEPENDS_ON = re.compile(r"depends\s+on\s*:?\s*([^|;\n]+)", re.IGNORECASE)
_PROGRESS = re.compile(r"(\d{1,3})\s*%")
_HIGH_PRIORITY = re.compile(r"\b(?:critical|high)\b", re.IGNORECASE)
_LOW_PRIORITY = re.compile(r"\blow\b", re.IGNORECASE)
_MEDIUM_PRIORITY = re.compile(r"\bmedium\b", re.IGNORECASE)
_ASSIGNEE = re.compile(r"\b(?:assignee|owner|assigned\s+to)\s*:?\s*([^|;,\n]+)", re.IGNORECASE)
_TASK_LINE = re.compile(
    r"\btask\s*:?\s*(?P<name>.+?)\s*\b(?:start|from)\s*:?\s*(?P<start>.+?)\s*,?\s*"
    r"\b(?:end|to|until)\s*:?\s*(?P<end>.+)$",
    re.IGNORECASE,
)


def _clean(text: str) -> str:
    return _SPACES.sub(" ", _EDGE_JUNK.sub("", text)).strip()


def _has_words(text: str) -> bool:
    return bool(re.search(r"[^\W\d_]", text))


def classify_event(title: str, is_milestone: bool) -> EventType:
    """Milestone, deadline or plain event, from keywords in the title."""
    if is_milestone or _LAUNCH_WORDS.search(title):
        return EventType.MILESTONE
    if _DEADLINE_WORDS.search(title):
        return EventType.DEADLINE
    return EventType.EVENT


def _parse_event_line(line: str) -> Optional[dict]:
    token = find_date_token(line)
    if token is None:
        if not re.search(r"\bmilestone\s*:", line, re.IGNORECASE):
            return None
        # Lenient: an undated milestone still gets a (fallback) date
        event_date = normalize_date(line)
        title_source = line
    else:
        event_date = normalize_date(token.group(0))
        before, after = line[: token.start()], line[token.end():]
        title_source = after if _has_words(after) else before

    description = category = None
    m = _DESCRIPTION.search(title_source)
    if m:
        description = m.group(1).strip() or None
        title_source = title_source[: m.start()] + title_source[m.end():]
    m = _CATEGORY.search(title_source)
    if m:
        category = m.group(1).strip() or None
        title_source = title_source[: m.start()] + title_source[m.end():]

    is_milestone = bool(_MILESTONE_WORD.search(line))
    title = _clean(_MILESTONE_MARKER.sub(" ", title_source)) or ("Milestone" if is_milestone else "Event")
    return {
        "date": event_date,
        "title": title,
        "description": description,
        "category": category,
        "is_milestone": is_milestone,
        "event_type": classify_event(title, is_milestone),
    }


def parse_timeline_events(text: str) -> list[TimelineEvent]:
    """
    Parse timeline lines into events sorted ascending by date.

    The sort is stable, so events on the same date keep their input order.
    Ids ("event-0", "event-1", ...) follow the sorted order.

    Args:
        text: Timeline text, one event per line

    Returns:
        Sorted list of TimelineEvent
    """
    parsed = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        fields = _parse_event_line(stripped)
        if fields is None:
            logger.debug("Skipping timeline line: %r", stripped)
            continue
        parsed.append(fields)

    parsed.sort(key=lambda f: f["date"])
    return [TimelineEvent(id=f"event-{i}", **fields) for i, fields in enumerate(parsed)]


# --- Gantt ---

def slugify(name: str) -> str:
    """Stable id fragment for a task or milestone name."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "task"


def infer_priority(text: str) -> Optional[Priority]:
    """critical/high -> high, low -> low, medium -> medium, else None."""
    if _HIGH_PRIORITY.search(text):
        return Priority.HIGH
    if _LOW_PRIORITY.search(text):
        return Priority.LOW
    if _MEDIUM_PRIORITY.search(text):
        return Priority.MEDIUM
    return None


def parse_dependencies(text: str) -> list[str]:
    """Names listed in a "depends on: a, b" clause (trimmed, empties dropped)."""
    m = _DEPENDS_ON.search(text)
    if not m:
        return []
    names = []
    for part in m.group(1).split(","):
        name = re.sub(r"\s*\d{1,3}\s*%.*$", "", part).strip()
        if name:
            names.append(name)
    return names


def parse_progress(text: str) -> int:
    m = _PROGRESS.search(text)
    return min(100, int(m.group(1))) if m else 0


def _parse_pipe_row(line: str) -> Optional[dict]:
    cells = [c.strip() for c in line.strip().strip("|").split("|")]
    if len(cells) < 3 or not cells[0] or find_date_token(cells[0]):
        return None
    start_token = find_date_token(cells[1])
    end_token = find_date_token(cells[2])
    if start_token is None or end_token is None:
        return None

    assignee = None
    if len(cells) > 3 and cells[3] and not _DEPENDS_ON.search(cells[3]) and not _PROGRESS.search(cells[3]):
        assignee = cells[3]
    return {
        "name": cells[0],
        "start": normalize_date(start_token.group(0)),
        "end": normalize_date(end_token.group(0)),
        "assignee": assignee,
    }


def _parse_task_line(line: str) -> Optional[dict]:
    m = _TASK_LINE.search(line)
    if not m:
        return None
    start_token = find_date_token(m.group("start"))
    end_token = find_date_token(m.group("end"))
    name = _clean(m.group("name"))
    if start_token is None or end_token is None or not name:
        return None
    assignee = _ASSIGNEE.search(line)
    return {
        "name": name,
        "start": normalize_date(start_token.group(0)),
        "end": normalize_date(end_token.group(0)),
        "assignee": assignee.group(1).strip() if assignee else None,
    }


def _parse_milestone_line(line: str) -> Optional[dict]:
    token = find_date_token(line)
    if token is None:
        return None
    name = line[: token.start()] + " " + line[token.end():]
    name = _DEPENDS_ON.sub(" ", name)
    name = _MILESTONE_MARKER.sub(" ", name)
    name = _clean(name.replace("|", " ")) or "Milestone"
    return {"name": name, "date": normalize_date(token.group(0))}


def is_timeline_line(line: str) -> bool:
    """A date token followed by a separator and text, or a "milestone:" marker."""
    token = find_date_token(line)
    if token is not None and re.match(r"\s*[-–—:]\s*\S", line[token.end():]):
        return True
    return bool(re.search(r"\bmilestone\s*:", line, re.IGNORECASE))


def is_gantt_line(line: str) -> bool:
    """A task row, a "task:" line, or a dated milestone."""
    stripped = line.strip()
    if not stripped:
        return False
    if _MILESTONE_WORD.search(stripped):
        return find_date_token(stripped) is not None
    return _parse_pipe_row(stripped) is not None or _parse_task_line(stripped) is not None


def _unique_id(base: str, taken: set[str]) -> str:
    candidate, n = base, 2
    while candidate in taken:
        candidate = f"{base}-{n}"
        n += 1
    taken.add(candidate)
    return candidate


def _resolve(names: list[str], by_slug: dict[str, str], own_id: str) -> list[str]:
    resolved: list[str] = []
    for name in names:
        target = by_slug.get(slugify(name))
        if target is None:
            logger.debug("Dropping unknown dependency %r of %s", name, own_id)
            continue
        if target != own_id and target not in resolved:
            resolved.append(target)
    return resolved


def parse_gantt_tasks(text: str) -> GanttChart:
    """
    Parse Gantt rows into tasks and milestones.

    Dependencies are matched to tasks of the same chart by name; unknown
    names and self-references are dropped. Rows whose end date precedes
    their start date are skipped.

    Args:
        text: Gantt text (pipe rows, "task:" lines, milestone lines)

    Returns:
        GanttChart with tasks and milestones in source order
    """
    rows: list[dict] = []
    milestone_rows: list[dict] = []

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if _MILESTONE_WORD.search(stripped):
            milestone = _parse_milestone_line(stripped)
            if milestone is not None:
                milestone["depends_on"] = parse_dependencies(stripped)
                milestone_rows.append(milestone)
            continue

        row = _parse_pipe_row(stripped) or _parse_task_line(stripped)
        if row is None:
            logger.debug("Skipping Gantt line: %r", stripped)
            continue
        if row["end"] < row["start"]:
            logger.debug("Skipping Gantt row %r: end precedes start", row["name"])
            continue
        row["depends_on"] = parse_dependencies(stripped)
        row["progress"] = parse_progress(stripped)
        row["priority"] = infer_priority(stripped)
        rows.append(row)

    taken: set[str] = set()
    by_slug: dict[str, str] = {}
    for row in rows:
        row["id"] = _unique_id(slugify(row["name"]), taken)
        by_slug.setdefault(slugify(row["name"]), row["id"])

    tasks = [
        GanttTask(
            id=row["id"],
            name=row["name"],
            start=row["start"],
            end=row["end"],
            dependencies=_resolve(row["depends_on"], by_slug, row["id"]),
            progress=row["progress"],
            assignee=row["assignee"],
            priority=row["priority"],
        )
        for row in rows
    ]
    milestones = []
    for row in milestone_rows:
        milestone_id = _unique_id(f"milestone-{slugify(row['name'])}", taken)
        milestones.append(GanttMilestone(
            id=milestone_id,
            name=row["name"],
            date=row["date"],
            dependencies=_resolve(row["depends_on"], by_slug, milestone_id),
        ))
    return GanttChart(tasks=tasks, milestones=milestones)
