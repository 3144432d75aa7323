"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os

import pytest

from docdiagrams.models import DiagramKind, DiagramRecord
from docdiagrams.pipeline import DiagramPipeline

PROCESS_DOC = "## Process\n1. Design\n2. Build\n3. Ship"

TIMELINE_DOC = "2024-01-10: Kickoff\n2024-03-01: Launch milestone"

GANTT_DOC = "Design|2024-01-01|2024-01-15|Alice\nBuild|2024-01-16|2024-02-01|Bob"

ORG_DOC = """## Team Structure
- Alice: CEO
  - Bob: CTO
    - Carol: Engineer
  - Dan: CFO
"""

MIXED_DOC = """# Launch plan

Some introduction text.

```mermaid
graph TD
    A[Start] --> B[Review]
    B --> C[Done]
```

## Release Process
1. Freeze
2. Test
3. Tag

## Timeline
2024-01-10: Kickoff
2024-02-15 - Beta deadline
2024-03-01: Public launch

## Gantt Chart
| Task | Start | End | Owner |
| Design | 2024-01-01 | 2024-01-15 | Alice |
| Build | 2024-01-16 | 2024-02-01 | Bob |
"""


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """Ignore DOCDIAGRAMS_* variables from the developer's shell."""
    for key in list(os.environ):
        if key.startswith("DOCDIAGRAMS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def pipeline() -> DiagramPipeline:
    return DiagramPipeline()


@pytest.fixture
def make_record():
    """Build a DiagramRecord around hand-written content."""
    def _make(kind: DiagramKind, content, title: str = "Test Diagram") -> DiagramRecord:
        return DiagramRecord(kind=kind, title=title, content=content)
    return _make
