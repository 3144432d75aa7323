"""Exceptions raised by the diagram pipeline."""


class DiagramError(Exception):
    """Base class for diagram pipeline errors."""


class UnsupportedDiagramError(DiagramError):
    """A record or layout of a kind the stage cannot handle."""

    def __init__(self, kind: object, stage: str):
        super().__init__(f"{stage} does not support diagram kind {kind!r}")
        self.kind = kind
        self.stage = stage
