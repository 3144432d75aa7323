"""
Request models for the HTTP API.

Response bodies reuse the core models' JSON form (ExtractionResult,
DocumentResult), so only requests are defined here.
"""
from typing import Optional

from pydantic import BaseModel, Field

from docdiagrams.interactive import InteractiveOptions
from docdiagrams.models import Theme


class ExtractRequest(BaseModel):
    """Request to scan a document for diagram candidates."""
    text: str = ""


class RenderRequest(BaseModel):
    """Request to render the diagrams of a document."""
    text: str = ""
    theme: Optional[Theme] = None
    interactive: bool = False
    options: Optional[InteractiveOptions] = None
    index: Optional[int] = Field(default=None, ge=0)  # Only this diagram, in document order


class SummaryRequest(BaseModel):
    """Request to summarize and validate a document's diagrams."""
    text: str = ""
