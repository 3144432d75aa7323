"""
docdiagrams Backend - FastAPI Application

This is the HTTP entry point for the diagram pipeline.
It provides:
- Extraction of diagram candidates from document text
- Rendering of every diagram in a document to SVG (static or interactive)
- Document summaries and validation reports
- Enum listings for clients
- CORS configuration for local frontend development

The app holds one DiagramPipeline on app.state; requests that carry a theme
or interaction options get a per-request copy of it.
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from docdiagrams.analysis import summarize_document
from docdiagrams.config import configure_logging, load_settings
from docdiagrams.interactive import interaction_contract
from docdiagrams.models import DiagramKind, ShapeKind
from docdiagrams.pipeline import DiagramPipeline
from docdiagrams.validation import validate_record, validation_summary

from .models import ExtractRequest, RenderRequest, SummaryRequest

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def _pipeline(request: Request) -> DiagramPipeline:
    return request.app.state.pipeline


def create_app(pipeline: Optional[DiagramPipeline] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        pipeline: Pipeline to serve (built from DOCDIAGRAMS_* settings if None)

    Returns:
        The configured app
    """
    app = FastAPI(
        title="docdiagrams API",
        description="Find diagrams in document text and render them as SVG",
        version=API_VERSION,
    )
    if pipeline is None:
        try:
            pipeline = DiagramPipeline.from_settings(load_settings())
        except ValidationError as e:
            logger.error("Invalid DOCDIAGRAMS_* settings: %s", e)
            raise
    app.state.pipeline = pipeline

    # CORS for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Health Check ---

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "service": "docdiagrams", "version": API_VERSION}

    # --- Extraction ---

    @app.post("/api/extract")
    async def extract(body: ExtractRequest, request: Request):
        """Scan a document and return its diagram candidates."""
        result = _pipeline(request).extract(body.text)
        return result.to_json_dict()

    # --- Rendering ---

    @app.post("/api/render")
    async def render(body: RenderRequest, request: Request):
        """
        Render every diagram in a document.

        With `index`, only that diagram (in document order) is returned.
        Interactive renders also describe the handlers the page must provide.
        """
        pipeline = _pipeline(request).with_overrides(theme=body.theme, interactive_options=body.options)
        try:
            result = pipeline.process_document(body.text, interactive=body.interactive)
        except Exception as e:
            logger.exception("Render request failed")
            raise HTTPException(status_code=500, detail=f"Failed to render document: {e}")

        if body.index is not None:
            if body.index >= len(result.diagrams):
                raise HTTPException(
                    status_code=400,
                    detail=f"Diagram index {body.index} out of range ({len(result.diagrams)} diagrams)",
                )
            result.diagrams = [result.diagrams[body.index]]

        data = result.to_json_dict()
        if body.interactive:
            for diagram in data["diagrams"]:
                diagram["interaction"] = interaction_contract(
                    DiagramKind(diagram["kind"]), pipeline.interactive_options
                )
        return data

    # --- Analysis ---

    @app.post("/api/summary")
    async def summary(body: SummaryRequest, request: Request):
        """
        Summarize and validate the diagrams in a document.

        Returns counts by kind, dated items and per-diagram validation issues.
        """
        records, errors = _pipeline(request).records(body.text)
        reports = []
        for record in records:
            issues = validate_record(record)
            reports.append({
                "kind": record.kind.value,
                "title": record.title,
                "source_offset": record.source_offset,
                "issues": [issue.to_dict() for issue in issues],
                "summary": validation_summary(issues),
            })
        return {
            "success": not errors,
            "summary": summarize_document(records).to_dict(),
            "diagrams": reports,
            "errors": errors,
        }

    # --- Enums for Frontend ---

    @app.get("/api/enums/kinds")
    async def get_kinds():
        """Get the diagram kinds the extractor recognizes."""
        return {"kinds": [k.value for k in DiagramKind]}

    @app.get("/api/enums/shapes")
    async def get_shapes():
        """Get the primitive shapes a layout can contain."""
        return {"shapes": [s.value for s in ShapeKind]}

    return app


app = create_app()


# --- Run with uvicorn ---

if __name__ == "__main__":
    import uvicorn

    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)
