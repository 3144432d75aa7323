#!/usr/bin/env python3
"""docdiagrams CLI - find and render the diagrams in a document."""

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from docdiagrams.analysis import summarize_document
from docdiagrams.config import configure_logging, load_settings
from docdiagrams.models import Theme
from docdiagrams.pipeline import DiagramPipeline
from docdiagrams.validation import validate_record, validation_summary


def _json_out(data, code=0):
    print(json.dumps(data))
    sys.exit(code)


def _read_document(path):
    """Read a document from a path, or stdin for '-'."""
    if path == "-":
        return sys.stdin.read()
    try:
        return Path(path).expanduser().read_text(encoding="utf-8")
    except OSError as e:
        _json_out({"status": "error", "error": f"Cannot read {path}: {e.strerror}"}, code=1)


def _settings():
    try:
        return load_settings()
    except ValidationError as e:
        error = e.errors()[0]
        field = str(error["loc"][0]).upper() if error["loc"] else "?"
        _json_out({"status": "error", "error": f"Invalid settings: DOCDIAGRAMS_{field}: {error['msg']}"}, code=1)


def _pipeline(args):
    settings = _settings()
    pipeline = DiagramPipeline.from_settings(settings)
    overrides = {
        "primary_color": getattr(args, "primary_color", None),
        "secondary_color": getattr(args, "secondary_color", None),
        "accent_color": getattr(args, "accent_color", None),
        "font_family": getattr(args, "font_family", None),
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        try:
            theme = Theme(**{**pipeline.theme.model_dump(), **overrides})
        except ValidationError as e:
            _json_out({"status": "error", "error": f"Invalid theme: {e.errors()[0]['msg']}"}, code=1)
        pipeline = pipeline.with_overrides(theme=theme)
    return pipeline


def cmd_extract(args):
    result = _pipeline(args).extract(_read_document(args.file))
    _json_out(result.to_json_dict())


def cmd_render(args):
    pipeline = _pipeline(args)
    result = pipeline.process_document(_read_document(args.file), interactive=args.interactive)
    diagrams = result.diagrams

    if args.index is not None:
        if not 0 <= args.index < len(diagrams):
            _json_out({
                "status": "error",
                "error": f"Diagram index {args.index} out of range ({len(diagrams)} diagrams)",
            }, code=1)
        diagrams = [diagrams[args.index]]

    out_dir = Path(args.out).expanduser() if args.out else None
    if out_dir:
        out_dir.mkdir(parents=True, exist_ok=True)

    items = []
    for i, diagram in enumerate(diagrams):
        item = {
            "kind": diagram.kind.value,
            "title": diagram.title,
            "source_offset": diagram.source_offset,
            "warnings": diagram.warnings,
        }
        if out_dir:
            n = args.index if args.index is not None else i
            path = out_dir / f"diagram-{n}-{diagram.kind.value}.svg"
            path.write_text(diagram.svg, encoding="utf-8")
            item["path"] = str(path)
        else:
            item["svg"] = diagram.svg
        items.append(item)

    _json_out({"success": result.success, "diagrams": items, "errors": result.errors})


def cmd_summary(args):
    records, errors = _pipeline(args).records(_read_document(args.file))
    reports = []
    for record in records:
        issues = validate_record(record)
        reports.append({
            "kind": record.kind.value,
            "title": record.title,
            "issues": [issue.to_dict() for issue in issues],
            "summary": validation_summary(issues),
        })
    _json_out({
        "success": not errors,
        "summary": summarize_document(records).to_dict(),
        "diagrams": reports,
        "errors": errors,
    })


def cmd_serve(args):
    import uvicorn

    from backend.main import create_app

    settings = load_settings()
    uvicorn.run(
        create_app(),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )


def _add_theme_args(p):
    p.add_argument("--primary-color", default=None)
    p.add_argument("--secondary-color", default=None)
    p.add_argument("--accent-color", default=None)
    p.add_argument("--font-family", default=None)


def main(argv=None):
    parser = argparse.ArgumentParser(description="docdiagrams CLI")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    # Documents
    p = sub.add_parser("extract")
    p.add_argument("file", help="Document path, or - for stdin")

    p = sub.add_parser("render")
    p.add_argument("file", help="Document path, or - for stdin")
    p.add_argument("--index", type=int, default=None)
    p.add_argument("--interactive", action="store_true")
    p.add_argument("--out", default=None, help="Directory to write SVG files to")
    _add_theme_args(p)

    p = sub.add_parser("summary")
    p.add_argument("file", help="Document path, or - for stdin")

    # Server
    p = sub.add_parser("serve")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)

    args = parser.parse_args(argv)
    configure_logging(args.log_level or _settings().log_level)

    cmd_map = {
        "extract": cmd_extract,
        "render": cmd_render,
        "summary": cmd_summary,
        "serve": cmd_serve,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()
