"""
Configuration from environment variables.

All settings have defaults, so nothing needs to be set to run the library.
Entry points (CLI, API) call configure_logging() once at startup.
"""
from __future__ import annotations

import logging
import os

from pydantic import BaseModel, Field, field_validator

from .models import check_font_family, check_hex_color

ENV_PREFIX = "DOCDIAGRAMS_"


class Settings(BaseModel):
    """Process-wide settings read once at startup."""
    log_level: str = "INFO"
    api_base: str = "http://127.0.0.1:8766/api"
    host: str = "127.0.0.1"
    port: int = 8766
    primary_color: str = "#2E86AB"
    secondary_color: str = "#A23B72"
    accent_color: str = "#F18F01"
    font_family: str = "Arial, sans-serif"
    min_bar_width: float = Field(default=4.0, gt=0)

    @field_validator("primary_color", "secondary_color", "accent_color")
    @classmethod
    def check_color(cls, value: str) -> str:
        return check_hex_color(value)

    @field_validator("font_family")
    @classmethod
    def check_font(cls, value: str) -> str:
        return check_font_family(value)


def _env(name: str) -> str | None:
    value = os.environ.get(f"{ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


def load_settings() -> Settings:
    """Build Settings from DOCDIAGRAMS_* environment variables."""
    values = {}
    for field_name in Settings.model_fields:
        raw = _env(field_name.upper())
        if raw is not None:
            values[field_name] = raw
    return Settings(**values)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for CLI and server entry points."""
    level_name = (level or load_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
