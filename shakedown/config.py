"""
Runtime configuration for the catalog service.

All settings come from environment variables so the same package runs in
tests, locally and behind uvicorn without code changes:

  SHAKEDOWN_CATEGORIES_PATH  path to show_categories.json
  SHAKEDOWN_SHOWS_PATH       path to enriched_shows.json
  SHAKEDOWN_PORT             HTTP port (default 8888)
  SHAKEDOWN_LOG_LEVEL        loguru level (default INFO)
"""

import os
import sys
from pathlib import Path
from typing import Mapping, Optional

from loguru import logger
from pydantic import BaseModel, Field


_REPO_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = _REPO_ROOT / "data"
DEFAULT_CATEGORIES_PATH = DATA_DIR / "show_categories.json"
DEFAULT_SHOWS_PATH = DATA_DIR / "enriched_shows.json"
DEFAULT_PORT = 8888


class Settings(BaseModel):
    """Resolved service settings."""

    categories_path: Path = Field(DEFAULT_CATEGORIES_PATH, description="Category index document")
    shows_path: Path = Field(DEFAULT_SHOWS_PATH, description="Enriched-show document")
    port: int = Field(DEFAULT_PORT, ge=1, le=65535, description="HTTP port for the app")
    log_level: str = Field("INFO", description="loguru level name")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        values: dict = {}
        if env.get("SHAKEDOWN_CATEGORIES_PATH"):
            values["categories_path"] = Path(env["SHAKEDOWN_CATEGORIES_PATH"])
        if env.get("SHAKEDOWN_SHOWS_PATH"):
            values["shows_path"] = Path(env["SHAKEDOWN_SHOWS_PATH"])
        if env.get("SHAKEDOWN_PORT"):
            values["port"] = int(env["SHAKEDOWN_PORT"])
        if env.get("SHAKEDOWN_LOG_LEVEL"):
            values["log_level"] = env["SHAKEDOWN_LOG_LEVEL"].upper()
        return cls(**values)


def configure_logging(level: str = "INFO") -> None:
    """Route loguru output to stderr at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level)
