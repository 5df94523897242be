"""
User settings for the DL2 Pak Merger.

Stored as ``settings.json`` in the per-user config directory (``%APPDATA%``
on Windows, the home directory elsewhere). Command-line flags override the
stored values for a single run.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, ValidationError, field_validator

SETTINGS_FILENAME = "settings.json"
APP_DIR_NAME = "DL2PakMerger"

_log = logging.getLogger(__name__)


def config_dir() -> Path:
    return Path(os.environ.get("APPDATA", "~")).expanduser() / APP_DIR_NAME


class Settings(BaseModel):
    game_path: Path | None = None
    staging_dir: Path | None = None
    # Catalog paks not named dataN.pak under data2.pak so the game loads them
    normalize_pak_names: bool = False
    root_marker: str = "ph"

    @field_validator("root_marker")
    @classmethod
    def _marker_is_segment(cls, v: str) -> str:
        v = v.strip().strip("/\\")
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"root_marker must be a single path segment, got {v!r}")
        return v.lower()

    def resolved_staging_dir(self) -> Path:
        return self.staging_dir or (config_dir() / "staging")


def load_settings(path: Path | None = None) -> Settings:
    path = path or config_dir() / SETTINGS_FILENAME
    if not path.exists():
        return Settings()
    try:
        return Settings.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        _log.warning("Ignoring invalid settings file %s: %s", path, exc)
        return Settings()


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    path = path or config_dir() / SETTINGS_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
    return path
