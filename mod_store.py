"""
Persisted mod records.

A small stand-in for the mod manager's state store: one JSON file holding
``{game_id: {mod_id: ModRecord}}``. The pak merger only reads from it; the
installer side of ``ModManager`` writes records after an install.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from instructions import PAK_DICTIONARY_KEY

STATE_FILENAME = ".dl2_pakmerger_state.json"

_log = logging.getLogger(__name__)


class ModRecord(BaseModel):
    id: str
    game_id: str
    install_path: str  # directory name under the staging folder
    archive_filename: str | None = None
    mod_type: str | None = None
    enabled: bool = True
    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def pak_dictionary(self) -> dict[str, str] | None:
        return self.attributes.get(PAK_DICTIONARY_KEY)


class DeploymentRecord(BaseModel):
    """Files written into the game directory by the last deploy."""

    files: list[str] = Field(default_factory=list)


class ModState(BaseModel):
    mods: dict[str, dict[str, ModRecord]] = Field(default_factory=dict)
    deployments: dict[str, DeploymentRecord] = Field(default_factory=dict)


class ModStore:
    def __init__(self, state_path: str | Path):
        self.state_path = Path(state_path)
        self.state = ModState()

    # ── Persistence ───────────────────────────────────────────────────

    def load(self) -> ModStore:
        if not self.state_path.exists():
            self.state = ModState()
            return self
        try:
            data = json.loads(self.state_path.read_text(encoding="utf-8"))
            self.state = ModState.model_validate(data)
            _log.debug("Loaded mod state from %s", self.state_path)
        except (json.JSONDecodeError, ValidationError) as exc:
            _log.warning("Could not load mod state %s: %s", self.state_path, exc)
            self.state = ModState()
        return self

    def save(self):
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        self.state_path.write_text(
            self.state.model_dump_json(indent=2), encoding="utf-8"
        )

    # ── Records ───────────────────────────────────────────────────────

    def mods(self, game_id: str) -> dict[str, ModRecord]:
        return self.state.mods.get(game_id, {})

    def get(self, game_id: str, mod_id: str) -> ModRecord | None:
        return self.mods(game_id).get(mod_id)

    def put(self, record: ModRecord):
        self.state.mods.setdefault(record.game_id, {})[record.id] = record

    def remove(self, game_id: str, mod_id: str) -> ModRecord | None:
        return self.state.mods.get(game_id, {}).pop(mod_id, None)

    def pak_dictionary(self, game_id: str, mod_id: str) -> dict[str, str] | None:
        record = self.get(game_id, mod_id)
        return record.pak_dictionary if record else None

    def find_owner(self, game_id: str, file_path: str | Path) -> str | None:
        """Best-effort guess of the mod a staged file belongs to.

        Picks the longest mod id that occurs in the path, so ``mod-1`` does
        not shadow ``mod-12``.
        """
        text = str(file_path)
        matches = [mod_id for mod_id in self.mods(game_id) if mod_id in text]
        return max(matches, key=len) if matches else None

    # ── Deployment bookkeeping ────────────────────────────────────────

    def deployed_files(self, game_id: str) -> list[str]:
        rec = self.state.deployments.get(game_id)
        return list(rec.files) if rec else []

    def set_deployed_files(self, game_id: str, files: list[str]):
        self.state.deployments[game_id] = DeploymentRecord(files=sorted(files))
