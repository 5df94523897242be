"""
Shared fixtures and helpers for the DL2 Pak Merger test suite.
"""

import io
import zipfile
from pathlib import Path

import pytest

from game import GAME_ID
from mod_store import ModRecord, ModStore


def zip_bytes(members: dict[str, bytes | str]) -> bytes:
    """Build a zip archive in memory from {member: data}."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for member, data in members.items():
            zf.writestr(member, data)
    return buf.getvalue()


def make_zip(path: Path, members: dict[str, bytes | str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(zip_bytes(members))
    return path


def read_zip(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path, "r") as zf:
        return {n: zf.read(n) for n in zf.namelist() if not n.endswith("/")}


@pytest.fixture
def dirs(tmp_path):
    """Return (staging_dir, game_dir) as fresh tmp_path subdirectories."""
    staging = tmp_path / "staging"
    game = tmp_path / "game"
    staging.mkdir()
    game.mkdir()
    return staging, game


@pytest.fixture
def store(tmp_path):
    return ModStore(tmp_path / "state.json")


@pytest.fixture
def add_mod(store):
    """Register a mod record with the given pak dictionary."""

    def _add(mod_id: str, pak_dictionary: dict[str, str] | None) -> ModRecord:
        attributes = {} if pak_dictionary is None else {"pakDictionary": pak_dictionary}
        record = ModRecord(
            id=mod_id,
            game_id=GAME_ID,
            install_path=mod_id,
            attributes=attributes,
        )
        store.put(record)
        return record

    return _add
