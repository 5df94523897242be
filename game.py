"""
Dying Light 2 game description.

Identity constants, the mods path layout, and the two hooks the mod-manager
host calls during install and deployment:

supports_content(files, game_id)
    -> whether the pak installer should handle a freshly extracted mod
merge_handler_for(game_id, install_path)
    -> the MergeHandler that routes deployed .pak files into the merge engine
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

_log = logging.getLogger(__name__)

GAME_ID = "dyinglight2"
GAME_NAME = "Dying Light 2"
MOD_TYPE = "dying-light-2-pak-merger"
PAK_EXT = ".pak"
ROOT_MARKER = "ph"

EXECUTABLE = os.path.join("ph", "work", "bin", "x64", "DyingLightGame_x64_rwdi.exe")


def is_pak(file_path: str | Path) -> bool:
    return os.path.splitext(str(file_path).lower())[1] == PAK_EXT


def mods_path(discovery_path: str | Path | None = None) -> Path:
    """Directory paks are deployed into, absolute when a game path is known."""
    rel = Path(ROOT_MARKER) / "source"
    if discovery_path is None:
        return rel
    return Path(discovery_path) / rel


# ── Discovery ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GameDiscovery:
    """Where the game was found and which store owns the install."""

    path: Path
    store_id: str | None = None


def prepare_for_modding(discovery: GameDiscovery) -> bool:
    """Make sure the mods directory exists.

    Returns True when the store launcher should be started before the game,
    which is only the case for Steam installs.
    """
    target = mods_path(discovery.path)
    target.mkdir(parents=True, exist_ok=True)
    _log.debug("Mods directory ready: %s", target)
    return discovery.store_id == "steam"


# ── Installer support ─────────────────────────────────────────────────


@dataclass
class SupportResult:
    supported: bool
    required_files: list[str] = field(default_factory=list)


def supports_content(files: list[str], game_id: str) -> SupportResult:
    supported = game_id == GAME_ID and any(is_pak(f) for f in files)
    return SupportResult(supported=supported, required_files=[])


# ── Merge routing ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class DeployedFile:
    """A file the host deployed in a previous run."""

    rel_path: str
    source: str  # mod install directory name


@dataclass(frozen=True)
class BaseFile:
    in_path: Path
    out_path: str


def merge_filter(file_path: str | Path) -> bool:
    return is_pak(file_path)


def merge_base_files(
    deployed_files: list[DeployedFile], install_path: str | Path
) -> list[BaseFile]:
    """Pick the deployed paks that seed the merge, paired with their sources."""
    install_path = Path(install_path)
    return [
        BaseFile(
            in_path=install_path / f.source / f.rel_path,
            out_path=f.rel_path,
        )
        for f in deployed_files
        if is_pak(f.rel_path)
    ]


@dataclass
class MergeHandler:
    base_files: Callable[[list[DeployedFile]], list[BaseFile]]
    filter: Callable[[str | Path], bool]


def merge_handler_for(game_id: str, install_path: str | Path) -> MergeHandler | None:
    if game_id != GAME_ID:
        return None
    return MergeHandler(
        base_files=lambda deployed: merge_base_files(deployed, install_path),
        filter=merge_filter,
    )
