"""
Pak installer for Dying Light 2 mods.

Turns the file list of an extracted mod package into install instructions.
Every .pak is copied under a random name so paks from different mods never
collide in the staging folder; the original name is kept in the mod's
``pakDictionary`` attribute so the merge engine can find the combined archive
the pak belongs to at deploy time.

Non-pak files are copied with their path cut down to the game's root folder
(``ph``), so a mod shipped as ``MyMod/ph/source/foo.scr`` lands at
``ph/source/foo.scr``.

Public API
----------
install_content(files, choose_variant=None, settings=None) -> InstallResult
"""

from __future__ import annotations

import logging
import os
import re
import secrets
from typing import Callable, Optional

from game import MOD_TYPE, PAK_EXT, ROOT_MARKER, is_pak
from instructions import (
    PAK_DICTIONARY_KEY,
    AttributeInstruction,
    CopyInstruction,
    InstallResult,
    SetModTypeInstruction,
)
from settings import Settings

_log = logging.getLogger(__name__)

# Game only loads paks named data0.pak, data1.pak, ...
LOADABLE_PAK_RE = re.compile(r"^data[0-9]*\.pak$", re.IGNORECASE)
FALLBACK_PAK_NAME = "data2.pak"

_SEP_RE = re.compile(r"[\\/]")

# (pak basename, candidate paths) -> chosen path, or None to cancel
VariantChooser = Callable[[str, list[str]], Optional[str]]


class UserCanceled(Exception):
    """The user backed out of a prompt; the install must not go ahead."""


def _segments(path: str) -> list[str]:
    return [s for s in _SEP_RE.split(path) if s]


def _is_directory_entry(path: str) -> bool:
    return path.endswith(("/", "\\"))


def _basename(path: str) -> str:
    segs = _segments(path)
    return segs[-1] if segs else ""


def find_root_index(files: list[str], marker: str = ROOT_MARKER) -> int:
    """Index of the root marker segment in the first path that contains it, else 0."""
    marker = marker.lower()
    for f in files:
        lowered = [s.lower() for s in _segments(f)]
        if marker in lowered:
            return lowered.index(marker)
    return 0


def group_paks(files: list[str]) -> dict[str, list[str]]:
    """Group pak files by basename (case-insensitive), keeping file-list order."""
    groups: dict[str, list[str]] = {}
    for f in files:
        if _is_directory_entry(f) or not is_pak(f):
            continue
        groups.setdefault(_basename(f).lower(), []).append(f)
    return groups


def resolve_variants(
    files: list[str], choose_variant: VariantChooser | None = None
) -> list[str]:
    """Drop all but one candidate for every pak name shipped more than once.

    ``choose_variant`` is asked once per ambiguous name, in sorted name order.
    Without a chooser the first candidate wins. Raises ``UserCanceled`` when
    the chooser returns None.
    """
    ambiguous = {k: v for k, v in group_paks(files).items() if len(v) > 1}
    if not ambiguous:
        return list(files)

    dropped: set[str] = set()
    for key in sorted(ambiguous):
        candidates = ambiguous[key]
        pak_name = _basename(candidates[0])
        if choose_variant is None:
            choice = candidates[0]
        else:
            choice = choose_variant(pak_name, list(candidates))
            if choice is None:
                raise UserCanceled(f"Variant selection for {pak_name} was cancelled")
            if choice not in candidates:
                raise ValueError(f"{choice!r} is not a variant of {pak_name}")
        _log.info("Variant for %s: %s", pak_name, choice)
        dropped.update(c for c in candidates if c != choice)

    return [f for f in files if f not in dropped]


def generate_pak_name(used: set[str]) -> str:
    """Random 128-bit name, unique within ``used`` (which it is added to)."""
    while True:
        name = secrets.token_hex(16) + PAK_EXT
        if name not in used:
            used.add(name)
            return name


def original_pak_name(path: str, normalize: bool = False) -> str:
    name = _basename(path)
    if normalize and not LOADABLE_PAK_RE.match(name):
        return FALLBACK_PAK_NAME
    return name


def generate_instructions(
    files: list[str], root_index: int = 0, normalize: bool = False
) -> InstallResult:
    instructions: list = [SetModTypeInstruction(value=MOD_TYPE)]
    pak_dict: AttributeInstruction | None = None
    used: set[str] = set()

    for f in files:
        if not _segments(f) or _is_directory_entry(f):
            continue
        if is_pak(f):
            destination = generate_pak_name(used)
            if pak_dict is None:
                pak_dict = AttributeInstruction(key=PAK_DICTIONARY_KEY, value={})
                instructions.append(pak_dict)
            pak_dict.value[destination] = original_pak_name(f, normalize)
        else:
            segs = _segments(f)
            destination = os.path.join(*(segs[root_index:] or segs))
        instructions.append(CopyInstruction(source=f, destination=destination))

    return InstallResult(instructions=instructions)


def install_content(
    files: list[str],
    choose_variant: VariantChooser | None = None,
    settings: Settings | None = None,
) -> InstallResult:
    """Build the install instructions for one extracted mod.

    Raises ``UserCanceled`` if a variant prompt is declined; no instructions
    are produced in that case.
    """
    settings = settings or Settings()
    root_index = find_root_index(files, settings.root_marker)
    filtered = resolve_variants(files, choose_variant)
    result = generate_instructions(filtered, root_index, settings.normalize_pak_names)
    _log.debug(
        "Generated %d instruction(s), %d pak(s) catalogued",
        len(result.instructions),
        len(result.pak_dictionary()),
    )
    return result
