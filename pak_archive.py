"""
Archive codec.

Dying Light 2 .pak files are plain zip archives, so merging only needs
``zipfile``. Mod downloads come as .zip, .7z or .rar and are read with
py7zr / rarfile the same way.
"""

from __future__ import annotations

import os
import zipfile
from pathlib import Path

import py7zr
import rarfile

# Point rarfile at a bundled UnRAR.exe when one ships in assets/
_unrar = Path(__file__).parent / "assets" / "UnRAR.exe"
if _unrar.exists():
    rarfile.UNRAR_TOOL = str(_unrar)

SUPPORTED_EXTENSIONS = {".zip", ".7z", ".rar"}

# Fixed entry timestamp so repacking the same tree gives the same bytes
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


# ── Pak (zip) codec ───────────────────────────────────────────────────


def extract_full(archive_path: str | Path, dest_dir: str | Path) -> list[str]:
    """Extract every entry of a zip-format archive, overwriting existing files.

    Returns the archive-internal names that were extracted.
    """
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive_path, "r") as zf:
        zf.extractall(dest_dir)
        return [n.replace("\\", "/") for n in zf.namelist()]


def _walk(entry: Path) -> list[Path]:
    if entry.is_dir():
        return sorted(entry.rglob("*"), key=lambda p: p.as_posix())
    return []


def add(
    archive_path: str | Path,
    entries: list[str | Path],
    recursive: bool = True,
    compression: int = zipfile.ZIP_DEFLATED,
) -> int:
    """Pack ``entries`` into a new zip at ``archive_path``.

    Each entry is stored relative to its own parent directory, so passing the
    children of a staging folder reproduces that folder's layout inside the
    archive. Directories are descended into when ``recursive`` is set.
    Entries are written in sorted order with a fixed timestamp.

    Returns the number of files written.
    """
    written = 0
    with zipfile.ZipFile(archive_path, "w", compression=compression) as zf:
        for entry in sorted((Path(e) for e in entries), key=lambda p: p.name):
            base = entry.parent
            paths = [entry]
            if recursive:
                paths += _walk(entry)
            for p in paths:
                arcname = p.relative_to(base).as_posix()
                if p.is_dir():
                    # Keep empty directories so the layout survives a round trip
                    if not any(p.iterdir()):
                        zf.writestr(zipfile.ZipInfo(arcname + "/", FIXED_DATE_TIME), b"")
                    continue
                info = zipfile.ZipInfo(arcname, FIXED_DATE_TIME)
                info.compress_type = compression
                info.external_attr = 0o644 << 16
                zf.writestr(info, p.read_bytes())
                written += 1
    return written


# ── Mod downloads ─────────────────────────────────────────────────────


def list_archive_names(filepath: Path) -> list[str]:
    ext = filepath.suffix.lower()
    names = []

    if ext == ".zip":
        with zipfile.ZipFile(filepath, "r") as zf:
            names = zf.namelist()
    elif ext == ".7z":
        with py7zr.SevenZipFile(filepath, "r") as sz:
            names = sz.getnames()
    elif ext == ".rar":
        with rarfile.RarFile(filepath, "r") as rf:
            names = [info.filename for info in rf.infolist()]
    else:
        raise ValueError(f"Unsupported archive format: {ext}")

    return [n.replace("\\", "/") for n in names]


def extract_archive(filepath: Path, dest: Path) -> list[str]:
    """Extract a whole mod download into ``dest``.

    Returns the relative paths of the extracted files (directories excluded),
    using the platform separator.
    """
    ext = filepath.suffix.lower()
    dest.mkdir(parents=True, exist_ok=True)

    if ext == ".zip":
        with zipfile.ZipFile(filepath, "r") as zf:
            zf.extractall(dest)
    elif ext == ".7z":
        with py7zr.SevenZipFile(filepath, "r") as sz:
            sz.extractall(dest)
    elif ext == ".rar":
        with rarfile.RarFile(filepath, "r") as rf:
            rf.extractall(dest)
    else:
        raise ValueError(f"Unsupported archive format: {ext}")

    return sorted(
        os.path.relpath(p, dest) for p in dest.rglob("*") if p.is_file()
    )
