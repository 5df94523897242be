"""
Pak merge engine.

Dying Light 2 loads a fixed set of ``dataN.pak`` archives, so two mods that
both ship ``data2.pak`` cannot simply be deployed side by side. At deploy time
each mod's (renamed) pak is merged into one combined archive per original pak
name under ``<merge_dir>/ph/source/``:

    1. extract the current combined archive (if any) into a scratch folder
    2. extract the incoming pak on top of it; later mods win on equal names
    3. repack the scratch folder next to the target as ``<name>.zip``
    4. move the new archive over the target

Nothing touches the target before step 4, so a failure anywhere earlier
leaves the previous combined archive exactly as it was.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import threading
from pathlib import Path

from game import GAME_ID, mods_path
from mod_store import ModStore
from pak_archive import add, extract_full

PACKING_EXT = ".zip"
SCRATCH_DIR_NAME = "temp"

_log = logging.getLogger(__name__)

# Merges are serialised process-wide; scratch folders live under a shared root
_MERGE_LOCK = threading.Lock()


def scratch_dir(merge_dir: Path, target: Path) -> Path:
    """Scratch folder for one merge target, unique per target path."""
    digest = hashlib.sha1(target.as_posix().encode("utf-8")).hexdigest()[:16]
    return merge_dir / SCRATCH_DIR_NAME / digest


class PakMerger:
    def __init__(self, store: ModStore, game_id: str = GAME_ID):
        self.store = store
        self.game_id = game_id

    def merge_target(self, mod_file_path: Path, merge_dir: Path, mod_id: str | None = None) -> Path | None:
        """Combined archive path for a staged pak, or None if it isn't catalogued."""
        mod_id = mod_id or self.store.find_owner(self.game_id, mod_file_path)
        if mod_id is None:
            _log.error("No installed mod owns %s", mod_file_path)
            return None

        pak_dict = self.store.pak_dictionary(self.game_id, mod_id) or {}
        original = pak_dict.get(mod_file_path.name)
        if original is None:
            _log.error(
                "File is not present in pak dictionary: %s (mod %s, dictionary %s)",
                mod_file_path, mod_id, pak_dict,
            )
            return None
        return merge_dir / mods_path() / original

    def merge(
        self,
        mod_file_path: str | Path,
        merge_dir: str | Path,
        mod_id: str | None = None,
    ) -> bool:
        """Merge one staged pak into its combined archive.

        ``mod_id`` names the owning mod; when omitted the owner is guessed from
        the path. Returns False (and leaves ``merge_dir`` alone) when the pak
        has no entry in its mod's pak dictionary. Archive and I/O errors
        propagate; the combined archive is unchanged in that case.
        """
        mod_file_path = Path(mod_file_path)
        merge_dir = Path(merge_dir)

        target = self.merge_target(mod_file_path, merge_dir, mod_id)
        if target is None:
            return False

        with _MERGE_LOCK:
            self._merge_into(mod_file_path, target, scratch_dir(merge_dir, target))
        return True

    def _merge_into(self, source: Path, target: Path, scratch: Path):
        packed = target.with_name(target.name + PACKING_EXT)

        target.parent.mkdir(parents=True, exist_ok=True)
        if scratch.exists():
            shutil.rmtree(scratch)
        scratch.mkdir(parents=True)

        try:
            try:
                target.stat()
            except FileNotFoundError:
                _log.debug("No combined %s yet, starting fresh", target.name)
            else:
                extract_full(target, scratch)

            names = extract_full(source, scratch)
            _log.debug("Extracted %d entr(ies) from %s", len(names), source.name)

            count = add(packed, list(scratch.iterdir()), recursive=True)
            shutil.rmtree(scratch)

            # os.replace swaps the old archive out in one step
            os.replace(packed, target)
        except Exception:
            try:
                packed.unlink()
            except FileNotFoundError:
                pass
            raise
        finally:
            shutil.rmtree(scratch, ignore_errors=True)
            _remove_if_empty(scratch.parent)

        _log.info("Merged %s into %s (%d file(s))", source.name, target, count)


def _remove_if_empty(path: Path):
    if path.is_dir() and not any(path.iterdir()):
        path.rmdir()
