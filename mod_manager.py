"""
DL2 Pak Merger - Core Logic

Handles mod installation into the staging folder, enabling/disabling, and
deployment of merged paks and loose files into the game directory.
"""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Optional

from game import GAME_ID, MOD_TYPE, merge_handler_for, supports_content
from mod_store import STATE_FILENAME, ModRecord, ModStore
from pak_archive import SUPPORTED_EXTENSIONS, extract_archive, list_archive_names
from pak_installer import UserCanceled, VariantChooser, install_content
from pak_merger import PakMerger
from settings import Settings

MERGED_DIR_NAME = "__merged"
BACKUP_DIR_NAME = "__backup"
RESERVED_NAMES = {MERGED_DIR_NAME, BACKUP_DIR_NAME}

_log = logging.getLogger(__name__)


def sanitize_mod_id(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "-", name).strip("-.") or "mod"
    if cleaned in RESERVED_NAMES:
        cleaned += "-mod"
    return cleaned


class ModManager:
    """
    Main mod manager controller.

    Workflow:
        1. install_mod() to stage a downloaded mod archive
        2. set_enabled() to choose which staged mods take part
        3. deploy() to merge paks and copy everything into the game folder
        4. purge() to take the deployed files out again
    """

    def __init__(
        self,
        staging_dir: str | Path,
        game_path: str | Path,
        settings: Settings | None = None,
        store: ModStore | None = None,
        log_callback: Optional[Callable[[str], None]] = None,
    ):
        self.staging_dir = Path(staging_dir)
        self.game_path = Path(game_path)
        self.settings = settings or Settings()
        self.store = store or ModStore(self.staging_dir / STATE_FILENAME).load()
        self.merger = PakMerger(self.store, GAME_ID)
        self._log_cb = log_callback or print

    @property
    def merge_dir(self) -> Path:
        return self.staging_dir / MERGED_DIR_NAME

    @property
    def backup_dir(self) -> Path:
        return self.staging_dir / BACKUP_DIR_NAME

    # ── Logging ───────────────────────────────────────────────────────

    def log(self, msg: str):
        _log.info(msg)
        self._log_cb(msg)

    # ── Queries ───────────────────────────────────────────────────────

    def mods(self) -> list[ModRecord]:
        return list(self.store.mods(GAME_ID).values())

    def is_installed(self, mod_id: str) -> bool:
        return self.store.get(GAME_ID, mod_id) is not None

    # ── Install ───────────────────────────────────────────────────────

    def install_mod(
        self,
        archive_path: str | Path,
        choose_variant: VariantChooser | None = None,
    ) -> tuple[bool, str]:
        archive_path = Path(archive_path)
        if archive_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            return False, f"Unsupported archive format: {archive_path.suffix}"

        mod_id = sanitize_mod_id(archive_path.stem)
        self.log(f"Installing {archive_path.name} as '{mod_id}'...")

        if self.is_installed(mod_id):
            return False, f"Mod '{mod_id}' is already installed. Uninstall it first."

        try:
            names = list_archive_names(archive_path)
        except Exception as e:
            return False, f"Could not read archive: {e}"
        if not supports_content(names, GAME_ID).supported:
            return False, "No .pak files found; this is not a Dying Light 2 pak mod"

        mod_dir = self.staging_dir / mod_id
        with tempfile.TemporaryDirectory() as tmpdir:
            tmppath = Path(tmpdir)
            try:
                files = extract_archive(archive_path, tmppath)
            except Exception as e:
                return False, f"Extraction failed: {e}"

            try:
                result = install_content(files, choose_variant, self.settings)
            except UserCanceled:
                self.log("  Installation cancelled")
                return False, "Installation cancelled"
            except ValueError as e:
                return False, f"Variant selection failed: {e}"

            copies = result.copies()
            try:
                for copy in copies:
                    src = tmppath / copy.source
                    dst = mod_dir / copy.destination
                    dst.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(src, dst)
                    self.log(f"  Copied: {copy.source} -> {copy.destination}")
            except OSError as e:
                self.log("  Copy failed, rolling back...")
                if mod_dir.exists():
                    shutil.rmtree(mod_dir)
                return False, f"Copy failed: {e}"

        self.store.put(
            ModRecord(
                id=mod_id,
                game_id=GAME_ID,
                install_path=mod_id,
                archive_filename=archive_path.name,
                mod_type=result.mod_type(),
                attributes=result.attributes(),
            )
        )
        self.store.save()

        self.log(f"  Successfully installed '{mod_id}' ({len(copies)} files)")
        return True, f"Installed {len(copies)} file(s)"

    # ── Uninstall / Enable ────────────────────────────────────────────

    def uninstall_mod(self, mod_id: str) -> tuple[bool, str]:
        rec = self.store.remove(GAME_ID, mod_id)
        if rec is None:
            return False, f"No installed mod found for {mod_id}"

        mod_dir = self.staging_dir / rec.install_path
        if mod_dir.exists():
            shutil.rmtree(mod_dir)
        self.store.save()

        self.log(f"Uninstalled '{mod_id}'. Deploy again to update the game folder.")
        return True, f"Removed {mod_id}"

    def set_enabled(self, mod_id: str, enabled: bool) -> tuple[bool, str]:
        rec = self.store.get(GAME_ID, mod_id)
        if rec is None:
            return False, f"No installed mod found for {mod_id}"
        rec.enabled = enabled
        self.store.save()
        return True, f"{mod_id} {'enabled' if enabled else 'disabled'}"

    # ── Deploy ────────────────────────────────────────────────────────

    def _place(self, src: Path, rel: Path):
        """Copy one file into the game folder, backing up a vanilla file it replaces."""
        dst = self.game_path / rel
        backup = self.backup_dir / rel
        if dst.exists() and not backup.exists():
            backup.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(dst, backup)
            self.log(f"  Backed up original: {rel.as_posix()}")
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)

    def deploy(self) -> tuple[bool, str]:
        self.log("Deploying...")
        self.purge()

        if self.merge_dir.exists():
            shutil.rmtree(self.merge_dir)
        handler = merge_handler_for(GAME_ID, self.staging_dir)

        loose: dict[Path, Path] = {}  # rel path -> staged source, later mods win
        merged = 0
        failed: list[str] = []
        for rec in self.mods():
            if not rec.enabled:
                continue
            mod_dir = self.staging_dir / rec.install_path
            for f in sorted(p for p in mod_dir.rglob("*") if p.is_file()):
                if rec.mod_type == MOD_TYPE and handler.filter(f):
                    try:
                        if self.merger.merge(f, self.merge_dir, mod_id=rec.id):
                            merged += 1
                    except Exception as e:
                        _log.exception("Merging %s from %s failed", f.name, rec.id)
                        self.log(f"  Merging {f.name} from '{rec.id}' failed: {e}")
                        if rec.id not in failed:
                            failed.append(rec.id)
                else:
                    loose[f.relative_to(mod_dir)] = f

        if self.merge_dir.exists():
            for f in sorted(p for p in self.merge_dir.rglob("*") if p.is_file()):
                loose[f.relative_to(self.merge_dir)] = f

        for rel, src in loose.items():
            self._place(src, rel)
            self.log(f"  Deployed: {rel.as_posix()}")

        self.store.set_deployed_files(GAME_ID, [rel.as_posix() for rel in loose])
        self.store.save()

        self.log(f"  Merged {merged} pak(s), deployed {len(loose)} file(s)")
        if failed:
            return False, f"{len(failed)} mod(s) failed: {', '.join(failed)}"
        return True, f"Deployed {len(loose)} file(s)"

    def purge(self) -> tuple[bool, str]:
        """Remove deployed files from the game folder and restore backed-up originals."""
        deployed = self.store.deployed_files(GAME_ID)
        removed = 0
        for rel in deployed:
            dst = self.game_path / rel
            backup = self.backup_dir / rel
            if backup.exists():
                shutil.move(str(backup), str(dst))
                self.log(f"  Restored original: {rel}")
            elif dst.exists():
                dst.unlink()
                removed += 1

            # Clean up empty parent dirs (not the game dir itself)
            parent = dst.parent
            while (
                parent != self.game_path
                and parent.exists()
                and not any(parent.iterdir())
            ):
                parent.rmdir()
                parent = parent.parent

        self.store.set_deployed_files(GAME_ID, [])
        self.store.save()
        return True, f"Removed {removed} file(s)"

    # ── Validation ────────────────────────────────────────────────────

    def validate_paths(self) -> list[str]:
        issues = []
        if not self.game_path.is_dir():
            issues.append(f"Game directory does not exist: {self.game_path}")
        if self.staging_dir.exists() and not self.staging_dir.is_dir():
            issues.append(f"Staging path is not a directory: {self.staging_dir}")
        return issues
