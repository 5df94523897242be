#!/usr/bin/env python3
"""DL2 Pak Merger - Entry Point"""

import argparse
import faulthandler
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from game import GAME_NAME
from settings import Settings, config_dir, load_settings


def setup_logging(debug: bool = False) -> tuple[logging.Logger, Path]:
    log_dir = config_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "dl2pakmerger.log"

    handler = RotatingFileHandler(
        log_file,
        maxBytes=1 * 1024 * 1024,  # 1 MB
        backupCount=2,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"))

    # Module loggers (game, pak_merger, ...) propagate to the root logger
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)

    if debug:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.DEBUG)
        console.setFormatter(logging.Formatter("%(levelname)s - %(name)s - %(message)s"))
        logger.addHandler(console)
    return logging.getLogger("dl2pakmerger"), log_dir


def install_crash_handler(logger: logging.Logger, log_dir: Path):
    # Python-level unhandled exceptions
    def handle_exception(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logger.critical(
            "Unhandled exception:\n%s",
            "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
        )

    sys.excepthook = handle_exception

    # C-level crashes (segfault, abort) go to a separate file
    crash_file = log_dir / "crash.log"
    faulthandler.enable(open(crash_file, "w"), all_threads=True)


def console_choose_variant(pak_name: str, candidates: list[str]) -> Optional[str]:
    print(f'This mod has several variants for "{pak_name}":')
    for i, path in enumerate(candidates, 1):
        print(f"  {i}) {path}")
    while True:
        answer = input(f"Choose 1-{len(candidates)} (blank to cancel): ").strip()
        if not answer:
            return None
        if answer.isdigit() and 1 <= int(answer) <= len(candidates):
            return candidates[int(answer) - 1]
        print("Invalid choice.")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{GAME_NAME} pak merger")
    parser.add_argument("--game-path")
    parser.add_argument("--staging-dir")
    parser.add_argument("--normalize-pak-names", action="store_true", default=None)
    parser.add_argument("--gui-prompts", action="store_true")
    parser.add_argument("--debug", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)
    p = sub.add_parser("install", help="Install a mod archive (.zip/.7z/.rar)")
    p.add_argument("archive")
    for name in ("uninstall", "enable", "disable"):
        sub.add_parser(name).add_argument("mod_id")
    sub.add_parser("list")
    sub.add_parser("deploy")
    sub.add_parser("purge")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    from mod_manager import ModManager

    settings = load_settings()
    updates = {
        k: v
        for k, v in (
            ("game_path", args.game_path),
            ("staging_dir", args.staging_dir),
            ("normalize_pak_names", args.normalize_pak_names),
        )
        if v is not None
    }
    settings = Settings.model_validate({**settings.model_dump(), **updates})
    if settings.game_path is None:
        print("No game path configured; pass --game-path", file=sys.stderr)
        return 2

    manager = ModManager(settings.resolved_staging_dir(), settings.game_path, settings=settings)
    issues = manager.validate_paths()
    if issues:
        for issue in issues:
            print(issue, file=sys.stderr)
        return 2

    if args.command == "list":
        for rec in manager.mods():
            state = "enabled" if rec.enabled else "disabled"
            paks = ", ".join(sorted(set((rec.pak_dictionary or {}).values())))
            print(f"{rec.id}  [{state}]  {paks}")
        return 0

    if args.command == "install":
        if args.gui_prompts:
            from gui import choose_variant_dialog as chooser
        else:
            chooser = console_choose_variant
        ok, msg = manager.install_mod(Path(args.archive), chooser)
    elif args.command == "uninstall":
        ok, msg = manager.uninstall_mod(args.mod_id)
    elif args.command in ("enable", "disable"):
        ok, msg = manager.set_enabled(args.mod_id, args.command == "enable")
    elif args.command == "deploy":
        ok, msg = manager.deploy()
    else:
        ok, msg = manager.purge()

    print(msg)
    return 0 if ok else 1


def main(argv=None):
    args = parse_args(argv)
    logger, log_dir = setup_logging(args.debug)
    install_crash_handler(logger, log_dir)
    logger.info("Starting DL2 Pak Merger")
    sys.exit(run(args))


if __name__ == "__main__":
    main()
