import pytest

from game import GAME_NAME
from main import console_choose_variant, parse_args, run
from tests.conftest import make_zip, read_zip, zip_bytes


def test_cli_install_and_deploy(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))
    game_dir = tmp_path / "game"
    game_dir.mkdir()
    archive = make_zip(tmp_path / "CoolMod.zip", {
        "CoolMod/ph/source/data2.pak": zip_bytes({"a.txt": "A"}),
    })
    common = ["--game-path", str(game_dir), "--staging-dir", str(tmp_path / "staging")]

    assert run(parse_args(common + ["install", str(archive)])) == 0
    assert run(parse_args(common + ["list"])) == 0
    assert "CoolMod  [enabled]  data2.pak" in capsys.readouterr().out

    assert run(parse_args(common + ["deploy"])) == 0
    assert read_zip(game_dir / "ph" / "source" / "data2.pak") == {"a.txt": b"A"}

    assert run(parse_args(common + ["disable", "CoolMod"])) == 0
    assert run(parse_args(common + ["uninstall", "Missing"])) == 1


def test_cli_requires_game_path(tmp_path, monkeypatch):
    monkeypatch.setenv("APPDATA", str(tmp_path))
    assert run(parse_args(["list"])) == 2


def test_console_variant_prompt(monkeypatch):
    answers = iter(["9", "2"])
    monkeypatch.setattr("builtins.input", lambda _: next(answers))
    assert console_choose_variant("data2.pak", ["A/data2.pak", "B/data2.pak"]) == "B/data2.pak"

    monkeypatch.setattr("builtins.input", lambda _: "")
    assert console_choose_variant("data2.pak", ["A/data2.pak", "B/data2.pak"]) is None


def test_cli_rejects_missing_game_dir(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))
    missing = tmp_path / "no-such-game"

    assert run(parse_args(["--game-path", str(missing), "list"])) == 2
    assert "Game directory does not exist" in capsys.readouterr().err


def test_cli_description_names_the_game(capsys):
    with pytest.raises(SystemExit):
        parse_args(["--help"])
    assert GAME_NAME in capsys.readouterr().out
