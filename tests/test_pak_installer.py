"""
Tests for the pak installer (instruction generation and variant selection).
"""

import os

import pytest
from pydantic import ValidationError

from game import MOD_TYPE
from instructions import (
    AttributeInstruction,
    CopyInstruction,
    SetModTypeInstruction,
    parse_instructions,
)
from pak_installer import (
    FALLBACK_PAK_NAME,
    UserCanceled,
    find_root_index,
    install_content,
)
from settings import Settings


def attribute_instructions(result, key="pakDictionary"):
    return [
        i for i in result.instructions
        if isinstance(i, AttributeInstruction) and i.key == key
    ]


# ── basic cataloguing ────────────────────────────────────────────────────────

def test_single_pak_is_renamed_and_catalogued():
    result = install_content(["MyMod/ph/source/data2.pak"])

    copies = result.copies()
    assert len(copies) == 1
    dest = copies[0].destination
    assert dest.endswith(".pak")
    assert dest != "data2.pak"
    assert copies[0].source == "MyMod/ph/source/data2.pak"

    attrs = attribute_instructions(result)
    assert len(attrs) == 1
    assert attrs[0].value == {dest: "data2.pak"}


def test_mod_type_instruction_comes_first():
    result = install_content(["data3.pak", "readme.txt"])

    first = result.instructions[0]
    assert isinstance(first, SetModTypeInstruction)
    assert first.value == MOD_TYPE
    assert result.mod_type() == MOD_TYPE


def test_many_paks_share_one_dictionary_attribute():
    files = [
        "ph/source/data2.pak",
        "ph/source/data3.pak",
        "ph/source/data4.pak",
    ]
    result = install_content(files)

    attrs = attribute_instructions(result)
    assert len(attrs) == 1
    assert len(attrs[0].value) == 3
    assert sorted(attrs[0].value.values()) == ["data2.pak", "data3.pak", "data4.pak"]
    assert set(attrs[0].value) == {c.destination for c in result.copies()}


def test_dictionary_attribute_sits_at_first_pak():
    result = install_content(["ph/source/readme.scr", "ph/source/data2.pak", "ph/source/data3.pak"])

    kinds = [type(i) for i in result.instructions]
    assert kinds == [
        SetModTypeInstruction,
        CopyInstruction,
        AttributeInstruction,
        CopyInstruction,
        CopyInstruction,
    ]


def test_generated_names_are_unique():
    files = [f"ph/source/data{i}.pak" for i in range(2, 40)]
    result = install_content(files)

    names = [c.destination for c in result.copies()]
    assert len(set(names)) == len(names)


def test_uppercase_extension_is_a_pak():
    result = install_content(["Mod/DATA2.PAK"])

    assert result.pak_dictionary() == {result.copies()[0].destination: "DATA2.PAK"}


# ── non-pak files ────────────────────────────────────────────────────────────

def test_loose_files_are_cut_to_root_marker():
    files = [
        "MyMod/ph/source/scripts/player.scr",
        "MyMod/ph/source/data2.pak",
    ]
    result = install_content(files)

    loose = [c for c in result.copies() if not c.destination.endswith(".pak")]
    assert len(loose) == 1
    assert loose[0].destination == os.path.join("ph", "source", "scripts", "player.scr")


def test_root_marker_is_case_insensitive():
    assert find_root_index(["Wrapper/Inner/PH/source/x.scr"]) == 2


def test_without_root_marker_paths_are_kept():
    result = install_content(["docs/readme.txt", "data2.pak"])

    loose = [c for c in result.copies() if c.source == "docs/readme.txt"]
    assert loose[0].destination == os.path.join("docs", "readme.txt")


def test_directory_entries_are_skipped():
    result = install_content(["MyMod/", "MyMod/ph/", "MyMod/ph/source/data2.pak"])

    assert len(result.copies()) == 1


def test_windows_separators_are_understood():
    result = install_content(["MyMod\\ph\\source\\data2.pak", "MyMod\\ph\\source\\a.scr"])

    assert list(result.pak_dictionary().values()) == ["data2.pak"]
    loose = [c for c in result.copies() if c.source.endswith("a.scr")]
    assert loose[0].destination == os.path.join("ph", "source", "a.scr")


# ── variants ─────────────────────────────────────────────────────────────────

VARIANT_FILES = [
    "Bright/ph/source/data2.pak",
    "Dark/ph/source/data2.pak",
    "Common/ph/source/data3.pak",
]


def test_variant_choice_keeps_one_copy():
    asked = []

    def pick_first(pak_name, candidates):
        asked.append((pak_name, candidates))
        return candidates[0]

    result = install_content(VARIANT_FILES, pick_first)

    assert asked == [("data2.pak", ["Bright/ph/source/data2.pak", "Dark/ph/source/data2.pak"])]
    data2 = [c for c in result.copies() if result.pak_dictionary()[c.destination] == "data2.pak"]
    assert len(data2) == 1
    assert data2[0].source == "Bright/ph/source/data2.pak"
    assert len(result.copies()) == 2


def test_variant_choice_honours_selection():
    result = install_content(VARIANT_FILES, lambda name, cands: cands[1])

    sources = {c.source for c in result.copies()}
    assert "Dark/ph/source/data2.pak" in sources
    assert "Bright/ph/source/data2.pak" not in sources


def test_variant_cancel_raises_user_canceled():
    with pytest.raises(UserCanceled):
        install_content(VARIANT_FILES, lambda name, cands: None)


def test_variant_names_match_case_insensitively():
    asked = []

    def chooser(name, cands):
        asked.append(name)
        return cands[0]

    install_content(["A/data2.pak", "B/DATA2.pak"], chooser)
    assert len(asked) == 1


def test_variants_without_chooser_take_first():
    result = install_content(VARIANT_FILES)

    sources = {c.source for c in result.copies()}
    assert "Bright/ph/source/data2.pak" in sources
    assert "Dark/ph/source/data2.pak" not in sources


def test_variant_choice_outside_candidates_is_rejected():
    with pytest.raises(ValueError):
        install_content(VARIANT_FILES, lambda name, cands: "Elsewhere/data2.pak")


def test_chooser_not_called_without_duplicates():
    def fail(name, cands):
        raise AssertionError("should not prompt")

    install_content(["ph/source/data2.pak", "ph/source/data3.pak"], fail)


# ── settings ─────────────────────────────────────────────────────────────────

def test_normalize_maps_custom_names_to_fallback():
    settings = Settings(normalize_pak_names=True)
    result = install_content(["ph/source/cool_mod.pak", "ph/source/data5.pak"], settings=settings)

    assert sorted(result.pak_dictionary().values()) == sorted([FALLBACK_PAK_NAME, "data5.pak"])


def test_custom_names_kept_by_default():
    result = install_content(["ph/source/cool_mod.pak"])

    assert list(result.pak_dictionary().values()) == ["cool_mod.pak"]


# ── instruction model ────────────────────────────────────────────────────────

def test_parse_instructions_rejects_unknown_type():
    with pytest.raises(ValidationError):
        parse_instructions([{"type": "delete", "source": "x"}])


def test_parse_instructions_reads_host_format():
    parsed = parse_instructions([
        {"type": "setmodtype", "value": MOD_TYPE},
        {"type": "copy", "source": "a.pak", "destination": "x.pak"},
        {"type": "attribute", "key": "pakDictionary", "value": {"x.pak": "a.pak"}},
    ])

    assert [type(i) for i in parsed] == [SetModTypeInstruction, CopyInstruction, AttributeInstruction]
