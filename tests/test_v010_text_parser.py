from __future__ import annotations

import asyncio

from PIL import Image

from pokescan.perception.parser import (
    extract_cp,
    extract_hp,
    extract_name,
    extract_text_fields,
    parse_pokemon_text,
)
from pokescan.services.protocols import TextRecognition
from pokescan.services.species import SpeciesNameCache


class _FakeRecognizer:
    def __init__(self, text: str = "", fail: bool = False) -> None:
        self.text = text
        self.fail = fail

    async def recognize_text(self, image: Image.Image) -> TextRecognition:
        if self.fail:
            raise RuntimeError("engine crashed")
        return TextRecognition(text=self.text, confidence=88.0)


def _img() -> Image.Image:
    return Image.new("RGB", (50, 50), color=(30, 30, 30))


def test_cp_regex_accepts_common_forms() -> None:
    assert extract_cp("CP 1234") == 1234
    assert extract_cp("cp1234") == 1234
    assert extract_cp("something CP   87 else") == 87


def test_cp_regex_rejects_out_of_range() -> None:
    assert extract_cp("CP 99999") is None
    assert extract_cp("CP 0") is None
    assert extract_cp("no combat power here") is None


def test_hp_with_label_and_bare_fraction() -> None:
    assert extract_hp("HP 80/80") == 80
    assert extract_hp("hp 45 / 120") == 45
    assert extract_hp("Stardust 63 / 63") == 63
    assert extract_hp("HP 1000/1000") is None
    assert extract_hp("nothing") is None


def test_name_skips_lines_with_digits_or_stat_labels() -> None:
    assert extract_name(["Pikachu123", "Pikachu"]) == "Pikachu"
    assert extract_name(["CP Pikachu", "HP", "Mr Mime"]) == "Mr Mime"
    assert extract_name(["pikachu", "PIKACHU", "Ab"]) is None


def test_parse_collapses_whitespace_for_numbers() -> None:
    parsed = parse_pokemon_text("  Bulbasaur \n\n CP\n512 \n HP 60 / 60")
    assert parsed.name == "Bulbasaur"
    assert parsed.cp == 512
    assert parsed.hp == 60
    assert parsed.lines == ["Bulbasaur", "CP", "512", "HP 60 / 60"]


def test_extract_text_fields_accepts_known_name() -> None:
    rec = _FakeRecognizer("Pikachu\nCP 1200\nHP 80/80")
    names = SpeciesNameCache(["pikachu", "raichu"])
    result = asyncio.run(extract_text_fields(_img(), rec, names))
    assert result.name == "pikachu"
    assert result.cp == 1200
    assert result.hp == 80
    assert result.level is None and result.iv is None


def test_extract_text_fields_rejects_unknown_name_keeps_numbers() -> None:
    rec = _FakeRecognizer("Pikachu\nCP 1200\nHP 80/80")
    names = SpeciesNameCache(["bulbasaur"])
    result = asyncio.run(extract_text_fields(_img(), rec, names))
    assert result.name is None
    assert result.cp == 1200
    assert result.hp == 80


def test_extract_text_fields_engine_failure_is_all_null() -> None:
    result = asyncio.run(extract_text_fields(_img(), _FakeRecognizer(fail=True), SpeciesNameCache(["pikachu"])))
    assert (result.name, result.cp, result.hp) == (None, None, None)
