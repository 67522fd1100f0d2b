from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from PIL import Image

from pokescan.services.protocols import SpeciesNameValidator, TextRecognizer
from pokescan.state.types import EMPTY_RESULT, OCRResult

logger = logging.getLogger(__name__)

MAX_CP = 9999
MAX_HP = 999
NAME_MIN_LEN = 3
NAME_MAX_LEN = 50

CP_PATTERN = re.compile(r"CP\s*(\d+)", re.I)
HP_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"HP\s*(\d+)(?:\s*/\s*\d+)?", re.I),
    # bare "80 / 80" when the HP label was not read
    re.compile(r"(\d+)\s*/\s*\d+"),
]
NAME_PATTERN = re.compile(r"^[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*$")
_NOT_A_NAME = re.compile(r"CP|HP|\d", re.I)


@dataclass(frozen=True)
class ParsedText:
    raw_text: str
    lines: list[str]
    name: str | None
    cp: int | None
    hp: int | None


def extract_cp(text: str) -> int | None:
    m = CP_PATTERN.search(text)
    if not m:
        return None
    cp = int(m.group(1))
    return cp if 0 < cp <= MAX_CP else None


def extract_hp(text: str) -> int | None:
    for pat in HP_PATTERNS:
        m = pat.search(text)
        if m:
            hp = int(m.group(1))
            return hp if 0 < hp <= MAX_HP else None
    return None


def extract_name(lines: Iterable[str]) -> str | None:
    for line in lines:
        if _NOT_A_NAME.search(line):
            continue
        if NAME_PATTERN.match(line) and NAME_MIN_LEN <= len(line) <= NAME_MAX_LEN:
            return line
    return None


def parse_pokemon_text(text: str) -> ParsedText:
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    clean = re.sub(r"\s+", " ", text).strip()
    return ParsedText(
        raw_text=text,
        lines=lines,
        name=extract_name(lines),
        cp=extract_cp(clean),
        hp=extract_hp(clean),
    )


def _canonical_name(name: str, names: SpeciesNameValidator) -> str:
    canonical = getattr(names, "canonical", None)
    return canonical(name) if callable(canonical) else name.strip().lower()


def to_ocr_result(parsed: ParsedText, names: SpeciesNameValidator) -> OCRResult:
    name = parsed.name
    if name is not None:
        if names.is_known_species_name(name):
            name = _canonical_name(name, names)
        else:
            logger.warning("rejected unknown species name %r", name)
            name = None
    return OCRResult(name=name, cp=parsed.cp, hp=parsed.hp)


async def extract_text_fields(
    image: Image.Image, recognizer: TextRecognizer, names: SpeciesNameValidator
) -> OCRResult:
    """OCR the screenshot into name/CP/HP. Engine failures give an all-null result."""
    try:
        recognition = await recognizer.recognize_text(image)
    except Exception:
        logger.exception("text recognition failed")
        return EMPTY_RESULT
    logger.debug("ocr confidence=%.1f text=%r", recognition.confidence, recognition.text)
    return to_ocr_result(parse_pokemon_text(recognition.text or ""), names)
