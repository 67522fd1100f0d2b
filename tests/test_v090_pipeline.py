from __future__ import annotations

import asyncio

from PIL import Image, ImageDraw

from pokescan.pipeline.analyze import ScanContext, analyze_screenshot
from pokescan.services.protocols import TextRecognition
from pokescan.services.sampler import PillowPixelSampler
from pokescan.services.species import SpeciesNameCache
from pokescan.state.types import BaseStats, IVs, LevelMethod, NativeResult
from pokescan.state.validation import validate_result
from pokescan.stats.cpm import CPM_TABLE
from pokescan.stats.level_calc import compute_cp

PIKACHU = BaseStats(atk=112, def_=96, sta=111)


class _FakeRecognizer:
    def __init__(self, text: str = "", fail: bool = False) -> None:
        self.text = text
        self.fail = fail

    async def recognize_text(self, image: Image.Image) -> TextRecognition:
        if self.fail:
            raise RuntimeError("ocr backend unavailable")
        return TextRecognition(text=self.text, confidence=90.0)


class _FakeNative:
    def __init__(self, result: NativeResult | None = None, fail: bool = False) -> None:
        self.result = result
        self.fail = fail

    async def analyze(self, image: Image.Image) -> NativeResult | None:
        if self.fail:
            raise RuntimeError("native module missing")
        return self.result


def _ctx(text: str = "Pikachu\nCP 1200\nHP 80/80", **kwargs: object) -> ScanContext:
    recognizer = kwargs.pop("recognizer", None) or _FakeRecognizer(text)
    return ScanContext(
        recognizer=recognizer,  # type: ignore[arg-type]
        sampler=PillowPixelSampler(),
        names=SpeciesNameCache(["pikachu", "raichu"]),
        **kwargs,  # type: ignore[arg-type]
    )


def _blank() -> Image.Image:
    return Image.new("RGB", (400, 800), color=(40, 40, 40))


def _with_dot(img: Image.Image) -> Image.Image:
    ImageDraw.Draw(img).rectangle((190, 200, 209, 219), fill=(255, 255, 255))
    return img


def test_text_only_screenshot() -> None:
    result = asyncio.run(analyze_screenshot(_blank(), 400, 800, context=_ctx()))
    assert result.name == "pikachu"
    assert (result.cp, result.hp) == (1200, 80)
    assert result.level is None and result.level_method is None
    assert result.iv is None
    assert validate_result(result) == {}


def test_vision_level_from_meter_dot() -> None:
    result = asyncio.run(analyze_screenshot(_with_dot(_blank()), 400, 800, context=_ctx()))
    assert result.level == 25.5
    assert result.level_method is LevelMethod.VISION


def test_native_analyzer_wins() -> None:
    native = _FakeNative(NativeResult(level=31.0, iv=IVs(atk=15, def_=14, sta=13)))
    result = asyncio.run(analyze_screenshot(_with_dot(_blank()), 400, 800, context=_ctx(native=native)))
    assert result.level == 31.0
    assert result.level_method is LevelMethod.NATIVE
    assert result.iv == IVs(atk=15, def_=14, sta=13)


def test_formula_fallback_needs_base_stats_and_ivs() -> None:
    ivs = IVs(atk=15, def_=15, sta=15)
    cp = compute_cp(PIKACHU, ivs, 20.0)
    ctx = _ctx(f"Pikachu\nCP {cp}\nHP 60/60", native=_FakeNative(NativeResult(iv=ivs)))
    result = asyncio.run(analyze_screenshot(_blank(), 400, 800, PIKACHU, context=ctx))
    assert result.level == 20.0
    assert result.level_method is LevelMethod.FORMULA
    # without base stats there is nothing to invert
    result = asyncio.run(analyze_screenshot(_blank(), 400, 800, context=ctx))
    assert result.level is None


def test_failing_collaborators_only_blank_their_fields() -> None:
    ctx = _ctx(recognizer=_FakeRecognizer(fail=True), native=_FakeNative(fail=True))
    result = asyncio.run(analyze_screenshot(_with_dot(_blank()), 400, 800, context=ctx))
    assert (result.name, result.cp, result.hp) == (None, None, None)
    assert result.level == 25.5
    assert result.level_method is LevelMethod.VISION


def test_bar_reading_can_be_disabled() -> None:
    ctx = _ctx(read_iv_bars=False)
    result = asyncio.run(analyze_screenshot(_blank(), 400, 800, context=ctx))
    assert result.iv is None
    assert result.to_dict() == {
        "name": "pikachu",
        "cp": 1200,
        "hp": 80,
        "iv": None,
        "level": None,
        "levelMethod": None,
    }


class _FakeBaseStats:
    def __init__(self, stats: BaseStats | None = None, fail: bool = False) -> None:
        self.stats = stats
        self.fail = fail
        self.asked: list[str] = []

    async def fetch_base_stats(self, species: str) -> BaseStats | None:
        self.asked.append(species)
        if self.fail:
            raise RuntimeError("pokeapi down")
        return self.stats


def test_context_defaults_use_builtin_cpm_table() -> None:
    ctx = ScanContext(recognizer=_FakeRecognizer(), sampler=PillowPixelSampler(), names=SpeciesNameCache())
    assert ctx.cpm_table is CPM_TABLE
    assert ctx.base_stats is None and ctx.native is None
    assert ctx.read_iv_bars is True


def test_base_stats_provider_feeds_formula() -> None:
    ivs = IVs(atk=15, def_=15, sta=15)
    cp = compute_cp(PIKACHU, ivs, 20.0)
    provider = _FakeBaseStats(PIKACHU)
    ctx = _ctx(f"Pikachu\nCP {cp}\nHP 60/60", native=_FakeNative(NativeResult(iv=ivs)), base_stats=provider)
    result = asyncio.run(analyze_screenshot(_blank(), 400, 800, context=ctx))
    assert provider.asked == ["pikachu"]
    assert result.level == 20.0
    assert result.level_method is LevelMethod.FORMULA


def test_known_base_stats_skip_provider_and_lookup_failure_is_contained() -> None:
    ivs = IVs(atk=15, def_=15, sta=15)
    cp = compute_cp(PIKACHU, ivs, 20.0)
    text = f"Pikachu\nCP {cp}\nHP 60/60"
    provider = _FakeBaseStats(PIKACHU)
    ctx = _ctx(text, native=_FakeNative(NativeResult(iv=ivs)), base_stats=provider)
    asyncio.run(analyze_screenshot(_blank(), 400, 800, PIKACHU, context=ctx))
    assert provider.asked == []

    broken = _ctx(text, native=_FakeNative(NativeResult(iv=ivs)), base_stats=_FakeBaseStats(fail=True))
    result = asyncio.run(analyze_screenshot(_blank(), 400, 800, context=broken))
    assert result.cp == cp
    assert result.level is None
