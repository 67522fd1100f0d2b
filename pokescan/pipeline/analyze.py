from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Mapping

from PIL import Image

from pokescan.config import Settings, settings
from pokescan.perception.blobs import VisionConfig
from pokescan.perception.iv_bars import IVBarConfig, read_iv_bars
from pokescan.perception.level_meter import detect_level_from_image
from pokescan.perception.parser import extract_text_fields
from pokescan.pipeline.arbiter import arbitrate, choose_ivs
from pokescan.services.ocr import EnsembleTextRecognizer
from pokescan.services.protocols import (
    BaseStatsProvider,
    NativeAnalyzer,
    PixelSampler,
    SpeciesNameValidator,
    TextRecognizer,
)
from pokescan.services.sampler import PillowPixelSampler
from pokescan.services.species import SpeciesNameCache, load_names_file
from pokescan.state.types import EMPTY_RESULT, BaseStats, IVs, NativeResult, OCRResult
from pokescan.stats.cpm import CPM_TABLE
from pokescan.stats.level_calc import compute_level

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanContext:
    """Collaborators and read-only configuration for one or many scans."""

    recognizer: TextRecognizer
    sampler: PixelSampler
    names: SpeciesNameValidator
    native: NativeAnalyzer | None = None
    base_stats: BaseStatsProvider | None = None
    vision: VisionConfig = field(default_factory=VisionConfig)
    iv_bars: IVBarConfig = field(default_factory=IVBarConfig)
    read_iv_bars: bool = True
    # mappingproxy is unhashable, so dataclasses reject it as a plain default
    cpm_table: Mapping[float, float] = field(default_factory=lambda: CPM_TABLE)


def default_context(s: Settings | None = None, names: SpeciesNameValidator | None = None) -> ScanContext:
    s = s or settings
    if names is None:
        cache = SpeciesNameCache()
        if s.species_names_file:
            cache.load(load_names_file(s.species_names_file))
        names = cache
    return ScanContext(
        recognizer=EnsembleTextRecognizer(timeout_s=s.ocr_timeout_s),
        sampler=PillowPixelSampler(),
        names=names,
        vision=VisionConfig.from_settings(s),
        iv_bars=IVBarConfig.from_settings(s),
        read_iv_bars=s.iv_bars_enabled,
    )


async def _native_result(ctx: ScanContext, image: Image.Image) -> NativeResult | None:
    if ctx.native is None:
        return None
    try:
        return await ctx.native.analyze(image)
    except Exception:
        logger.exception("native analyzer failed")
        return None


async def _bar_ivs(ctx: ScanContext, image: Image.Image, width: int, height: int) -> IVs | None:
    if not ctx.read_iv_bars:
        return None
    return await read_iv_bars(ctx.sampler, image, width, height, cfg=ctx.iv_bars)


async def _lookup_base_stats(ctx: ScanContext, name: str | None) -> BaseStats | None:
    if ctx.base_stats is None or not name:
        return None
    try:
        return await ctx.base_stats.fetch_base_stats(name)
    except Exception as e:
        logger.warning("base stats lookup for %s failed: %s", name, e)
        return None


async def analyze_screenshot(
    image: Image.Image,
    width: int,
    height: int,
    known_base_stats: BaseStats | None = None,
    *,
    context: ScanContext | None = None,
) -> OCRResult:
    """Analyse one appraisal screenshot into name, CP, HP, IVs and level.

    Text, meter, bars and the optional native analyser run independently; any
    of them failing only blanks its own fields. Never raises for collaborator
    failures. Without ``known_base_stats`` the context's base-stats provider,
    if any, is asked for the recognised species before the CP formula runs.
    """
    ctx = context or default_context()
    try:
        text, vision, bar_ivs, native = await asyncio.gather(
            extract_text_fields(image, ctx.recognizer, ctx.names),
            detect_level_from_image(ctx.sampler, image, width, height, ctx.vision),
            _bar_ivs(ctx, image, width, height),
            _native_result(ctx, image),
        )
    except Exception:
        logger.exception("screenshot analysis failed")
        return EMPTY_RESULT

    ivs = choose_ivs(native, bar_ivs)
    formula_level = None
    if text.cp and ivs:
        base = known_base_stats or await _lookup_base_stats(ctx, text.name)
        if base:
            formula_level = compute_level(text.cp, base, ivs, ctx.cpm_table)

    result = arbitrate(text, vision, formula_level, native, bar_ivs)
    logger.info(
        "scan result name=%s cp=%s hp=%s level=%s method=%s",
        result.name,
        result.cp,
        result.hp,
        result.level,
        result.level_method.value if result.level_method else None,
    )
    return result
