from __future__ import annotations

import logging

from pokescan.state.types import Confidence, IVs, LevelMethod, NativeResult, OCRResult, VisionLevel

logger = logging.getLogger(__name__)


def choose_level(
    vision: VisionLevel | None,
    formula_level: float | None,
    native: NativeResult | None,
) -> tuple[float | None, LevelMethod | None]:
    """native > vision (high confidence only) > formula > nothing."""
    if native is not None and native.level is not None:
        return native.level, LevelMethod.NATIVE
    if vision is not None and vision.level is not None and vision.confidence is Confidence.HIGH:
        return vision.level, LevelMethod.VISION
    if formula_level is not None:
        return formula_level, LevelMethod.FORMULA
    return None, None


def choose_ivs(native: NativeResult | None, bar_ivs: IVs | None) -> IVs | None:
    if native is not None and native.iv is not None:
        return native.iv
    return bar_ivs


def arbitrate(
    text: OCRResult,
    vision: VisionLevel | None = None,
    formula_level: float | None = None,
    native: NativeResult | None = None,
    bar_ivs: IVs | None = None,
) -> OCRResult:
    """Compose one result; name, CP and HP always come from the text extractor."""
    level, method = choose_level(vision, formula_level, native)
    if vision is not None and vision.level is not None and formula_level is not None and vision.level != formula_level:
        logger.info("vision level %s disagrees with formula level %s", vision.level, formula_level)
    return text.evolve(iv=choose_ivs(native, bar_ivs), level=level, level_method=method)
