from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from PIL import Image

from pokescan.perception.arc import ArcBounds, resolve_arc_bounds
from pokescan.perception.blobs import DEFAULT_VISION_CONFIG, Blob, VisionConfig, detect_blobs
from pokescan.services.protocols import PixelSampler
from pokescan.state.types import NO_VISION_LEVEL, Confidence, VisionLevel
from pokescan.stats.cpm import METER_MAX_LEVEL, MIN_LEVEL

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> float:
    return math.floor(value + 0.5)


def score_blob(blob: Blob, image_width: int, cfg: VisionConfig = DEFAULT_VISION_CONFIG) -> float | None:
    """Score a blob as the meter dot, or None when it fails the dot filters."""
    w, h = blob.width, blob.height
    if not (cfg.dot_min_size <= w <= cfg.dot_max_size and cfg.dot_min_size <= h <= cfg.dot_max_size):
        return None
    aspect = w / h
    if aspect < cfg.dot_min_aspect or aspect > cfg.dot_max_aspect:
        return None
    # UI chrome hugs the screen edges
    margin = image_width * cfg.edge_margin
    if blob.min_x < margin or blob.max_x > image_width - margin:
        return None
    aspect_score = 1 - abs(1 - aspect)
    return blob.brightness * 200 + aspect_score * 500


def select_dot(blobs: Sequence[Blob], image_width: int, cfg: VisionConfig = DEFAULT_VISION_CONFIG) -> Blob | None:
    best: Blob | None = None
    best_score = -math.inf
    for blob in blobs:
        score = score_blob(blob, image_width, cfg)
        if score is None:
            continue
        logger.debug("dot candidate %dx%d at (%d,%d) score=%.0f", blob.width, blob.height, blob.center_x, blob.center_y, score)
        if score > best_score:
            best_score = score
            best = blob
    return best


def level_from_position(center_x: float, bounds: ArcBounds) -> float | None:
    span = bounds.right - bounds.left
    if span <= 0:
        return None
    ratio = max(0.0, min(1.0, (center_x - bounds.left) / span))
    raw = MIN_LEVEL + ratio * (METER_MAX_LEVEL - MIN_LEVEL)
    # the game only has half levels
    return round_half_up(raw * 2) / 2


def dot_level(dot: Blob | None, bounds: ArcBounds | None) -> VisionLevel:
    if dot is None or bounds is None:
        return NO_VISION_LEVEL
    level = level_from_position(dot.center_x, bounds)
    if level is None:
        return NO_VISION_LEVEL
    return VisionLevel(level=level, confidence=Confidence.HIGH)


def vision_level(blobs: Sequence[Blob], bounds: ArcBounds | None, image_width: int, cfg: VisionConfig = DEFAULT_VISION_CONFIG) -> VisionLevel:
    return dot_level(select_dot(blobs, image_width, cfg), bounds)


async def detect_level_from_image(
    sampler: PixelSampler,
    image: Image.Image,
    width: int,
    height: int,
    cfg: VisionConfig = DEFAULT_VISION_CONFIG,
) -> VisionLevel:
    """Read the level from the dot on the appraisal arc. Never raises."""
    try:
        blobs = await detect_blobs(sampler, image, width, height, cfg)
        dot = select_dot(blobs, width, cfg)
        if dot is None:
            logger.info("no level meter dot found among %d blobs", len(blobs))
            return NO_VISION_LEVEL
        start_y, end_y = cfg.band(height)
        bounds = await resolve_arc_bounds(sampler, image, start_y, end_y, width, cfg)
        result = dot_level(dot, bounds)
    except Exception:
        logger.exception("vision level detection failed")
        return NO_VISION_LEVEL
    logger.info("vision level=%s confidence=%s", result.level, result.confidence.value)
    return result
