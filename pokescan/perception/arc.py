from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from PIL import Image

from pokescan.perception.blobs import DEFAULT_VISION_CONFIG, VisionConfig
from pokescan.services.protocols import PixelSampler
from pokescan.state.types import RGB

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArcBounds:
    left: float
    right: float
    measured: bool = True

    @property
    def width(self) -> float:
        return self.right - self.left


def heuristic_arc_bounds(width: int, cfg: VisionConfig = DEFAULT_VISION_CONFIG) -> ArcBounds:
    """Arc centred on the screen spanning a fixed share of its width."""
    estimated = width * cfg.arc_width_ratio
    center = width / 2
    return ArcBounds(left=center - estimated / 2, right=center + estimated / 2, measured=False)


def estimate_row_arc_ends(pixels: Sequence[RGB], cfg: VisionConfig = DEFAULT_VISION_CONFIG) -> ArcBounds | None:
    # Without real edge detection the ends are assumed symmetric around the row centre
    if not pixels:
        return None
    n = len(pixels)
    center = n // 2
    half = n * cfg.arc_width_ratio / 2
    return ArcBounds(left=float(int(center - half)), right=float(int(center + half)))


async def scan_for_arc_bounds(
    sampler: PixelSampler,
    image: Image.Image,
    min_y: int,
    max_y: int,
    width: int,
    cfg: VisionConfig = DEFAULT_VISION_CONFIG,
) -> ArcBounds | None:
    """Look for the widest arc row scanning upward from the bottom of the band.

    The arc ends sit at the bottom of its bounding box, so the scan stops once
    rows get narrower than ``arc_shrink_ratio`` of the best seen. Returns None
    when nothing at least ``arc_min_width_ratio`` of the image wide was found.
    """
    best: ArcBounds | None = None
    best_width = 0.0
    y = max_y
    while y > min_y:
        pixels = await sampler.sample_scan_line(image, y, 0, width, width)
        bounds = estimate_row_arc_ends(pixels, cfg)
        if bounds is not None:
            if bounds.width > best_width:
                best_width = bounds.width
                best = bounds
            elif bounds.width < best_width * cfg.arc_shrink_ratio:
                break
        y -= cfg.arc_row_step

    if best is not None and best_width > width * cfg.arc_min_width_ratio:
        return best
    return None


async def resolve_arc_bounds(
    sampler: PixelSampler,
    image: Image.Image,
    min_y: int,
    max_y: int,
    width: int,
    cfg: VisionConfig = DEFAULT_VISION_CONFIG,
) -> ArcBounds:
    """Measured bounds when possible, the fixed-ratio heuristic otherwise."""
    try:
        bounds = await scan_for_arc_bounds(sampler, image, min_y, max_y, width, cfg)
    except Exception as e:
        logger.warning("arc bounds scan failed: %s", e)
        bounds = None
    if bounds is None:
        bounds = heuristic_arc_bounds(width, cfg)
        logger.info("arc bounds not detected, using heuristic %.1f-%.1f", bounds.left, bounds.right)
    else:
        logger.debug("arc bounds detected %.1f-%.1f", bounds.left, bounds.right)
    return bounds
