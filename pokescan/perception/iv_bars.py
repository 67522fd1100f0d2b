"""Appraisal bar reading.

The appraisal panel shows one horizontal bar per stat (attack, defense, HP),
each split into three segments and filled in orange up to the IV. A band of
rows through each bar is sampled, the track is located from colour edges and
the right-most filled pixel gives the fill ratio.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from PIL import Image

from pokescan.config import Settings, settings
from pokescan.services.protocols import PixelSampler
from pokescan.state.types import RGB, IVs

logger = logging.getLogger(__name__)

MAX_IV = 15


@dataclass(frozen=True)
class IVBarConfig:
    # panel, as fractions of the image
    panel_top: float = 0.55
    panel_height: float = 0.22
    # bars, as fractions of the panel height
    bar_tops: tuple[float, float, float] = (0.00, 0.36, 0.72)
    bar_height: float = 0.28
    band_height: float = 0.01
    sample_count: int = 400
    edge_threshold: int = 30
    edge_group_px: int = 5
    min_bar_width: int = 80

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> IVBarConfig:
        s = s or settings
        return cls(
            sample_count=s.iv_sample_count,
            edge_threshold=s.iv_edge_threshold,
            min_bar_width=s.iv_min_bar_width,
        )


DEFAULT_IV_BAR_CONFIG = IVBarConfig()


def bar_scan_rows(height: int, cfg: IVBarConfig = DEFAULT_IV_BAR_CONFIG) -> tuple[float, float, float]:
    panel_y = height * cfg.panel_top
    panel_h = height * cfg.panel_height
    bar_h = panel_h * cfg.bar_height
    atk, def_, sta = (panel_y + panel_h * top + bar_h * 0.5 for top in cfg.bar_tops)
    return atk, def_, sta


def median_row(lines: Sequence[Sequence[RGB]]) -> list[RGB]:
    """Per-column median of several sampled rows."""
    lines = [ln for ln in lines if ln]
    if not lines:
        return []
    if len(lines) == 1:
        return list(lines[0])
    consensus: list[RGB] = []
    mid = len(lines) // 2
    for i in range(len(lines[0])):
        column = [ln[i] if i < len(ln) else (0, 0, 0) for ln in lines]
        r = sorted(p[0] for p in column)[mid]
        g = sorted(p[1] for p in column)[mid]
        b = sorted(p[2] for p in column)[mid]
        consensus.append((r, g, b))
    return consensus


async def sample_scan_band(
    sampler: PixelSampler,
    image: Image.Image,
    center_y: float,
    width: int,
    height: int,
    cfg: IVBarConfig = DEFAULT_IV_BAR_CONFIG,
) -> list[RGB]:
    half = max(1, int(height * cfg.band_height / 2 + 0.5))
    lines: list[list[RGB]] = []
    for offset in (-half, 0, half):
        y = int(center_y + offset + 0.5)
        pixels = await sampler.sample_scan_line(image, y, 0, width, cfg.sample_count)
        if pixels:
            lines.append(pixels)
    return median_row(lines)


def detect_bar_bounds(pixels: Sequence[RGB], cfg: IVBarConfig = DEFAULT_IV_BAR_CONFIG) -> tuple[int, int] | None:
    if len(pixels) < 50:
        return None
    edges: list[int] = []
    for i in range(1, len(pixels)):
        (r1, g1, b1), (r2, g2, b2) = pixels[i - 1][:3], pixels[i][:3]
        if abs(r2 - r1) + abs(g2 - g1) + abs(b2 - b1) > cfg.edge_threshold:
            edges.append(i - 1)
    if len(edges) < 2:
        return None

    # edges within a few pixels are the same transition
    groups: list[int] = []
    current = [edges[0]]
    for e in edges[1:]:
        if e - current[-1] <= cfg.edge_group_px:
            current.append(e)
        else:
            groups.append(sum(current) // len(current))
            current = [e]
    groups.append(sum(current) // len(current))
    if len(groups) < 2:
        return None

    start, end = groups[0], groups[-1]
    if end - start < cfg.min_bar_width:
        return None
    return start, end


def _chroma(p: RGB) -> int:
    r, g, b = p[0], p[1], p[2]
    return max(abs(r - g), abs(g - b), abs(r - b))


def iv_from_bar(pixels: Sequence[RGB]) -> int:
    """Convert the pixels of one bar track into an IV in [0, 15]."""
    n = len(pixels)
    if n < 30:
        return 0

    # the stat icon on the left takes a larger share of short (phone) bars
    if n > 600:
        trim_ratio = 0.07
    elif n > 400:
        t = (n - 400) / 200
        trim_ratio = 0.125 - t * (0.125 - 0.07)
    else:
        trim_ratio = 0.125
    left_trim = int(n * trim_ratio + 0.5)

    chroma = [_chroma(p) for p in pixels]
    mean = sum(chroma) / n
    stddev = math.sqrt(sum((c - mean) ** 2 for c in chroma) / n)
    threshold = max(25.0, min(80.0, 25.0 + stddev * 1.5))

    last_filled = 0
    for i in range(n - 1, -1, -1):
        r, b = pixels[i][0], pixels[i][2]
        if chroma[i] > threshold and r > b + 30:
            last_filled = i
            break

    effective_total = max(1, n - left_trim)
    edge_buffer = max(1, int(effective_total * 0.015))
    filled = max(0, last_filled - left_trim - edge_buffer)
    fill = filled / effective_total

    if fill < 0.03:
        iv = 0
    elif fill > 0.97:
        iv = MAX_IV
    else:
        # low bars round down hard, mid/high bars generously
        bias = 0.05 if fill < 0.40 else 0.35
        iv = math.floor(fill * MAX_IV + bias)
    return max(0, min(MAX_IV, iv))


async def read_iv_bars(
    sampler: PixelSampler,
    image: Image.Image,
    width: int,
    height: int,
    bar_rows: tuple[float, float, float] | None = None,
    cfg: IVBarConfig = DEFAULT_IV_BAR_CONFIG,
) -> IVs | None:
    """Read attack/defense/HP IVs, or None if any bar could not be located."""
    rows = bar_rows or bar_scan_rows(height, cfg)
    values: list[int] = []
    try:
        for stat, y in zip(("atk", "def", "sta"), rows):
            band = await sample_scan_band(sampler, image, y, width, height, cfg)
            bounds = detect_bar_bounds(band, cfg)
            if bounds is None:
                logger.info("iv bar %s not detected at y=%.0f", stat, y)
                return None
            start, end = bounds
            values.append(iv_from_bar(band[start:end]))
    except Exception:
        logger.exception("iv bar sampling failed")
        return None
    ivs = IVs(atk=values[0], def_=values[1], sta=values[2])
    logger.info("iv bars atk=%d def=%d sta=%d (%d%%)", ivs.atk, ivs.def_, ivs.sta, ivs.percent)
    return ivs
