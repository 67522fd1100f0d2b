"""Near-white blob detection over sampled scanlines.

Rows are sampled every ``row_step`` pixels inside a horizontal band of the
screenshot. Each row is split into runs of near-white pixels (segments) and
segments on neighbouring sampled rows that overlap horizontally are grouped
into blobs. The level meter's position dot shows up as one small, square-ish,
very bright blob.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass

from PIL import Image

from pokescan.config import Settings, settings
from pokescan.services.protocols import PixelSampler
from pokescan.state.types import RGB

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisionConfig:
    band_top: float = 0.10
    band_bottom: float = 0.45
    row_step: int = 5
    parallel_rows: bool = False
    lum_threshold: float = 210.0
    sat_threshold: float = 25.0
    min_run_width: int = 3
    gap_factor: float = 1.5
    overlap_tolerance: int = 2
    dot_min_size: int = 10
    dot_max_size: int = 45
    dot_min_aspect: float = 0.6
    dot_max_aspect: float = 1.6
    edge_margin: float = 0.05
    arc_row_step: int = 10
    arc_width_ratio: float = 0.85
    arc_min_width_ratio: float = 0.5
    arc_shrink_ratio: float = 0.9

    def __post_init__(self) -> None:
        # the row scans only terminate with a positive step
        if self.row_step <= 0 or self.arc_row_step <= 0:
            raise ValueError(f"row steps must be positive: {self.row_step}, {self.arc_row_step}")

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> VisionConfig:
        s = s or settings
        return cls(
            band_top=s.vision_band_top,
            band_bottom=s.vision_band_bottom,
            row_step=s.vision_row_step,
            parallel_rows=s.vision_parallel_rows,
            lum_threshold=s.vision_lum_threshold,
            sat_threshold=s.vision_sat_threshold,
            min_run_width=s.vision_min_run_width,
            gap_factor=s.vision_gap_factor,
            overlap_tolerance=s.vision_overlap_tolerance,
            dot_min_size=s.vision_dot_min_size,
            dot_max_size=s.vision_dot_max_size,
            dot_min_aspect=s.vision_dot_min_aspect,
            dot_max_aspect=s.vision_dot_max_aspect,
            edge_margin=s.vision_edge_margin,
            arc_row_step=s.arc_row_step,
            arc_width_ratio=s.arc_width_ratio,
            arc_min_width_ratio=s.arc_min_width_ratio,
            arc_shrink_ratio=s.arc_shrink_ratio,
        )

    def band(self, height: int) -> tuple[int, int]:
        return int(height * self.band_top), int(height * self.band_bottom)

    @property
    def max_row_gap(self) -> float:
        # allows skipping one sampled row
        return self.row_step * self.gap_factor


DEFAULT_VISION_CONFIG = VisionConfig()


@dataclass(frozen=True)
class Segment:
    y: int
    x_start: int
    x_end: int  # exclusive
    score: float  # average luminance

    @property
    def width(self) -> int:
        return self.x_end - self.x_start


@dataclass(frozen=True)
class Blob:
    segments: tuple[Segment, ...]
    min_x: int
    max_x: int
    min_y: int
    max_y: int
    center_x: int
    center_y: int
    total_score: float
    count: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    @property
    def brightness(self) -> float:
        return self.total_score / (self.count or 1)


def luminance(r: int, g: int, b: int) -> float:
    return 0.299 * r + 0.587 * g + 0.114 * b


def is_white(pixel: RGB, cfg: VisionConfig = DEFAULT_VISION_CONFIG) -> bool:
    r, g, b = pixel[0], pixel[1], pixel[2]
    sat = max(r, g, b) - min(r, g, b)
    return luminance(r, g, b) > cfg.lum_threshold and sat < cfg.sat_threshold


def find_white_segments(pixels: Sequence[RGB], y: int, cfg: VisionConfig = DEFAULT_VISION_CONFIG) -> list[Segment]:
    segments: list[Segment] = []
    run_start = -1
    run_sum = 0.0

    def close(end: int) -> None:
        width = end - run_start
        if width >= cfg.min_run_width:
            segments.append(Segment(y=y, x_start=run_start, x_end=end, score=run_sum / width))

    for i, px in enumerate(pixels):
        if is_white(px, cfg):
            if run_start == -1:
                run_start = i
            run_sum += luminance(px[0], px[1], px[2])
        elif run_start != -1:
            close(i)
            run_start = -1
            run_sum = 0.0
    if run_start != -1:
        close(len(pixels))
    return segments


def _overlaps(a: Segment, b: Segment, tolerance: int) -> bool:
    return not (b.x_end < a.x_start - tolerance or b.x_start > a.x_end + tolerance)


def cluster_segments(segments: Sequence[Segment], cfg: VisionConfig = DEFAULT_VISION_CONFIG) -> list[Blob]:
    """Group segments into blobs by breadth-first growth.

    Segments are addressed by index into a sorted copy, so the input is left
    untouched and arrival order does not matter.
    """
    ordered = sorted(segments, key=lambda s: (s.y, s.x_start))
    used = [False] * len(ordered)
    step = cfg.row_step
    max_gap = cfg.max_row_gap
    blobs: list[Blob] = []

    for start, seed in enumerate(ordered):
        if used[start]:
            continue
        used[start] = True
        members = [seed]
        min_x, max_x = seed.x_start, seed.x_end
        min_y, max_y = seed.y, seed.y + step
        total = seed.score

        queue: deque[Segment] = deque([seed])
        while queue:
            current = queue.popleft()
            for j, other in enumerate(ordered):
                if used[j]:
                    continue
                dy = abs(other.y - current.y)
                if 0 < dy <= max_gap and _overlaps(current, other, cfg.overlap_tolerance):
                    used[j] = True
                    members.append(other)
                    queue.append(other)
                    min_x = min(min_x, other.x_start)
                    max_x = max(max_x, other.x_end)
                    min_y = min(min_y, other.y)
                    max_y = max(max_y, other.y + step)
                    total += other.score

        blobs.append(
            Blob(
                segments=tuple(members),
                min_x=min_x,
                max_x=max_x,
                min_y=min_y,
                max_y=max_y,
                center_x=(min_x + max_x) // 2,
                center_y=(min_y + max_y) // 2,
                total_score=total,
                count=len(members),
            )
        )
    return blobs


async def scan_segments(
    sampler: PixelSampler,
    image: Image.Image,
    width: int,
    start_y: int,
    end_y: int,
    cfg: VisionConfig = DEFAULT_VISION_CONFIG,
) -> list[Segment]:
    rows = list(range(start_y, end_y, cfg.row_step))
    if cfg.parallel_rows:
        samples = await asyncio.gather(*(sampler.sample_scan_line(image, y, 0, width, width) for y in rows))
    else:
        samples = []
        for y in rows:
            samples.append(await sampler.sample_scan_line(image, y, 0, width, width))
    segments: list[Segment] = []
    for y, pixels in zip(rows, samples):
        segments.extend(find_white_segments(pixels, y, cfg))
    return segments


async def detect_blobs(
    sampler: PixelSampler,
    image: Image.Image,
    width: int,
    height: int,
    cfg: VisionConfig = DEFAULT_VISION_CONFIG,
) -> list[Blob]:
    start_y, end_y = cfg.band(height)
    segments = await scan_segments(sampler, image, width, start_y, end_y, cfg)
    logger.debug("found %d white segments in rows %d-%d", len(segments), start_y, end_y)
    if not segments:
        return []
    blobs = cluster_segments(segments, cfg)
    logger.debug("clustered into %d blobs", len(blobs))
    return blobs
