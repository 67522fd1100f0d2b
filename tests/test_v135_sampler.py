from __future__ import annotations

import asyncio
import warnings

from PIL import Image

from pokescan.services.sampler import PillowPixelSampler, sample_row


def _gradient() -> Image.Image:
    img = Image.new("RGB", (10, 4))
    for x in range(10):
        for y in range(4):
            img.putpixel((x, y), (x * 10, y, 0))
    return img


def test_full_span_returns_every_pixel() -> None:
    row = sample_row(_gradient(), 2, 0, 10, 10)
    assert row == [(x * 10, 2, 0) for x in range(10)]


def test_fewer_samples_pick_evenly_spaced_columns() -> None:
    assert sample_row(_gradient(), 0, 0, 10, 5) == [(0, 0, 0), (20, 0, 0), (40, 0, 0), (60, 0, 0), (80, 0, 0)]
    assert sample_row(_gradient(), 0, 4, 100, 3) == [(40, 0, 0), (60, 0, 0), (80, 0, 0)]


def test_out_of_range_rows_are_empty() -> None:
    img = _gradient()
    assert sample_row(img, -1, 0, 10, 10) == []
    assert sample_row(img, 4, 0, 10, 10) == []
    assert sample_row(img, 0, 20, 10, 10) == []
    assert sample_row(img, 0, 0, 0, 10) == []


def test_non_rgb_images_are_converted() -> None:
    rgba = Image.new("RGBA", (6, 2), color=(200, 100, 50, 128))
    sampler = PillowPixelSampler()
    first = asyncio.run(sampler.sample_scan_line(rgba, 1, 0, 6, 6))
    again = asyncio.run(sampler.sample_scan_line(rgba, 0, 0, 6, 3))
    assert first == [(200, 100, 50)] * 6
    assert again == [(200, 100, 50)] * 3


def test_sampling_emits_no_deprecation_warnings() -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert len(sample_row(_gradient(), 1, 0, 10, 10)) == 10
        assert len(sample_row(_gradient(), 1, 0, 10, 4)) == 4
