from __future__ import annotations

from pokescan.perception.blobs import VisionConfig, find_white_segments, is_white

WHITE = (250, 250, 250)
DARK = (40, 40, 40)


def _row(width: int, runs: list[tuple[int, int]], fill: tuple[int, int, int] = WHITE) -> list[tuple[int, int, int]]:
    row = [DARK] * width
    for start, end in runs:
        for x in range(start, end):
            row[x] = fill
    return row


def test_white_predicate_needs_brightness_and_low_saturation() -> None:
    assert is_white((255, 255, 255))
    assert is_white((220, 215, 230))
    assert not is_white((200, 200, 200))  # too dim
    assert not is_white((255, 255, 200))  # too saturated


def test_single_run_yields_one_segment() -> None:
    segs = find_white_segments(_row(40, [(10, 20)]), y=100)
    assert len(segs) == 1
    s = segs[0]
    assert (s.y, s.x_start, s.x_end) == (100, 10, 20)
    assert abs(s.score - 250.0) < 1e-6


def test_narrow_run_is_noise() -> None:
    assert find_white_segments(_row(40, [(10, 12)]), y=0) == []


def test_run_reaching_end_of_row_is_closed() -> None:
    segs = find_white_segments(_row(30, [(25, 30)]), y=5)
    assert [(s.x_start, s.x_end) for s in segs] == [(25, 30)]


def test_multiple_runs_and_configurable_thresholds() -> None:
    row = _row(60, [(5, 9), (30, 40)], fill=(205, 205, 205))
    assert find_white_segments(row, y=0) == []
    relaxed = VisionConfig(lum_threshold=200.0)
    segs = find_white_segments(row, y=0, cfg=relaxed)
    assert [(s.x_start, s.x_end) for s in segs] == [(5, 9), (30, 40)]
