from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Mapping

from pokescan.state.types import BaseStats, IVs
from pokescan.stats.cpm import CPM_TABLE

logger = logging.getLogger(__name__)

MIN_CP = 10


def _cp_for(atk: int, def_: int, sta: int, cpm: float) -> int:
    computed = math.floor(atk * math.sqrt(def_) * math.sqrt(sta) * cpm * cpm / 10)
    return max(MIN_CP, computed)


def compute_cp(base_stats: BaseStats, ivs: IVs, level: float, table: Mapping[float, float] = CPM_TABLE) -> int:
    """CP = floor(Attack * sqrt(Defense) * sqrt(Stamina) * CPM^2 / 10), never below 10."""
    cpm = table[float(level)]
    return _cp_for(base_stats.atk + ivs.atk, base_stats.def_ + ivs.def_, base_stats.sta + ivs.sta, cpm)


def compute_level(
    observed_cp: int | None,
    base_stats: BaseStats | None,
    ivs: IVs | None,
    table: Mapping[float, float] = CPM_TABLE,
) -> float | None:
    """Invert the CP formula by brute force over the CPM table.

    Returns the level whose predicted CP is closest to ``observed_cp``. Levels
    are tried in ascending order and only a strictly smaller difference
    replaces the current best, so the lowest level wins ties. Returns ``None``
    when any input is missing.
    """
    if not observed_cp or not base_stats or not ivs:
        return None
    if table is CPM_TABLE:
        return _compute_level_cached(int(observed_cp), base_stats, ivs)
    return _search(int(observed_cp), base_stats, ivs, table)


@lru_cache(maxsize=1024)
def _compute_level_cached(observed_cp: int, base_stats: BaseStats, ivs: IVs) -> float | None:
    return _search(observed_cp, base_stats, ivs, CPM_TABLE)


def _search(observed_cp: int, base_stats: BaseStats, ivs: IVs, table: Mapping[float, float]) -> float | None:
    atk = base_stats.atk + ivs.atk
    def_ = base_stats.def_ + ivs.def_
    sta = base_stats.sta + ivs.sta

    best: float | None = None
    min_diff = math.inf
    for level in sorted(table):
        diff = abs(_cp_for(atk, def_, sta, table[level]) - observed_cp)
        if diff < min_diff:
            min_diff = diff
            best = level

    logger.debug("formula level cp=%s best=%s diff=%s", observed_cp, best, min_diff)
    return best
