from __future__ import annotations

import pytest

from pokescan.state.types import BaseStats, IVs
from pokescan.stats.cpm import CPM_TABLE, MAX_LEVEL, MIN_LEVEL
from pokescan.stats.level_calc import compute_cp, compute_level

MEWTWO = BaseStats(atk=300, def_=182, sta=214)
PERFECT = IVs(atk=15, def_=15, sta=15)


def test_cpm_table_covers_every_half_level() -> None:
    assert len(CPM_TABLE) == 101
    assert min(CPM_TABLE) == MIN_LEVEL == 1.0
    assert max(CPM_TABLE) == MAX_LEVEL == 51.0
    assert CPM_TABLE[40.0] == pytest.approx(0.7903)
    values = [CPM_TABLE[k] for k in sorted(CPM_TABLE)]
    assert values == sorted(values)
    with pytest.raises(TypeError):
        CPM_TABLE[52.0] = 1.0  # type: ignore[index]


def test_known_cp_inverts_to_level_40() -> None:
    assert compute_cp(MEWTWO, PERFECT, 40.0) == 4178
    assert compute_level(4178, MEWTWO, PERFECT) == 40.0


def test_round_trip_over_table() -> None:
    ivs = IVs(atk=10, def_=12, sta=7)
    for level in sorted(CPM_TABLE):
        cp = compute_cp(MEWTWO, ivs, level)
        found = compute_level(cp, MEWTWO, ivs)
        assert found is not None
        assert found <= level
        assert compute_cp(MEWTWO, ivs, found) == cp


def test_level_never_decreases_as_cp_grows() -> None:
    levels = [compute_level(cp, MEWTWO, PERFECT) for cp in range(100, 4500, 37)]
    assert all(a is not None for a in levels)
    assert levels == sorted(levels)  # type: ignore[type-var]


def test_missing_inputs_give_none() -> None:
    assert compute_level(None, MEWTWO, PERFECT) is None
    assert compute_level(0, MEWTWO, PERFECT) is None
    assert compute_level(1000, None, PERFECT) is None
    assert compute_level(1000, MEWTWO, None) is None


def test_cp_floor_tie_goes_to_lowest_level() -> None:
    weak = BaseStats(atk=1, def_=1, sta=1)
    zero = IVs(atk=0, def_=0, sta=0)
    assert compute_cp(weak, zero, 51.0) == 10
    assert compute_level(10, weak, zero) == 1.0


def test_custom_table_is_searched() -> None:
    table = {1.0: 0.5, 2.0: 0.75}
    base = BaseStats(atk=100, def_=100, sta=100)
    zero = IVs(atk=0, def_=0, sta=0)
    # 100 * 10 * 10 * cpm^2 / 10 -> 250 and 562
    assert compute_cp(base, zero, 2.0, table) == 562
    assert compute_level(500, base, zero, table) == 2.0
    assert compute_level(350, base, zero, table) == 1.0
    with pytest.raises(KeyError):
        compute_cp(base, zero, 51.5)
