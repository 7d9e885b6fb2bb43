from __future__ import annotations

import itertools

import pytest

from mining_sim import primitives, techniques
from mining_sim.coords import Direction
from mining_sim.errors import InvalidParameter
from mining_sim.results import AggregateResult


def branch_counts(length):
    return 2 * length, 6 * length + 2


def corridor_counts(spacing):
    if spacing == 2:
        return 16, 32
    return 24 + 2 * (spacing - 3), 48 + 6 * (spacing - 3)


def expected_branch_mining(pair_count, length, spacing):
    bx, be = branch_counts(length)
    cx, ce = corridor_counts(spacing)
    return 2 * pair_count * bx + (pair_count - 1) * cx, 2 * pair_count * be + (pair_count - 1) * ce


@pytest.fixture()
def call_log(monkeypatch):
    calls = {"branch": [], "expand_corridor": []}
    real_branch = techniques.branch
    real_expand = techniques.expand_corridor

    def spy_branch(lookup, length, direction, coord):
        calls["branch"].append((direction, coord))
        return real_branch(lookup, length, direction, coord)

    def spy_expand(lookup, direction, spacing, coord):
        calls["expand_corridor"].append(coord)
        return real_expand(lookup, direction, spacing, coord)

    monkeypatch.setattr(techniques, "branch", spy_branch)
    monkeypatch.setattr(techniques, "expand_corridor", spy_expand)
    return calls


@pytest.mark.parametrize("length", [1, 2, 5, 17])
def test_branch_body_and_cap_are_disjoint(lookup, length):
    res = techniques.branch(lookup, length, Direction.NORTH, (0, 64, -1))
    assert len(res.positions) == len(set(res.positions)) == 4 * length + 2
    assert (res.excavated, res.exposed) == branch_counts(length)
    assert res.positions[-2:] == [(0, 64, -1 - length), (0, 65, -1 - length)]


@pytest.mark.parametrize("spacing", range(3, 9))
def test_expand_corridor_slices_add_fixed_counts(monkeypatch, lookup, spacing):
    monkeypatch.setattr(primitives, "shaft", lambda *args: AggregateResult())
    res = techniques.expand_corridor(lookup, Direction.EAST, spacing, (0, 64, 0))
    assert (res.excavated, res.exposed) == (24, 48)
    assert len(res.blocks) == 12
    assert {x for x, _, _ in res.positions} == {0, 1, spacing - 1}


@pytest.mark.parametrize("spacing", range(2, 9))
def test_expand_corridor_covers_span_once(lookup, spacing):
    res = techniques.expand_corridor(lookup, Direction.EAST, spacing, (0, 64, 0))
    expected = {(x, y, 0) for x in range(spacing) for y in (63, 64, 65, 66)}
    assert len(res.positions) == len(expected)
    assert set(res.positions) == expected
    assert (res.excavated, res.exposed) == corridor_counts(spacing)


def test_expand_corridor_spacing_two_samples_shared_slice_once(lookup):
    res = techniques.expand_corridor(lookup, Direction.SOUTH, 2, (4, 64, 4))
    assert (res.excavated, res.exposed) == (16, 32)
    assert sorted(res.positions) == sorted((4, y, z) for z in (4, 5) for y in (63, 64, 65, 66))


def test_single_pair_lays_two_branches_and_no_corridor(lookup, call_log):
    techniques.branch_mining(lookup, Direction.EAST, (0, 64, 0), 1, 5, 4)
    assert call_log["expand_corridor"] == []
    assert call_log["branch"] == [(Direction.NORTH, (0, 64, -1)), (Direction.SOUTH, (0, 64, 1))]


def test_three_pairs_lay_six_branches_and_two_corridor_spans(lookup, call_log):
    res = techniques.branch_mining(lookup, Direction.EAST, (0, 64, 0), 3, 5, 4)
    assert call_log["expand_corridor"] == [(0, 64, 0), (4, 64, 0)]
    assert [coord for _, coord in call_log["branch"]] == [
        (0, 64, -1),
        (0, 64, 1),
        (4, 64, -1),
        (4, 64, 1),
        (8, 64, -1),
        (8, 64, 1),
    ]
    assert (res.excavated, res.exposed) == expected_branch_mining(3, 5, 4) == (112, 300)


def test_golden_single_pair_is_twice_one_branch(shard, lookup):
    shard.set_block(0, 64, -3, "minecraft:diamond_ore")
    res = techniques.branch_mining(lookup, Direction.EAST, (0, 64, 0), 1, 5, 4)
    one = techniques.branch(lookup, 5, Direction.NORTH, (0, 64, -1))
    assert (res.excavated, res.exposed) == (2 * one.excavated, 2 * one.exposed) == (20, 64)
    assert res.tally()["minecraft:diamond_ore"] == 1


@pytest.mark.parametrize(
    "direction,pair_count,length,spacing",
    list(itertools.product([Direction.EAST, Direction.NORTH], [1, 2, 4], [1, 3], [2, 3, 4, 6])),
)
def test_composition_never_samples_a_coordinate_twice(lookup, direction, pair_count, length, spacing):
    res = techniques.branch_mining(lookup, direction, (0, 64, 0), pair_count, length, spacing)
    assert len(res.positions) == len(set(res.positions))
    assert (res.excavated, res.exposed) == expected_branch_mining(pair_count, length, spacing)


def test_spacing_below_two_fails_before_any_lookup(shard, lookup):
    with pytest.raises(InvalidParameter, match="spacing must be >= 2"):
        techniques.branch_mining(lookup, Direction.EAST, (0, 64, 0), 3, 5, 1)
    assert shard.decode_calls == []
    assert lookup.lookups == 0


@pytest.mark.parametrize("pair_count,length", [(0, 5), (-1, 5), (2, 0), (2, -3)])
def test_non_positive_counts_are_rejected(shard, lookup, pair_count, length):
    with pytest.raises(InvalidParameter):
        techniques.branch_mining(lookup, Direction.EAST, (0, 64, 0), pair_count, length, 4)
    assert shard.decode_calls == []


def test_out_of_range_aborts_the_composition(shard, lookup):
    from mining_sim.errors import OutOfRange

    with pytest.raises(OutOfRange):
        techniques.branch_mining(lookup, Direction.EAST, (0, 64, 0), 1, 40, 4)
