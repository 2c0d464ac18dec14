"""
Tests for treasure digging odds and outcomes.
"""

import pytest

from sugoroku.board import GameMap, NodeSpec, NodeType
from sugoroku.config import PlayerColor
from sugoroku.player import TreasurePlayer
from sugoroku.treasure import (
    MiningOutcome,
    MiningRecord,
    apply_mining,
    calc_mining_chance,
    perform_mining,
)


@pytest.fixture
def digger():
    return TreasurePlayer("player_0", "Digger", PlayerColor.RED, True, 2)


def test_chance_grows_with_mined_neighbours(treasure_line_map):
    assert calc_mining_chance(treasure_line_map, 2, {}) == 0.25
    mined = {1: MiningRecord("x", MiningOutcome.NORMAL)}
    assert calc_mining_chance(treasure_line_map, 2, mined) == 0.5
    mined[3] = MiningRecord("x", MiningOutcome.RARE)
    assert calc_mining_chance(treasure_line_map, 2, mined) == 0.75


def test_chance_is_capped():
    hub = GameMap(
        [NodeSpec(0, "Hub", NodeType.PROPERTY, next=[1, 2, 3, 4])]
        + [NodeSpec(i, f"Spoke {i}", NodeType.PROPERTY) for i in range(1, 5)],
        start_node_id=0,
    )
    three = {n: MiningRecord("x", MiningOutcome.NORMAL) for n in (1, 2, 3)}
    four = {n: MiningRecord("x", MiningOutcome.NORMAL) for n in (1, 2, 3, 4)}

    assert calc_mining_chance(hub, 0, three) == 1.0
    assert calc_mining_chance(hub, 0, four) == 1.0


def test_failed_dig_leaves_node_open(treasure_line_map, digger, scripted):
    """Chance 0.25 with a 0.30 roll fails and the node stays diggable."""
    mined = {}
    rng = scripted([0.30])

    outcome = perform_mining(treasure_line_map, 2, mined, rng)
    delta = apply_mining(digger, 2, outcome, mined)

    assert outcome == MiningOutcome.FAIL
    assert delta == 0
    assert 2 not in mined
    assert digger.treasures == 0


@pytest.mark.parametrize(
    "sub_roll, expected",
    [
        (0.05, MiningOutcome.RARE),
        (0.15, MiningOutcome.TRAP),
        (0.50, MiningOutcome.NORMAL),
    ],
)
def test_sub_roll_thresholds(treasure_line_map, scripted, sub_roll, expected):
    rng = scripted([0.10, sub_roll])
    assert perform_mining(treasure_line_map, 2, {}, rng) == expected


def test_mined_node_is_empty_without_rolling(treasure_line_map, scripted):
    rng = scripted([0.0])
    mined = {2: MiningRecord("x", MiningOutcome.NORMAL)}

    assert perform_mining(treasure_line_map, 2, mined, rng) == MiningOutcome.EMPTY
    assert list(rng.values) == [0.0]


def test_apply_success_records_node(digger):
    mined = {}

    assert apply_mining(digger, 2, MiningOutcome.RARE, mined) == 2
    assert digger.treasures == 2
    assert mined[2] == MiningRecord("player_0", MiningOutcome.RARE)


def test_trap_never_goes_negative(digger):
    mined = {}

    delta = apply_mining(digger, 2, MiningOutcome.TRAP, mined)

    assert delta == 0
    assert digger.treasures == 0
    assert 2 in mined


def test_trap_takes_one(digger):
    digger.treasures = 3
    assert apply_mining(digger, 2, MiningOutcome.TRAP, {}) == -1
    assert digger.treasures == 2
