"""
Tests for Classic mode rent, group bonus, settlement and asset valuation.
"""

import pytest

from sugoroku.board import GameMap, NodeSpec, NodeType, Property
from sugoroku.config import PlayerColor
from sugoroku.economy import (
    is_group_complete,
    refresh_assets,
    rent_owed,
    round_half_up,
    settle_income,
    total_assets,
    unowned_properties,
)
from sugoroku.player import ClassicPlayer


@pytest.fixture
def market_map():
    """Two nodes of group "east"; node 1 holds two properties with odd incomes."""
    return GameMap(
        [
            NodeSpec(0, "Start", NodeType.START, next=[1]),
            NodeSpec(
                1,
                "Market",
                NodeType.PROPERTY,
                next=[2],
                properties=[Property("m1", "Stall", 50, 5), Property("m2", "Shop", 70, 7)],
                group_id="east",
            ),
            NodeSpec(
                2,
                "Harbor",
                NodeType.PROPERTY,
                next=[3],
                properties=[Property("h1", "Dock", 200, 20)],
                group_id="east",
            ),
            NodeSpec(3, "Festival", NodeType.BONUS, amount=100),
        ],
        start_node_id=0,
    )


def _player(pid, money=1000, owned=()):
    player = ClassicPlayer(pid, pid.title(), PlayerColor.RED, True, 0, money)
    player.owned_property_ids.update(owned)
    return player


def test_round_half_up():
    assert round_half_up(7.5) == 8
    assert round_half_up(10.5) == 11
    assert round_half_up(7.4) == 7
    assert round_half_up(30) == 30


def test_group_completion(market_map):
    assert is_group_complete({"m1", "m2", "h1"}, "east", market_map)
    assert not is_group_complete({"m1", "m2"}, "east", market_map)
    assert not is_group_complete({"m1", "m2", "h1"}, None, market_map)
    assert not is_group_complete({"m1"}, "west", market_map)


def test_rent_without_group_bonus(market_map):
    owner = _player("owner", owned={"m1", "m2"})
    visitor = _player("visitor")

    action = rent_owed(market_map.node(1), visitor, [owner, visitor], market_map)

    assert not action.can_buy
    assert len(action.rent_payments) == 1
    assert action.rent_payments[0].to_player_id == "owner"
    assert action.rent_payments[0].amount == 12


def test_rent_rounds_each_property(market_map):
    """Group bonus is rounded per property: 7.5 -> 8, 10.5 -> 11, total 19."""
    owner = _player("owner", owned={"m1", "m2", "h1"})
    visitor = _player("visitor")

    action = rent_owed(market_map.node(1), visitor, [owner, visitor], market_map)

    assert action.rent_payments[0].amount == 19


def test_rent_split_between_owners_and_buyable(market_map):
    owner_a = _player("a", owned={"m1"})
    owner_b = _player("b", owned={"m2"})
    visitor = _player("visitor")

    action = rent_owed(market_map.node(1), visitor, [owner_a, owner_b, visitor], market_map)

    assert {(p.to_player_id, p.amount) for p in action.rent_payments} == {("a", 5), ("b", 7)}
    assert not action.can_buy


def test_self_owned_property_is_free(market_map):
    player = _player("me", owned={"m1"})

    action = rent_owed(market_map.node(1), player, [player], market_map)

    assert action.rent_payments == []
    assert action.can_buy
    assert [p.id for p in unowned_properties(market_map.node(1), [player])] == ["m2"]


def test_non_property_node_has_no_action(market_map):
    player = _player("me")
    assert rent_owed(market_map.node(3), player, [player], market_map) is None
    assert rent_owed(market_map.node(0), player, [player], market_map) is None


def test_settlement_income_breakdown(market_map):
    holder = _player("holder", owned={"m1", "m2", "h1"})
    partial = _player("partial", owned=set())

    record = settle_income([holder, partial], market_map, round_number=5, cycle_number=1)

    assert record.income_for("holder") == 8 + 11 + 30
    assert record.income_for("partial") == 0
    lines = {line.property_id: line.income for line in record.incomes[0].breakdown}
    assert lines == {"h1": 30, "m1": 8, "m2": 11}
    assert record.to_dict()["cycle_number"] == 1


def test_total_assets(market_map):
    player = _player("me", money=300, owned={"m1", "h1"})

    assert total_assets(player, market_map) == 550
    refresh_assets(player, market_map)
    assert player.total_assets == 550
