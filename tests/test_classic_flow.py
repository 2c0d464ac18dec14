"""
Tests for the Classic turn state machine.
"""

import random

import pytest

from sugoroku.board import GameMap, NodeSpec, NodeType, Property
from sugoroku.economy import total_assets
from sugoroku.events import EventType
from sugoroku.exceptions import ValidationError
from sugoroku.game import ClassicGame, GamePhase


def make_game(game_map, roster, scripted, timing, ints=(), settings=None):
    game = ClassicGame(game_map=game_map, rng=scripted(ints=ints), timing=timing)
    assert game.start_game(settings or {}, roster)
    return game


def roll(game):
    assert game.roll_dice()
    game.steps.run_until_idle()


@pytest.fixture
def fork_map():
    """0 -> 1, then 1 forks to 2 or 3."""
    return GameMap(
        [
            NodeSpec(0, "Start", NodeType.START, next=[1]),
            NodeSpec(1, "Fork", NodeType.PROPERTY, next=[2, 3], properties=[Property("f", "F", 100, 10)]),
            NodeSpec(2, "Left", NodeType.PROPERTY, properties=[Property("l", "L", 100, 10)]),
            NodeSpec(3, "Right", NodeType.PROPERTY, properties=[Property("r", "R", 100, 10)]),
        ],
        start_node_id=0,
    )


@pytest.fixture
def event_map():
    """0 -> bonus(+50) -> penalty(-300)."""
    return GameMap(
        [
            NodeSpec(0, "Start", NodeType.START, next=[1]),
            NodeSpec(1, "Festival", NodeType.BONUS, next=[2], amount=50),
            NodeSpec(2, "Toll", NodeType.PENALTY, amount=-300),
        ],
        start_node_id=0,
    )


def test_start_game_sets_up_players(line_map, two_humans, scripted, timing):
    game = make_game(line_map, two_humans, scripted, timing)

    assert game.phase == GamePhase.PLAYING
    assert [p.player_id for p in game.players] == ["player_0", "player_1"]
    assert all(p.money == 1000 and p.position == 0 for p in game.players)
    assert game.destination_node_id in (1, 2, 3)
    assert game.event_log.events[0].event_type == EventType.GAME_START
    assert game.start_game({}, two_humans) is False


def test_roster_validation(line_map, two_humans, timing):
    game = ClassicGame(game_map=line_map, timing=timing)

    with pytest.raises(ValidationError):
        game.start_game({}, two_humans[:1])
    with pytest.raises(ValidationError):
        game.start_game({}, [two_humans[0], two_humans[0]])
    with pytest.raises(ValidationError):
        game.start_game({"total_rounds": 0}, two_humans)
    assert game.phase == GamePhase.LOBBY


def test_single_route_skips_branch_selection(line_map, two_humans, scripted, timing):
    """A roll of 3 down a straight chain lands on the third node with no route choice."""
    game = make_game(line_map, two_humans, scripted, timing, ints=[3])
    game.destination_node_id = None

    roll(game)

    assert game.players[0].position == 3
    assert game.dice_value == 3
    assert game.phase == GamePhase.PROPERTY_ACTION
    assert not game.event_log.of_type(EventType.ROUTE_SELECTED)


def test_phase_guard_rejects_out_of_phase_actions(line_map, two_humans, scripted, timing):
    game = make_game(line_map, two_humans, scripted, timing, ints=[3])
    game.destination_node_id = None
    generation = game.generation

    assert game.buy_property() is False
    assert game.skip_buy() is False
    assert game.select_route("route-0") is False
    assert game.acknowledge_action() is False
    assert game.generation == generation

    assert game.roll_dice()
    assert game.roll_dice() is False

    # Dice revealed, token still walking
    game.steps.run_next()
    assert game.dice_value == 3
    assert game.roll_dice() is False


def test_branch_selection(fork_map, two_humans, scripted, timing):
    game = make_game(fork_map, two_humans, scripted, timing, ints=[2])
    game.destination_node_id = None

    roll(game)

    assert game.phase == GamePhase.BRANCH_SELECTION
    assert [r.path for r in game.routes] == [[1, 2], [1, 3]]
    assert game.select_route("route-9") is False
    assert game.select_route("route-1")
    game.steps.run_until_idle()

    assert game.players[0].position == 3
    assert game.routes == []
    assert game.phase == GamePhase.PROPERTY_ACTION


def test_buy_then_skip(line_map, two_humans, scripted, timing):
    game = make_game(line_map, two_humans, scripted, timing, ints=[3])
    game.destination_node_id = None
    roll(game)

    assert game.buy_property()
    player = game.players[0]
    assert player.owns("p3")
    assert player.money == 900
    assert player.total_assets == 1000
    assert game.current_node_action.can_buy is False
    assert game.buy_property() is False
    assert game.phase == GamePhase.PROPERTY_ACTION

    assert game.skip_buy()
    assert game.current_player_index == 1
    assert game.phase == GamePhase.PLAYING


def test_unaffordable_purchase_is_rejected(line_map, two_humans, scripted, timing):
    game = make_game(line_map, two_humans, scripted, timing, ints=[3])
    game.destination_node_id = None
    game.players[0].money = 50
    roll(game)

    assert game.buy_property() is False
    assert game.buy_property("nope") is False
    assert game.players[0].money == 50


def test_rent_shortfall_pays_what_is_left(line_map, two_humans, scripted, timing):
    game = make_game(line_map, two_humans, scripted, timing, ints=[3])
    game.destination_node_id = None
    payer, owner = game.players
    owner.owned_property_ids.add("p3")
    payer.money = 4

    roll(game)

    assert payer.money == 0
    assert owner.money == 1004
    rent = game.event_log.of_type(EventType.RENT_PAYMENT)[0]
    assert rent.details["amount"] == 10
    assert rent.details["paid"] == 4
    assert game.phase == GamePhase.PROPERTY_ACTION
    assert game.acknowledge_action()
    assert game.current_player_index == 1


def test_bonus_and_penalty(event_map, two_humans, scripted, timing):
    game = make_game(event_map, two_humans, scripted, timing, ints=[1, 2])
    assert game.destination_node_id is None

    roll(game)
    assert game.players[0].money == 1050
    assert game.phase == GamePhase.PROPERTY_ACTION
    assert game.current_node_action.node_id == 1
    assert game.acknowledge_action()

    game.players[1].money = 100
    roll(game)
    assert game.players[1].money == 0
    assert game.event_log.of_type(EventType.PENALTY)[0].details["paid"] == 100


def test_human_cannot_act_on_cpu_modal(event_map, scripted, timing):
    roster = [{"name": "Akira", "color": "red"}, {"name": "Alice", "color": "blue", "is_human": True}]
    game = make_game(event_map, roster, scripted, timing, ints=[1])
    game.destination_node_id = None
    while game.phase != GamePhase.PROPERTY_ACTION:
        game.steps.run_next()
    assert game.current_player_index == 0

    assert game.skip_buy() is False
    assert game.buy_property() is False
    assert game.acknowledge_action() is False
    assert game.phase == GamePhase.PROPERTY_ACTION

    game.steps.run_next()

    assert game.phase == GamePhase.PLAYING
    assert game.current_player_index == 1


def test_destination_reached(line_map, two_humans, scripted, timing):
    game = make_game(line_map, two_humans, scripted, timing, ints=[2])
    game.destination_node_id = 2

    roll(game)

    assert game.phase == GamePhase.DESTINATION_REACHED
    assert game.players[0].money == 1500
    assert game.next_destination_node_id in (1, 3)

    assert game.acknowledge_action()
    assert game.destination_reach_count == 1
    assert game.destination_node_id in (1, 3)
    assert game.next_destination_node_id is None
    # Then the property on the destination is offered
    assert game.phase == GamePhase.PROPERTY_ACTION


def test_settlement_fires_at_cycle_boundary(line_map, two_humans, scripted, timing):
    """Finishing round 4 with a cycle of 4 settles before anyone can roll."""
    game = make_game(line_map, two_humans, scripted, timing, ints=[3])
    game.destination_node_id = None
    game.players[0].owned_property_ids.add("p1")
    game.round = 4
    game.current_player_index = 1

    roll(game)
    assert game.skip_buy()

    assert game.phase == GamePhase.SETTLEMENT
    assert game.round == 5
    assert game.last_settlement.cycle_number == 1
    assert game.last_settlement.round == 4
    assert game.players[0].money == 1010
    assert game.roll_dice() is False

    assert game.acknowledge_action()
    assert game.phase == GamePhase.PLAYING
    assert game.current_player_index == 0


def test_game_over_after_last_round(line_map, two_humans, scripted, timing):
    game = make_game(line_map, two_humans, scripted, timing, ints=[3, 3], settings={"total_rounds": 1})
    game.destination_node_id = None

    roll(game)
    assert game.buy_property()
    assert game.skip_buy()

    roll(game)
    assert game.phase == GamePhase.PROPERTY_ACTION
    assert game.acknowledge_action()

    assert game.phase == GamePhase.GAME_OVER
    assert game.winner_id == "player_0"
    assert [p.player_id for p in game.rankings] == ["player_0", "player_1"]
    assert len(game.steps) == 0
    assert game.roll_dice() is False


def test_final_settlement_then_game_over(line_map, two_humans, scripted, timing):
    game = make_game(
        line_map,
        two_humans,
        scripted,
        timing,
        ints=[3, 1],
        settings={"total_rounds": 1, "cycle_length": 1},
    )
    game.destination_node_id = None

    roll(game)
    assert game.buy_property()
    assert game.skip_buy()
    roll(game)
    assert game.skip_buy()

    assert game.phase == GamePhase.SETTLEMENT
    assert game.acknowledge_action()
    assert game.phase == GamePhase.GAME_OVER


def test_reset_returns_to_lobby(line_map, two_humans, scripted, timing):
    game = make_game(line_map, two_humans, scripted, timing, ints=[3])
    game.roll_dice()

    assert game.reset_game()

    assert game.phase == GamePhase.LOBBY
    assert game.players == []
    assert game.event_log.events == []
    assert len(game.steps) == 0
    assert game.start_game({}, two_humans)


def test_all_cpu_game_keeps_assets_consistent(four_cpus, timing):
    game = ClassicGame(rng=random.Random(), timing=timing)
    game.start_game({"seed": 5, "total_rounds": 8}, four_cpus)

    game.steps.run_until_idle()

    assert game.phase == GamePhase.GAME_OVER
    assert len(game.settlements) == 2
    owned = [pid for p in game.players for pid in p.owned_property_ids]
    assert len(owned) == len(set(owned))
    for player in game.players:
        assert player.money >= 0
        assert player.total_assets == total_assets(player, game.map)
    assert game.rankings[0].total_assets == max(p.total_assets for p in game.players)


def test_seeded_cpu_games_are_reproducible(four_cpus, timing):
    def play():
        game = ClassicGame(timing=timing)
        game.start_game({"seed": 21, "total_rounds": 4}, four_cpus)
        game.steps.run_until_idle()
        return [(p.money, sorted(p.owned_property_ids)) for p in game.players]

    assert play() == play()
