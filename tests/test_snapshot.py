"""
Tests for public snapshot serialization and the game factory.
"""

import json

import pytest

from sugoroku import GameMode, create_game, serialize_snapshot
from sugoroku.game import ClassicGame
from sugoroku.snapshot import serialize_map
from sugoroku.treasure_game import TreasureGame


def test_classic_snapshot_structure(two_humans, timing):
    game = create_game("classic", {"seed": 42}, two_humans, timing=timing)

    snap = serialize_snapshot(game)

    assert snap["mode"] == "classic"
    assert snap["phase"] == "playing"
    assert snap["current_player_id"] == "player_0"
    assert snap["total_rounds"] == 20
    assert len(snap["players"]) == 2
    p0 = snap["players"][0]
    assert {"player_id", "name", "color", "money", "total_assets", "owned_property_ids"}.issubset(p0)
    assert p0["distance_to_destination"] is not None
    json.dumps(snap)


def test_classic_snapshot_distance(line_map, two_humans, timing):
    game = ClassicGame(game_map=line_map, timing=timing)
    game.start_game({}, two_humans)
    game.destination_node_id = 3

    snap = serialize_snapshot(game)

    assert [p["distance_to_destination"] for p in snap["players"]] == [3, 3]


def test_treasure_snapshot_structure(two_humans, timing):
    game = create_game(GameMode.TREASURE, {"seed": 7, "treasure_map_id": "ring_of_fire"}, two_humans, timing=timing)

    snap = serialize_snapshot(game)

    assert snap["mode"] == "treasure"
    assert snap["map_id"] == "ring_of_fire"
    assert len(snap["players"]) == 4
    assert snap["players"][3]["personality"] is not None
    assert snap["players"][0]["personality"] is None
    assert snap["mined_nodes"] == {}
    assert "rng" not in snap and "steps" not in snap
    json.dumps(snap)


def test_lobby_snapshot(timing):
    snap = serialize_snapshot(TreasureGame(timing=timing))

    assert snap["phase"] == "lobby"
    assert snap["players"] == []
    assert snap["current_player_id"] is None
    assert snap["map_id"] is None


def test_map_serialization(line_map):
    data = serialize_map(line_map)

    assert data["start_node_id"] == 0
    assert [n["id"] for n in data["nodes"]] == [0, 1, 2, 3]
    assert data["nodes"][1]["adjacency"] == [2, 0]
    assert data["nodes"][1]["properties"][0] == {"id": "p1", "name": "Shop 1", "price": 100, "base_income": 10}


def test_create_game_rejects_unknown_mode(two_humans):
    with pytest.raises(ValueError):
        create_game("chess", {}, two_humans)
