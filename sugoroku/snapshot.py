"""
Public snapshot serialization of both game modes.

Produces a JSON-ready view of the session for the UI layer: players, the
active decision point and the pending per-turn fields. Step closures and the
RNG are never exposed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from sugoroku.board import GameMap
from sugoroku.game import ClassicGame
from sugoroku.routes import all_distances_from
from sugoroku.treasure_game import TreasureGame


def serialize_map(game_map: GameMap) -> Dict[str, Any]:
    """Static map description: nodes with adjacency and properties."""
    return {
        "map_id": game_map.map_id,
        "name": game_map.name,
        "start_node_id": game_map.start_node_id,
        "nodes": [
            {
                "id": node.id,
                "name": node.name,
                "type": node.node_type.value,
                "adjacency": list(node.adjacency),
                "group_id": node.group_id,
                "amount": node.amount,
                "properties": [
                    {"id": p.id, "name": p.name, "price": p.price, "base_income": p.base_income}
                    for p in node.properties
                ],
            }
            for node in game_map.nodes.values()
        ],
    }


def serialize_classic(game: ClassicGame) -> Dict[str, Any]:
    """Serialize a ClassicGame into a public, stable JSON dict.

    Distances to the active destination are computed for every player with a
    single BFS from the destination.
    """
    distances: Optional[Dict[int, int]] = None
    if game.destination_node_id is not None:
        distances = all_distances_from(game.map, game.destination_node_id)

    players: List[Dict[str, Any]] = []
    for p in game.players:
        players.append(
            {
                "player_id": p.player_id,
                "name": p.name,
                "color": p.color.value,
                "is_human": p.is_human,
                "position": p.position,
                "money": p.money,
                "total_assets": p.total_assets,
                "laps_completed": p.laps_completed,
                "owned_property_ids": sorted(p.owned_property_ids),
                "distance_to_destination": distances.get(p.position) if distances is not None else None,
            }
        )

    return {
        "mode": "classic",
        "phase": game.phase.value,
        "round": game.round,
        "total_rounds": game.settings.total_rounds if game.settings else None,
        "cycle_length": game.settings.cycle_length if game.settings else None,
        "current_player_id": game.current_player.player_id if game.players else None,
        "players": players,
        "destination_node_id": game.destination_node_id,
        "destination_reach_count": game.destination_reach_count,
        "dice_value": game.dice_value,
        "is_rolling": game.is_rolling,
        "routes": [r.to_dict() for r in game.routes],
        "moving_path": list(game.moving_path),
        "current_node_action": game.current_node_action.to_dict() if game.current_node_action else None,
        "last_settlement": game.last_settlement.to_dict() if game.last_settlement else None,
        "settlement_count": len(game.settlements),
        "winner_id": game.winner_id,
        "rankings": [p.player_id for p in game.rankings],
        "event_count": len(game.event_log.events),
    }


def serialize_treasure(game: TreasureGame) -> Dict[str, Any]:
    """Serialize a TreasureGame into a public, stable JSON dict."""
    players: List[Dict[str, Any]] = []
    for p in game.players:
        players.append(
            {
                "player_id": p.player_id,
                "name": p.name,
                "color": p.color.value,
                "is_human": p.is_human,
                "position": p.position,
                "treasures": p.treasures,
                "cards": [c.to_dict() for c in p.cards],
                "active_effects": [
                    {"type": e.effect_type.value, "remaining_turns": e.remaining_turns} for e in p.active_effects
                ],
                "personality": p.personality.to_dict() if p.personality else None,
            }
        )

    return {
        "mode": "treasure",
        "phase": game.phase.value,
        "round": game.round,
        "total_rounds": game.settings.total_rounds if game.settings else None,
        "target_treasures": game.settings.target_treasures if game.settings else None,
        "map_id": game.map.map_id if game.map else None,
        "current_player_id": game.current_player.player_id if game.players else None,
        "players": players,
        "mined_nodes": {
            str(node_id): {"player_id": rec.player_id, "outcome": rec.outcome.value}
            for node_id, rec in sorted(game.mined_nodes.items())
        },
        "dice_value": game.dice_value,
        "is_rolling": game.is_rolling,
        "routes": [r.to_dict() for r in game.routes],
        "moving_path": list(game.moving_path),
        "current_steal": game.current_steal.to_dict() if game.current_steal else None,
        "current_mining": game.current_mining.to_dict() if game.current_mining else None,
        "current_card": game.current_card.to_dict() if game.current_card else None,
        "card_selection": game.card_selection.to_dict() if game.card_selection else None,
        "winner_id": game.winner_id,
        "end_reason": game.end_reason,
        "rankings": [p.player_id for p in game.rankings],
        "event_count": len(game.event_log.events),
    }


def serialize_snapshot(game: Union[ClassicGame, TreasureGame]) -> Dict[str, Any]:
    if isinstance(game, TreasureGame):
        return serialize_treasure(game)
    return serialize_classic(game)
