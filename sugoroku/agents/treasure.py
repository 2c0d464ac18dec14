"""CPU policy for Treasure Hunt games, driven by a per-CPU personality."""

import random
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from sugoroku.agents.base import CpuAgent
from sugoroku.board import GameMap, NodeType
from sugoroku.cards import Card, CardType
from sugoroku.player import Personality, TreasurePlayer
from sugoroku.routes import Route
from sugoroku.treasure import MiningRecord, leader

if TYPE_CHECKING:
    from sugoroku.treasure_game import TreasureGame

BASE_CARD_USE_CHANCE = 0.1
CARD_LOVER_CARD_USE_CHANCE = 0.7

UNMINED_LANDING_SCORE = 10
ADJACENT_MINED_SCORE = 2
CARD_NODE_SCORE = 10
LAND_ON_OPPONENT_SCORE = 15
PASS_OPPONENT_SCORE = 5
LEADER_MULTIPLIER = 2.5

MINER_WEIGHT = 2.5
CARD_LOVER_WEIGHT = 2.0
STALKER_WEIGHT = 2.5
NOISE = 2.0


def generate_personality(rng: random.Random) -> Personality:
    """
    Draw a personality vector.

    Three uniforms are raised to one shared power in [1, 3] so that most CPUs
    lean towards one style, then normalized to sum to 1.
    """
    raw = [rng.random() for _ in range(3)]
    power = rng.uniform(1, 3)
    skewed = [value ** power for value in raw]
    total = sum(skewed)
    if total <= 0:
        return Personality(1 / 3, 1 / 3, 1 / 3)
    return Personality(skewed[0] / total, skewed[1] / total, skewed[2] / total)


def card_use_chance(personality: Personality) -> float:
    return BASE_CARD_USE_CHANCE + CARD_LOVER_CARD_USE_CHANCE * personality.card_lover


def choose_card_play(
    player: TreasurePlayer,
    players: List[TreasurePlayer],
    rng: random.Random,
) -> Optional[Tuple[Card, Optional[str]]]:
    """
    Roll whether to play a held active card before the dice and pick its target.

    Hostile cards go to the opponent with the most treasures; the ten-step card
    is always played on oneself.

    Returns:
        (card, target player id) or None to keep the hand
    """
    playable = player.active_cards()
    if not playable or player.personality is None:
        return None
    if rng.random() >= card_use_chance(player.personality):
        return None

    target = leader(players, exclude_id=player.player_id)
    card = rng.choice(playable)
    if card.card_type == CardType.DICE_10:
        return card, player.player_id
    if target is None:
        return None
    return card, target.player_id


def score_route(
    route: Route,
    player: TreasurePlayer,
    players: List[TreasurePlayer],
    game_map: GameMap,
    mined_nodes: Dict[int, MiningRecord],
    rng: random.Random,
) -> float:
    """Weighted desirability of a route for a CPU with a personality."""
    personality = player.personality or Personality(1 / 3, 1 / 3, 1 / 3)
    landing = game_map.node(route.landing_node_id)

    mining = 0
    if landing.node_type == NodeType.PROPERTY and landing.id not in mined_nodes:
        mining += UNMINED_LANDING_SCORE
    mining += ADJACENT_MINED_SCORE * sum(1 for n in landing.adjacency if n in mined_nodes)

    card = CARD_NODE_SCORE if landing.node_type == NodeType.BONUS else 0

    top = leader(players)
    intercept = 0.0
    for opponent in players:
        if opponent.player_id == player.player_id or opponent.treasures <= 0:
            continue
        if opponent.position == route.landing_node_id:
            value = LAND_ON_OPPONENT_SCORE
        elif opponent.position in route.path:
            value = PASS_OPPONENT_SCORE
        else:
            continue
        if top is not None and opponent.player_id == top.player_id:
            value *= LEADER_MULTIPLIER
        intercept += value

    return (
        mining * MINER_WEIGHT * personality.miner
        + card * CARD_LOVER_WEIGHT * personality.card_lover
        + intercept * STALKER_WEIGHT * personality.stalker
        + rng.random() * NOISE
    )


class TreasureCpu(CpuAgent):
    """Treasure Hunt CPU player."""

    def choose_route(self, game: "TreasureGame", routes: List[Route]) -> Route:
        player = game.get_player(self.player_id)
        best = routes[0]
        best_score = None
        for route in routes:
            score = score_route(route, player, game.players, game.map, game.mined_nodes, self.rng)
            if best_score is None or score > best_score:
                best, best_score = route, score
        return best

    def choose_card(self, game: "TreasureGame") -> Optional[Tuple[Card, Optional[str]]]:
        return choose_card_play(game.get_player(self.player_id), game.players, self.rng)
