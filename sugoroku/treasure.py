"""
Treasure Hunt resolution: digging odds, steals and status effects.

The ``perform_*`` functions only decide an outcome from the current state and
the RNG; the ``apply_*`` functions write that outcome back to the players.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sugoroku.board import GameMap
from sugoroku.cards import CardType
from sugoroku.player import ActiveEffect, EffectType, TreasurePlayer

BASE_MINING_CHANCE = 0.25
ADJACENT_MINED_BONUS = 0.25
RARE_THRESHOLD = 0.10
TRAP_THRESHOLD = 0.20

STEAL_PASS_BY_CHANCE = 0.30
STEAL_SAME_NODE_CHANCE = 0.60
COUNTER_PASS_BY_CHANCE = 0.15
COUNTER_SAME_NODE_CHANCE = 0.30
POWER_UP_BONUS = 0.15

SEAL_TURNS = 3
PARALYSIS_TURNS = 1
DICE_EFFECT_TURNS = 1


class MiningOutcome(Enum):
    NORMAL = "normal"
    RARE = "rare"
    TRAP = "trap"
    FAIL = "fail"
    EMPTY = "empty"

    @property
    def consumes_node(self) -> bool:
        return self in (MiningOutcome.NORMAL, MiningOutcome.RARE, MiningOutcome.TRAP)


TREASURE_DELTA: Dict[MiningOutcome, int] = {
    MiningOutcome.NORMAL: 1,
    MiningOutcome.RARE: 2,
    MiningOutcome.TRAP: -1,
    MiningOutcome.FAIL: 0,
    MiningOutcome.EMPTY: 0,
}


@dataclass(frozen=True)
class MiningRecord:
    player_id: Optional[str]
    outcome: MiningOutcome


def calc_mining_chance(game_map: GameMap, node_id: int, mined_nodes: Dict[int, MiningRecord]) -> float:
    """25% base plus 25% per already-mined neighbour, capped at 100%."""
    adjacent_mined = sum(1 for n in game_map.neighbors(node_id) if n in mined_nodes)
    return min(1.0, BASE_MINING_CHANCE + ADJACENT_MINED_BONUS * adjacent_mined)


def perform_mining(
    game_map: GameMap,
    node_id: int,
    mined_nodes: Dict[int, MiningRecord],
    rng: random.Random,
) -> MiningOutcome:
    """
    Roll a dig on ``node_id``.

    Already-mined nodes are EMPTY without consuming randomness. A roll above the
    chance is FAIL; otherwise a second roll picks RARE (<0.10), TRAP (<0.20) or NORMAL.
    """
    if node_id in mined_nodes:
        return MiningOutcome.EMPTY

    chance = calc_mining_chance(game_map, node_id, mined_nodes)
    if rng.random() > chance:
        return MiningOutcome.FAIL

    sub_roll = rng.random()
    if sub_roll < RARE_THRESHOLD:
        return MiningOutcome.RARE
    if sub_roll < TRAP_THRESHOLD:
        return MiningOutcome.TRAP
    return MiningOutcome.NORMAL


def apply_mining(
    player: TreasurePlayer,
    node_id: int,
    outcome: MiningOutcome,
    mined_nodes: Dict[int, MiningRecord],
) -> int:
    """
    Credit a dig outcome. Failed digs leave the node open for anyone to retry.

    Returns:
        Actual change in the player's treasure count
    """
    if not outcome.consumes_node:
        return 0
    before = player.treasures
    player.treasures = max(0, player.treasures + TREASURE_DELTA[outcome])
    mined_nodes[node_id] = MiningRecord(player.player_id, outcome)
    return player.treasures - before


class StealKind(Enum):
    PASS_BY = "pass_by"
    SAME_NODE = "same_node"


_STEAL_RATES: Dict[StealKind, Tuple[float, float]] = {
    StealKind.PASS_BY: (STEAL_PASS_BY_CHANCE, COUNTER_PASS_BY_CHANCE),
    StealKind.SAME_NODE: (STEAL_SAME_NODE_CHANCE, COUNTER_SAME_NODE_CHANCE),
}


@dataclass
class StealResult:
    attacker_id: str
    target_id: str
    kind: StealKind
    success: bool = False
    is_counter: bool = False
    substitute_used: bool = False
    transferred: bool = False

    def to_dict(self) -> dict:
        return {
            "attacker_id": self.attacker_id,
            "target_id": self.target_id,
            "kind": self.kind.value,
            "success": self.success,
            "is_counter": self.is_counter,
            "substitute_used": self.substitute_used,
            "transferred": self.transferred,
        }


def steal_chance(kind: StealKind, attacker: TreasurePlayer) -> float:
    """Attacker success chance: base rate plus 15 points per held power-up, capped at 1."""
    base, _ = _STEAL_RATES[kind]
    return min(1.0, base + POWER_UP_BONUS * attacker.count_cards(CardType.POWER_UP))


def perform_steal(
    kind: StealKind,
    attacker: TreasurePlayer,
    target: TreasurePlayer,
    rng: random.Random,
) -> StealResult:
    """
    Decide a steal attempt.

    A held substitute blocks it outright without any roll. Otherwise the attack
    is rolled first and, only if it fails, the counter-steal is rolled.
    """
    result = StealResult(attacker.player_id, target.player_id, kind)
    if target.count_cards(CardType.SUBSTITUTE) > 0:
        result.substitute_used = True
        return result

    if rng.random() <= steal_chance(kind, attacker):
        result.success = True
        return result

    _, counter = _STEAL_RATES[kind]
    if rng.random() <= counter:
        result.is_counter = True
    return result


def apply_steal(result: StealResult, attacker: TreasurePlayer, target: TreasurePlayer) -> None:
    """Consume the substitute or move one treasure, according to ``result``."""
    if result.substitute_used:
        for card in target.cards:
            if card.card_type == CardType.SUBSTITUTE:
                target.remove_card(card.id)
                break
    elif result.success and target.treasures > 0:
        target.treasures -= 1
        attacker.treasures += 1
        result.transferred = True
    elif result.is_counter and attacker.treasures > 0:
        attacker.treasures -= 1
        target.treasures += 1
        result.transferred = True


def resolve_steal(
    kind: StealKind,
    attacker: TreasurePlayer,
    target: TreasurePlayer,
    rng: random.Random,
) -> StealResult:
    result = perform_steal(kind, attacker, target, rng)
    apply_steal(result, attacker, target)
    return result


def add_effect(player: TreasurePlayer, effect_type: EffectType, turns: int) -> None:
    player.active_effects.append(ActiveEffect(effect_type, turns))


def tick_effects(player: TreasurePlayer) -> Tuple[List[EffectType], List[EffectType]]:
    """
    Start-of-turn effect bookkeeping for the player becoming active.

    Every effect covers the affected player's next ``remaining_turns`` turns: the
    effects present now are in force for this turn, then each duration drops by
    one and effects reaching zero are removed.

    Returns:
        (effect types in force this turn, effect types that expired)
    """
    in_force = [e.effect_type for e in player.active_effects]
    kept: List[ActiveEffect] = []
    expired: List[EffectType] = []
    for effect in player.active_effects:
        effect.remaining_turns -= 1
        if effect.remaining_turns > 0:
            kept.append(effect)
        else:
            expired.append(effect.effect_type)
    player.active_effects = kept
    return in_force, expired


def remove_effect(player: TreasurePlayer, effect_type: EffectType) -> None:
    """Drop the first effect of a type (consumed dice modifiers)."""
    for i, effect in enumerate(player.active_effects):
        if effect.effect_type == effect_type:
            del player.active_effects[i]
            return


def leader(players: List[TreasurePlayer], exclude_id: Optional[str] = None) -> Optional[TreasurePlayer]:
    """Player with the most treasures (first in seat order on ties)."""
    candidates = [p for p in players if p.player_id != exclude_id]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.treasures)
