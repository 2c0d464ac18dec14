"""
Treasure Hunt game engine and turn state machine.

A move is walked in chunks: the token stops on every cell holding an opponent
with treasure, each such opponent is raided in turn, and the walk resumes with
the rest of the path. Results (steals, digs, drawn cards) are shown for a fixed
time and then resolve on their own.
"""

import logging
import random
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Optional, Tuple, Union

from sugoroku.agents.treasure import TreasureCpu, generate_personality
from sugoroku.board import GameMap, NodeType
from sugoroku.cards import DICE_CARDS, TARGETED_CARDS, Card, CardType, draw_card
from sugoroku.config import PLAYER_COLORS, LobbyPlayer, TreasureSettings, parse_model, parse_roster
from sugoroku.events import EventLog, EventType
from sugoroku.maps import get_treasure_map
from sugoroku.player import EffectType, TreasurePlayer
from sugoroku.routes import Route, enumerate_routes
from sugoroku.scheduler import StepQueue
from sugoroku.settings import EngineSettings, get_engine_settings
from sugoroku.treasure import (
    DICE_EFFECT_TURNS,
    PARALYSIS_TURNS,
    SEAL_TURNS,
    MiningOutcome,
    MiningRecord,
    StealKind,
    StealResult,
    add_effect,
    apply_mining,
    perform_mining,
    remove_effect,
    resolve_steal,
    tick_effects,
)

logger = logging.getLogger(__name__)

DICE_SIDES = 6
TREASURE_MIN_PLAYERS = 1
TREASURE_TABLE_SIZE = 4
CPU_NAME_PREFIX = "CPU Raider"

_CARD_EFFECTS: Dict[CardType, Tuple[EffectType, int]] = {
    CardType.SEAL: (EffectType.SEALED, SEAL_TURNS),
    CardType.PARALYSIS: (EffectType.PARALYZED, PARALYSIS_TURNS),
    CardType.DICE_1: (EffectType.DICE_1, DICE_EFFECT_TURNS),
    CardType.DICE_10: (EffectType.DICE_10, DICE_EFFECT_TURNS),
}
_FORCED_DICE: List[Tuple[EffectType, int]] = [
    (EffectType.DICE_1, 1),
    (EffectType.DICE_10, 10),
]


class TreasurePhase(Enum):
    """Phases of a Treasure Hunt game."""

    LOBBY = "lobby"
    PLAYING = "playing"
    ROUTE_SELECTION = "route_selection"
    STEAL_RESULT = "steal_result"
    MINING_RESULT = "mining_result"
    CARD_RESULT = "card_result"
    CARD_TARGET_SELECTION = "card_target_selection"
    GAME_OVER = "game_over"


@dataclass
class MiningResult:
    node_id: int
    outcome: MiningOutcome
    delta: int

    def to_dict(self) -> dict:
        return {"node_id": self.node_id, "outcome": self.outcome.value, "delta": self.delta}


@dataclass
class CardTargetSelection:
    """A card waiting for its user to pick a node."""

    card_id: str
    kind: str
    target_player_id: str

    def to_dict(self) -> dict:
        return {"card_id": self.card_id, "kind": self.kind, "target_player_id": self.target_player_id}


def pad_roster(roster: List[LobbyPlayer], size: int = TREASURE_TABLE_SIZE) -> List[LobbyPlayer]:
    """Fill the table with CPU raiders in the unused palette colors."""
    padded = list(roster)
    used = {p.color for p in padded}
    free_colors = [c for c in PLAYER_COLORS if c not in used]
    number = 1
    while len(padded) < size and free_colors:
        padded.append(LobbyPlayer(name=f"{CPU_NAME_PREFIX} {number}", color=free_colors.pop(0), is_human=False))
        number += 1
    return padded


class TreasureGame:
    """
    Represents the complete state of a Treasure Hunt game.

    Like the Classic engine, actions return False when the phase does not
    allow them and delayed work runs through ``self.steps``.
    """

    def __init__(
        self,
        game_map: Optional[GameMap] = None,
        rng: Optional[random.Random] = None,
        timing: Optional[EngineSettings] = None,
        game_id: str = "treasure",
    ):
        self.game_id = game_id
        self._fixed_map = game_map
        self.rng = rng or random.Random()
        self.timing = timing or get_engine_settings()
        self.event_log = EventLog()
        self.generation = 0
        self.steps = StepQueue(lambda: self.generation, name=game_id)
        self._reset_state()

    def _reset_state(self) -> None:
        self.phase = TreasurePhase.LOBBY
        self.settings: Optional[TreasureSettings] = None
        self.map: Optional[GameMap] = self._fixed_map
        self.players: List[TreasurePlayer] = []
        self.agents: Dict[str, TreasureCpu] = {}
        self.current_player_index = 0
        self.round = 1
        self.mined_nodes: Dict[int, MiningRecord] = {}

        # Per-turn fields
        self.turn_effects: List[EffectType] = []
        self.dice_value: Optional[int] = None
        self.is_rolling = False
        self.has_rolled = False
        self.skipping = False
        self.routes: List[Route] = []
        self.moving_path: List[int] = []
        self.remaining_path: List[int] = []
        self.pending_steals: Deque[Tuple[StealKind, str]] = deque()
        self.current_steal: Optional[StealResult] = None
        self.current_mining: Optional[MiningResult] = None
        self.current_card: Optional[Card] = None
        self.card_selection: Optional[CardTargetSelection] = None

        self.rankings: List[TreasurePlayer] = []
        self.winner_id: Optional[str] = None
        self.end_reason: Optional[str] = None

    def _set_phase(self, phase: TreasurePhase) -> None:
        self.phase = phase
        self.generation += 1

    # ---- Queries ----

    @property
    def current_player(self) -> TreasurePlayer:
        return self.players[self.current_player_index]

    @property
    def game_over(self) -> bool:
        return self.phase == TreasurePhase.GAME_OVER

    def get_player(self, player_id: str) -> TreasurePlayer:
        for player in self.players:
            if player.player_id == player_id:
                return player
        raise KeyError(player_id)

    def find_player(self, player_id: Optional[str]) -> Optional[TreasurePlayer]:
        if player_id is None:
            return None
        return next((p for p in self.players if p.player_id == player_id), None)

    def mineable_node_ids(self) -> List[int]:
        return [n.id for n in self.map.nodes_of_type(NodeType.PROPERTY)]

    def effect_in_force(self, player: TreasurePlayer, effect_type: EffectType) -> bool:
        """Effect applies to the current turn: ticked in at turn start or still active."""
        if player is self.current_player and effect_type in self.turn_effects:
            return True
        return player.has_effect(effect_type)

    # ---- Actions ----

    def start_game(
        self,
        settings: Union[TreasureSettings, dict, None],
        players: List[Union[LobbyPlayer, dict]],
    ) -> bool:
        """
        Create the session. Rosters below four are padded with CPU raiders.

        Raises:
            ValidationError: If settings or roster are invalid
        """
        if self.phase != TreasurePhase.LOBBY:
            return False

        self.settings = parse_model(TreasureSettings, settings)
        roster = pad_roster(parse_roster(players, TREASURE_MIN_PLAYERS))
        if self.settings.seed is not None:
            self.rng.seed(self.settings.seed)
        if self._fixed_map is None:
            self.map = get_treasure_map(self.settings.treasure_map_id)

        shuffled = self.map.node_ids
        self.rng.shuffle(shuffled)
        self.players = []
        for i, lp in enumerate(roster):
            player = TreasurePlayer(
                player_id=f"player_{i}",
                name=lp.name,
                color=lp.color,
                is_human=lp.is_human,
                position=shuffled[i] if i < len(shuffled) else self.map.start_node_id,
            )
            if not player.is_human:
                player.personality = generate_personality(self.rng)
                self.agents[player.player_id] = TreasureCpu(player.player_id, self.rng)
            self.players.append(player)

        self.event_log.log(
            EventType.GAME_START,
            mode="treasure",
            map_id=self.map.map_id,
            players=[p.name for p in self.players],
            target_treasures=self.settings.target_treasures,
            seed=self.settings.seed,
        )
        logger.info(
            "[%s] Treasure game started with %d players on map %s",
            self.game_id,
            len(self.players),
            self.map.map_id,
        )

        self._set_phase(TreasurePhase.PLAYING)
        self._begin_turn()
        return True

    def roll_dice(self) -> bool:
        if self.phase != TreasurePhase.PLAYING or self.has_rolled or self.skipping:
            return False
        if not self.current_player.is_human:
            return False
        self._start_roll()
        return True

    def select_route(self, route_id: str) -> bool:
        if self.phase != TreasurePhase.ROUTE_SELECTION or not self.current_player.is_human:
            return False
        route = next((r for r in self.routes if r.id == route_id), None)
        if route is None:
            return False
        self._apply_route(route)
        return True

    def use_card(self, card_id: str, target_player_id: Optional[str] = None) -> bool:
        """
        Play an active card from the current player's hand before rolling.

        Hostile cards need an opponent as target. Dice cards affect the target
        when given, otherwise the user.
        """
        if not self._can_play_cards():
            return False
        player = self.current_player
        card = player.find_card(card_id)
        if card is None:
            return False
        return self._apply_card(player, card, target_player_id)

    def setup_card_target_selection(self, card_id: str, kind: str, target_player_id: Optional[str] = None) -> bool:
        """Start picking the landing node for a blow-away card."""
        if not self._can_play_cards():
            return False
        player = self.current_player
        card = player.find_card(card_id)
        if card is None or card.card_type != CardType.BLOW_AWAY or kind != card.card_type.value:
            return False
        target = self.find_player(target_player_id)
        if target is None or target.player_id == player.player_id:
            return False

        self.card_selection = CardTargetSelection(card.id, kind, target.player_id)
        self._set_phase(TreasurePhase.CARD_TARGET_SELECTION)
        return True

    def confirm_card_target_selection(self, node_id: int) -> bool:
        if self.phase != TreasurePhase.CARD_TARGET_SELECTION or self.card_selection is None:
            return False
        if node_id not in self.map:
            return False

        player = self.current_player
        selection = self.card_selection
        card = player.find_card(selection.card_id)
        target = self.find_player(selection.target_player_id)
        self.card_selection = None
        self._set_phase(TreasurePhase.PLAYING)
        if card is None or target is None:
            return False

        target.position = node_id
        player.remove_card(card.id)
        self.event_log.log(
            EventType.CARD_USED,
            player.player_id,
            card_type=card.card_type.value,
            target_player_id=target.player_id,
            node_id=node_id,
        )
        return True

    def cancel_card_target_selection(self) -> bool:
        if self.phase != TreasurePhase.CARD_TARGET_SELECTION:
            return False
        self.card_selection = None
        self._set_phase(TreasurePhase.PLAYING)
        return True

    def reset_game(self) -> bool:
        self.steps.clear()
        self.event_log.clear()
        self._reset_state()
        self.generation += 1
        logger.info("[%s] Treasure game reset", self.game_id)
        return True

    # ---- Cards ----

    def _can_play_cards(self) -> bool:
        return (
            self.phase == TreasurePhase.PLAYING
            and not self.has_rolled
            and not self.skipping
            and self.current_player.is_human
        )

    def _apply_card(self, player: TreasurePlayer, card: Card, target_player_id: Optional[str]) -> bool:
        if card.is_passive:
            return False

        target = self.find_player(target_player_id)
        if card.card_type in TARGETED_CARDS:
            if target is None or target.player_id == player.player_id:
                return False
        elif card.card_type in DICE_CARDS:
            if target_player_id is not None and target is None:
                return False
            target = target or player

        details = {"card_type": card.card_type.value, "target_player_id": target.player_id}
        if card.card_type == CardType.BLOW_AWAY:
            target.position = self.rng.choice(self.map.node_ids)
            details["node_id"] = target.position
        elif card.card_type == CardType.PHONE_FRAUD:
            result = resolve_steal(StealKind.SAME_NODE, player, target, self.rng)
            self.current_steal = result
            self.event_log.log(EventType.STEAL, player.player_id, **result.to_dict())
        else:
            effect_type, turns = _CARD_EFFECTS[card.card_type]
            add_effect(target, effect_type, turns)
            details["turns"] = turns

        player.remove_card(card.id)
        self.event_log.log(EventType.CARD_USED, player.player_id, **details)
        return True

    # ---- Turn flow ----

    def _begin_turn(self) -> None:
        player = self.current_player
        in_force, expired = tick_effects(player)
        self.turn_effects = in_force
        for effect_type in expired:
            self.event_log.log(EventType.EFFECT_EXPIRED, player.player_id, effect=effect_type.value)

        if EffectType.PARALYZED in in_force:
            self.skipping = True
            self.event_log.log(EventType.TURN_SKIPPED, player.player_id, round=self.round, reason="paralyzed")
            self.steps.schedule(self.timing.skip_turn_ms, "skip_turn", self._advance_turn)
            return

        self.event_log.log(EventType.TURN_START, player.player_id, round=self.round, position=player.position)
        if not player.is_human:
            self.steps.schedule(self.timing.cpu_think_ms, "cpu_turn", self._cpu_turn)

    def _start_roll(self) -> None:
        self.is_rolling = True
        self.has_rolled = True
        self.dice_value = None
        self.steps.schedule(self.timing.dice_roll_ms, "reveal_dice", self._reveal_dice)

    def _roll_value(self, player: TreasurePlayer) -> Tuple[int, Optional[EffectType]]:
        """Dice value for this roll, consuming a forcing effect if one applies."""
        for effect_type, value in _FORCED_DICE:
            if player.has_effect(effect_type):
                remove_effect(player, effect_type)
                return value, effect_type
            if effect_type in self.turn_effects:
                self.turn_effects.remove(effect_type)
                return value, effect_type
        return self.rng.randint(1, DICE_SIDES), None

    def _reveal_dice(self) -> None:
        player = self.current_player
        self.is_rolling = False
        self.dice_value, forced_by = self._roll_value(player)
        self.event_log.log(
            EventType.DICE_ROLL,
            player.player_id,
            value=self.dice_value,
            forced_by=forced_by.value if forced_by else None,
        )

        routes = enumerate_routes(self.map, player.position, self.dice_value)
        if not routes:
            logger.debug("[%s] %s cannot move from node %d", self.game_id, player.name, player.position)
            self._advance_turn()
            return

        self.routes = routes
        self._set_phase(TreasurePhase.ROUTE_SELECTION)
        if not player.is_human:
            self.steps.schedule(self.timing.cpu_route_ms, "cpu_route", self._cpu_select_route)

    def _apply_route(self, route: Route) -> None:
        self.event_log.log(
            EventType.ROUTE_SELECTED,
            self.current_player.player_id,
            route_id=route.id,
            path=list(route.path),
        )
        self.routes = []
        self._set_phase(TreasurePhase.PLAYING)
        self.remaining_path = list(route.path)
        self._walk_next_chunk()

    def _stealable_at(self, node_id: int) -> List[TreasurePlayer]:
        """Opponents on a node who hold treasure, in seat order."""
        player = self.current_player
        return [
            p
            for p in self.players
            if p.player_id != player.player_id and p.position == node_id and p.treasures > 0
        ]

    def _walk_next_chunk(self) -> None:
        """Walk up to the next contested cell (or the end of the path)."""
        player = self.current_player
        path = self.remaining_path
        stop = len(path) - 1
        for i, node_id in enumerate(path):
            if self._stealable_at(node_id):
                stop = i
                break

        chunk = path[: stop + 1]
        self.remaining_path = path[stop + 1 :]
        self.moving_path = chunk
        from_id = player.position
        player.position = chunk[-1]
        self.event_log.log(
            EventType.MOVE,
            player.player_id,
            from_node=from_id,
            to_node=player.position,
            path=list(chunk),
        )
        self.steps.schedule(self.timing.move_ms(len(chunk)), "finish_chunk", self._finish_chunk)

    def _finish_chunk(self) -> None:
        self.moving_path = []
        kind = StealKind.PASS_BY if self.remaining_path else StealKind.SAME_NODE
        for target in self._stealable_at(self.current_player.position):
            self.pending_steals.append((kind, target.player_id))
        self._resolve_next_steal()

    def _resolve_next_steal(self) -> None:
        """Raid the next queued opponent against live state, then keep walking."""
        player = self.current_player
        while self.pending_steals:
            kind, target_id = self.pending_steals.popleft()
            target = self.get_player(target_id)
            if target.treasures <= 0 or target.position != player.position:
                continue

            result = resolve_steal(kind, player, target, self.rng)
            self.current_steal = result
            self.event_log.log(EventType.STEAL, player.player_id, **result.to_dict())
            self._set_phase(TreasurePhase.STEAL_RESULT)
            self.steps.schedule(self.timing.result_display_ms, "steal_result", self._after_steal)
            return

        if self.remaining_path:
            self._walk_next_chunk()
        else:
            self._resolve_landing()

    def _after_steal(self) -> None:
        self.current_steal = None
        self._set_phase(TreasurePhase.PLAYING)
        self._resolve_next_steal()

    def _resolve_landing(self) -> None:
        player = self.current_player
        node = self.map.node(player.position)

        if node.node_type == NodeType.BONUS:
            card = draw_card(self.rng)
            player.cards.append(card)
            self.current_card = card
            self.event_log.log(EventType.CARD_DRAW, player.player_id, node_id=node.id, card=card.to_dict())
            self._show_result(TreasurePhase.CARD_RESULT)
            return

        if node.node_type != NodeType.PROPERTY:
            self._advance_turn()
            return

        if self.effect_in_force(player, EffectType.SEALED):
            logger.debug("[%s] %s is sealed, no dig at node %d", self.game_id, player.name, node.id)
            self._advance_turn()
            return

        outcome = perform_mining(self.map, node.id, self.mined_nodes, self.rng)
        if outcome == MiningOutcome.EMPTY:
            self._advance_turn()
            return

        delta = apply_mining(player, node.id, outcome, self.mined_nodes)
        self.current_mining = MiningResult(node.id, outcome, delta)
        self.event_log.log(EventType.MINING, player.player_id, **self.current_mining.to_dict())
        self._show_result(TreasurePhase.MINING_RESULT)

    def _show_result(self, phase: TreasurePhase) -> None:
        self._set_phase(phase)
        self.steps.schedule(self.timing.result_display_ms, phase.value, self._advance_turn)

    def _check_game_over(self) -> bool:
        target = self.settings.target_treasures
        if any(p.treasures >= target for p in self.players):
            self._finish_game("target_reached")
            return True
        if all(node_id in self.mined_nodes for node_id in self.mineable_node_ids()):
            self._finish_game("exhausted")
            return True
        return False

    def _advance_turn(self) -> None:
        """Check for game over, then hand the turn to the next player."""
        self.dice_value = None
        self.is_rolling = False
        self.has_rolled = False
        self.skipping = False
        self.routes = []
        self.moving_path = []
        self.remaining_path = []
        self.pending_steals.clear()
        self.current_steal = None
        self.current_mining = None
        self.current_card = None
        self.turn_effects = []

        if self._check_game_over():
            return

        next_index = (self.current_player_index + 1) % len(self.players)
        if next_index == 0:
            self.round += 1
        self.current_player_index = next_index
        if self.round > self.settings.total_rounds:
            self._finish_game("round_limit")
            return

        self._set_phase(TreasurePhase.PLAYING)
        self._begin_turn()

    def _finish_game(self, reason: str) -> None:
        self.rankings = sorted(self.players, key=lambda p: p.treasures, reverse=True)
        self.winner_id = self.rankings[0].player_id
        self.end_reason = reason
        self._set_phase(TreasurePhase.GAME_OVER)
        self.steps.clear()
        self.event_log.log(
            EventType.GAME_END,
            self.winner_id,
            reason=reason,
            rankings=[{"player_id": p.player_id, "treasures": p.treasures} for p in self.rankings],
        )
        logger.info("[%s] Treasure game over (%s), winner %s", self.game_id, reason, self.winner_id)

    # ---- CPU driving ----

    def _cpu_turn(self) -> None:
        player = self.current_player
        if self.phase != TreasurePhase.PLAYING or self.has_rolled or self.skipping or player.is_human:
            return
        choice = self.agents[player.player_id].choose_card(self)
        if choice is not None:
            card, target_id = choice
            self._apply_card(player, card, target_id)
        self._start_roll()

    def _cpu_select_route(self) -> None:
        player = self.current_player
        route = self.agents[player.player_id].choose_route(self, self.routes)
        self._apply_route(route)

    def __repr__(self) -> str:
        return f"TreasureGame(id={self.game_id}, phase={self.phase.value}, round={self.round})"
