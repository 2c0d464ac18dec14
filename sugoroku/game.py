"""
Classic mode game engine and turn state machine.
"""

import logging
import random
from enum import Enum
from typing import Dict, List, Optional, Union

from sugoroku.agents.classic import ClassicCpu
from sugoroku.board import GameMap, Node, NodeType, Property
from sugoroku.config import ClassicSettings, LobbyPlayer, parse_model, parse_roster
from sugoroku.economy import (
    NodeAction,
    SettlementRecord,
    refresh_assets,
    rent_owed,
    settle_income,
    unowned_properties,
)
from sugoroku.events import EventLog, EventType
from sugoroku.maps import build_classic_map
from sugoroku.player import ClassicPlayer
from sugoroku.routes import Route, enumerate_routes
from sugoroku.scheduler import StepQueue
from sugoroku.settings import EngineSettings, get_engine_settings

logger = logging.getLogger(__name__)

DICE_SIDES = 6
DEFAULT_BONUS_AMOUNT = 100
DEFAULT_PENALTY_AMOUNT = -100
CLASSIC_MIN_PLAYERS = 2


class GamePhase(Enum):
    """Phases of a Classic game."""

    LOBBY = "lobby"
    PLAYING = "playing"
    BRANCH_SELECTION = "branch_selection"
    PROPERTY_ACTION = "property_action"
    SETTLEMENT = "settlement"
    DESTINATION_REACHED = "destination_reached"
    GAME_OVER = "game_over"


class ClassicGame:
    """
    Represents the complete state of a Classic game.
    This is the main interface for the Classic engine.

    Every public action checks the phase first and returns False without
    touching state when it is not legal right now. Timed follow-ups go through
    ``self.steps``; changing phase invalidates everything already queued.
    """

    def __init__(
        self,
        game_map: Optional[GameMap] = None,
        rng: Optional[random.Random] = None,
        timing: Optional[EngineSettings] = None,
        game_id: str = "classic",
    ):
        self.game_id = game_id
        self.map = game_map or build_classic_map()
        self.rng = rng or random.Random()
        self.timing = timing or get_engine_settings()
        self.event_log = EventLog()
        self.generation = 0
        self.steps = StepQueue(lambda: self.generation, name=game_id)
        self._reset_state()

    def _reset_state(self) -> None:
        self.phase = GamePhase.LOBBY
        self.settings: Optional[ClassicSettings] = None
        self.players: List[ClassicPlayer] = []
        self.agents: Dict[str, ClassicCpu] = {}
        self.current_player_index = 0
        self.round = 1

        self.destination_node_id: Optional[int] = None
        self.next_destination_node_id: Optional[int] = None
        self.destination_reach_count = 0

        # Per-turn fields, cleared whenever the turn passes on
        self.dice_value: Optional[int] = None
        self.is_rolling = False
        self.routes: List[Route] = []
        self.moving_path: List[int] = []
        self.current_node_action: Optional[NodeAction] = None

        self.last_settlement: Optional[SettlementRecord] = None
        self.settlements: List[SettlementRecord] = []
        self.rankings: List[ClassicPlayer] = []
        self.winner_id: Optional[str] = None

    def _set_phase(self, phase: GamePhase) -> None:
        self.phase = phase
        self.generation += 1

    # ---- Queries ----

    @property
    def current_player(self) -> ClassicPlayer:
        return self.players[self.current_player_index]

    @property
    def game_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    @property
    def has_human(self) -> bool:
        return any(p.is_human for p in self.players)

    def get_player(self, player_id: str) -> ClassicPlayer:
        for player in self.players:
            if player.player_id == player_id:
                return player
        raise KeyError(player_id)

    def destination_candidates(self) -> List[int]:
        return [n.id for n in self.map.nodes_of_type(NodeType.PROPERTY)]

    def choose_next_destination(self, current: Optional[int]) -> Optional[int]:
        """
        Random property node that is neither the current destination nor under any
        player. Falls back to the first candidate when everything is excluded.
        """
        candidates = self.destination_candidates()
        if not candidates:
            return None
        positions = {p.position for p in self.players}
        open_ids = [n for n in candidates if n != current and n not in positions]
        if not open_ids:
            return candidates[0]
        return self.rng.choice(open_ids)

    # ---- Actions ----

    def start_game(
        self,
        settings: Union[ClassicSettings, dict, None],
        players: List[Union[LobbyPlayer, dict]],
    ) -> bool:
        """
        Create the session from settings and a lobby roster.

        Raises:
            ValidationError: If settings or roster are invalid
        """
        if self.phase != GamePhase.LOBBY:
            return False

        self.settings = parse_model(ClassicSettings, settings)
        roster = parse_roster(players, CLASSIC_MIN_PLAYERS)
        if self.settings.seed is not None:
            self.rng.seed(self.settings.seed)

        self.players = [
            ClassicPlayer(
                player_id=f"player_{i}",
                name=lp.name,
                color=lp.color,
                is_human=lp.is_human,
                position=self.map.start_node_id,
                money=self.settings.starting_money,
            )
            for i, lp in enumerate(roster)
        ]
        self.agents = {
            p.player_id: ClassicCpu(p.player_id, self.rng) for p in self.players if not p.is_human
        }
        self.destination_node_id = self.choose_next_destination(None)

        self.event_log.log(
            EventType.GAME_START,
            mode="classic",
            players=[p.name for p in self.players],
            starting_money=self.settings.starting_money,
            total_rounds=self.settings.total_rounds,
            seed=self.settings.seed,
        )
        self.event_log.log(EventType.DESTINATION_SET, node_id=self.destination_node_id)
        logger.info(
            "[%s] Classic game started with %d players on map %s",
            self.game_id,
            len(self.players),
            self.map.map_id,
        )

        self._set_phase(GamePhase.PLAYING)
        self._begin_turn()
        return True

    def roll_dice(self) -> bool:
        """Start the dice spin for a human player. The value lands after a delay."""
        if self.phase != GamePhase.PLAYING or self.is_rolling or self.dice_value is not None:
            return False
        if not self.current_player.is_human:
            return False
        self._start_roll()
        return True

    def select_route(self, route_id: str) -> bool:
        if self.phase != GamePhase.BRANCH_SELECTION or not self.current_player.is_human:
            return False
        route = next((r for r in self.routes if r.id == route_id), None)
        if route is None:
            return False
        self._apply_route(route)
        return True

    def buy_property(self, property_id: Optional[str] = None) -> bool:
        """
        Buy one property on the landing node.

        Without a property id the first unowned property of the node is taken.
        Unaffordable or already-owned properties are silently rejected.
        """
        if self.phase != GamePhase.PROPERTY_ACTION or not self.current_player.is_human:
            return False
        action = self.current_node_action
        if action is None or not action.can_buy:
            return False

        node = self.map.node(action.node_id)
        available = unowned_properties(node, self.players)
        if property_id is None:
            prop = available[0] if available else None
        else:
            prop = next((p for p in available if p.id == property_id), None)
        if prop is None:
            return False

        player = self.current_player
        if player.money < prop.price:
            return False

        self._purchase(player, prop)
        action.can_buy = bool(unowned_properties(node, self.players))
        return True

    def skip_buy(self) -> bool:
        if self.phase != GamePhase.PROPERTY_ACTION or not self.current_player.is_human:
            return False
        self._end_turn()
        return True

    def acknowledge_action(self) -> bool:
        """
        Dismiss the bonus/penalty/rent, settlement or destination modal.

        Settlement is shared by the table, every other modal belongs to the
        current player.
        """
        modal = (GamePhase.DESTINATION_REACHED, GamePhase.PROPERTY_ACTION)
        if self.phase in modal and not self.current_player.is_human:
            return False
        return self._acknowledge()

    def _acknowledge(self) -> bool:
        if self.phase == GamePhase.DESTINATION_REACHED:
            self.destination_node_id = (
                self.next_destination_node_id
                if self.next_destination_node_id is not None
                else self.choose_next_destination(self.destination_node_id)
            )
            self.next_destination_node_id = None
            self.destination_reach_count += 1
            self.event_log.log(EventType.DESTINATION_SET, node_id=self.destination_node_id)

            node = self.map.node(self.current_player.position)
            if node.node_type == NodeType.PROPERTY:
                self._handle_property_landing(node)
            else:
                self._end_turn()
            return True

        if self.phase == GamePhase.SETTLEMENT:
            if self.round > self.settings.total_rounds:
                self._finish_game()
            else:
                self._set_phase(GamePhase.PLAYING)
                self._begin_turn()
            return True

        if self.phase == GamePhase.PROPERTY_ACTION:
            self._end_turn()
            return True

        return False

    def reset_game(self) -> bool:
        """Discard the session and return to the lobby."""
        self.steps.clear()
        self.event_log.clear()
        self._reset_state()
        self.generation += 1
        logger.info("[%s] Classic game reset", self.game_id)
        return True

    # ---- Turn flow ----

    def _begin_turn(self) -> None:
        player = self.current_player
        self.event_log.log(
            EventType.TURN_START,
            player.player_id,
            round=self.round,
            position=player.position,
        )
        if not player.is_human:
            self.steps.schedule(self.timing.cpu_think_ms, "cpu_turn", self._cpu_turn)

    def _start_roll(self) -> None:
        self.is_rolling = True
        self.dice_value = None
        self.steps.schedule(self.timing.dice_roll_ms, "reveal_dice", self._reveal_dice)

    def _reveal_dice(self) -> None:
        player = self.current_player
        self.is_rolling = False
        self.dice_value = self.rng.randint(1, DICE_SIDES)
        self.event_log.log(EventType.DICE_ROLL, player.player_id, value=self.dice_value)

        routes = enumerate_routes(self.map, player.position, self.dice_value, self.destination_node_id)
        if not routes:
            logger.debug("[%s] %s cannot move from node %d", self.game_id, player.name, player.position)
            self._end_turn()
            return

        if len(routes) == 1:
            self._start_move(routes[0].path)
            return

        self.routes = routes
        self._set_phase(GamePhase.BRANCH_SELECTION)
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
        self._set_phase(GamePhase.PLAYING)
        self._start_move(route.path)

    def _start_move(self, path: List[int]) -> None:
        player = self.current_player
        from_id = player.position
        self.moving_path = list(path)
        player.position = path[-1]

        if self.map.start_node_id in path:
            player.laps_completed += 1
            self.event_log.log(EventType.PASS_START, player.player_id, laps=player.laps_completed)

        self.event_log.log(
            EventType.MOVE,
            player.player_id,
            from_node=from_id,
            to_node=player.position,
            path=list(path),
        )
        self.steps.schedule(self.timing.move_ms(len(path)), "finish_move", self._finish_move)

    def _finish_move(self) -> None:
        self.moving_path = []
        self._handle_landing(self.map.node(self.current_player.position))

    def _handle_landing(self, node: Node) -> None:
        player = self.current_player

        if node.id == self.destination_node_id:
            bonus = self.settings.destination_bonus_amount
            player.money += bonus
            refresh_assets(player, self.map)
            self.event_log.log(EventType.DESTINATION_REACHED, player.player_id, node_id=node.id, bonus=bonus)
            self.next_destination_node_id = self.choose_next_destination(self.destination_node_id)
            self._set_phase(GamePhase.DESTINATION_REACHED)
            self._schedule_cpu_acknowledge()
            return

        if node.node_type == NodeType.BONUS:
            amount = node.amount if node.amount is not None else DEFAULT_BONUS_AMOUNT
            player.money = max(0, player.money + amount)
            refresh_assets(player, self.map)
            self.event_log.log(EventType.BONUS, player.player_id, node_id=node.id, amount=amount)
            self._open_node_modal(node)
        elif node.node_type == NodeType.PENALTY:
            amount = node.amount if node.amount is not None else DEFAULT_PENALTY_AMOUNT
            before = player.money
            player.money = max(0, player.money + amount)
            refresh_assets(player, self.map)
            self.event_log.log(
                EventType.PENALTY,
                player.player_id,
                node_id=node.id,
                amount=amount,
                paid=before - player.money,
            )
            self._open_node_modal(node)
        elif node.node_type == NodeType.PROPERTY:
            self._handle_property_landing(node)
        else:
            self._end_turn()

    def _open_node_modal(self, node: Node) -> None:
        self.current_node_action = NodeAction(node_id=node.id)
        self._set_phase(GamePhase.PROPERTY_ACTION)
        self._schedule_cpu_acknowledge()

    def _handle_property_landing(self, node: Node) -> None:
        player = self.current_player
        action = rent_owed(node, player, self.players, self.map)
        if action is None or (not action.can_buy and not action.rent_payments):
            self._end_turn()
            return

        for payment in action.rent_payments:
            owner = self.get_player(payment.to_player_id)
            paid = min(payment.amount, player.money)
            player.money -= paid
            owner.money += paid
            refresh_assets(player, self.map)
            refresh_assets(owner, self.map)
            self.event_log.log(
                EventType.RENT_PAYMENT,
                player.player_id,
                to_player_id=owner.player_id,
                node_id=node.id,
                amount=payment.amount,
                paid=paid,
            )

        if action.can_buy and not player.is_human:
            agent = self.agents[player.player_id]
            for prop in unowned_properties(node, self.players):
                if agent.should_buy(self, prop):
                    self._purchase(player, prop)
            self._end_turn()
        elif action.can_buy or (action.rent_payments and player.is_human):
            self.current_node_action = action
            self._set_phase(GamePhase.PROPERTY_ACTION)
        else:
            self._end_turn()

    def _purchase(self, player: ClassicPlayer, prop: Property) -> None:
        player.money -= prop.price
        player.owned_property_ids.add(prop.id)
        refresh_assets(player, self.map)
        self.event_log.log(
            EventType.PURCHASE,
            player.player_id,
            property_id=prop.id,
            name=prop.name,
            price=prop.price,
        )

    def _end_turn(self) -> None:
        """Pass the turn on, diverting to settlement or game over where due."""
        self.current_node_action = None
        self.dice_value = None
        self.is_rolling = False
        self.routes = []
        self.moving_path = []

        next_index = (self.current_player_index + 1) % len(self.players)
        finished_round = self.round
        new_round = finished_round + 1 if next_index == 0 else finished_round
        self.current_player_index = next_index
        self.round = new_round

        if new_round > finished_round and finished_round % self.settings.cycle_length == 0:
            self._run_settlement(finished_round)
            return

        if new_round > self.settings.total_rounds:
            self._finish_game()
            return

        self._set_phase(GamePhase.PLAYING)
        self._begin_turn()

    def _run_settlement(self, finished_round: int) -> None:
        cycle_number = finished_round // self.settings.cycle_length
        record = settle_income(self.players, self.map, finished_round, cycle_number)
        for player in self.players:
            player.money += record.income_for(player.player_id)
            refresh_assets(player, self.map)

        self.settlements.append(record)
        self.last_settlement = record
        self.event_log.log(EventType.SETTLEMENT, **record.to_dict())
        logger.debug("[%s] Settlement %d after round %d", self.game_id, cycle_number, finished_round)

        self._set_phase(GamePhase.SETTLEMENT)
        if not self.has_human:
            self.steps.schedule(self.timing.result_display_ms, "auto_settlement", self._acknowledge)

    def _finish_game(self) -> None:
        self.rankings = sorted(self.players, key=lambda p: p.total_assets, reverse=True)
        self.winner_id = self.rankings[0].player_id
        self._set_phase(GamePhase.GAME_OVER)
        self.steps.clear()
        self.event_log.log(
            EventType.GAME_END,
            self.winner_id,
            rankings=[{"player_id": p.player_id, "total_assets": p.total_assets} for p in self.rankings],
        )
        logger.info("[%s] Classic game over, winner %s", self.game_id, self.winner_id)

    # ---- CPU driving ----

    def _cpu_turn(self) -> None:
        if self.phase != GamePhase.PLAYING or self.is_rolling or self.dice_value is not None:
            return
        if self.current_player.is_human:
            return
        self._start_roll()

    def _cpu_select_route(self) -> None:
        player = self.current_player
        route = self.agents[player.player_id].choose_route(self, self.routes)
        self._apply_route(route)

    def _schedule_cpu_acknowledge(self) -> None:
        if not self.current_player.is_human:
            self.steps.schedule(self.timing.cpu_think_ms, "cpu_acknowledge", self._acknowledge)

    def __repr__(self) -> str:
        return f"ClassicGame(id={self.game_id}, phase={self.phase.value}, round={self.round})"
