"""
Classic mode economics: rent, group bonuses, settlements and asset valuation.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sugoroku.board import GameMap, Node, NodeType, Property
from sugoroku.player import ClassicPlayer

# Income/rent multiplier when the owner holds every property of the group
GROUP_BONUS_MULTIPLIER = 1.5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (7.5 -> 8, 10.5 -> 11)."""
    return math.floor(value + 0.5)


@dataclass
class RentPayment:
    to_player_id: str
    amount: int


@dataclass
class NodeAction:
    """What landing on a node asks of the current player."""

    node_id: int
    rent_payments: List[RentPayment] = field(default_factory=list)
    can_buy: bool = False

    def to_dict(self) -> dict:
        return {
            "node_id": self.node_id,
            "rent_payments": [{"to_player_id": p.to_player_id, "amount": p.amount} for p in self.rent_payments],
            "can_buy": self.can_buy,
        }


@dataclass
class IncomeLine:
    property_id: str
    name: str
    income: int


@dataclass
class PlayerIncome:
    player_id: str
    amount: int
    breakdown: List[IncomeLine] = field(default_factory=list)


@dataclass
class SettlementRecord:
    round: int
    cycle_number: int
    incomes: List[PlayerIncome] = field(default_factory=list)

    def income_for(self, player_id: str) -> int:
        for income in self.incomes:
            if income.player_id == player_id:
                return income.amount
        return 0

    def to_dict(self) -> dict:
        return {
            "round": self.round,
            "cycle_number": self.cycle_number,
            "incomes": [
                {
                    "player_id": i.player_id,
                    "amount": i.amount,
                    "breakdown": [{"property_id": b.property_id, "name": b.name, "income": b.income} for b in i.breakdown],
                }
                for i in self.incomes
            ],
        }


def owner_of(property_id: str, players: Iterable[ClassicPlayer]) -> Optional[ClassicPlayer]:
    """Owning player of a property, if any."""
    for player in players:
        if player.owns(property_id):
            return player
    return None


def is_group_complete(owned_ids: Iterable[str], group_id: Optional[str], game_map: GameMap) -> bool:
    """True iff every property of every node tagged ``group_id`` is in ``owned_ids``."""
    if group_id is None:
        return False
    group_props = game_map.group_property_ids(group_id)
    if not game_map.group_node_ids(group_id):
        return False
    owned = set(owned_ids)
    return all(prop_id in owned for prop_id in group_props)


def property_income(prop: Property, node: Node, owner: ClassicPlayer, game_map: GameMap) -> int:
    """Rent/income of one property for its owner, group bonus applied and rounded."""
    bonus = GROUP_BONUS_MULTIPLIER if is_group_complete(owner.owned_property_ids, node.group_id, game_map) else 1
    return round_half_up(prop.base_income * bonus)


def rent_owed(
    node: Node,
    current_player: ClassicPlayer,
    players: List[ClassicPlayer],
    game_map: GameMap,
) -> Optional[NodeAction]:
    """
    Resolve what the current player owes and may buy on a property node.

    Rent is rounded per property and accumulated per distinct owner. Self-owned
    properties are free and do not block buying the others.

    Returns:
        NodeAction, or None for non-property nodes
    """
    if node.node_type != NodeType.PROPERTY or not node.properties:
        return None

    payments: Dict[str, RentPayment] = {}
    can_buy = False
    for prop in node.properties:
        owner = owner_of(prop.id, players)
        if owner is None:
            can_buy = True
        elif owner.player_id != current_player.player_id:
            rent = property_income(prop, node, owner, game_map)
            if owner.player_id in payments:
                payments[owner.player_id].amount += rent
            else:
                payments[owner.player_id] = RentPayment(owner.player_id, rent)

    return NodeAction(node_id=node.id, rent_payments=list(payments.values()), can_buy=can_buy)


def settle_income(
    players: List[ClassicPlayer],
    game_map: GameMap,
    round_number: int,
    cycle_number: int,
) -> SettlementRecord:
    """Income every player collects at a settlement, with a per-property breakdown."""
    incomes = []
    for player in players:
        breakdown = []
        for prop_id in sorted(player.owned_property_ids):
            node = game_map.owning_node(prop_id)
            prop = game_map.get_property(prop_id)
            breakdown.append(IncomeLine(prop.id, prop.name, property_income(prop, node, player, game_map)))
        incomes.append(PlayerIncome(player.player_id, sum(b.income for b in breakdown), breakdown))
    return SettlementRecord(round=round_number, cycle_number=cycle_number, incomes=incomes)


def total_assets(player: ClassicPlayer, game_map: GameMap) -> int:
    """Money plus the purchase price of every owned property."""
    return player.money + sum(game_map.get_property(pid).price for pid in player.owned_property_ids)


def refresh_assets(player: ClassicPlayer, game_map: GameMap) -> None:
    """Rewrite the cached total_assets after a money or ownership change."""
    player.total_assets = total_assets(player, game_map)


def unowned_properties(node: Node, players: List[ClassicPlayer]) -> List[Property]:
    return [p for p in node.properties if owner_of(p.id, players) is None]
