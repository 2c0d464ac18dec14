"""
Player state records for both game modes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set

from sugoroku.cards import Card, CardType
from sugoroku.config import PlayerColor


class ClassicPlayer:
    """Represents the complete state of a player in a Classic game."""

    def __init__(self, player_id: str, name: str, color: PlayerColor, is_human: bool, position: int, money: int):
        self.player_id = player_id
        self.name = name
        self.color = color
        self.is_human = is_human
        self.position = position
        self.money = money
        self.owned_property_ids: Set[str] = set()
        # Cached money + owned property prices; rewritten after every money/ownership change
        self.total_assets = money
        self.laps_completed = 0

    def owns(self, property_id: str) -> bool:
        return property_id in self.owned_property_ids

    def __repr__(self) -> str:
        return (
            f"ClassicPlayer(id={self.player_id}, name='{self.name}', "
            f"money={self.money}, position={self.position}, assets={self.total_assets})"
        )


class EffectType(Enum):
    """Status effects that can sit on a Treasure player."""

    SEALED = "sealed"
    PARALYZED = "paralyzed"
    DICE_1 = "dice_1"
    DICE_10 = "dice_10"


@dataclass
class ActiveEffect:
    effect_type: EffectType
    remaining_turns: int


@dataclass(frozen=True)
class Personality:
    """CPU style weights; miner + card_lover + stalker == 1."""

    miner: float
    card_lover: float
    stalker: float

    def to_dict(self) -> dict:
        return {"miner": self.miner, "card_lover": self.card_lover, "stalker": self.stalker}


@dataclass
class TreasurePlayer:
    """Represents the complete state of a player in a Treasure Hunt game."""

    player_id: str
    name: str
    color: PlayerColor
    is_human: bool
    position: int
    treasures: int = 0
    cards: List[Card] = field(default_factory=list)
    active_effects: List[ActiveEffect] = field(default_factory=list)
    personality: Optional[Personality] = None

    def has_effect(self, effect_type: EffectType) -> bool:
        return any(e.effect_type == effect_type for e in self.active_effects)

    def count_cards(self, card_type: CardType) -> int:
        return sum(1 for c in self.cards if c.card_type == card_type)

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def remove_card(self, card_id: str) -> None:
        self.cards = [c for c in self.cards if c.id != card_id]

    def active_cards(self) -> List[Card]:
        return [c for c in self.cards if not c.is_passive]
