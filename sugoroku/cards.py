"""
Treasure Hunt card catalogue.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict


class CardType(Enum):
    """All card variants that can be drawn from a card node."""

    POWER_UP = "power_up"
    SUBSTITUTE = "substitute"
    SEAL = "seal"
    BLOW_AWAY = "blow_away"
    PARALYSIS = "paralysis"
    PHONE_FRAUD = "phone_fraud"
    DICE_1 = "dice_1"
    DICE_10 = "dice_10"


@dataclass(frozen=True)
class CardData:
    name: str
    description: str
    is_passive: bool


CARD_STATIC_DATA: Dict[CardType, CardData] = {
    CardType.POWER_UP: CardData("Raider's Charm", "While held, steal chance +15%.", True),
    CardType.SUBSTITUTE: CardData("Stand-in Doll", "Blocks one steal against you, then breaks.", True),
    CardType.SEAL: CardData("Sealing Jar", "Target cannot dig for 3 turns.", False),
    CardType.BLOW_AWAY: CardData("Launch Hammer", "Send the target to another node.", False),
    CardType.PARALYSIS: CardData("Shock Trap", "Target loses their next turn.", False),
    CardType.PHONE_FRAUD: CardData("Phone Scam", "Steal from one player as if on the same node.", False),
    CardType.DICE_1: CardData("One-Step Card", "The next dice roll is always 1.", False),
    CardType.DICE_10: CardData("Ten-Step Card", "The next dice roll is always 10.", False),
}

# Cards whose effect needs an opponent to aim at
TARGETED_CARDS = frozenset(
    {CardType.SEAL, CardType.BLOW_AWAY, CardType.PARALYSIS, CardType.PHONE_FRAUD}
)
DICE_CARDS = frozenset({CardType.DICE_1, CardType.DICE_10})


@dataclass(frozen=True)
class Card:
    """A card in a player's hand. Passive cards are never played explicitly."""

    id: str
    card_type: CardType

    @property
    def is_passive(self) -> bool:
        return CARD_STATIC_DATA[self.card_type].is_passive

    @property
    def name(self) -> str:
        return CARD_STATIC_DATA[self.card_type].name

    @property
    def description(self) -> str:
        return CARD_STATIC_DATA[self.card_type].description

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.card_type.value,
            "name": self.name,
            "description": self.description,
            "is_passive": self.is_passive,
        }


def make_card(card_type: CardType, rng: random.Random) -> Card:
    return Card(id=f"card_{rng.getrandbits(40):010x}", card_type=card_type)


def draw_card(rng: random.Random) -> Card:
    """Draw a uniformly random card."""
    card_type = rng.choice(list(CARD_STATIC_DATA))
    return make_card(card_type, rng)
