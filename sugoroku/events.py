"""
Game event logging.

Every observable change the engine makes is recorded as a GameEvent so that
the UI layer can render toasts and logs without inspecting state diffs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EventType(Enum):
    """Types of game events."""

    GAME_START = "game_start"
    TURN_START = "turn_start"
    TURN_SKIPPED = "turn_skipped"
    DICE_ROLL = "dice_roll"
    ROUTE_SELECTED = "route_selected"
    MOVE = "move"
    PASS_START = "pass_start"

    PURCHASE = "purchase"
    RENT_PAYMENT = "rent_payment"
    BONUS = "bonus"
    PENALTY = "penalty"
    DESTINATION_REACHED = "destination_reached"
    DESTINATION_SET = "destination_set"
    SETTLEMENT = "settlement"

    MINING = "mining"
    STEAL = "steal"
    CARD_DRAW = "card_draw"
    CARD_USED = "card_used"
    EFFECT_EXPIRED = "effect_expired"

    GAME_END = "game_end"


@dataclass
class GameEvent:
    """A logged event in the game."""

    event_type: EventType
    player_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"event_type": self.event_type.value, **self.details}
        if self.player_id is not None:
            data["player_id"] = self.player_id
        return data

    def __repr__(self) -> str:
        player_str = self.player_id if self.player_id is not None else "System"
        return f"[{player_str}] {self.event_type.value}: {self.details}"


class EventLog:
    """Manages the game event log."""

    def __init__(self):
        self.events: List[GameEvent] = []

    def log(self, event_type: EventType, player_id: Optional[str] = None, **details: Any) -> None:
        """Log a game event."""
        self.events.append(GameEvent(event_type, player_id, details))

    def get_events(self) -> List[GameEvent]:
        """Get all logged events."""
        return self.events.copy()

    def since(self, index: int) -> List[GameEvent]:
        """Events appended after the first ``index`` entries."""
        return self.events[max(0, index):]

    def of_type(self, event_type: EventType) -> List[GameEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        """Clear the event log."""
        self.events.clear()
