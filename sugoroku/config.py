"""
Game configuration settings.

Settings and lobby rosters are pydantic models so that both the engine and the
HTTP layer validate them the same way.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Type, TypeVar, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from sugoroku.exceptions import ValidationError


class PlayerColor(str, Enum):
    """Fixed four-color palette; each color is used at most once per game."""

    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"


PLAYER_COLORS: List[PlayerColor] = [
    PlayerColor.RED,
    PlayerColor.BLUE,
    PlayerColor.GREEN,
    PlayerColor.YELLOW,
]

MAX_PLAYERS = 4


class LobbyPlayer(BaseModel):
    """A roster entry as submitted from the lobby."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=32)
    color: PlayerColor
    is_human: bool = False


class ClassicSettings(BaseModel):
    """Configuration for a Classic (property) game."""

    total_rounds: int = Field(default=20, ge=1)
    cycle_length: int = Field(default=4, ge=1, description="Rounds between settlements.")
    starting_money: int = Field(default=1000, ge=0)
    destination_bonus_amount: int = Field(default=500, ge=0)
    seed: Optional[int] = None


class TreasureSettings(BaseModel):
    """Configuration for a Treasure Hunt game."""

    total_rounds: int = Field(default=20, ge=1)
    treasure_map_id: str = "five_islands"
    target_treasures: int = Field(default=10, ge=1)
    seed: Optional[int] = None

    @field_validator("treasure_map_id")
    @classmethod
    def known_map(cls, value: str) -> str:
        from sugoroku.maps import TREASURE_MAPS

        if value not in TREASURE_MAPS:
            raise ValueError(f"unknown treasure map '{value}'")
        return value


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_model(model: Type[ModelT], data: Union[ModelT, dict, None]) -> ModelT:
    """Validate ``data`` into ``model``, raising the engine's ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data or {})
    except pydantic.ValidationError as exc:
        raise ValidationError(str(exc)) from exc


def parse_roster(players: List[Any], min_players: int, max_players: int = MAX_PLAYERS) -> List[LobbyPlayer]:
    """
    Validate a lobby roster.

    Args:
        players: LobbyPlayer instances or dicts
        min_players: Smallest accepted roster size
        max_players: Largest accepted roster size

    Returns:
        Parsed roster

    Raises:
        ValidationError: On size violations, bad entries or duplicate colors
    """
    roster = [parse_model(LobbyPlayer, p) for p in players]
    if not min_players <= len(roster) <= max_players:
        raise ValidationError(
            f"roster must have between {min_players} and {max_players} players, got {len(roster)}"
        )
    colors = [p.color for p in roster]
    if len(set(colors)) != len(colors):
        raise ValidationError("player colors must be unique")
    return roster
