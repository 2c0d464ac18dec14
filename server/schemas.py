from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from sugoroku.config import LobbyPlayer
from sugoroku.session import GameMode


class CreateGameRequest(BaseModel):
    mode: GameMode = GameMode.CLASSIC
    players: List[LobbyPlayer] = Field(min_length=1, max_length=4)
    settings: Dict[str, Any] = Field(default_factory=dict)
    time_scale: Optional[float] = Field(default=None, ge=0)


class CreateGameResponse(BaseModel):
    game_id: str
    mode: GameMode


class GameListResponse(BaseModel):
    games: List[str]


class ActionRequest(BaseModel):
    action_type: str
    params: Dict[str, Any] = Field(default_factory=dict)


class ActionResponse(BaseModel):
    accepted: bool
    reason: Optional[str] = None


class GameEventDTO(BaseModel):
    index: int
    event_type: str
    player_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class GameEventsResponse(BaseModel):
    game_id: str
    events: List[GameEventDTO]
    next_index: int
