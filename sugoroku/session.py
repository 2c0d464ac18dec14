"""
Game factory shared by the server and the CLI.
"""

import random
from enum import Enum
from typing import List, Optional, Union

from sugoroku.config import LobbyPlayer
from sugoroku.game import ClassicGame
from sugoroku.settings import EngineSettings
from sugoroku.treasure_game import TreasureGame

Game = Union[ClassicGame, TreasureGame]


class GameMode(str, Enum):
    CLASSIC = "classic"
    TREASURE = "treasure"


def create_game(
    mode: Union[GameMode, str],
    settings: Optional[dict],
    players: List[Union[LobbyPlayer, dict]],
    rng: Optional[random.Random] = None,
    timing: Optional[EngineSettings] = None,
    game_id: Optional[str] = None,
) -> Game:
    """
    Create and start a game in the given mode.

    Args:
        mode: "classic" or "treasure"
        settings: Mode settings as a dict (validated by the game)
        players: Lobby roster
        rng: Optional random source (seeded from settings when they carry a seed)
        timing: Optional step delays, defaults to the environment settings
        game_id: Label used in logs

    Returns:
        A started game in its first playing phase

    Raises:
        ValidationError: If the settings or roster are invalid
    """
    mode = GameMode(mode)
    if mode == GameMode.CLASSIC:
        game: Game = ClassicGame(rng=rng, timing=timing, game_id=game_id or "classic")
    else:
        game = TreasureGame(rng=rng, timing=timing, game_id=game_id or "treasure")
    game.start_game(settings, players)
    return game
