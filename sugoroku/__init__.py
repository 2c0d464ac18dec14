"""
Sugoroku Engine

Turn-based board game engine with a Classic property mode and a Treasure Hunt
mode, played by humans and CPU players on a branching map.
"""

from .board import GameMap, Node, NodeType, Property
from .config import ClassicSettings, LobbyPlayer, PlayerColor, TreasureSettings
from .game import ClassicGame, GamePhase
from .session import GameMode, create_game
from .snapshot import serialize_snapshot
from .treasure_game import TreasureGame, TreasurePhase

__all__ = [
    "GameMap",
    "Node",
    "NodeType",
    "Property",
    "ClassicSettings",
    "TreasureSettings",
    "LobbyPlayer",
    "PlayerColor",
    "ClassicGame",
    "GamePhase",
    "TreasureGame",
    "TreasurePhase",
    "GameMode",
    "create_game",
    "serialize_snapshot",
]
