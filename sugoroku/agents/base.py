"""Base class for CPU-controlled players."""

import random
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from sugoroku.routes import Route


class CpuAgent(ABC):
    """
    Abstract base class for CPU policies.

    Agents never mutate the game: they read state and return a decision which
    the state machine then applies through its own action methods.

    Attributes:
        player_id: The controlled player's id.
        rng: Random source shared with the owning game.
    """

    def __init__(self, player_id: str, rng: random.Random):
        """
        Initialize the agent.

        Args:
            player_id: The controlled player's id.
            rng: Random source used for tie-breaks and noise.
        """
        self.player_id = player_id
        self.rng = rng

    @abstractmethod
    def choose_route(self, game, routes: List["Route"]) -> "Route":
        """
        Choose one of the candidate routes for the current roll.

        Args:
            game: The game the player is in.
            routes: Non-empty list of candidate routes.

        Returns:
            The chosen route.
        """
        pass
