"""
Custom exception hierarchy for the sugoroku engine and server.

Provides typed errors that can be handled consistently across
the core engine, the runner and the API layer.
"""


class SugorokuError(Exception):
    """Base exception for all game-related errors."""


class MapError(SugorokuError):
    """Static map data is corrupt (unknown or duplicate ids)."""


class ValidationError(SugorokuError):
    """Settings or roster validation failed."""


class GameNotFoundError(SugorokuError):
    """Game does not exist."""


class InvalidActionError(SugorokuError):
    """Action name is not part of the mode's action API."""
