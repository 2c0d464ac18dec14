from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Dict, List, Optional

from sugoroku import create_game
from sugoroku.config import LobbyPlayer
from sugoroku.exceptions import GameNotFoundError
from sugoroku.session import GameMode
from sugoroku.settings import get_server_settings

from server.runner import GameRunner

logger = logging.getLogger(__name__)


class GameRegistry:
    """In-memory registry of running games."""

    def __init__(self):
        self._games: Dict[str, GameRunner] = {}
        self._lock = asyncio.Lock()

    async def create_game(
        self,
        *,
        mode: GameMode,
        players: List[LobbyPlayer],
        settings: Optional[dict] = None,
        time_scale: Optional[float] = None,
    ) -> str:
        """
        Create, start and register a game.

        Raises:
            ValidationError: If the settings or roster are invalid
        """
        game_id = uuid.uuid4().hex[:12]
        game = create_game(mode, settings, players, game_id=game_id)
        if time_scale is None:
            time_scale = get_server_settings().time_scale
        runner = GameRunner(game_id=game_id, game=game, time_scale=time_scale)

        async with self._lock:
            self._games[game_id] = runner
        await runner.start()
        logger.info("Registered %s game %s", GameMode(mode).value, game_id)
        return game_id

    async def get(self, game_id: str) -> Optional[GameRunner]:
        return self._games.get(game_id)

    async def require(self, game_id: str) -> GameRunner:
        runner = self._games.get(game_id)
        if runner is None:
            raise GameNotFoundError(game_id)
        return runner

    async def list_ids(self) -> List[str]:
        return list(self._games)

    async def stop(self, game_id: str) -> bool:
        """Stop the runner, reset the game to its lobby and forget it."""
        async with self._lock:
            runner = self._games.get(game_id)
            if not runner:
                return False
            await runner.stop()
            runner.game.reset_game()
            del self._games[game_id]
            logger.info("Removed game %s", game_id)
            return True

    async def stop_all(self) -> None:
        for game_id in list(self._games):
            await self.stop(game_id)
