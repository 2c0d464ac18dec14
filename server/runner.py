from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from sugoroku import TreasureGame, serialize_snapshot
from sugoroku.exceptions import InvalidActionError
from sugoroku.session import Game, GameMode

logger = logging.getLogger(__name__)

# Externally callable action methods per mode
ACTIONS: Dict[GameMode, frozenset] = {
    GameMode.CLASSIC: frozenset(
        {"roll_dice", "select_route", "buy_property", "skip_buy", "acknowledge_action"}
    ),
    GameMode.TREASURE: frozenset(
        {
            "roll_dice",
            "select_route",
            "use_card",
            "setup_card_target_selection",
            "confirm_card_target_selection",
            "cancel_card_target_selection",
        }
    ),
}


def game_mode(game: Game) -> GameMode:
    return GameMode.TREASURE if isinstance(game, TreasureGame) else GameMode.CLASSIC


class GameRunner:
    """Owns a single game session and drives its step queue asynchronously.

    Responsibilities:
    - Run queued steps one at a time, honoring their delays
    - Serialize external actions against step execution
    - Broadcast new engine events to subscribed WebSocket clients
    """

    def __init__(self, game_id: str, game: Game, time_scale: float = 1.0):
        self.game_id = game_id
        self.game = game
        self.mode = game_mode(game)
        self._time_scale = max(0.0, time_scale)
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self._new_action_event = asyncio.Event()
        self._apply_lock = asyncio.Lock()
        self._clients: Set[asyncio.Queue] = set()
        self._last_event_idx = 0

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Runner started for game %s (%s)", self.game_id, self.mode.value)

    async def stop(self) -> None:
        self._stop.set()
        self._new_action_event.set()
        if self._task:
            try:
                await self._task
            except Exception as exc:
                # Already logged by the loop
                logger.warning("Runner for game %s had failed: %s", self.game_id, exc)
        logger.info("Runner stopped for game %s", self.game_id)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # Subscription management for WS
    async def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue()
        self._clients.add(q)
        await q.put({
            "type": "snapshot",
            "game_id": self.game_id,
            "snapshot": serialize_snapshot(self.game),
            "last_event_index": self._last_event_idx,
        })
        return q

    async def unsubscribe(self, q: asyncio.Queue) -> None:
        self._clients.discard(q)

    async def _broadcast(self, payload: Dict[str, Any]) -> None:
        for q in list(self._clients):
            try:
                q.put_nowait(payload)
            except asyncio.QueueFull:
                self._clients.discard(q)

    async def flush_and_broadcast(self) -> None:
        events = self.game.event_log.events
        if self._last_event_idx >= len(events):
            return
        start_index = self._last_event_idx
        chunk = [e.to_dict() for e in events[start_index:]]
        self._last_event_idx = len(events)
        await self._broadcast({
            "type": "events",
            "game_id": self.game_id,
            "from_index": start_index,
            "events": chunk,
            "snapshot": serialize_snapshot(self.game),
        })

    async def _wait_for_external_action(self) -> None:
        self._new_action_event.clear()
        if self.game.steps.peek() is not None or self._stop.is_set():
            return
        await self._new_action_event.wait()

    async def _run_loop(self) -> None:
        while not self._stop.is_set():
            await self.flush_and_broadcast()

            step = self.game.steps.peek()
            if step is None:
                if self.game.game_over:
                    break
                await self._wait_for_external_action()
                continue

            delay = step.delay_ms / 1000.0 * self._time_scale
            if delay > 0:
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=delay)
                    break
                except asyncio.TimeoutError:
                    pass
            else:
                # Yield so request handlers get a turn between zero-delay steps
                await asyncio.sleep(0)

            async with self._apply_lock:
                try:
                    self.game.steps.run_next()
                except Exception:
                    logger.exception("Step failed in game %s", self.game_id)
                    raise

        await self.flush_and_broadcast()

    async def apply_action_request(self, action_type: str, params: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
        """
        Apply a named action with keyword params.

        Returns:
            (accepted, reason) where reason explains a silent rejection

        Raises:
            InvalidActionError: Unknown action name or parameters that do not fit it
        """
        if action_type not in ACTIONS[self.mode]:
            raise InvalidActionError(f"unknown action '{action_type}' for {self.mode.value} games")
        method = getattr(self.game, action_type)
        try:
            inspect.signature(method).bind(**params)
        except TypeError as exc:
            raise InvalidActionError(f"invalid parameters for '{action_type}': {exc}") from exc

        async with self._apply_lock:
            ok = method(**params)
        self._new_action_event.set()
        await self.flush_and_broadcast()
        return ok, None if ok else f"not allowed in phase '{self.game.phase.value}'"

    def events_since(self, index: int) -> List[Dict[str, Any]]:
        return [
            {
                "index": index + offset,
                "event_type": event.event_type.value,
                "player_id": event.player_id,
                "details": event.details,
            }
            for offset, event in enumerate(self.game.event_log.since(index))
        ]

    async def status(self) -> Dict[str, Any]:
        return {
            "game_id": self.game_id,
            "mode": self.mode.value,
            "phase": self.game.phase.value,
            "round": self.game.round,
            "running": self.running,
            "pending_steps": len(self.game.steps),
            "game_over": self.game.game_over,
            "event_count": len(self.game.event_log.events),
        }
