from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from sugoroku.exceptions import GameNotFoundError, InvalidActionError, ValidationError
from sugoroku.snapshot import serialize_map, serialize_snapshot

from .registry import GameRegistry
from .schemas import (
    ActionRequest,
    ActionResponse,
    CreateGameRequest,
    CreateGameResponse,
    GameEventDTO,
    GameEventsResponse,
    GameListResponse,
)

logger = logging.getLogger(__name__)

registry = GameRegistry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown."""
    logger.info("Starting Sugoroku Arena server")
    yield
    logger.info("Shutting down, stopping running games")
    await registry.stop_all()


app = FastAPI(
    title="Sugoroku Arena Server",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(GameNotFoundError)
async def game_not_found_handler(request: Request, exc: GameNotFoundError):
    return JSONResponse(status_code=404, content={"detail": "Game not found"})


@app.post("/games", response_model=CreateGameResponse)
async def create_game(req: CreateGameRequest):
    try:
        gid = await registry.create_game(
            mode=req.mode,
            players=req.players,
            settings=req.settings,
            time_scale=req.time_scale,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return CreateGameResponse(game_id=gid, mode=req.mode)


@app.get("/games", response_model=GameListResponse)
async def list_games():
    return GameListResponse(games=await registry.list_ids())


@app.get("/games/{game_id}/snapshot")
async def get_snapshot(game_id: str):
    runner = await registry.require(game_id)
    return serialize_snapshot(runner.game)


@app.get("/games/{game_id}/map")
async def get_map(game_id: str):
    runner = await registry.require(game_id)
    return serialize_map(runner.game.map)


@app.get("/games/{game_id}/events", response_model=GameEventsResponse)
async def get_events(game_id: str, since: int = Query(default=0, ge=0)):
    runner = await registry.require(game_id)
    events = [GameEventDTO(**e) for e in runner.events_since(since)]
    return GameEventsResponse(
        game_id=game_id,
        events=events,
        next_index=since + len(events),
    )


@app.get("/games/{game_id}/status")
async def get_status(game_id: str):
    runner = await registry.require(game_id)
    return await runner.status()


@app.post("/games/{game_id}/actions", response_model=ActionResponse)
async def apply_action(game_id: str, req: ActionRequest):
    runner = await registry.require(game_id)
    try:
        ok, reason = await runner.apply_action_request(req.action_type, req.params)
    except InvalidActionError as exc:
        return ActionResponse(accepted=False, reason=str(exc))
    return ActionResponse(accepted=ok, reason=reason)


@app.delete("/games/{game_id}")
async def delete_game(game_id: str):
    if not await registry.stop(game_id):
        raise HTTPException(status_code=404, detail="Game not found")
    return {"game_id": game_id, "deleted": True}


@app.websocket("/ws/games/{game_id}")
async def ws_game(websocket: WebSocket, game_id: str):
    await websocket.accept()
    runner = await registry.get(game_id)
    if not runner:
        await websocket.close(code=4404)
        return

    queue = await runner.subscribe()

    async def sender():
        while True:
            msg = await queue.get()
            await websocket.send_json(msg)

    sender_task = asyncio.create_task(sender())
    try:
        # Inputs are ignored; actions go through the HTTP endpoint
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await runner.unsubscribe(queue)
        sender_task.cancel()


if __name__ == "__main__":
    import uvicorn

    from sugoroku.settings import get_server_settings

    settings = get_server_settings()
    uvicorn.run("server.app:app", host=settings.server_host, port=settings.server_port)
