"""Catalog search endpoints used by the food and exercise pickers."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect

from nutrition_planner.api.models import SearchResponse, search_response
from nutrition_planner.services.debounce import Debouncer

if TYPE_CHECKING:
    from nutrition_planner.containers import AppContainer

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/foods")
async def search_foods(request: Request, q: str = "") -> SearchResponse:
    """Search foods by catalog or simplified name."""
    container: AppContainer = request.app.state.container
    return search_response(container.food_search_service.search(q))


@router.get("/exercises")
async def search_exercises(request: Request, q: str = "") -> SearchResponse:
    """Search the exercise library."""
    container: AppContainer = request.app.state.container
    return search_response(container.exercise_search_service.search(q))


@router.websocket("/foods/live")
async def live_food_search(websocket: WebSocket) -> None:
    """Answer picker keystrokes with results for the input once it settles.

    Each text frame is the full current input. Frames superseded within the
    debounce window get no reply.
    """
    container: AppContainer = websocket.app.state.container
    debouncer = Debouncer(delay_seconds=container.settings.search_debounce_seconds)
    replies: set[asyncio.Task] = set()

    async def reply(query: str) -> None:
        outcome = await debouncer.submit(
            lambda: container.food_search_service.search(query)
        )
        if outcome is not None:
            await websocket.send_json(search_response(outcome).model_dump())

    await websocket.accept()
    try:
        while True:
            query = await websocket.receive_text()
            task = asyncio.create_task(reply(query))
            replies.add(task)
            task.add_done_callback(replies.discard)
    except WebSocketDisconnect:
        debouncer.cancel()
