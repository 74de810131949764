"""
WebSocket plumbing shared by the live map and dashboard feeds.

A connected socket is a mounted view: the view is mounted right after
accept and unmounted when the client goes away, however that happens.
"""

from typing import Any, Awaitable, Callable, Dict, Optional
import json
import logging

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from aidatlas.core.errors import AidAtlasError
from aidatlas.services.live_view import LiveView, Sink

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Dict[str, Any]], Awaitable[None]]


def websocket_sink(ws: WebSocket) -> Sink:
    async def send(frame: Dict[str, Any]) -> None:
        if ws.client_state != WebSocketState.CONNECTED:
            logger.debug(f"Dropping '{frame.get('type')}' frame for a closed socket")
            return
        try:
            await ws.send_json(frame)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.info(f"Could not push '{frame.get('type')}' frame: {e}")
    return send


async def serve_view(ws: WebSocket, view: LiveView, on_message: Optional[MessageHandler] = None) -> None:
    """
    Run ``view`` for the lifetime of the socket.

    Client messages:
      "ping"        -> {"type": "pong"}
      JSON object   -> handed to ``on_message``
    """
    try:
        await view.mount()
        if not view.mounted:
            # Redirected before mounting (no session)
            await ws.close(code=4401)
            return
        while True:
            data = await ws.receive_text()
            if data == "ping":
                await ws.send_json({"type": "pong"})
                continue
            try:
                message = json.loads(data)
            except ValueError:
                await view.toast("Malformed message")
                continue
            if not isinstance(message, dict) or on_message is None:
                await view.toast("Unsupported message")
                continue
            try:
                await on_message(message)
            except AidAtlasError as e:
                logger.info(f"{type(view).__name__} message rejected: {e.message}")
                await view.toast(e.message)
    except WebSocketDisconnect:
        logger.debug(f"{type(view).__name__} client disconnected")
    finally:
        await view.unmount()
