"""
Volunteer dashboard endpoints.

Signed-in volunteers browse pending requests (most urgent first), filter
by category and respond. ``/ws/dashboard`` is the live version.
"""

from typing import List, Optional
import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, status

from aidatlas.config.backend import BackendDep, get_backend
from aidatlas.core.errors import ValidationFailure
from aidatlas.models.help_request import HelpRequest
from aidatlas.models.response import DEFAULT_RESPONSE_MESSAGE, Response, ResponseCreate
from aidatlas.routes.auth import CurrentSessionDep, resolve_session
from aidatlas.routes.live import serve_view, websocket_sink
from aidatlas.services.dashboard import (
    FILTER_ALL,
    DashboardView,
    fetch_dashboard_requests,
    parse_filter,
    respond_to_request,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])
ws_router = APIRouter(tags=["Dashboard"])


@router.get("/requests", response_model=List[HelpRequest])
async def dashboard_requests(
    session: CurrentSessionDep,
    backend: BackendDep,
    category: Optional[str] = Query(FILTER_ALL, description="'all' or a request category"),
):
    """
    Pending requests for the dashboard.

    Ordered by urgency (critical first), then newest first.
    """
    category_filter = parse_filter(category)
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fetch_dashboard_requests, backend.db, category_filter)


@router.post("/requests/{request_id}/respond", status_code=status.HTTP_201_CREATED, response_model=Response)
async def respond(
    request_id: str,
    session: CurrentSessionDep,
    backend: BackendDep,
    payload: Optional[ResponseCreate] = None,
):
    """
    Offer help on a request.

    Records a response, then marks the request in progress with the caller
    as responder. If the second write fails the response is kept and the
    error is returned.
    """
    message = payload.message if payload is not None else DEFAULT_RESPONSE_MESSAGE
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, respond_to_request, backend.db, session, request_id, message)


@ws_router.websocket("/ws/dashboard")
async def dashboard_feed(ws: WebSocket):
    """
    Live dashboard.

    Server pushes:
      { "type": "redirect", "to": "/auth" }                 no session
      { "type": "state", "state": "loading", ... }          before each fetch
      { "type": "dashboard", "state": "populated", ... }    after each fetch
      { "type": "toast", "kind": ..., "message": ... }

    Client can send:
      { "action": "filter", "category": "all" | <category> }
      { "action": "respond", "request_id": "<id>" }
    """
    await ws.accept()
    backend = get_backend()
    loop = asyncio.get_running_loop()
    session = await loop.run_in_executor(None, resolve_session, backend, ws.cookies, ws.headers)
    try:
        view = DashboardView(backend, websocket_sink(ws), session, ws.query_params.get("category"))
    except ValidationFailure as e:
        await ws.send_json({"type": "toast", "kind": "error", "message": e.message})
        await ws.close(code=4400)
        return

    async def on_message(message: dict) -> None:
        action = message.get("action")
        if action == "filter":
            await view.set_filter(message.get("category"))
        elif action == "respond":
            request_id = message.get("request_id")
            if not request_id:
                raise ValidationFailure(["request_id is required"])
            await view.respond(str(request_id), message.get("message") or DEFAULT_RESPONSE_MESSAGE)
        else:
            raise ValidationFailure([f"Unknown action: {action}"])

    await serve_view(ws, view, on_message)
