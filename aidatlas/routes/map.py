"""Map routes - pending help requests as urgency-colored markers.

``/map/config`` and ``/map/requests`` are one-shot reads. ``/ws/map`` is the
live map: it pushes a full frame on connect and again after every change
to the help_requests collection.
"""

from typing import List, Optional
import asyncio
import logging

from fastapi import APIRouter, WebSocket
from pydantic import BaseModel

from aidatlas.config.backend import BackendDep, get_backend
from aidatlas.routes.live import serve_view, websocket_sink
from aidatlas.services.map_view import MapView, MarkerLayer, fetch_map_requests, initialize_map_surface

logger = logging.getLogger(__name__)


class MapMarker(BaseModel):
    request_id: str
    lng: float
    lat: float
    color: str
    popup_html: str


class MapConfig(BaseModel):
    token: str
    style: str
    center: List[float]
    zoom: int
    controls: List[dict]


class MapFrame(BaseModel):
    map: Optional[MapConfig] = None
    active_count: int
    markers: List[MapMarker] = []


router = APIRouter(prefix="/map", tags=["Map"])
ws_router = APIRouter(tags=["Map"])


@router.get("/config", response_model=Optional[MapConfig])
async def map_config(backend: BackendDep):
    """
    Base map configuration (token, style, center, zoom, controls).

    Returns null when the token is unavailable; the page still renders
    without a map.
    """
    loop = asyncio.get_running_loop()
    surface = await loop.run_in_executor(None, initialize_map_surface, backend.functions)
    return surface.to_dict() if surface else None


@router.get("/requests", response_model=MapFrame)
async def map_requests(backend: BackendDep):
    """
    Every pending help request, newest first, as markers.

    Markers are only produced when the map itself can be drawn.
    """
    loop = asyncio.get_running_loop()
    surface = await loop.run_in_executor(None, initialize_map_surface, backend.functions)
    requests = await loop.run_in_executor(None, fetch_map_requests, backend.db)

    layer = MarkerLayer()
    if surface is not None:
        layer.render(requests)
    return {
        "map": surface.to_dict() if surface else None,
        "active_count": len(requests),
        "markers": [marker.to_dict() for marker in layer.markers],
    }


@ws_router.websocket("/ws/map")
async def map_feed(ws: WebSocket):
    """
    Live crisis map.

    After connection, the server pushes:
      { "type": "map", "map": {...} | null, "active_count": n, "markers": [...] }
    on connect and after every insert, update or delete of a help request.
    """
    await ws.accept()
    view = MapView(get_backend(), websocket_sink(ws))
    await serve_view(ws, view)
