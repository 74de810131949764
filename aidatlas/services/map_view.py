"""
Map view - pending help requests as urgency-colored markers.

The marker layer is rebuilt from scratch on every refresh, so redrawing
the same request list always yields the same markers.
"""

from dataclasses import asdict, dataclass, field
from html import escape
from typing import Any, Dict, List, Optional, Tuple
import asyncio
import logging

from aidatlas.core.errors import AidAtlasError
from aidatlas.core.settings import settings
from aidatlas.functions import map_token
from aidatlas.models.help_request import HelpRequest, RequestStatus
from aidatlas.services.live_view import LiveView, Sink
from aidatlas.services.request_repository import RequestOrder, fetch_help_requests

logger = logging.getLogger(__name__)

URGENCY_COLORS = {
    "critical": "#dc2626",
    "high": "#ea580c",
    "medium": "#ca8a04",
}
DEFAULT_MARKER_COLOR = "#16a34a"

DEFAULT_CENTER: Tuple[float, float] = (0.0, 20.0)  # (lng, lat)
DEFAULT_ZOOM = 2


def urgency_color(urgency) -> str:
    """critical=red, high=orange, medium=yellow, anything else green."""
    value = getattr(urgency, "value", urgency)
    return URGENCY_COLORS.get(value, DEFAULT_MARKER_COLOR)


def popup_html(request: HelpRequest, color: str) -> str:
    category = escape(request.category.value)
    urgency = escape(request.urgency.value)
    return (
        '<div class="crisis-popup">'
        f"<h3>{escape(request.title)}</h3>"
        f"<p>{escape(request.description)}</p>"
        '<div class="crisis-popup-tags">'
        f'<span class="tag">{category}</span>'
        f'<span class="tag" style="background: {color}; color: white;">{urgency}</span>'
        "</div></div>"
    )


@dataclass
class Marker:
    request_id: str
    lng: float
    lat: float
    color: str
    popup_html: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MarkerLayer:
    def __init__(self):
        self.markers: List[Marker] = []

    def clear(self) -> None:
        self.markers = []

    def render(self, requests: List[HelpRequest]) -> List[Marker]:
        """Remove every existing marker, then add one per request."""
        self.clear()
        for request in requests:
            color = urgency_color(request.urgency)
            self.markers.append(Marker(
                request_id=request.id,
                lng=request.location_lng,
                lat=request.location_lat,
                color=color,
                popup_html=popup_html(request, color),
            ))
        return self.markers


@dataclass
class MapSurface:
    """Everything the client needs to draw the base map."""
    token: str
    style: str = "mapbox://styles/mapbox/streets-v12"
    center: List[float] = field(default_factory=lambda: list(DEFAULT_CENTER))
    zoom: int = DEFAULT_ZOOM
    controls: List[Dict[str, str]] = field(
        default_factory=lambda: [{"type": "navigation", "position": "top-right"}]
    )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def initialize_map_surface(functions) -> Optional[MapSurface]:
    """
    Fetch the map token and build the surface config.

    Returns None (map-less view) when the token is missing or the token
    function cannot be reached.
    """
    try:
        data = functions.invoke(map_token.NAME)
    except AidAtlasError as e:
        logger.error(f"Error initializing map: {e.message}")
        return None

    token = data.get("token") if isinstance(data, dict) else None
    if not token:
        logger.error("Error initializing map: token function returned no token")
        return None
    return MapSurface(token=token, style=settings.MAP_STYLE)


def fetch_map_requests(db) -> List[HelpRequest]:
    return fetch_help_requests(db, status=RequestStatus.PENDING, order=RequestOrder.NEWEST)


class MapView(LiveView):
    """Live map of every pending request, newest first."""

    def __init__(self, backend, sink: Sink):
        super().__init__(backend, sink)
        self.surface: Optional[MapSurface] = None
        self.layer = MarkerLayer()

    async def mount(self) -> None:
        loop = asyncio.get_running_loop()
        self.surface = await loop.run_in_executor(None, initialize_map_surface, self.backend.functions)
        await super().mount()

    def query(self) -> List[HelpRequest]:
        return fetch_map_requests(self.backend.db)

    async def render(self) -> None:
        if self.surface is not None:
            self.layer.render(self.requests)
        await self.sink(self.snapshot())

    def snapshot(self) -> Dict[str, Any]:
        return {
            "type": "map",
            "map": self.surface.to_dict() if self.surface else None,
            "active_count": len(self.requests),
            "markers": [marker.to_dict() for marker in self.layer.markers],
        }
