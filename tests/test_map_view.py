import asyncio

import pytest

from aidatlas.config.backend import Backend
from aidatlas.models.help_request import HelpRequest
from aidatlas.services.functions_client import FunctionsClient
from aidatlas.services.map_view import (
    DEFAULT_MARKER_COLOR,
    MapView,
    MarkerLayer,
    initialize_map_surface,
    popup_html,
    urgency_color,
)
from conftest import MAP_TOKEN, FakeAuth, FakeFirestore, seed_request, stub_handlers


def _request(request_id, urgency="high", **overrides):
    data = {
        "id": request_id,
        "user_id": "victim-1",
        "title": "Need water",
        "description": "Tap water unsafe",
        "category": "water",
        "urgency": urgency,
        "location_lat": 10.0,
        "location_lng": 20.0,
        "location_address": "Somewhere",
    }
    data.update(overrides)
    return HelpRequest(**data)


@pytest.mark.parametrize("urgency,color", [
    ("critical", "#dc2626"),
    ("high", "#ea580c"),
    ("medium", "#ca8a04"),
    ("low", DEFAULT_MARKER_COLOR),
    ("unheard-of", DEFAULT_MARKER_COLOR),
])
def test_urgency_color(urgency, color):
    assert urgency_color(urgency) == color


@pytest.mark.parametrize("count", [0, 1, 5])
def test_redrawing_same_requests_gives_same_markers(count):
    requests = [_request(f"r{i}") for i in range(count)]
    layer = MarkerLayer()

    first = [m.to_dict() for m in layer.render(requests)]
    second = [m.to_dict() for m in layer.render(requests)]

    assert len(second) == count
    assert first == second


def test_render_replaces_previous_markers():
    layer = MarkerLayer()
    layer.render([_request("a"), _request("b")])
    layer.render([_request("c")])

    assert [m.request_id for m in layer.markers] == ["c"]


def test_marker_uses_request_coordinates_and_color():
    marker = MarkerLayer().render([_request("a", urgency="critical")])[0]

    assert (marker.lng, marker.lat) == (20.0, 10.0)
    assert marker.color == "#dc2626"
    assert "Need water" in marker.popup_html


def test_popup_escapes_user_text():
    html = popup_html(_request("a", title="<script>alert(1)</script>"), "#000")
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_surface_uses_world_view_defaults():
    surface = initialize_map_surface(FunctionsClient(handlers=stub_handlers()))

    assert surface.token == MAP_TOKEN
    assert surface.center == [0.0, 20.0]
    assert surface.zoom == 2
    assert surface.controls == [{"type": "navigation", "position": "top-right"}]


def test_surface_is_none_when_token_unavailable():
    assert initialize_map_surface(FunctionsClient(handlers=stub_handlers(map_status=500))) is None


def _mount_map(db, handlers):
    backend = Backend(db, auth_client=FakeAuth(), functions=FunctionsClient(handlers=handlers))
    frames = []

    async def sink(frame):
        frames.append(frame)

    async def run():
        view = MapView(backend, sink)
        await view.mount()
        await view.unmount()

    asyncio.run(run())
    return frames


def test_map_view_pushes_markers_for_pending_requests():
    db = FakeFirestore()
    seed_request(db, urgency="critical")
    seed_request(db, status="in_progress")

    frames = _mount_map(db, stub_handlers())

    assert frames[-1]["type"] == "map"
    assert frames[-1]["map"]["token"] == MAP_TOKEN
    assert frames[-1]["active_count"] == 1
    assert [m["color"] for m in frames[-1]["markers"]] == ["#dc2626"]


def test_map_view_without_token_renders_no_markers():
    db = FakeFirestore()
    seed_request(db)

    frames = _mount_map(db, stub_handlers(map_status=500))

    assert frames[-1]["map"] is None
    assert frames[-1]["active_count"] == 1
    assert frames[-1]["markers"] == []
