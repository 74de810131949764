"""
End-to-end checks through the FastAPI app with the Firestore and Auth
doubles installed as the backend.
"""

import pytest

from aidatlas.services.geocoding.nominatim_provider import NominatimProvider
from aidatlas.services.request_repository import HELP_REQUESTS, PROFILES, RESPONSES
from conftest import MAP_TOKEN, seed_request

SUBMISSION = {
    "title": "Need insulin",
    "description": "Pharmacy flooded",
    "category": "medical",
    "urgency": "critical",
    "address": "Canal St",
    "latitude": 29.95,
    "longitude": -90.07,
}


def test_root_and_health(client):
    assert client.get("/").json()["service"] == "AidAtlas"
    assert client.get("/health").json()["status"] == "healthy"


def test_db_health_uses_backend(client, fake_db):
    seed_request(fake_db)

    resp = client.get("/health/db")

    assert resp.status_code == 200
    assert resp.json()["sampled_documents"] == 1


def test_session_cookie_flow(client, fake_auth, fake_db):
    resp = client.post("/auth/session", json={"id_token": fake_auth.add_user("vic-1"), "role": "victim"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["session"]["user_id"] == "vic-1"
    assert body["profile"]["role"] == "victim"
    assert "session" in resp.cookies
    assert list(fake_db.collection(PROFILES).docs) == ["vic-1"]

    assert client.get("/auth/me").json()["user_id"] == "vic-1"
    assert client.get("/nav").json()["action"]["label"] == "Sign Out"

    assert client.post("/auth/sign-out").status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_bad_id_token_is_401_with_toast(client):
    resp = client.post("/auth/session", json={"id_token": "forged"})

    assert resp.status_code == 401
    assert resp.json()["toast"] == "Invalid or expired sign-in token"


def test_nav_signed_out(client):
    assert client.get("/nav").json()["action"]["label"] == "Get Started"
    assert client.get("/about").json()["title"] == "About AidAtlas"


def test_profile_read_and_update(client, fake_auth):
    client.post("/auth/session", json={"id_token": fake_auth.add_user("vol-2"), "role": "volunteer"})

    assert client.get("/profiles/me").json()["role"] == "volunteer"

    resp = client.put("/profiles/me", json={"phone": "555-0100"})
    assert resp.status_code == 200
    assert resp.json()["phone"] == "555-0100"
    assert resp.json()["role"] == "volunteer"


def test_submit_request(client, auth_headers, fake_db, function_calls):
    resp = client.post("/requests", json=SUBMISSION, headers=auth_headers)

    assert resp.status_code == 201
    created = resp.json()
    assert created["status"] == "pending"
    assert created["responder_id"] is None
    assert created["user_id"] == "vol-1"
    assert created["ai_classification"] == {"suggested_category": "medical"}
    assert [name for name, _ in function_calls] == ["classify-request"]

    assert client.get(f"/requests/{created['id']}").json()["title"] == "Need insulin"


def test_submit_without_location_is_400_and_nothing_is_called(client, auth_headers, fake_db, function_calls):
    body = dict(SUBMISSION, latitude=None, longitude=None, address="")

    resp = client.post("/requests", json=body, headers=auth_headers)

    assert resp.status_code == 400
    assert "Please set your location" in resp.json()["errors"]
    assert function_calls == []
    assert fake_db.collection(HELP_REQUESTS).docs == {}


@pytest.fixture
def geocode_calls(monkeypatch):
    calls = []

    def geocode(self, address):
        calls.append(address)
        return {"latitude": 29.95, "longitude": -90.07, "display_name": address}

    monkeypatch.setattr(NominatimProvider, "geocode", geocode)
    return calls


def test_submit_with_address_but_no_coordinate_is_not_geocoded(
    client, auth_headers, fake_db, function_calls, geocode_calls
):
    body = dict(SUBMISSION, latitude=None, longitude=None)

    resp = client.post("/requests", json=body, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["errors"] == ["Please set your location"]
    assert geocode_calls == []
    assert function_calls == []
    assert fake_db.collection(HELP_REQUESTS).docs == {}


def test_submit_missing_title_makes_no_calls(client, auth_headers, fake_db, function_calls, geocode_calls):
    body = dict(SUBMISSION, title="", latitude=None, longitude=None)

    resp = client.post("/requests", json=body, headers=auth_headers)

    assert resp.status_code == 400
    assert "Request title is required." in resp.json()["errors"]
    assert geocode_calls == []
    assert function_calls == []
    assert fake_db.collection(HELP_REQUESTS).docs == {}


def test_locate_then_submit_with_captured_coordinate(client, auth_headers, fake_db, geocode_calls):
    located = client.post("/requests/locate", json={"address": "Canal St"}).json()
    body = dict(SUBMISSION, latitude=located["latitude"], longitude=located["longitude"])

    resp = client.post("/requests", json=body, headers=auth_headers)

    assert resp.status_code == 201
    assert geocode_calls == ["Canal St"]
    assert len(fake_db.collection(HELP_REQUESTS).docs) == 1


def test_submit_signed_out_is_401(client, fake_db):
    resp = client.post("/requests", json=SUBMISSION)

    assert resp.status_code == 401
    assert fake_db.collection(HELP_REQUESTS).docs == {}


def test_locate_with_device_coordinates(client):
    resp = client.post("/requests/locate", json={"latitude": 1.0, "longitude": 2.0})

    assert resp.json() == {"latitude": 1.0, "longitude": 2.0, "display_name": None}


def test_locate_with_nothing_is_recoverable(client):
    resp = client.post("/requests/locate", json={})

    assert resp.status_code == 422
    assert resp.json()["toast"] == "Could not get location. Please enable location services."


def test_missing_request_is_404(client):
    assert client.get("/requests/nope").status_code == 404


def test_map_endpoints(client, fake_db):
    seed_request(fake_db, urgency="high")

    assert client.get("/map/config").json()["token"] == MAP_TOKEN
    frame = client.get("/map/requests").json()
    assert frame["active_count"] == 1
    assert frame["markers"][0]["color"] == "#ea580c"


def test_dashboard_requires_session(client):
    assert client.get("/dashboard/requests").status_code == 401


def test_dashboard_filter_and_respond(client, auth_headers, fake_db):
    food = seed_request(fake_db, category="food", urgency="low")
    water = seed_request(fake_db, category="water", urgency="critical")

    everything = client.get("/dashboard/requests", headers=auth_headers).json()
    assert [r["id"] for r in everything] == [water, food]

    only_food = client.get("/dashboard/requests", params={"category": "food"}, headers=auth_headers).json()
    assert [r["id"] for r in only_food] == [food]

    assert client.get("/dashboard/requests", params={"category": "gossip"}, headers=auth_headers).status_code == 400

    resp = client.post(f"/dashboard/requests/{water}/respond", headers=auth_headers)
    assert resp.status_code == 201
    assert resp.json()["message"] == "I can help with this request"
    assert fake_db.collection(HELP_REQUESTS).docs[water]["responder_id"] == "vol-1"
    assert [r["id"] for r in client.get("/dashboard/requests", headers=auth_headers).json()] == [food]


def test_respond_patch_failure_surfaces_and_keeps_response(client, auth_headers, fake_db):
    request_id = seed_request(fake_db)
    fake_db.fail("update", HELP_REQUESTS)

    resp = client.post(f"/dashboard/requests/{request_id}/respond", headers=auth_headers)

    assert resp.status_code == 502
    assert resp.json()["toast"] == "Failed to update the help request"
    assert len(fake_db.collection(RESPONSES).docs) == 1


def test_functions_host(client, monkeypatch):
    from aidatlas.core.settings import settings
    monkeypatch.setattr(settings, "MAPBOX_PUBLIC_TOKEN", "pk.hosted")

    assert client.post("/functions/v1/get-mapbox-token").json() == {"token": "pk.hosted"}
    assert client.post("/functions/v1/classify-request", json={"title": "", "description": ""}).json() is None
    assert client.post("/functions/v1/unknown").status_code == 404


# --- live views ----------------------------------------------------------

def test_map_socket_pushes_on_connect_and_on_change(client, auth_headers, fake_db):
    seed_request(fake_db)

    with client.websocket_connect("/ws/map") as ws:
        first = ws.receive_json()
        assert first["type"] == "map"
        assert first["active_count"] == 1

        client.post("/requests", json=SUBMISSION, headers=auth_headers)
        second = ws.receive_json()
        assert second["active_count"] == 2

        ws.send_text("ping")
        assert ws.receive_json() == {"type": "pong"}

    assert fake_db.collection(HELP_REQUESTS).watchers == set()


def test_dashboard_socket_without_session_redirects(client):
    with client.websocket_connect("/ws/dashboard") as ws:
        assert ws.receive_json() == {"type": "redirect", "to": "/auth"}


def test_dashboard_socket_filter_and_respond(client, auth_headers, fake_db):
    food = seed_request(fake_db, category="food")
    water = seed_request(fake_db, category="water")

    with client.websocket_connect("/ws/dashboard", headers=auth_headers) as ws:
        assert ws.receive_json()["state"] == "loading"
        populated = ws.receive_json()
        assert populated["state"] == "populated"
        assert len(populated["requests"]) == 2

        ws.send_json({"action": "filter", "category": "water"})
        assert ws.receive_json()["state"] == "loading"
        filtered = ws.receive_json()
        assert [r["id"] for r in filtered["requests"]] == [water]

        ws.send_json({"action": "filter", "category": "gossip"})
        assert ws.receive_json()["type"] == "toast"

        ws.send_json({"action": "respond", "request_id": water})
        frames = [ws.receive_json(), ws.receive_json()]
        kinds = {f["type"] for f in frames}
        assert kinds == {"toast", "dashboard"}
        refreshed = next(f for f in frames if f["type"] == "dashboard")
        assert refreshed["requests"] == []

    assert fake_db.collection(HELP_REQUESTS).docs[food]["status"] == "pending"
