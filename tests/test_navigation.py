from aidatlas.models.profile import AuthSession
from aidatlas.services.navigation import build_navigation


def test_signed_out_shows_get_started():
    nav = build_navigation(None)

    assert nav["action"] == {"label": "Get Started", "href": "/auth", "method": "GET"}
    assert not nav["signed_in"]


def test_signed_in_shows_sign_out():
    nav = build_navigation(AuthSession(user_id="u1"))

    assert nav["action"]["label"] == "Sign Out"
    assert nav["action"]["method"] == "POST"
    assert nav["signed_in"]


def test_links_are_the_same_either_way():
    expected = [("Crisis Map", "/map"), ("Dashboard", "/dashboard"), ("About", "/about")]

    for session in (None, AuthSession(user_id="u1")):
        links = [(link["label"], link["href"]) for link in build_navigation(session)["links"]]
        assert links == expected
