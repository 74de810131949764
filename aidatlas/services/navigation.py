"""
Navigation shell - the auth-aware link set shown on every page.
"""

from typing import Any, Dict, Optional

from aidatlas.core.settings import settings
from aidatlas.models.profile import AuthSession

NAV_LINKS = [
    {"label": "Crisis Map", "href": "/map"},
    {"label": "Dashboard", "href": "/dashboard"},
    {"label": "About", "href": "/about"},
]

ABOUT = {
    "title": "About AidAtlas",
    "mission": (
        "AidAtlas connects people affected by disasters with volunteers who can help. "
        "Victims post requests with their location and urgency; volunteers browse, "
        "filter and respond in real time."
    ),
    "how_it_works": [
        "Post a request with what you need and where you are",
        "Requests appear instantly on the crisis map and volunteer dashboard",
        "A volunteer responds and the request moves to in progress",
    ],
}


def build_navigation(session: Optional[AuthSession]) -> Dict[str, Any]:
    if session is not None:
        action = {"label": "Sign Out", "href": "/auth/sign-out", "method": "POST"}
    else:
        action = {"label": "Get Started", "href": settings.SIGN_IN_PATH, "method": "GET"}
    return {
        "brand": {"label": settings.APP_NAME, "href": "/"},
        "links": [dict(link) for link in NAV_LINKS],
        "action": action,
        "signed_in": session is not None,
    }
