"""
Navigation shell endpoints - the header every page renders.
"""

from fastapi import APIRouter

from aidatlas.routes.auth import OptionalSessionDep
from aidatlas.services.navigation import ABOUT, build_navigation

router = APIRouter(tags=["Navigation"])


@router.get("/nav")
async def navigation(session: OptionalSessionDep):
    """
    Brand, links and the auth-aware action.

    Signed in -> "Sign Out"; otherwise "Get Started".
    """
    return build_navigation(session)


@router.get("/about")
async def about():
    return ABOUT
