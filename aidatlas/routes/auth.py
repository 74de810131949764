"""
Authentication endpoints - Firebase ID token in, session cookie out.

The client signs in with the Firebase client SDK and posts the resulting
ID token here. The server mints a session cookie, makes sure a profile
exists, and from then on every request carries the cookie (or the same
value as a Bearer token).
"""

from typing import Annotated, Mapping, Optional
import asyncio
import logging

from fastapi import APIRouter, Depends, Request, Response, status

from aidatlas.config.backend import Backend, BackendDep
from aidatlas.core.errors import UnauthenticatedError
from aidatlas.core.settings import settings
from aidatlas.models.profile import AuthSession, SessionCreate, SessionResponse
from aidatlas.services.profile_service import ensure_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def session_token(cookies: Mapping[str, str], headers: Mapping[str, str]) -> Optional[str]:
    """Session cookie value, falling back to an ``Authorization: Bearer`` header."""
    token = cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    header = headers.get("authorization") or ""
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def resolve_session(backend: Backend, cookies: Mapping[str, str], headers: Mapping[str, str]) -> Optional[AuthSession]:
    return backend.sessions.get_session(session_token(cookies, headers))


def get_optional_session(request: Request, backend: BackendDep) -> Optional[AuthSession]:
    return resolve_session(backend, request.cookies, request.headers)


def get_current_session(session: Annotated[Optional[AuthSession], Depends(get_optional_session)]) -> AuthSession:
    if session is None:
        raise UnauthenticatedError()
    return session


OptionalSessionDep = Annotated[Optional[AuthSession], Depends(get_optional_session)]
CurrentSessionDep = Annotated[AuthSession, Depends(get_current_session)]


@router.post("/session", response_model=SessionResponse)
async def create_session(payload: SessionCreate, response: Response, backend: BackendDep):
    """
    Exchange a Firebase ID token for a session cookie.

    Creates the caller's profile on first sign-in.

    Args:
        payload: ID token plus optional profile bootstrap fields

    Returns:
        SessionResponse with the resolved session and profile
    """
    loop = asyncio.get_running_loop()
    cookie, session = await loop.run_in_executor(None, backend.sessions.sign_in, payload.id_token)
    profile = await loop.run_in_executor(
        None, ensure_profile, backend.db, session, payload.full_name, payload.role
    )

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=cookie,
        max_age=int(backend.sessions.expires_in.total_seconds()),
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return SessionResponse(success=True, message="Signed in", session=session, profile=profile)


@router.post("/sign-out", status_code=status.HTTP_200_OK)
async def sign_out(response: Response, session: CurrentSessionDep, backend: BackendDep):
    """
    Revoke the user's sessions and clear the cookie.

    Open dashboards for this user are notified and redirect to sign-in.
    """
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, backend.sessions.sign_out, session)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"success": True, "message": "Signed out", "redirect": settings.SIGN_IN_PATH}


@router.get("/me", response_model=AuthSession)
async def get_me(session: CurrentSessionDep):
    return session
