"""
Auth Session Observer - tracks signed-in identities and session changes.

Sessions are Firebase session cookies minted from client ID tokens.
Protected views resolve the session when they mount and subscribe to
sign-in / sign-out notifications for as long as they stay mounted.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, List, Optional, Tuple
import logging
import threading

from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from aidatlas.core.errors import BackendCallError, UnauthenticatedError
from aidatlas.models.profile import AuthSession

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


@dataclass
class AuthStateEvent:
    kind: str
    user_id: str
    session: Optional[AuthSession] = None


AuthListener = Callable[[AuthStateEvent], None]


class AuthSubscription:
    def __init__(self, observer: "AuthSessionObserver", listener: AuthListener):
        self._observer = observer
        self._listener = listener

    def unsubscribe(self) -> None:
        self._observer._remove_listener(self._listener)


def _session_from_claims(claims: dict) -> AuthSession:
    return AuthSession(
        user_id=claims.get("uid") or claims.get("sub"),
        email=claims.get("email"),
        name=claims.get("name"),
    )


class AuthSessionObserver:
    """
    Resolves sessions and fans out session-change events.

    ``auth_client`` is anything exposing the ``firebase_admin.auth`` calls used
    here (the module itself in production).
    """

    def __init__(self, auth_client=None, expires_in: timedelta = timedelta(days=5)):
        self.auth = auth_client if auth_client is not None else firebase_auth
        self.expires_in = expires_in
        self._listeners: List[AuthListener] = []
        self._lock = threading.Lock()

    def sign_in(self, id_token: str) -> Tuple[str, AuthSession]:
        """Verify an ID token and mint a session cookie for it."""
        try:
            claims = self.auth.verify_id_token(id_token)
        except (firebase_auth.InvalidIdTokenError, firebase_auth.UserDisabledError, ValueError) as e:
            logger.warning(f"Rejected ID token: {e}")
            raise UnauthenticatedError("Invalid or expired sign-in token")

        try:
            cookie = self.auth.create_session_cookie(id_token, expires_in=self.expires_in)
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"Failed to create session cookie: {e}", exc_info=True)
            raise BackendCallError("Could not start a session. Please try again.")

        session = _session_from_claims(claims)
        logger.info(f"User signed in: {session.user_id}")
        self._notify(AuthStateEvent(kind=SIGNED_IN, user_id=session.user_id, session=session))
        return cookie, session

    def get_session(self, cookie: Optional[str]) -> Optional[AuthSession]:
        """Return the session for ``cookie``, or None if missing, expired or revoked."""
        if not cookie:
            return None
        try:
            claims = self.auth.verify_session_cookie(cookie, check_revoked=True)
        except (firebase_auth.InvalidSessionCookieError, firebase_auth.UserDisabledError, ValueError) as e:
            logger.info(f"Session cookie rejected: {e}")
            return None
        except firebase_exceptions.FirebaseError as e:
            logger.warning(f"Session lookup failed: {e}")
            return None
        return _session_from_claims(claims)

    def sign_out(self, session: AuthSession) -> None:
        """Revoke the user's tokens so every outstanding cookie stops verifying."""
        try:
            self.auth.revoke_refresh_tokens(session.user_id)
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"Failed to revoke tokens for {session.user_id}: {e}", exc_info=True)
            raise BackendCallError("Sign out failed. Please try again.")
        logger.info(f"User signed out: {session.user_id}")
        self._notify(AuthStateEvent(kind=SIGNED_OUT, user_id=session.user_id))

    def on_auth_state_change(self, listener: AuthListener) -> AuthSubscription:
        with self._lock:
            self._listeners.append(listener)
        return AuthSubscription(self, listener)

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _remove_listener(self, listener: AuthListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, event: AuthStateEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Auth listener failed on {event.kind}: {e}", exc_info=True)
