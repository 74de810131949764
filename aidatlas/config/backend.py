"""
Backend handle - the one long-lived bundle of managed-service clients.

Built once at startup and shared by every route and view:
Firestore, Firebase Auth (through the session observer), the change feed
and the functions client.
"""

from datetime import timedelta
from typing import Annotated, Optional
import logging

from fastapi import Depends

from aidatlas.config.firebase import get_db
from aidatlas.core.settings import settings
from aidatlas.services.change_feed import FirestoreChangeFeed
from aidatlas.services.functions_client import FunctionsClient, build_functions_client
from aidatlas.services.session_observer import AuthSessionObserver

logger = logging.getLogger(__name__)


class Backend:
    def __init__(
        self,
        db,
        auth_client=None,
        change_feed=None,
        functions: Optional[FunctionsClient] = None,
    ):
        self.db = db
        self.sessions = AuthSessionObserver(
            auth_client, expires_in=timedelta(days=settings.SESSION_EXPIRES_DAYS)
        )
        self.feed = change_feed if change_feed is not None else FirestoreChangeFeed(db)
        self.functions = functions if functions is not None else build_functions_client()


_backend: Optional[Backend] = None


def initialize_backend() -> Backend:
    global _backend
    if _backend is None:
        _backend = Backend(get_db())
        logger.info("Backend handle initialized")
    return _backend


def configure_backend(backend: Optional[Backend]) -> None:
    """Install a prebuilt backend (tests, scripts). Pass None to reset."""
    global _backend
    _backend = backend


def get_backend() -> Backend:
    if _backend is None:
        return initialize_backend()
    return _backend


BackendDep = Annotated[Backend, Depends(get_backend)]
