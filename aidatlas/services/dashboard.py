"""
Volunteer dashboard - filterable pending requests with a respond action.

States: redirect (no session), loading, populated. Changing the filter
goes populated -> loading -> populated and re-issues the query.

The respond action is two independent writes. If the status patch fails
after the response was recorded, the response stays and the error is
surfaced; nothing is rolled back.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
import asyncio
import logging

from aidatlas.core.errors import AidAtlasError, UnauthenticatedError, ValidationFailure
from aidatlas.core.settings import settings
from aidatlas.models.help_request import HelpRequest, HelpRequestUpdate, RequestCategory, RequestStatus
from aidatlas.models.profile import AuthSession
from aidatlas.models.response import DEFAULT_RESPONSE_MESSAGE, Response
from aidatlas.services.live_view import LiveView, Sink
from aidatlas.services.request_repository import (
    RequestOrder,
    fetch_help_requests,
    insert_response,
    update_help_request,
)
from aidatlas.services.session_observer import SIGNED_OUT, AuthStateEvent, AuthSubscription

logger = logging.getLogger(__name__)

FILTER_ALL = "all"
FILTERS = [FILTER_ALL] + [c.value for c in RequestCategory]


class DashboardState(str, Enum):
    REDIRECT = "redirect"
    LOADING = "loading"
    POPULATED = "populated"


def parse_filter(value: Optional[str]) -> str:
    value = (value or FILTER_ALL).strip().lower()
    if value not in FILTERS:
        raise ValidationFailure([f"Unknown category filter: {value}"])
    return value


def fetch_dashboard_requests(db, category_filter: str = FILTER_ALL) -> List[HelpRequest]:
    """Pending requests, most urgent first, newest first within an urgency."""
    category = None if category_filter == FILTER_ALL else RequestCategory(category_filter)
    return fetch_help_requests(db, status=RequestStatus.PENDING, category=category, order=RequestOrder.URGENCY)


def respond_to_request(
    db,
    session: Optional[AuthSession],
    request_id: str,
    message: Optional[str] = DEFAULT_RESPONSE_MESSAGE,
) -> Response:
    """
    Record a response, then mark the request in progress with this responder.

    Not transactional: a failed patch leaves the response in place.
    """
    if session is None:
        raise UnauthenticatedError()

    response = insert_response(db, session, request_id, message)
    try:
        update_help_request(
            db,
            request_id,
            HelpRequestUpdate(status=RequestStatus.IN_PROGRESS, responder_id=session.user_id),
        )
    except AidAtlasError:
        logger.error(
            f"Response {response.id} recorded but request {request_id} is still pending "
            f"(status update failed)"
        )
        raise
    logger.info(f"Request {request_id} in progress, responder {session.user_id}")
    return response


class DashboardView(LiveView):
    def __init__(self, backend, sink: Sink, session: Optional[AuthSession], category_filter: str = FILTER_ALL):
        super().__init__(backend, sink)
        self.session = session
        self.filter = parse_filter(category_filter)
        self.state = DashboardState.LOADING
        self._auth_subscription: Optional[AuthSubscription] = None

    async def mount(self) -> None:
        if self.session is None:
            await self._redirect()
            return
        self._loop = asyncio.get_running_loop()
        self._auth_subscription = self.backend.sessions.on_auth_state_change(self._on_auth_change)
        await self._set_state(DashboardState.LOADING)
        await super().mount()

    async def unmount(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None
        await super().unmount()

    async def set_filter(self, category_filter: Optional[str]) -> None:
        previous = self.filter
        self.filter = parse_filter(category_filter)
        await self._set_state(DashboardState.LOADING)
        await self.refresh()
        if self.mounted and self.state == DashboardState.LOADING:
            # Re-fetch failed: fall back to the last populated list
            self.filter = previous
            await self.render()

    async def respond(self, request_id: str, message: Optional[str] = DEFAULT_RESPONSE_MESSAGE) -> Optional[Response]:
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(
                None, respond_to_request, self.backend.db, self.session, request_id, message
            )
        except AidAtlasError as e:
            await self.toast(e.message or "Failed to respond")
            return None
        await self.toast("Response sent successfully!", kind="success")
        return response

    def query(self) -> List[HelpRequest]:
        return fetch_dashboard_requests(self.backend.db, self.filter)

    async def render(self) -> None:
        self.state = DashboardState.POPULATED
        await self.sink(self.snapshot())

    def snapshot(self) -> Dict[str, Any]:
        return {
            "type": "dashboard",
            "state": self.state.value,
            "filter": self.filter,
            "requests": [r.model_dump(mode="json") for r in self.requests],
        }

    async def _set_state(self, state: DashboardState) -> None:
        self.state = state
        await self.sink({"type": "state", "state": state.value, "filter": self.filter})

    async def _redirect(self) -> None:
        self.state = DashboardState.REDIRECT
        self.mounted = False
        await self.sink({"type": "redirect", "to": settings.SIGN_IN_PATH})

    def _on_auth_change(self, event: AuthStateEvent) -> None:
        if event.kind != SIGNED_OUT or self.session is None or event.user_id != self.session.user_id:
            return
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._spawn_signed_out)

    def _spawn_signed_out(self) -> None:
        self.session = None
        task = asyncio.ensure_future(self._handle_signed_out())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _handle_signed_out(self) -> None:
        await self.unmount()
        await self._redirect()
