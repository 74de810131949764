"""
Live views - query + subscribe + push.

A view fetches its query when mounted and re-fetches the whole query on
every change event from the feed. There is no incremental merge and no
sequencing between overlapping fetches: whichever fetch resolves last is
what the client sees. Results that resolve after unmount are dropped.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Set
import asyncio
import logging

from aidatlas.core.errors import AidAtlasError
from aidatlas.models.help_request import HelpRequest
from aidatlas.services.change_feed import ChangeEvent, ChangeSubscription
from aidatlas.services.request_repository import HELP_REQUESTS

logger = logging.getLogger(__name__)

Sink = Callable[[Dict[str, Any]], Awaitable[None]]


class LiveView:
    """Base class for views backed by a help_requests query."""

    collection = HELP_REQUESTS

    def __init__(self, backend, sink: Sink):
        self.backend = backend
        self.sink = sink
        self.mounted = False
        self.requests: List[HelpRequest] = []
        self.fetch_count = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._subscription: Optional[ChangeSubscription] = None
        self._pending: Set[asyncio.Task] = set()

    def query(self) -> List[HelpRequest]:
        """Run the view's current query (blocking; called in an executor)."""
        raise NotImplementedError

    async def render(self) -> None:
        """Push the current state to the client."""
        raise NotImplementedError

    async def mount(self) -> None:
        self._loop = asyncio.get_running_loop()
        self.mounted = True
        self._subscription = self.backend.feed.subscribe(self.collection, self._on_change)
        await self.refresh()

    async def unmount(self) -> None:
        self.mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def refresh(self) -> None:
        """Fetch the view's query and render it, unless unmounted meanwhile."""
        self.fetch_count += 1
        loop = asyncio.get_running_loop()
        try:
            requests = await loop.run_in_executor(None, self.query)
        except AidAtlasError as e:
            logger.warning(f"{type(self).__name__} refresh failed: {e.message}")
            if self.mounted:
                await self.toast(e.message)
            return

        if not self.mounted:
            logger.debug(f"{type(self).__name__} discarded a fetch that resolved after unmount")
            return
        self.requests = requests
        await self.render()

    async def toast(self, message: str, kind: str = "error") -> None:
        await self.sink({"type": "toast", "kind": kind, "message": message})

    async def wait_idle(self) -> None:
        """Wait for refreshes triggered by change events to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_change(self, event: ChangeEvent) -> None:
        # Called on the Firestore watch thread
        if not self.mounted or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._spawn_refresh)

    def _spawn_refresh(self) -> None:
        if not self.mounted:
            return
        task = asyncio.ensure_future(self.refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
