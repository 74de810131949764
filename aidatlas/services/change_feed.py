"""
Change feed - push notifications for Firestore collections.

Wraps Firestore real-time listeners (``on_snapshot``) in a small
subscribe -> cancelable handle abstraction. Listeners are called on the
Firestore watch thread; callers that live on an event loop must hop back
onto it themselves.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple
import logging
import threading

logger = logging.getLogger(__name__)

EVENT_INSERT = "INSERT"
EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"
ALL_EVENTS = "*"

# Firestore DocumentChange.type names -> row-level event kinds
_CHANGE_KINDS = {
    "ADDED": EVENT_INSERT,
    "MODIFIED": EVENT_UPDATE,
    "REMOVED": EVENT_DELETE,
}


@dataclass
class ChangeEvent:
    """One snapshot's worth of changes on a watched collection."""
    collection: str
    kinds: List[str] = field(default_factory=list)
    document_ids: List[str] = field(default_factory=list)
    read_time: Optional[datetime] = None


class ChangeSubscription:
    """Handle returned by ``subscribe``. ``unsubscribe`` is safe to call twice."""

    def __init__(self, collection: str, cancel: Callable[[], None]):
        self.collection = collection
        self._cancel = cancel
        self._lock = threading.Lock()
        self.active = True

    def unsubscribe(self) -> None:
        with self._lock:
            if not self.active:
                return
            self.active = False
        try:
            self._cancel()
        except Exception as e:
            logger.warning(f"Failed to close listener on '{self.collection}': {e}")


def _describe_changes(changes) -> Tuple[List[str], List[str]]:
    kinds: List[str] = []
    doc_ids: List[str] = []
    for change in changes or []:
        type_name = getattr(change.type, "name", str(change.type))
        kinds.append(_CHANGE_KINDS.get(type_name, type_name))
        document = getattr(change, "document", None)
        if document is not None:
            doc_ids.append(document.id)
    return kinds, doc_ids


class FirestoreChangeFeed:
    """
    Subscribe to insert/update/delete events on a Firestore collection.

    The listener's first snapshot reflects existing documents and is not
    reported. Every later snapshot becomes exactly one ``ChangeEvent``.
    """

    def __init__(self, db):
        self.db = db

    def subscribe(
        self,
        collection: str,
        callback: Callable[[ChangeEvent], None],
        events: Iterable[str] = (ALL_EVENTS,),
    ) -> ChangeSubscription:
        wanted = set(events)
        state = {"initial": True}

        def on_snapshot(docs, changes, read_time):
            if state["initial"]:
                state["initial"] = False
                return

            kinds, doc_ids = _describe_changes(changes)
            if not kinds:
                return
            if ALL_EVENTS not in wanted and not wanted.intersection(kinds):
                return

            event = ChangeEvent(collection=collection, kinds=kinds, document_ids=doc_ids, read_time=read_time)
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Change listener for '{collection}' failed: {e}", exc_info=True)

        watch = self.db.collection(collection).on_snapshot(on_snapshot)
        logger.info(f"Subscribed to changes on '{collection}' (events={sorted(wanted)})")
        return ChangeSubscription(collection, watch.unsubscribe)
