"""
Request repository - reads and writes help requests and responses in Firestore.

DESIGN NOTE:
- Identity on every write comes from the authenticated session, never the caller
- Queries use equality predicates only; ordering is applied after the query
- Any Firestore failure is logged and re-raised as BackendCallError
"""

from enum import Enum
from typing import Any, List, Optional
import logging

from google.api_core import exceptions as google_exceptions

from aidatlas.core.errors import BackendCallError, NotFoundError, UnauthenticatedError
from aidatlas.models.help_request import (
    URGENCY_RANK,
    HelpRequest,
    HelpRequestCreate,
    HelpRequestUpdate,
    RequestCategory,
    RequestStatus,
)
from aidatlas.models.profile import AuthSession
from aidatlas.models.response import Response
from aidatlas.utils.firestore_helpers import doc_to_dict, utc_now, where_filter

logger = logging.getLogger(__name__)

HELP_REQUESTS = "help_requests"
PROFILES = "profiles"
RESPONSES = "responses"


class RequestOrder(str, Enum):
    NEWEST = "newest"    # created_at desc
    URGENCY = "urgency"  # urgency desc, then created_at desc


def _created_key(request: HelpRequest) -> float:
    return request.created_at.timestamp() if request.created_at else float("-inf")


def sort_requests(requests: List[HelpRequest], order: RequestOrder) -> List[HelpRequest]:
    if order == RequestOrder.URGENCY:
        return sorted(
            requests,
            key=lambda r: (URGENCY_RANK.get(r.urgency.value, -1), _created_key(r)),
            reverse=True,
        )
    return sorted(requests, key=_created_key, reverse=True)


def fetch_help_requests(
    db,
    status: RequestStatus = RequestStatus.PENDING,
    category: Optional[RequestCategory] = None,
    order: RequestOrder = RequestOrder.NEWEST,
) -> List[HelpRequest]:
    """Return every help request matching ``status`` (and ``category`` if given)."""
    try:
        query = where_filter(db.collection(HELP_REQUESTS), "status", "==", RequestStatus(status).value)
        if category is not None:
            query = where_filter(query, "category", "==", RequestCategory(category).value)
        docs = list(query.stream())
    except Exception as e:
        logger.error(f"Failed to query help requests (status={status}, category={category}): {e}", exc_info=True)
        raise BackendCallError("Could not load help requests") from e

    requests: List[HelpRequest] = []
    for doc in docs:
        try:
            requests.append(HelpRequest(**doc_to_dict(doc)))
        except ValueError as e:
            logger.warning(f"Skipping malformed help request {doc.id}: {e}")
    return sort_requests(requests, order)


def get_help_request(db, request_id: str) -> HelpRequest:
    try:
        doc = db.collection(HELP_REQUESTS).document(request_id).get()
    except Exception as e:
        logger.error(f"Failed to load help request {request_id}: {e}", exc_info=True)
        raise BackendCallError("Could not load the help request") from e
    if not doc.exists:
        raise NotFoundError("Help request not found")
    return HelpRequest(**doc_to_dict(doc))


def insert_help_request(
    db,
    session: Optional[AuthSession],
    data: HelpRequestCreate,
    classification: Optional[Any] = None,
) -> HelpRequest:
    """
    Create a pending help request owned by the signed-in user.

    ``classification`` is stored verbatim; it is never read back for decisions.
    """
    if session is None:
        raise UnauthenticatedError("Not authenticated")

    now = utc_now()
    record = data.model_dump(mode="json")
    record.update({
        "user_id": session.user_id,
        "status": RequestStatus.PENDING.value,
        "responder_id": None,
        "ai_classification": classification,
        "created_at": now,
        "updated_at": now,
    })

    try:
        doc_ref = db.collection(HELP_REQUESTS).document()
        doc_ref.set(record)
    except Exception as e:
        logger.error(f"Failed to insert help request for {session.user_id}: {e}", exc_info=True)
        raise BackendCallError("Failed to post request") from e

    logger.info(f"Help request created: {doc_ref.id} ({record['category']}/{record['urgency']})")
    return HelpRequest(id=doc_ref.id, **record)


def insert_response(
    db,
    session: Optional[AuthSession],
    request_id: str,
    message: Optional[str] = None,
) -> Response:
    if session is None:
        raise UnauthenticatedError("Not authenticated")

    record = {
        "request_id": request_id,
        "responder_id": session.user_id,
        "message": message,
        "status": None,
        "created_at": utc_now(),
    }
    try:
        doc_ref = db.collection(RESPONSES).document()
        doc_ref.set(record)
    except Exception as e:
        logger.error(f"Failed to insert response to {request_id}: {e}", exc_info=True)
        raise BackendCallError("Failed to respond") from e

    logger.info(f"Response {doc_ref.id} recorded for request {request_id} by {session.user_id}")
    return Response(id=doc_ref.id, **record)


def update_help_request(db, request_id: str, patch: HelpRequestUpdate) -> HelpRequest:
    """Apply a partial patch to one help request and return the stored result."""
    changes = patch.to_patch()
    changes["updated_at"] = utc_now()

    doc_ref = db.collection(HELP_REQUESTS).document(request_id)
    try:
        doc_ref.update(changes)
        doc = doc_ref.get()
    except google_exceptions.NotFound as e:
        raise NotFoundError("Help request not found") from e
    except Exception as e:
        logger.error(f"Failed to update help request {request_id}: {e}", exc_info=True)
        raise BackendCallError("Failed to update the help request") from e

    return HelpRequest(**doc_to_dict(doc))

