"""
Profile Service - one profile document per authenticated identity.

Profile documents are keyed by the user id, so there is never more than
one per identity.
"""

from typing import Optional
import logging

from aidatlas.core.errors import BackendCallError, NotFoundError
from aidatlas.models.profile import AuthSession, Profile, ProfileUpdate, UserRole
from aidatlas.services.request_repository import PROFILES
from aidatlas.utils.firestore_helpers import doc_to_dict, utc_now

logger = logging.getLogger(__name__)


def get_profile(db, user_id: str) -> Optional[Profile]:
    try:
        doc = db.collection(PROFILES).document(user_id).get()
    except Exception as e:
        logger.error(f"Failed to load profile for {user_id}: {e}", exc_info=True)
        raise BackendCallError("Could not load profile") from e
    if not doc.exists:
        return None
    return Profile(**doc_to_dict(doc))


def ensure_profile(
    db,
    session: AuthSession,
    full_name: Optional[str] = None,
    role: UserRole = UserRole.VICTIM,
) -> Profile:
    """Return the user's profile, creating it on first sign-in."""
    existing = get_profile(db, session.user_id)
    if existing is not None:
        return existing

    now = utc_now()
    record = {
        "user_id": session.user_id,
        "email": session.email or "",
        "full_name": full_name or session.name or "",
        "phone": None,
        "role": UserRole(role).value,
        "location_address": None,
        "location_lat": None,
        "location_lng": None,
        "created_at": now,
        "updated_at": now,
    }
    try:
        doc_ref = db.collection(PROFILES).document(session.user_id)
        doc_ref.set(record)
    except Exception as e:
        logger.error(f"Failed to create profile for {session.user_id}: {e}", exc_info=True)
        raise BackendCallError("Could not create profile") from e

    logger.info(f"Profile created: {doc_ref.id} for {session.user_id} ({record['role']})")
    return Profile(id=doc_ref.id, **record)


def update_profile(db, user_id: str, update: ProfileUpdate) -> Profile:
    profile = get_profile(db, user_id)
    if profile is None:
        raise NotFoundError("Profile not found")

    changes = update.model_dump(exclude_unset=True, mode="json")
    changes["updated_at"] = utc_now()
    try:
        doc_ref = db.collection(PROFILES).document(profile.id)
        doc_ref.update(changes)
        doc = doc_ref.get()
    except Exception as e:
        logger.error(f"Failed to update profile {profile.id}: {e}", exc_info=True)
        raise BackendCallError("Could not update profile") from e
    return Profile(**doc_to_dict(doc))
