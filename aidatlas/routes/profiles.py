"""
Profile endpoints - the signed-in user's own profile.
"""

import asyncio
import logging

from fastapi import APIRouter

from aidatlas.config.backend import BackendDep
from aidatlas.core.errors import NotFoundError
from aidatlas.models.profile import Profile, ProfileUpdate
from aidatlas.routes.auth import CurrentSessionDep
from aidatlas.services.profile_service import get_profile, update_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/me", response_model=Profile)
async def read_my_profile(session: CurrentSessionDep, backend: BackendDep):
    loop = asyncio.get_running_loop()
    profile = await loop.run_in_executor(None, get_profile, backend.db, session.user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


@router.put("/me", response_model=Profile)
async def update_my_profile(update: ProfileUpdate, session: CurrentSessionDep, backend: BackendDep):
    """
    Update name, phone, role or home location.

    Only fields present in the body are changed.
    """
    loop = asyncio.get_running_loop()
    profile = await loop.run_in_executor(None, update_profile, backend.db, session.user_id, update)
    logger.info(f"Profile updated for {session.user_id}")
    return profile
