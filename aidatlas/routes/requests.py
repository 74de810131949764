"""
Help request endpoints - submit, geolocate and fetch requests.
"""

import asyncio
import logging

from fastapi import APIRouter, status

from aidatlas.config.backend import BackendDep
from aidatlas.core.errors import LocationError
from aidatlas.models.help_request import Coordinates, HelpRequest, HelpRequestSubmission, LocateRequest
from aidatlas.routes.auth import OptionalSessionDep
from aidatlas.services.request_form import AddressLocator, DeviceLocator, RequestForm
from aidatlas.services.request_repository import get_help_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/requests", tags=["Help Requests"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=HelpRequest)
async def submit_request(submission: HelpRequestSubmission, session: OptionalSessionDep, backend: BackendDep):
    """
    Submit a new help request.

    This endpoint:
    1. Takes the coordinate captured earlier through /requests/locate
    2. Validates every field before touching the backend
    3. Attaches advisory AI classification when available
    4. Stores the request as pending with no responder

    The address is stored as typed and is never geocoded here.

    Returns the created request with generated ID.
    """
    form = RequestForm.from_submission(backend, submission)

    if submission.latitude is not None or submission.longitude is not None:
        await form.use_my_location(DeviceLocator(submission.latitude, submission.longitude))

    created = await form.submit(session)
    logger.info(f"Help request created: {created.id} ({created.category.value}/{created.urgency.value})")
    return created


@router.post("/locate", response_model=Coordinates)
async def locate(payload: LocateRequest):
    """
    Resolve a location for the form's "use my location" step.

    Device coordinates are validated and echoed back; otherwise the address
    is forward-geocoded. Failure is a recoverable 422 with a toast message.
    """
    if payload.latitude is not None or payload.longitude is not None:
        locator = DeviceLocator(payload.latitude, payload.longitude)
    elif payload.address:
        locator = AddressLocator(payload.address)
    else:
        raise LocationError()
    return await locator()


@router.get("/{request_id}", response_model=HelpRequest)
async def get_request(request_id: str, backend: BackendDep):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, get_help_request, backend.db, request_id)
