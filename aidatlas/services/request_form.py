"""
Request submission form - capture, validate and post a help request.

Flow on submit:
1. Validate every field and the captured coordinate (no network calls yet)
2. Require a signed-in session
3. Ask the classify-request function for advisory metadata (never blocking)
4. Insert the help request (the only durable side effect)

On failure the form keeps its fields and an error message so the user
can retry.
"""

from typing import Any, Awaitable, Callable, List, Optional
import asyncio
import logging

from pydantic import ValidationError as PydanticValidationError

from aidatlas.core.errors import AidAtlasError, LocationError, UnauthenticatedError, ValidationFailure
from aidatlas.functions import classify_request
from aidatlas.models.help_request import (
    Coordinates,
    HelpRequest,
    HelpRequestCreate,
    HelpRequestSubmission,
    RequestCategory,
    RequestUrgency,
)
from aidatlas.models.profile import AuthSession
from aidatlas.services.geocoding.resolver import get_geocoding_provider
from aidatlas.services.request_repository import insert_help_request

logger = logging.getLogger(__name__)

Locator = Callable[[], Awaitable[Coordinates]]

CATEGORY_VALUES = {c.value for c in RequestCategory}
URGENCY_VALUES = {u.value for u in RequestUrgency}


class DeviceLocator:
    """Coordinates reported by the requester's device."""

    def __init__(self, latitude: Optional[float], longitude: Optional[float]):
        self.latitude = latitude
        self.longitude = longitude

    async def __call__(self) -> Coordinates:
        if self.latitude is None or self.longitude is None:
            raise LocationError()
        try:
            return Coordinates(latitude=self.latitude, longitude=self.longitude)
        except ValueError as e:
            raise LocationError("Device reported an invalid location") from e


class AddressLocator:
    """Resolve the free-text address through the geocoding provider."""

    def __init__(self, address: Optional[str], provider=None):
        self.address = address or ""
        self.provider = provider or get_geocoding_provider()

    async def __call__(self) -> Coordinates:
        if not self.address.strip():
            raise LocationError("Enter an address to look up")
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, self.provider.geocode, self.address)
        if not result:
            raise LocationError("Could not find that address")
        return Coordinates(
            latitude=result["latitude"],
            longitude=result["longitude"],
            display_name=result.get("display_name"),
        )


class RequestForm:
    def __init__(self, backend, on_success: Optional[Callable[[HelpRequest], None]] = None):
        self.backend = backend
        self.on_success = on_success
        self.title = ""
        self.description = ""
        self.category = ""
        self.urgency = ""
        self.address = ""
        self.location: Optional[Coordinates] = None
        self.error: Optional[str] = None
        self.loading = False

    @classmethod
    def from_submission(cls, backend, submission: HelpRequestSubmission, on_success=None) -> "RequestForm":
        form = cls(backend, on_success=on_success)
        form.update(
            title=submission.title,
            description=submission.description,
            category=submission.category,
            urgency=submission.urgency,
            address=submission.address,
        )
        return form

    def update(self, **fields) -> None:
        for name in ("title", "description", "category", "urgency", "address"):
            if name in fields and fields[name] is not None:
                setattr(self, name, str(fields[name]).strip())

    async def use_my_location(self, locator: Locator) -> bool:
        """Capture a coordinate. On failure the previous coordinate stays unset."""
        try:
            coords = await locator()
        except LocationError as e:
            self.error = e.message
            logger.info(f"Location capture failed: {e.message}")
            return False
        self.location = coords
        self.error = None
        return True

    def validate(self) -> List[str]:
        errors: List[str] = []
        for field_name, label in (
            ("title", "Request title"),
            ("description", "Description"),
            ("address", "Address"),
        ):
            if not getattr(self, field_name):
                errors.append(f"{label} is required.")

        if self.category not in CATEGORY_VALUES:
            errors.append("Please select a valid category.")
        if self.urgency not in URGENCY_VALUES:
            errors.append("Please select a valid urgency.")
        if self.location is None:
            errors.append("Please set your location")
        return errors

    async def submit(self, session: Optional[AuthSession]) -> HelpRequest:
        errors = self.validate()
        if errors:
            self.error = errors[0]
            raise ValidationFailure(errors)

        if session is None:
            self.error = UnauthenticatedError.default_message
            raise UnauthenticatedError()

        try:
            data = HelpRequestCreate(
                title=self.title,
                description=self.description,
                category=self.category,
                urgency=self.urgency,
                location_lat=self.location.latitude,
                location_lng=self.location.longitude,
                location_address=self.address,
            )
        except PydanticValidationError as e:
            messages = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            self.error = messages[0]
            raise ValidationFailure(messages) from e

        self.loading = True
        try:
            classification = await self._classify()
            loop = asyncio.get_running_loop()
            created = await loop.run_in_executor(
                None, insert_help_request, self.backend.db, session, data, classification
            )
        except AidAtlasError as e:
            self.error = e.message
            raise
        finally:
            self.loading = False

        self.error = None
        if self.on_success is not None:
            self.on_success(created)
        return created

    async def _classify(self) -> Optional[Any]:
        """Advisory classification; any failure just means no metadata."""
        body = {"title": self.title, "description": self.description, "category": self.category}
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None, self.backend.functions.invoke, classify_request.NAME, body
            )
        except AidAtlasError as e:
            logger.warning(f"Classification unavailable, submitting without it: {e.message}")
            return None
        return result or None
