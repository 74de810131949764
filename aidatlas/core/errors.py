"""
Error taxonomy for AidAtlas.

Every failure a caller can recover from is one of these. Routes let them
propagate; the handlers registered in ``aidatlas.main`` log them and turn
them into a short, human-readable toast.
"""

from typing import List, Optional


class AidAtlasError(Exception):
    """Base class for all application errors."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "toast": self.message}


class UnauthenticatedError(AidAtlasError):
    """A write was attempted with no active session."""

    status_code = 401
    default_message = "Not authenticated"


class ValidationFailure(AidAtlasError):
    """Missing or invalid input. Raised before any backend call is made."""

    status_code = 400
    default_message = "Please fix the highlighted fields"

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(self.errors[0] if self.errors else None)

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["errors"] = self.errors
        return result


class NotFoundError(AidAtlasError):
    status_code = 404
    default_message = "Not found"


class BackendCallError(AidAtlasError):
    """The managed backend rejected or failed a query, insert or update."""

    status_code = 502
    default_message = "The request could not be completed. Please try again."


class ExternalServiceError(AidAtlasError):
    """A serverless function or third-party service is unavailable."""

    status_code = 503
    default_message = "External service unavailable"

    def __init__(self, message: Optional[str] = None, service: str = "", status: Optional[int] = None):
        self.service = service
        self.status = status
        super().__init__(message)


class LocationError(AidAtlasError):
    """Geolocation could not be determined."""

    status_code = 422
    default_message = "Could not get location. Please enable location services."
