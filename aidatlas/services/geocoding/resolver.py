import logging
from typing import Optional

from aidatlas.core.settings import settings
from .base import GeocodingProvider
from .nominatim_provider import NominatimProvider

logger = logging.getLogger(__name__)

_provider_instance: Optional[GeocodingProvider] = None


def get_geocoding_provider() -> GeocodingProvider:
    """Return the process-wide geocoding provider (Nominatim)."""
    global _provider_instance
    if _provider_instance is None:
        _provider_instance = NominatimProvider(
            user_agent=settings.GEOCODING_USER_AGENT,
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
        )
        logger.info("Geocoding provider initialized: nominatim")
    return _provider_instance
