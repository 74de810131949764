import logging
from typing import Any, Dict, List, Optional

import requests

from .base import GeocodingProvider

logger = logging.getLogger(__name__)


class NominatimProvider(GeocodingProvider):
    """
    OpenStreetMap Nominatim search provider.

    - No API key required.
    - Uses a strict timeout (<= 3 seconds).
    - Includes a User-Agent header as required by the Nominatim usage policy.
    - Never raises upstream exceptions; returns None on failure.
    """

    BASE_URL = "https://nominatim.openstreetmap.org/search"

    def __init__(self, user_agent: str = "aidatlas/0.1", timeout: float = 3.0):
        self.user_agent = user_agent
        self.timeout = min(timeout, 3.0)

    def geocode(self, address: str) -> Optional[Dict]:
        if not address or not address.strip():
            return None
        try:
            params = {
                "q": address.strip(),
                "format": "json",
                "limit": 1,
            }
            headers = {
                "User-Agent": self.user_agent,
            }
            resp = requests.get(self.BASE_URL, params=params, headers=headers, timeout=self.timeout)
            if resp.status_code != 200:
                logger.warning(f"Nominatim search failed with status {resp.status_code}")
                return None

            results: List[Dict[str, Any]] = resp.json()
            if not results:
                return None

            first = results[0]
            return {
                "latitude": float(first["lat"]),
                "longitude": float(first["lon"]),
                "display_name": first.get("display_name"),
                "provider": "nominatim",
            }
        except Exception as e:
            # Fail gracefully; the form falls back to a recoverable error
            logger.warning(f"Nominatim search error: {e}")
            return None
