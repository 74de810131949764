from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class GeocodingProvider(ABC):
    """
    Abstract forward-geocoding provider.

    Contract:
    - Input: free-text address
    - Output: dict {"latitude": float, "longitude": float,
      "display_name": str | None, "provider": str}, or None if no match.
    - MUST NEVER raise upstream exceptions; failures return None.
    - Implementations should enforce a network timeout <= 3 seconds.
    """

    @abstractmethod
    def geocode(self, address: str) -> Optional[Dict]:
        raise NotImplementedError
