"""
get-mapbox-token - hands the public map token to authorized clients.

No request body. 200 {"token": ...} or 500 {"error": ...}.
"""

from typing import Any, Optional, Tuple
import logging

from aidatlas.core.settings import settings

logger = logging.getLogger(__name__)

NAME = "get-mapbox-token"


def handle(body: Optional[dict] = None) -> Tuple[int, Any]:
    token = settings.MAPBOX_PUBLIC_TOKEN
    if not token:
        logger.error(f"Error in {NAME}: MAPBOX_PUBLIC_TOKEN is not configured")
        return 500, {"error": "MAPBOX_PUBLIC_TOKEN is not configured"}
    return 200, {"token": token}
