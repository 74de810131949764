"""
classify-request - forwards request text to the classifier.

Body {title, description, category}. Returns the classifier payload, or
null when classification is unavailable. Callers treat the payload as
opaque.
"""

from typing import Any, Optional, Tuple
import logging

from aidatlas.services.classifier import get_classifier_registry

logger = logging.getLogger(__name__)

NAME = "classify-request"


def handle(body: Optional[dict] = None) -> Tuple[int, Any]:
    body = body or {}
    title = str(body.get("title") or "")
    description = str(body.get("description") or "")
    category = str(body.get("category") or "")

    if not title and not description:
        return 200, None

    result = get_classifier_registry().classify_with_fallback(title, description, category)
    if result is None:
        logger.warning(f"{NAME}: no classification available")
        return 200, None
    return 200, result.to_dict()
