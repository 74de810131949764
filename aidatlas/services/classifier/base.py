"""
Classifier Provider Base Interface.

Defines the contract for help-request classifiers.
The output is advisory: it is attached to the request verbatim and
never drives status, ordering or routing.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class ClassificationResult:
    """
    Standardized classifier response.

    All providers must return this structure.
    """

    def __init__(
        self,
        suggested_category: str,
        urgency_hint: str,
        keywords: List[str],
        summary: str,
        model_name: str,
        model_version: str,
        inference_timestamp: datetime,
        confidence: Optional[float] = None,
        error: Optional[str] = None
    ):
        self.suggested_category = suggested_category
        self.urgency_hint = urgency_hint
        self.keywords = keywords
        self.summary = summary
        self.model_name = model_name
        self.model_version = model_version
        self.inference_timestamp = inference_timestamp
        self.confidence = confidence  # Optional, 0.0-1.0
        self.error = error  # If the provider failed, the reason is stored here

    def to_dict(self) -> Dict:
        """Convert to the payload returned by the classify-request function."""
        result = {
            "suggested_category": self.suggested_category,
            "urgency_hint": self.urgency_hint,
            "keywords": self.keywords,
            "summary": self.summary,
            "model_name": self.model_name,
            "model_version": self.model_version,
            "inference_timestamp": self.inference_timestamp.isoformat() if isinstance(self.inference_timestamp, datetime) else str(self.inference_timestamp),
        }

        if self.confidence is not None:
            result["confidence"] = self.confidence

        if self.error:
            result["error"] = self.error

        return result


class ClassifierProvider(ABC):
    """
    Abstract base class for classifiers.

    Implementations MUST:
    - Return a ClassificationResult even on failure (error set)
    - Never raise exceptions
    - Respect their timeout
    """

    @abstractmethod
    def is_enabled(self) -> bool:
        pass

    @abstractmethod
    def get_model_info(self) -> Dict[str, str]:
        """Return a dict with 'name' and 'version' keys."""
        pass

    @abstractmethod
    def classify_request(
        self,
        title: str,
        description: str,
        category: str = ""
    ) -> ClassificationResult:
        """
        Classify a help request.

        Args:
            title: Short request title
            description: Free-text description of the need
            category: Category the requester picked (context only)
        """
        pass

    @abstractmethod
    def get_timeout_seconds(self) -> float:
        pass
