"""
Keyword Classifier - fallback provider when no LLM is configured.

Rule-based keyword matching without external calls.
Always available.
"""

from aidatlas.services.classifier.base import ClassifierProvider, ClassificationResult
from datetime import datetime
from typing import Dict, List, Tuple
import logging

logger = logging.getLogger(__name__)

# Checked in order; first match wins
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("medical", ("medical", "medicine", "injur", "insulin", "doctor", "hospital", "bleeding", "wound", "pregnan")),
    ("water", ("water", "thirst", "dehydrat", "drinking")),
    ("food", ("food", "hungry", "meal", "formula", "baby food", "starv")),
    ("shelter", ("shelter", "roof", "homeless", "tent", "house collapsed", "evacuat")),
    ("transport", ("transport", "ride", "vehicle", "stranded", "boat", "wheelchair")),
    ("supplies", ("supplies", "blanket", "clothes", "diaper", "battery", "generator", "flashlight")),
]

CRITICAL_WORDS = ("trapped", "unconscious", "not breathing", "bleeding", "dying", "life-threatening")
HIGH_WORDS = ("urgent", "emergency", "asap", "immediately", "severe", "elderly", "infant", "children")
MEDIUM_WORDS = ("soon", "running low", "today", "moderate")

STOP_WORDS = {"the", "and", "is", "in", "on", "at", "to", "a", "an", "of", "for", "need", "with", "have"}


class KeywordClassifier(ClassifierProvider):
    """
    Keyword classifier used when:
    - AI is disabled in config
    - The LLM provider fails
    - No API key is available
    """

    MODEL_NAME = "keyword-rules-v1"
    MODEL_VERSION = "1.0.0"
    TIMEOUT_SECONDS = 0.1  # No network call

    def is_enabled(self) -> bool:
        return True

    def get_model_info(self) -> Dict[str, str]:
        return {
            "name": self.MODEL_NAME,
            "version": self.MODEL_VERSION
        }

    def get_timeout_seconds(self) -> float:
        return self.TIMEOUT_SECONDS

    def classify_request(
        self,
        title: str,
        description: str,
        category: str = ""
    ) -> ClassificationResult:
        text = f"{title} {description}".lower()

        suggested_category = category or "other"
        for name, words in CATEGORY_KEYWORDS:
            if any(word in text for word in words):
                suggested_category = name
                break

        urgency_hint = "low"
        if any(word in text for word in CRITICAL_WORDS):
            urgency_hint = "critical"
        elif any(word in text for word in HIGH_WORDS):
            urgency_hint = "high"
        elif any(word in text for word in MEDIUM_WORDS):
            urgency_hint = "medium"

        keywords = []
        for word in text.split():
            word = word.strip(".,!?:;()\"'")
            if len(word) > 3 and word not in STOP_WORDS and word not in keywords:
                keywords.append(word)
        keywords = keywords[:5]

        summary = (title.strip() or description.split(".")[0]).strip()
        if len(summary) > 100:
            summary = summary[:97] + "..."

        return ClassificationResult(
            suggested_category=suggested_category,
            urgency_hint=urgency_hint,
            keywords=keywords,
            summary=summary,
            model_name=self.MODEL_NAME,
            model_version=self.MODEL_VERSION,
            inference_timestamp=datetime.utcnow(),
            confidence=0.5
        )
