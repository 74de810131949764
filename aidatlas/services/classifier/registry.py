"""
Classifier Registry.

Manages classifier selection and fallback logic.
"""

from aidatlas.services.classifier.base import ClassifierProvider, ClassificationResult
from aidatlas.services.classifier.llm_provider import LLMClassifier
from aidatlas.services.classifier.keyword_provider import KeywordClassifier
from aidatlas.core.settings import settings
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class ClassifierRegistry:
    """
    Registry for classifiers with fallback logic.

    Providers are tried in priority order; the keyword classifier is
    always last and always available.
    """

    def __init__(self, providers: Optional[List[ClassifierProvider]] = None):
        self.providers: List[ClassifierProvider] = []
        if providers is not None:
            self.providers.extend(providers)
        else:
            self._initialize_providers()

    def _initialize_providers(self):
        if not settings.AI_ENABLED:
            logger.info("AI is disabled (AI_ENABLED=false), using keyword classifier only")
            self.providers.append(KeywordClassifier())
            return

        llm = LLMClassifier()
        if llm.is_enabled():
            self.providers.append(llm)
            logger.info(f"LLM classifier registered ({llm.get_model_info()['name']})")

        self.providers.append(KeywordClassifier())

    def classify_with_fallback(
        self,
        title: str,
        description: str,
        category: str = ""
    ) -> Optional[ClassificationResult]:
        """
        Classify using the first provider that succeeds.

        Returns None when every provider failed.
        """
        for provider in self.providers:
            name = provider.get_model_info()["name"]
            if not provider.is_enabled():
                continue
            try:
                result = provider.classify_request(title, description, category)
            except Exception as e:
                logger.warning(f"Classifier {name} raised: {e}")
                continue

            if result.error:
                logger.warning(f"Classifier {name} returned error: {result.error}")
                continue

            logger.info(f"Classification by {name}: {result.suggested_category}/{result.urgency_hint}")
            return result

        logger.error("All classifiers failed")
        return None


# Global registry instance (singleton)
_registry: Optional[ClassifierRegistry] = None


def get_classifier_registry() -> ClassifierRegistry:
    global _registry
    if _registry is None:
        _registry = ClassifierRegistry()
    return _registry
