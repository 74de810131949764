"""
Help-request classification.

Optional, advisory enrichment behind the classify-request function.
Never blocks a submission.
"""

from aidatlas.services.classifier.base import ClassifierProvider, ClassificationResult
from aidatlas.services.classifier.llm_provider import LLMClassifier
from aidatlas.services.classifier.keyword_provider import KeywordClassifier
from aidatlas.services.classifier.registry import ClassifierRegistry, get_classifier_registry

__all__ = [
    "ClassifierProvider",
    "ClassificationResult",
    "ClassifierRegistry",
    "KeywordClassifier",
    "LLMClassifier",
    "get_classifier_registry",
]
