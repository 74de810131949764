"""
LLM Classifier - Gemini or OpenAI over their REST APIs.

Fails gracefully: any error is returned inside the result and the
registry falls back to the keyword classifier.
"""

from aidatlas.services.classifier.base import ClassifierProvider, ClassificationResult
from aidatlas.core.settings import settings
from aidatlas.models.help_request import RequestCategory, RequestUrgency
from datetime import datetime
from typing import Dict, Optional
import logging
import json
import requests

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-flash:generateContent"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"

CATEGORIES = [c.value for c in RequestCategory]
URGENCIES = [u.value for u in RequestUrgency]


class LLMClassifier(ClassifierProvider):
    """
    LLM-backed classifier.

    Uses Gemini when AI_PROVIDER is "gemini" and GEMINI_API_KEY is set,
    OpenAI when AI_PROVIDER is "openai" and OPENAI_API_KEY is set.
    """

    MODEL_VERSION = "1.0"

    def __init__(
        self,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.provider = (provider or settings.AI_PROVIDER or "gemini").lower()
        if api_key is None:
            api_key = settings.OPENAI_API_KEY if self.provider == "openai" else settings.GEMINI_API_KEY
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else settings.AI_TIMEOUT_SECONDS
        self.enabled = bool(self.api_key and self.api_key.strip()) and self.provider in ("gemini", "openai")

        if self.enabled:
            logger.info(f"LLM classifier initialized: {self.provider}")
        else:
            logger.info(f"LLM classifier disabled: no API key configured for '{self.provider}'")

    def is_enabled(self) -> bool:
        return self.enabled

    def get_model_info(self) -> Dict[str, str]:
        name = "gemini-1.5-flash" if self.provider == "gemini" else "gpt-4o-mini"
        return {"name": name, "version": self.MODEL_VERSION}

    def get_timeout_seconds(self) -> float:
        return self.timeout

    def classify_request(
        self,
        title: str,
        description: str,
        category: str = ""
    ) -> ClassificationResult:
        model_name = self.get_model_info()["name"]
        if not self.enabled:
            return self._failure(model_name, "LLM API key not configured")

        try:
            prompt = self._build_prompt(title, description, category)
            if self.provider == "gemini":
                text = self._call_gemini_api(prompt)
            else:
                text = self._call_openai_api(prompt)
            parsed = self._parse_response(text)

            return ClassificationResult(
                suggested_category=parsed["suggested_category"],
                urgency_hint=parsed["urgency_hint"],
                keywords=parsed["keywords"],
                summary=parsed["summary"],
                model_name=model_name,
                model_version=self.MODEL_VERSION,
                inference_timestamp=datetime.utcnow(),
                confidence=parsed.get("confidence")
            )

        except Exception as e:
            logger.warning(f"LLM classification failed: {e}")
            return self._failure(model_name, f"LLM API error: {e}")

    def _failure(self, model_name: str, reason: str) -> ClassificationResult:
        return ClassificationResult(
            suggested_category="other",
            urgency_hint="unknown",
            keywords=[],
            summary="",
            model_name=model_name,
            model_version=self.MODEL_VERSION,
            inference_timestamp=datetime.utcnow(),
            error=reason
        )

    def _build_prompt(self, title: str, description: str, category: str) -> str:
        return f"""You help volunteers triage disaster-relief help requests.

Classify the request below. Do not invent details that are not in the text.

TITLE: {title}
CATEGORY CHOSEN BY REQUESTER: {category}
DESCRIPTION: {description}

Respond with JSON only:

{{
  "suggested_category": "<one of: {', '.join(CATEGORIES)}>",
  "urgency_hint": "<one of: {', '.join(URGENCIES)}>",
  "keywords": ["<keyword1>", "<keyword2>", "<keyword3>"],
  "summary": "<one neutral sentence>",
  "confidence": <float 0.0-1.0>
}}"""

    def _call_gemini_api(self, prompt: str) -> str:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        response = requests.post(
            GEMINI_URL,
            params={"key": self.api_key},
            json=payload,
            timeout=self.timeout
        )
        if response.status_code != 200:
            raise RuntimeError(f"Gemini API returned status {response.status_code}: {response.text[:200]}")

        data = response.json()
        return data.get("candidates", [{}])[0].get("content", {}).get("parts", [{}])[0].get("text", "")

    def _call_openai_api(self, prompt: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": "gpt-4o-mini",
            "messages": [
                {"role": "system", "content": "You classify disaster-relief help requests. Output only valid JSON."},
                {"role": "user", "content": prompt}
            ],
            "temperature": 0.2,
            "max_tokens": 300
        }
        response = requests.post(OPENAI_URL, headers=headers, json=payload, timeout=self.timeout)
        if response.status_code != 200:
            raise RuntimeError(f"OpenAI API returned status {response.status_code}: {response.text[:200]}")

        data = response.json()
        return data.get("choices", [{}])[0].get("message", {}).get("content", "")

    def _parse_response(self, text: str) -> Dict:
        """Pull the JSON object out of the model text and clamp it to known values."""
        # Models sometimes wrap JSON in markdown code fences
        if "```json" in text:
            text = text.split("```json")[1].split("```")[0].strip()
        elif "```" in text:
            text = text.split("```")[1].split("```")[0].strip()

        parsed = json.loads(text)

        category = str(parsed.get("suggested_category", "other")).lower()
        urgency = str(parsed.get("urgency_hint", "low")).lower()
        keywords = parsed.get("keywords", [])
        if not isinstance(keywords, list):
            keywords = []

        result = {
            "suggested_category": category if category in CATEGORIES else "other",
            "urgency_hint": urgency if urgency in URGENCIES else "low",
            "keywords": [str(k) for k in keywords][:5],
            "summary": str(parsed.get("summary", "")).strip(),
        }
        if "confidence" in parsed:
            result["confidence"] = float(parsed["confidence"])
        return result
