"""
Functions client - invokes the serverless functions by name.

When FUNCTIONS_BASE_URL is set, functions are called over HTTP at
``{base}/functions/v1/{name}``. Otherwise the handler runs in-process.
Either way a non-2xx result raises ExternalServiceError.
"""

from typing import Any, Callable, Dict, Optional, Tuple
import logging

import requests

from aidatlas.core.errors import ExternalServiceError
from aidatlas.core.settings import settings
from aidatlas.functions import classify_request, map_token

logger = logging.getLogger(__name__)

FunctionHandler = Callable[[Optional[dict]], Tuple[int, Any]]

LOCAL_HANDLERS: Dict[str, FunctionHandler] = {
    map_token.NAME: map_token.handle,
    classify_request.NAME: classify_request.handle,
}


class FunctionsClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        handlers: Optional[Dict[str, FunctionHandler]] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout
        self.handlers = dict(LOCAL_HANDLERS if handlers is None else handlers)

    def invoke(self, name: str, body: Optional[dict] = None) -> Any:
        if self.base_url:
            status, payload = self._invoke_remote(name, body)
        else:
            status, payload = self._invoke_local(name, body)

        if status >= 400:
            message = payload.get("error") if isinstance(payload, dict) else None
            logger.warning(f"Function {name} failed with status {status}: {message}")
            raise ExternalServiceError(message or f"{name} failed", service=name, status=status)
        return payload

    def _invoke_local(self, name: str, body: Optional[dict]) -> Tuple[int, Any]:
        handler = self.handlers.get(name)
        if handler is None:
            return 404, {"error": f"Unknown function: {name}"}
        return handler(body)

    def _invoke_remote(self, name: str, body: Optional[dict]) -> Tuple[int, Any]:
        url = f"{self.base_url}/functions/v1/{name}"
        try:
            resp = requests.post(url, json=body or {}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Function {name} unreachable: {e}")
            raise ExternalServiceError(f"{name} unreachable", service=name) from e
        try:
            payload = resp.json()
        except ValueError:
            payload = {"error": resp.text[:200]}
        return resp.status_code, payload


def build_functions_client() -> FunctionsClient:
    return FunctionsClient(
        base_url=settings.FUNCTIONS_BASE_URL,
        timeout=settings.FUNCTIONS_TIMEOUT_SECONDS,
    )
