# backend/smartpharmacy/services/ai_client.py
import base64
import logging
import time
from typing import List, Optional

import requests

from smartpharmacy import config

log = logging.getLogger("ai_client")


class AIProviderError(Exception):
    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code


class GeminiClient:
    """
    Minimal client for the Gemini generateContent REST endpoint.
    Tries each model in order until one returns text.
    """

    def __init__(self, api_key: str = None, models: List[str] = None, base_url: str = None,
                 timeout: float = None, session: requests.Session = None):
        self.api_key = config.GEMINI_API_KEY if api_key is None else api_key
        self.models = models or config.GEMINI_MODELS
        self.base_url = (base_url or config.GEMINI_BASE).rstrip("/")
        self.timeout = timeout or config.AI_TIMEOUT_SECS
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _payload(self, text: str, image: Optional[bytes], mime_type: str) -> dict:
        parts = [{"text": text}]
        if image:
            parts.append({"inline_data": {"mime_type": mime_type, "data": base64.b64encode(image).decode("ascii")}})
        return {"contents": [{"role": "user", "parts": parts}],
                "generationConfig": {"temperature": 0.2}}

    def generate(self, text: str, image: bytes = None, mime_type: str = "image/jpeg") -> str:
        if not self.configured:
            raise AIProviderError("AI_NOT_CONFIGURED", "Missing GEMINI_API_KEY")

        payload = self._payload(text, image, mime_type)
        last_error: Exception = AIProviderError("AI_DOWN", "No model returned a reply")
        for model in self.models:
            url = f"{self.base_url}/models/{model}:generateContent"
            try:
                r = self.session.post(url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
            except requests.RequestException as e:
                log.warning("Gemini %s request failed: %s", model, e)
                last_error = e
                continue

            if r.status_code == 429:
                time.sleep(1)
                continue
            if r.status_code in (401, 403) or (
                r.status_code == 400 and ("API_KEY_INVALID" in r.text or "API Key not found" in r.text)
            ):
                raise AIProviderError("AI_AUTH_FAILED", "Invalid GEMINI_API_KEY")
            if not r.ok:
                log.warning("Gemini %s returned HTTP %s", model, r.status_code)
                last_error = AIProviderError("AI_DOWN", f"HTTP {r.status_code}")
                continue

            try:
                data = r.json()
                out = data["candidates"][0]["content"]["parts"][0]["text"]
            except (ValueError, KeyError, IndexError, TypeError) as e:
                log.warning("Gemini %s returned an unexpected body: %s", model, e)
                last_error = e
                continue
            if isinstance(out, str) and out.strip():
                return out

        if isinstance(last_error, AIProviderError):
            raise last_error
        raise AIProviderError("AI_DOWN", str(last_error)) from last_error
