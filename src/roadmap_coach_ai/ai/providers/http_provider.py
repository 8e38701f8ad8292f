"""Plain HTTP provider for OpenAI-compatible /responses endpoints."""

from __future__ import annotations

import os
from typing import Any, Dict

import requests

from ..types import ProviderError

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class HttpResponsesProvider:
    name = "http"

    def __init__(self, base_url: str | None = None, timeout_seconds: int = 60) -> None:
        self.base_url = (
            os.getenv("AI_BASE_URL") or os.getenv("OPENAI_BASE_URL") or base_url or DEFAULT_BASE_URL
        ).rstrip("/")
        self._api_key = os.getenv("AI_API_KEY") or os.getenv("OPENAI_API_KEY")
        self.timeout_seconds = timeout_seconds

    def __call__(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self._api_key:
            raise ProviderError("AI_API_KEY/OPENAI_API_KEY missing")

        url = f"{self.base_url}/responses"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "content-type": "application/json",
        }
        try:
            res = requests.post(url, headers=headers, json=payload, timeout=self.timeout_seconds)
            res.raise_for_status()
            data = res.json()
        except Exception as exc:
            raise ProviderError(str(exc)) from exc

        if not isinstance(data, dict):
            raise ProviderError(f"Unexpected response body type: {type(data).__name__}")
        return data
