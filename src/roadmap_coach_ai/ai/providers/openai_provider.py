"""OpenAI Responses API provider."""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from ..types import ProviderError


def _sdk_client(api_key: str) -> Any:
    try:
        from openai import OpenAI
    except Exception as exc:  # pragma: no cover - depends on installed package
        raise ProviderError(f"openai package unavailable: {exc}") from exc
    return OpenAI(api_key=api_key)


class OpenAIResponsesProvider:
    """Sends a prepared Responses payload through the OpenAI SDK and returns the raw envelope as a dict."""

    name = "openai"

    def __init__(self, timeout_seconds: int = 60, api_key: Optional[str] = None) -> None:
        self.timeout_seconds = timeout_seconds
        key = api_key or os.getenv("OPENAI_API_KEY")
        # Without a key the provider still builds; calls fail with ProviderError.
        self._client = _sdk_client(key) if key else None

    def __call__(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self._client is None:
            raise ProviderError("OPENAI_API_KEY missing")

        try:
            response = self._client.responses.create(**payload, timeout=self.timeout_seconds)
        except Exception as exc:
            raise ProviderError(str(exc)) from exc

        return response.model_dump()
