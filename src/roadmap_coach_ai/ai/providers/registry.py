"""Provider selection from settings."""

from __future__ import annotations

from typing import Any, Dict

from ...config import request_defaults
from .base import ResponsesCall
from .http_provider import HttpResponsesProvider
from .openai_provider import OpenAIResponsesProvider


def build_provider(config: Dict[str, Any]) -> ResponsesCall:
    ai_cfg = config.get("ai", {})
    name = str(ai_cfg.get("provider", "openai")).strip().lower()
    timeout_seconds = request_defaults(config)["timeout_seconds"]

    if name == "openai":
        return OpenAIResponsesProvider(timeout_seconds=timeout_seconds)
    if name == "http":
        return HttpResponsesProvider(base_url=ai_cfg.get("base_url"), timeout_seconds=timeout_seconds)
    raise ValueError(f"Unknown AI provider: {name}")
