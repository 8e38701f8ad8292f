"""Shared AI pipeline data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .providers.base import ResponsesCall

LogCallback = Callable[[str, Optional[Dict[str, Any]]], None]


@dataclass
class GenerationRequest:
    system_prompt: str
    user_prompt: str
    model: str
    call: ResponsesCall
    temperature: float = 0.3
    wants_json: bool = False
    max_tokens: int = 2048
    request_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    schema: Optional[Dict[str, Any]] = None
    schema_name: Optional[str] = None

    def resolved_schema(self) -> Optional[Dict[str, Any]]:
        """Explicit schema first, then a `schema` key in metadata."""
        if self.schema is not None:
            return self.schema
        from_meta = self.metadata.get("schema")
        return from_meta if isinstance(from_meta, dict) else None


class ProviderError(RuntimeError):
    """Provider failed to return a response."""


class AIResponseParseError(ValueError):
    """Generated text could not be decoded as JSON."""

    def __init__(self, text: str, context: Dict[str, Any] | None = None) -> None:
        super().__init__(f"AI response is not valid JSON ({len(text)} chars)")
        self.text = text
        self.context = dict(context or {})
