"""Guarded generation: provider call -> extract -> normalize -> non-empty check, with retries."""

from __future__ import annotations

import asyncio
import inspect
import time
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..config import request_defaults, retry_policy_from_settings
from ..utils import json_loads_strict
from .guards import RetryPolicy, assert_non_empty, with_retries
from .normalizer import normalize_ai_response
from .providers.base import ResponsesCall
from .providers.registry import build_provider
from .types import AIResponseParseError, GenerationRequest, LogCallback

GENERATION_RETRY_POLICY = RetryPolicy(attempts=3, base_delay_ms=250, max_delay_ms=1500, jitter=True)

_TEXT_CONTENT_TYPES = ("text", "output_text")


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def build_payload(request: GenerationRequest) -> Dict[str, Any]:
    if request.wants_json:
        fmt: Dict[str, Any] = {"type": "json_schema"}
        if request.schema_name:
            fmt["name"] = request.schema_name
        schema = request.resolved_schema()
        if schema is not None:
            fmt["schema"] = schema
        text_cfg: Dict[str, Any] = {"format": fmt, "verbosity": "medium"}
    else:
        text_cfg = {"verbosity": "medium"}

    return {
        "model": request.model,
        "input": [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": request.user_prompt},
        ],
        "temperature": request.temperature,
        "max_output_tokens": request.max_tokens,
        "text": text_cfg,
    }


def extract_candidate_text(raw: Any) -> str:
    """Joins the text parts of the first assistant message in `raw.output`."""
    output = _field(raw, "output") or []
    if not isinstance(output, (list, tuple)):
        return ""

    message = next(
        (
            item
            for item in output
            if _field(item, "type") == "message" and _field(item, "role") == "assistant"
        ),
        None,
    )
    if message is None:
        return ""

    contents = _field(message, "content") or []
    if not isinstance(contents, (list, tuple)):
        return ""

    parts: List[str] = []
    for content in contents:
        if _field(content, "type") in _TEXT_CONTENT_TYPES:
            text = _field(content, "text")
            if isinstance(text, str):
                parts.append(text)
    return "".join(parts)


def _is_async_callable(fn: Any) -> bool:
    return inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(getattr(fn, "__call__", None))


async def _invoke(call: ResponsesCall, payload: Dict[str, Any]) -> Any:
    # Blocking providers run in a worker thread, off the event loop.
    if _is_async_callable(call):
        return await call(payload)
    raw = await asyncio.to_thread(call, payload)
    if inspect.isawaitable(raw):
        raw = await raw
    return raw


async def safe_generate(
    request: GenerationRequest,
    log: LogCallback | None = None,
    policy: RetryPolicy | None = None,
) -> str:
    """Generates text and retries on provider errors or empty output.

    Raises the last underlying error once the retry budget is spent.
    """
    payload = build_payload(request)
    request_id = request.request_id

    def emit(message: str, details: Dict[str, Any]) -> None:
        if log:
            log(message, details)

    async def attempt_once(attempt: int) -> str:
        start = time.perf_counter()
        try:
            raw = await _invoke(request.call, payload)
        except Exception as exc:
            emit("[AI] provider error", {"request_id": request_id, "attempt": attempt, "err": str(exc)})
            raise
        ms = int((time.perf_counter() - start) * 1000)

        candidate = extract_candidate_text(raw)
        emit("[AI] raw candidate", {"request_id": request_id, "attempt": attempt, "raw_length": len(candidate)})

        normalized = normalize_ai_response(
            candidate,
            expect_json=request.wants_json,
            min_chars=1,
            log=lambda m, o=None: emit(m, {"request_id": request_id, "attempt": attempt, **(o or {})}),
        )

        status = _field(raw, "status")
        usage = _field(raw, "usage")
        text = assert_non_empty(
            normalized,
            {
                "request_id": request_id,
                "attempt": attempt,
                "model": request.model,
                "json": request.wants_json,
                "ms": ms,
                "provider_status": status if status is not None else "unknown",
                "usage": usage,
                "meta": request.metadata,
            },
        )

        emit("[AI] ok", {"request_id": request_id, "attempt": attempt, "ms": ms, "len": len(text), "usage": usage})
        return text

    return await with_retries(attempt_once, policy or GENERATION_RETRY_POLICY)


def parse_json_output(text: str, context: Dict[str, Any] | None = None) -> Any:
    try:
        return json_loads_strict(text)
    except ValueError as exc:
        raise AIResponseParseError(text, context) from exc


async def generate_json(
    request: GenerationRequest,
    log: LogCallback | None = None,
    policy: RetryPolicy | None = None,
) -> Any:
    """Like `safe_generate`, but forces JSON mode and decodes the result.

    Decoding failures are not retried.
    """
    json_request = replace(request, wants_json=True)
    text = await safe_generate(json_request, log=log, policy=policy)
    return parse_json_output(text, {"request_id": request.request_id, "model": request.model})


class AiClient:
    """Settings-driven front door over `safe_generate`."""

    def __init__(
        self,
        settings: Dict[str, Any],
        call: ResponsesCall | None = None,
        log: LogCallback | None = None,
    ) -> None:
        self.settings = settings
        self.defaults = request_defaults(settings)
        self.policy = retry_policy_from_settings(settings)
        self.log = log
        if call is None:
            call = build_provider(settings)
        self.call = call

    def _request(
        self,
        system: str,
        user: str,
        wants_json: bool,
        schema: Optional[Dict[str, Any]],
        schema_name: Optional[str],
        request_id: Optional[str],
        metadata: Optional[Dict[str, Any]],
        model: Optional[str],
    ) -> GenerationRequest:
        return GenerationRequest(
            system_prompt=system,
            user_prompt=user,
            model=model or self.defaults["model"],
            call=self.call,
            temperature=self.defaults["temperature"],
            wants_json=wants_json,
            max_tokens=self.defaults["max_tokens"],
            request_id=request_id or uuid.uuid4().hex,
            metadata=dict(metadata or {}),
            schema=schema,
            schema_name=schema_name,
        )

    async def generate(
        self,
        system: str,
        user: str,
        *,
        wants_json: bool = False,
        schema: Optional[Dict[str, Any]] = None,
        schema_name: Optional[str] = None,
        request_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        model: Optional[str] = None,
    ) -> str:
        request = self._request(system, user, wants_json, schema, schema_name, request_id, metadata, model)
        return await safe_generate(request, log=self.log, policy=self.policy)

    async def generate_json(
        self,
        system: str,
        user: str,
        *,
        schema: Optional[Dict[str, Any]] = None,
        schema_name: Optional[str] = None,
        request_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        model: Optional[str] = None,
    ) -> Any:
        request = self._request(system, user, True, schema, schema_name, request_id, metadata, model)
        return await generate_json(request, log=self.log, policy=self.policy)
