"""Bounded retries and empty-response guarding for model calls."""

from __future__ import annotations

import asyncio
import math
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, TypeVar

from ..utils import trim_text

T = TypeVar("T")


class AIEmptyResponseError(RuntimeError):
    """Model output was empty after normalization."""

    def __init__(self, context: Mapping[str, Any] | None = None) -> None:
        super().__init__("Empty response from AI")
        self.context: Dict[str, Any] = dict(context or {})


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    base_delay_ms: int = 250
    max_delay_ms: int = 2000
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("RetryPolicy.attempts must be >= 1")
        if self.base_delay_ms < 0:
            raise ValueError("RetryPolicy.base_delay_ms must be >= 0")
        if self.max_delay_ms < 0:
            raise ValueError("RetryPolicy.max_delay_ms must be >= 0")


def compute_backoff_delay(policy: RetryPolicy, attempt: int) -> int:
    """Returns the wait in ms after failed attempt number `attempt` (1-based)."""
    backoff = min(policy.base_delay_ms * 2 ** (attempt - 1), policy.max_delay_ms)
    if not policy.jitter:
        return backoff
    # Uniform in [50%, 150%) of the capped backoff.
    return math.floor(backoff * (0.5 + random.random()))


async def with_retries(
    fn: Callable[[int], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Runs `fn(attempt)` until it succeeds or the policy's attempts run out.

    Every exception counts as a failed attempt. The last one is re-raised
    unchanged once the budget is spent.
    """
    attempt = 1
    while True:
        try:
            return await fn(attempt)
        except Exception:
            if attempt >= policy.attempts:
                raise
        delay_ms = compute_backoff_delay(policy, attempt)
        await sleep(delay_ms / 1000.0)
        attempt += 1


def assert_non_empty(text: str | None, context: Mapping[str, Any]) -> str:
    trimmed = trim_text(text or "")
    if not trimmed:
        raise AIEmptyResponseError(context)
    return trimmed
