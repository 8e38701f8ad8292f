"""Cleanup and JSON salvage for raw model text."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from ..utils import json_loads_strict, trim_text

if TYPE_CHECKING:
    from .types import LogCallback

_FENCE_RE = re.compile(r"```[a-z]*\n?(.*?)```", flags=re.IGNORECASE | re.DOTALL)
# Greedy: first "{" through a "}" that ends the string.
_TRAILING_OBJECT_RE = re.compile(r"\{.*\}\Z", flags=re.DOTALL)

_BOM = "\ufeff"
_ZERO_WIDTH_SPACE = "\u200b"


def _coerce_to_str(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return json.dumps(raw, ensure_ascii=False, separators=(",", ":"), default=str)


def _parses(candidate: str) -> bool:
    try:
        json_loads_strict(candidate)
    except ValueError:
        return False
    return True


def _salvage_json(text: str) -> str:
    if _parses(text):
        return text

    match = _TRAILING_OBJECT_RE.search(text)
    if match and _parses(match.group(0)):
        return match.group(0)

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidate = text[start : end + 1]
        if _parses(candidate):
            return candidate

    # Unparseable; the caller decides what to do with it.
    return text


def normalize_ai_response(
    raw: Any,
    expect_json: bool = False,
    min_chars: int = 1,
    log: LogCallback | None = None,
) -> str:
    """Strips common model quirks and, for JSON output, salvages an object.

    Removes a leading BOM, unwraps ``` fences (keeping their content) and
    drops zero-width spaces. With `expect_json`, returns the first of: the
    whole text, the trailing `{...}` region, or the outermost braces that
    parses as JSON, else the stripped text. Never raises on bad JSON.

    `min_chars` is accepted but not enforced; emptiness is rejected
    downstream by `assert_non_empty`.
    """
    raw_str = _coerce_to_str(raw)
    if log:
        log("[NORMALIZE] raw length", {"len": len(raw_str)})

    text = raw_str[1:] if raw_str.startswith(_BOM) else raw_str
    text = _FENCE_RE.sub(r"\1", text)
    text = text.replace(_ZERO_WIDTH_SPACE, "")

    if log:
        log("[NORMALIZE] after fence-strip", {"len": len(text)})

    trimmed = trim_text(text)
    if not expect_json:
        return trimmed
    if not trimmed:
        return ""
    return _salvage_json(trimmed)
