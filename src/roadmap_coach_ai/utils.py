"""Utility helpers."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, Optional

# Whitespace plus U+FEFF, which str.strip() keeps.
_EDGE_SPACE_RE = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+\Z")


def json_dumps(data: Dict[str, Any] | list[Any] | None) -> str:
    return json.dumps(data or {}, ensure_ascii=True, sort_keys=True, default=str)


def logger_callback(
    logger: logging.Logger, level: int = logging.INFO
) -> Callable[[str, Optional[Dict[str, Any]]], None]:
    """Adapts a stdlib logger to the `(message, details)` callback the AI pipeline emits to."""

    def _log(message: str, details: Optional[Dict[str, Any]] = None) -> None:
        if details:
            logger.log(level, "%s %s", message, json_dumps(details))
        else:
            logger.log(level, "%s", message)

    return _log


def trim_text(text: str) -> str:
    return _EDGE_SPACE_RE.sub("", text)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def json_loads_strict(text: str) -> Any:
    """json.loads that rejects NaN, Infinity and -Infinity."""
    return json.loads(text, parse_constant=_reject_constant)
