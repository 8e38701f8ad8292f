"""Provider call interface."""

from __future__ import annotations

from typing import Any, Awaitable, Dict, Protocol, Union


class ResponsesCall(Protocol):
    name: str

    def __call__(self, payload: Dict[str, Any]) -> Union[Dict[str, Any], Awaitable[Dict[str, Any]]]:
        ...
