"""Configuration loading and defaults."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

from .ai.guards import RetryPolicy

DEFAULT_SETTINGS: Dict[str, Any] = {
    "ai": {
        "provider": "openai",
        "model": "gpt-4.1-mini",
        "temperature": 0.3,
        "max_tokens": 2048,
        "timeout_seconds": 60,
        "base_url": "https://api.openai.com/v1",
    },
    "retry": {
        "attempts": 3,
        "base_delay_ms": 250,
        "max_delay_ms": 1500,
        "jitter": True,
    },
    "logging": {
        "level": "INFO",
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(settings_path: str = "config/settings.yaml") -> Dict[str, Any]:
    """Returns the roadmap coach AI settings: `settings_path` (ai, retry, logging
    sections) layered over DEFAULT_SETTINGS. A missing file yields the defaults.
    """
    merged = deepcopy(DEFAULT_SETTINGS)
    config_path = Path(settings_path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            user_cfg = yaml.safe_load(f) or {}
        if not isinstance(user_cfg, dict):
            raise ValueError(f"Settings file must contain a mapping: {settings_path}")
        merged = _deep_merge(merged, user_cfg)
    return merged


def retry_policy_from_settings(config: Dict[str, Any]) -> RetryPolicy:
    retry_cfg = config.get("retry", {})
    defaults = DEFAULT_SETTINGS["retry"]
    return RetryPolicy(
        attempts=int(retry_cfg.get("attempts", defaults["attempts"])),
        base_delay_ms=int(retry_cfg.get("base_delay_ms", defaults["base_delay_ms"])),
        max_delay_ms=int(retry_cfg.get("max_delay_ms", defaults["max_delay_ms"])),
        jitter=bool(retry_cfg.get("jitter", defaults["jitter"])),
    )


def request_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    ai_cfg = config.get("ai", {})
    defaults = DEFAULT_SETTINGS["ai"]
    return {
        "model": str(ai_cfg.get("model") or defaults["model"]),
        "temperature": float(ai_cfg.get("temperature", defaults["temperature"])),
        "max_tokens": int(ai_cfg.get("max_tokens", defaults["max_tokens"])),
        "timeout_seconds": int(ai_cfg.get("timeout_seconds", defaults["timeout_seconds"])),
    }
