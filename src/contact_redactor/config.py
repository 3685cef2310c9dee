"""YAML/dict config loader for contact-redactor.

Supports loading from a YAML file or a plain dict (for embedding
in a larger app config).

Example YAML:

    content_filter:
      enabled: true
      allowed_domains:
        - piconnect.com
        - inquireconnect.com
      skip_kinds:
        - zoom
      detect_suspicious: true
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any

from .filter import DEFAULT_ALLOWED_DOMAINS, ContentFilter, FilterConfig
from .types import FilterResult, ValidationResult

ENV_ALLOWED_DOMAINS = "CONTENT_FILTER_ALLOWED_DOMAINS"


class _NoopFilter:
    """Pass-through filter when filtering is disabled."""
    def filter(self, message: str | None) -> FilterResult:
        return FilterResult(filtered_text=message)
    def validate(self, message: str | None) -> ValidationResult:
        return ValidationResult(filtered=message, was_filtered=False)
    def filter_messages(self, messages: list[dict], *, content_key: str = "content") -> list[dict]:
        return list(messages)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v) for v in value]


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "content_filter" key or flat
    if "content_filter" in data:
        data = data["content_filter"] or {}

    domains = data.get("allowed_domains")
    env_domains = os.environ.get(ENV_ALLOWED_DOMAINS)
    if domains is None and env_domains:
        domains = env_domains

    return {
        "enabled": data.get("enabled", True),
        "allowed_domains": set(_as_list(domains)) if domains is not None else set(DEFAULT_ALLOWED_DOMAINS),
        "skip_kinds": set(_as_list(data.get("skip_kinds"))),
        "detect_suspicious": data.get("detect_suspicious", True),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        return load_config(yaml.safe_load(f))


def create_filter(config: dict[str, Any] | None = None) -> ContentFilter | _NoopFilter:
    """Create a configured filter from a config dict."""
    cfg = load_config(config)

    if not cfg["enabled"]:
        return _NoopFilter()

    return ContentFilter(FilterConfig(
        allowed_domains=set(cfg["allowed_domains"]),
        skip_kinds=set(cfg["skip_kinds"]),
        detect_suspicious=cfg["detect_suspicious"],
    ))
