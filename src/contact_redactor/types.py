"""Core types."""

from __future__ import annotations
import re
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Rule:
    """A detection pattern plus the token that replaces its matches."""
    kind: str              # e.g. "email", "whatsapp", "call_me_phrase"
    pattern: re.Pattern
    replacement: str       # literal token, e.g. "[EMAIL REDACTED]"
    tracked: bool = False  # record each match as a BlockedItem


@dataclass(frozen=True, slots=True)
class BlockedItem:
    """One piece of contact info that was removed from a message."""
    kind: str              # e.g. "email", "phone", "url", "social_handle"
    original_value: str

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "value": self.original_value}


@dataclass(slots=True)
class FilterResult:
    """Result of filtering a message."""
    filtered_text: str | None                   # None only when input was None
    was_filtered: bool = False
    blocked_items: list[BlockedItem] = field(default_factory=list)
    has_suspicious_phrase: bool = False

    def to_dict(self) -> dict:
        return {
            "filtered": self.filtered_text,
            "was_filtered": self.was_filtered,
            "blocked_items": [b.to_dict() for b in self.blocked_items],
            "has_suspicious_phrase": self.has_suspicious_phrase,
        }


@dataclass(slots=True)
class ValidationResult:
    """Result of validating a message before send.  Never blocks."""
    filtered: str | None
    was_filtered: bool
    blocked_items: list[BlockedItem] = field(default_factory=list)
    warning: str | None = None
    allowed: bool = True

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "filtered": self.filtered,
            "was_filtered": self.was_filtered,
            "blocked_items": [b.to_dict() for b in self.blocked_items],
            "warning": self.warning,
        }
