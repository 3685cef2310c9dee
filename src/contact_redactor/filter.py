"""ContentFilter — the main API.  Redacts contact info from chat messages.

Usage:
    from contact_redactor import ContentFilter, FilterConfig

    content_filter = ContentFilter(FilterConfig(allowed_domains={"piconnect.com"}))

    result = content_filter.filter("Email me at john@acme.com")
    print(result.filtered_text)      # "Email me at [EMAIL REDACTED]"
    print(result.blocked_items)      # [BlockedItem(kind='email', ...)]

    check = content_filter.validate("see evilsite.com")
    print(check.warning)             # shown to the sender, message still goes out

Module-level helpers (filter_message_content, validate_message,
get_warning_message) use a default filter.
"""

from __future__ import annotations
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from .patterns import RULE_KINDS, has_suspicious_phrase, iter_rules
from .types import BlockedItem, FilterResult, Rule, ValidationResult

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_DOMAINS: frozenset[str] = frozenset({"inquireconnect.com", "piconnect.com"})

VALIDATION_WARNING = (
    "For your safety, contact information has been automatically removed "
    "from this message."
)
MULTI_KIND_WARNING = "For your safety, contact information has been removed from this message."

_KIND_PHRASES = {
    "email": "email addresses",
    "phone": "phone numbers",
    "url": "external links",
    "social_handle": "social media handles",
    "social": "social media handles",
}


@dataclass
class FilterConfig:
    """Configuration for the ContentFilter."""
    # Trusted hosts exempt from URL redaction (subdomains included)
    allowed_domains: set[str] = field(default_factory=lambda: set(DEFAULT_ALLOWED_DOMAINS))
    # Rule kinds to turn off entirely (e.g. {"zoom"})
    skip_kinds: set[str] = field(default_factory=set)
    detect_suspicious: bool = True

    def __post_init__(self) -> None:
        self.skip_kinds = set(self.skip_kinds)
        unknown = self.skip_kinds - set(RULE_KINDS)
        if unknown:
            raise ValueError(f"unknown rule kinds: {', '.join(sorted(unknown))}")
        self.allowed_domains = {d.strip().lower().lstrip(".") for d in self.allowed_domains if d.strip()}


class ContentFilter:
    """Sequential contact-info filter.

    Rules run one after another over the progressively redacted text, so
    whatever an earlier rule removed is invisible to the later ones.
    Holds no per-call state; one instance can serve any number of threads.
    """

    def __init__(self, config: FilterConfig | None = None) -> None:
        self.config = config or FilterConfig()
        self._rules: tuple[Rule, ...] = tuple(iter_rules(self.config.skip_kinds))

    def filter(self, message: str | None) -> FilterResult:
        """Redact contact info from a message.

        Anything that isn't a string comes back untouched with
        was_filtered=False.
        """
        if not isinstance(message, str):
            return FilterResult(filtered_text=message)

        text = message
        was_filtered = False
        blocked: list[BlockedItem] = []

        # A token can complete a match for an earlier rule ("x@a.bc5551234567"
        # is only an email once the phone is gone), so repeat the pass
        # until nothing fires.  Every substitution consumes text outside
        # existing tokens, so this terminates.
        while True:
            text, fired = self._run_pass(text, blocked)
            if not fired:
                break
            was_filtered = True

        suspicious = self.config.detect_suspicious and has_suspicious_phrase(message)
        if suspicious:
            logger.debug("suspicious phrase in message")

        return FilterResult(
            filtered_text=text,
            was_filtered=was_filtered,
            blocked_items=blocked,
            has_suspicious_phrase=suspicious,
        )

    def validate(self, message: str | None) -> ValidationResult:
        """Filter a message before send.  Always allowed; warns if anything was removed."""
        result = self.filter(message)
        return ValidationResult(
            filtered=result.filtered_text,
            was_filtered=result.was_filtered,
            blocked_items=result.blocked_items,
            warning=VALIDATION_WARNING if result.was_filtered else None,
        )

    def filter_messages(
        self,
        messages: list[dict],
        *,
        content_key: str = "content",
    ) -> list[dict]:
        """Filter a list of chat-message dicts.

        Returns new message dicts with content filtered.  Does NOT
        mutate the originals.
        """
        out: list[dict] = []
        for msg in messages:
            content = msg.get(content_key)
            if isinstance(content, str) and content:
                out.append({**msg, content_key: self.filter(content).filtered_text})
            else:
                out.append(msg)
        return out

    def is_allowed_url(self, url: str) -> bool:
        """True when the URL's host is an allowed domain or a subdomain of one."""
        host = _url_host(url)
        if not host:
            return False
        return any(
            host == domain or host.endswith("." + domain)
            for domain in self.config.allowed_domains
        )

    def _run_pass(self, text: str, blocked: list[BlockedItem]) -> tuple[str, bool]:
        """Apply every rule once, in order.  Returns (new_text, anything_redacted)."""
        fired = False
        for rule in self._rules:
            if rule.kind == "url":
                text, hits = self._redact_urls(rule, text)
            else:
                text, hits = _apply(rule, text)
            if not hits:
                continue
            fired = True
            if rule.tracked:
                blocked.extend(BlockedItem(rule.kind, value) for value in hits)
            logger.debug("redacted %d %s match(es)", len(hits), rule.kind)
        return text, fired

    def _redact_urls(self, rule: Rule, text: str) -> tuple[str, list[str]]:
        hits: list[str] = []

        def _replace(m: re.Match) -> str:
            if self.is_allowed_url(m.group()):
                return m.group()
            hits.append(m.group())
            return rule.replacement

        return rule.pattern.sub(_replace, text), hits


def _apply(rule: Rule, text: str) -> tuple[str, list[str]]:
    """Replace every match of rule in text.  Returns (new_text, matched_values)."""
    hits = [m.group() for m in rule.pattern.finditer(text)]
    if not hits:
        return text, hits
    return rule.pattern.sub(rule.replacement, text), hits


def _url_host(url: str) -> str:
    try:
        parts = urlsplit(url if "://" in url else "//" + url)
        return (parts.hostname or "").rstrip(".")
    except ValueError:
        return ""


def _kind_of(item: BlockedItem | Mapping) -> str | None:
    if isinstance(item, Mapping):
        return item.get("kind") or item.get("type")
    return getattr(item, "kind", None)


def get_warning_message(blocked_items: Iterable[BlockedItem | Mapping] | None) -> str | None:
    """User-facing notice for what was removed, or None if nothing was.

    Accepts BlockedItem objects or their dict form.
    """
    if not blocked_items:
        return None
    kinds = {_kind_of(item) for item in blocked_items}
    if not kinds:
        return None
    if len(kinds) == 1:
        phrase = _KIND_PHRASES.get(next(iter(kinds)), "contact information")
        return f"For your safety, {phrase} have been removed from this message."
    return MULTI_KIND_WARNING


_default_filter: ContentFilter | None = None


def _get_default_filter() -> ContentFilter:
    global _default_filter
    if _default_filter is None:
        _default_filter = ContentFilter()
    return _default_filter


def filter_message_content(
    message: str | None,
    *,
    allowed_domains: Iterable[str] | None = None,
) -> FilterResult:
    """Filter one message with the default rules.

    allowed_domains overrides the default URL allowlist for this call.
    """
    if allowed_domains is None:
        return _get_default_filter().filter(message)
    return ContentFilter(FilterConfig(allowed_domains=set(allowed_domains))).filter(message)


def validate_message(
    message: str | None,
    *,
    allowed_domains: Iterable[str] | None = None,
) -> ValidationResult:
    if allowed_domains is None:
        return _get_default_filter().validate(message)
    return ContentFilter(FilterConfig(allowed_domains=set(allowed_domains))).validate(message)
