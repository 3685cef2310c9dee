"""Rule table — regex patterns for contact info in chat messages.

Rules are applied in the order listed here, each one against the output
of the previous.  Order matters where rules overlap: "email me at x@y.com"
is caught by the plain email rule before the phrase rule ever sees it.

Every pattern is linear in the input length.  Unbounded patterns over
character runs carry a lookbehind so a match can only start at the
beginning of a run; the URL host is bounded instead, so a link is found
from anywhere inside a run.  No two adjacent quantifiers can consume the
same characters, and no pattern can match a replacement token or
reach into one.
"""

from __future__ import annotations
import re
from collections.abc import Iterable, Iterator

from .types import Rule

EMAIL_TOKEN = "[EMAIL REDACTED]"
PHONE_TOKEN = "[PHONE REDACTED]"
LINK_TOKEN = "[LINK REDACTED]"
HANDLE_TOKEN = "[HANDLE REDACTED]"
SKYPE_TOKEN = "[SKYPE REDACTED]"
WHATSAPP_TOKEN = "[WHATSAPP REDACTED]"
ZOOM_TOKEN = "[ZOOM LINK REDACTED]"
CONTACT_TOKEN = "[CONTACT INFO REDACTED]"

_LOCAL = r"[A-Za-z0-9._%+\-]"
_DOMAIN = r"[A-Za-z0-9.\-]"
_URL_HOST = r"[A-Za-z0-9@:%._+~#=\-]"
_DIAL = r"[\d\s\-+()]"           # digits plus what people type between them

RULES: tuple[Rule, ...] = (
    Rule("email", re.compile(
        rf"(?<!{_LOCAL}){_LOCAL}+@{_DOMAIN}+\.[A-Za-z]{{2,}}\b"
    ), EMAIL_TOKEN, tracked=True),

    # 555-123-4567, (555) 123 4567, +1 555.123.4567
    Rule("phone", re.compile(
        r"(?<!\d)"
        r"(?:\+?\d{1,3}[\s.\-]?)?"
        r"\(?\d{3}\)?[\s.\-]?"
        r"\d{3}[\s.\-]?\d{4}\b"
    ), PHONE_TOKEN, tracked=True),

    # Bare domains count too: "evilsite.com", "www.x.io/path?q=1".
    # A trailing period or comma stays with the sentence.
    Rule("url", re.compile(
        r"(?:https?://)?(?:www\.)?"
        rf"{_URL_HOST}{{1,256}}\.[A-Za-z]{{2,6}}\b"
        r"(?:[A-Za-z0-9()@:%_+.~#?&/=\-]*[A-Za-z0-9()@%_+~#&/=\-])?",
        re.IGNORECASE,
    ), LINK_TOKEN, tracked=True),

    Rule("social_handle", re.compile(
        r"@[A-Za-z0-9_]{3,}"
    ), HANDLE_TOKEN, tracked=True),

    Rule("skype", re.compile(
        r"\bskype\s*:\s*[A-Za-z0-9_.\-]+", re.IGNORECASE
    ), SKYPE_TOKEN),

    Rule("whatsapp", re.compile(
        rf"\bwhatsapp(?:\s*:)?{_DIAL}*\d", re.IGNORECASE
    ), WHATSAPP_TOKEN),

    Rule("zoom", re.compile(
        r"zoom\.us/[^\s\[\]]+", re.IGNORECASE
    ), ZOOM_TOKEN),

    # john [at] gmail [dot] com, john(at)gmail(dot)com
    Rule("email_workaround", re.compile(
        rf"(?<!{_LOCAL}){_LOCAL}+\s*[\[(]\s*at\s*[\])]\s*"
        rf"{_DOMAIN}+\s*[\[(]\s*dot\s*[\])]\s*[A-Za-z]{{2,}}\b",
        re.IGNORECASE,
    ), EMAIL_TOKEN),

    Rule("call_me_phrase", re.compile(
        rf"\b(?:call|text|reach|contact)\s+(?:me|us)\s+(?:at|on)(?:\s*:)?{_DIAL}*\d",
        re.IGNORECASE,
    ), CONTACT_TOKEN),

    Rule("email_me_phrase", re.compile(
        r"\b(?:e-?mail|mail)\s+(?:me|us)\s+(?:at|to)(?:\s*:)?\s*"
        rf"{_LOCAL}+@{_DOMAIN}+\.[A-Za-z]{{2,}}",
        re.IGNORECASE,
    ), CONTACT_TOKEN),
)

RULE_KINDS: tuple[str, ...] = tuple(r.kind for r in RULES)

TOKENS: frozenset[str] = frozenset(r.replacement for r in RULES)

# Attempts to move the conversation off-platform.  Flagged, never redacted.
SUSPICIOUS_PHRASES: tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE) for p in (
        r"\bmy\s+(?:phone|number|cell|mobile)\s+is\b",
        r"\bmy\s+email\s+is\b",
        r"\bcontact\s+me\s+(?:at|on)\b",
        r"\breach\s+me\s+(?:at|on)\b",
        r"\bcall\s+me\s+(?:at|on)\b",
        r"\btext\s+me\s+(?:at|on)\b",
        r"\bwhatsapp\s+me\b",
        r"\blet[’']?s\s+talk\s+off",
        r"\btake\s+this\s+offline\b",
        r"\bcontinue\s+this\s+outside\b",
    )
)


def iter_rules(skip_kinds: Iterable[str] = ()) -> Iterator[Rule]:
    """Yield rules in application order, minus the skipped kinds."""
    skip = set(skip_kinds)
    for rule in RULES:
        if rule.kind not in skip:
            yield rule


def has_suspicious_phrase(text: str) -> bool:
    return any(p.search(text) for p in SUSPICIOUS_PHRASES)
