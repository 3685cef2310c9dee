"""Contact Redactor — keeps emails, phones and links out of marketplace chat."""

from .filter import (
    ContentFilter, FilterConfig,
    filter_message_content, validate_message, get_warning_message,
)
from .config import create_filter, load_config, load_from_yaml
from .types import BlockedItem, FilterResult, Rule, ValidationResult

__all__ = [
    "ContentFilter", "FilterConfig",
    "filter_message_content", "validate_message", "get_warning_message",
    "create_filter", "load_config", "load_from_yaml",
    "BlockedItem", "FilterResult", "Rule", "ValidationResult",
]
__version__ = "0.1.0"
