"""CLI interface for contact-redactor — for scripts and send handlers.

Usage:
    # Filter a message (stdin: plain text, stdout: JSON result)
    echo 'reach me at john@x.com' | python -m contact_redactor.cli filter

    # Validate before send (adds the user-facing warning)
    echo 'call 555-123-4567' | python -m contact_redactor.cli validate

    # Filter chat messages (stdin: JSON array of {"role", "content"} dicts)
    echo '[{"role":"user","content":"see evilsite.com"}]' | \
        python -m contact_redactor.cli filter-messages

    # List the rule table in application order
    python -m contact_redactor.cli rules
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys

from .config import create_filter, load_config, load_from_yaml
from .filter import get_warning_message
from .patterns import RULES


def _build_filter(args: argparse.Namespace):
    if args.config:
        cfg = load_from_yaml(args.config)
    else:
        cfg = load_config({})
    if args.allow_domain:
        cfg["allowed_domains"] = set(args.allow_domain.split(","))
    if args.skip_kinds:
        cfg["skip_kinds"] = set(args.skip_kinds.split(","))
    return create_filter(cfg)


def cmd_filter(args: argparse.Namespace) -> None:
    """Filter plain text on stdin."""
    content_filter = _build_filter(args)

    text = sys.stdin.read()
    if not args.keep_newline:
        text = text.rstrip("\n")
    result = content_filter.filter(text)

    output = result.to_dict()
    output["warning"] = get_warning_message(result.blocked_items)
    json.dump(output, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate plain text on stdin."""
    content_filter = _build_filter(args)

    text = sys.stdin.read()
    if not args.keep_newline:
        text = text.rstrip("\n")
    json.dump(content_filter.validate(text).to_dict(), sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_filter_messages(args: argparse.Namespace) -> None:
    """Filter chat messages given as a JSON array on stdin."""
    content_filter = _build_filter(args)

    messages = json.loads(sys.stdin.read())
    filtered = content_filter.filter_messages(messages, content_key=args.content_key)

    json.dump(filtered, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_rules(args: argparse.Namespace) -> None:
    """Print the rule table."""
    json.dump(
        [
            {"kind": r.kind, "replacement": r.replacement, "tracked": r.tracked}
            for r in RULES
        ],
        sys.stdout,
        indent=2,
    )
    sys.stdout.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contact_redactor",
        description="Redact contact info from chat messages",
    )
    parser.add_argument("--config", default=os.environ.get("CONTENT_FILTER_CONFIG"),
                        help="YAML config file")
    parser.add_argument("--allow-domain", default="",
                        help="Comma-separated trusted domains (replaces the default allowlist)")
    parser.add_argument("--skip-kinds", default="", help="Comma-separated rule kinds to disable")
    parser.add_argument("--keep-newline", action="store_true",
                        help="Don't strip the trailing newline from stdin")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("filter", help="Filter plain text (stdin)")
    sub.add_parser("validate", help="Validate plain text before send (stdin)")
    fm = sub.add_parser("filter-messages", help="Filter chat messages (JSON stdin)")
    fm.add_argument("--content-key", default="content")
    sub.add_parser("rules", help="List rules in application order")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "filter": cmd_filter,
        "validate": cmd_validate,
        "filter-messages": cmd_filter_messages,
        "rules": cmd_rules,
    }
    cmds[args.command](args)


if __name__ == "__main__":
    main()
