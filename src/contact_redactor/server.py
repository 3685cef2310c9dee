"""HTTP sidecar server for contact-redactor.

Runs as a lightweight stdlib HTTP server on localhost so a message-send
handler written in another stack can call the filter over HTTP.

Endpoints:
    POST /filter           — Filter one message       {"text": "..."}
    POST /validate         — Validate before send     {"text": "..."}
    POST /filter-messages  — Filter chat messages     {"messages": [...]}
    POST /warning          — Warning for blocked items {"blocked_items": [...]}
    GET  /rules            — Rule table
    GET  /health           — Health check

All endpoints expect/return JSON.
"""

from __future__ import annotations
import json
import logging
import os
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Any

from .config import create_filter, load_config, load_from_yaml
from .filter import ContentFilter, get_warning_message
from .patterns import RULES

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("CONTENT_FILTER_PORT", "18792"))
DEFAULT_CONFIG = os.environ.get("CONTENT_FILTER_CONFIG", "")

# Shared state
_filter: ContentFilter | None = None


def _get_filter() -> ContentFilter:
    global _filter
    if _filter is None:
        cfg = load_from_yaml(DEFAULT_CONFIG) if DEFAULT_CONFIG else load_config({})
        _filter = create_filter(cfg)
    return _filter


def set_filter(content_filter: ContentFilter | None) -> None:
    """Replace the shared filter (None resets to the configured default)."""
    global _filter
    _filter = content_filter


class FilterHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the content-filter sidecar."""

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")
        return json.loads(body) if body else {}

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.info("%s %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        if self.path == "/health":
            self._respond(200, {"status": "ok", "rules": len(RULES)})
        elif self.path == "/rules":
            self._respond(200, {"rules": [
                {"kind": r.kind, "replacement": r.replacement, "tracked": r.tracked}
                for r in RULES
            ]})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        try:
            body = self._read_json()
        except (ValueError, UnicodeDecodeError) as e:
            self._respond(400, {"error": f"invalid JSON: {e}"})
            return
        if not isinstance(body, dict):
            self._respond(400, {"error": f"expected a JSON object, got {type(body).__name__}"})
            return

        try:
            content_filter = _get_filter()

            if self.path == "/filter":
                result = content_filter.filter(body.get("text"))
                payload = result.to_dict()
                payload["warning"] = get_warning_message(result.blocked_items)
                self._respond(200, payload)

            elif self.path == "/validate":
                self._respond(200, content_filter.validate(body.get("text")).to_dict())

            elif self.path == "/filter-messages":
                messages = body.get("messages", [])
                content_key = body.get("content_key", "content")
                self._respond(200, {
                    "messages": content_filter.filter_messages(messages, content_key=content_key),
                })

            elif self.path == "/warning":
                self._respond(200, {"warning": get_warning_message(body.get("blocked_items"))})

            else:
                self._respond(404, {"error": "not found"})

        except Exception as e:
            logger.exception("request to %s failed", self.path)
            self._respond(500, {"error": str(e)})


def serve(port: int = DEFAULT_PORT) -> None:
    """Start the content-filter HTTP sidecar."""
    server = HTTPServer(("127.0.0.1", port), FilterHandler)
    logger.info("contact-redactor sidecar listening on http://127.0.0.1:%d", port)
    logger.info("  config: %s", DEFAULT_CONFIG or "(defaults)")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("shutting down")
        server.shutdown()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Contact redactor HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    serve(port=args.port)
