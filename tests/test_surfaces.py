"""Tests for config loading, the CLI and the HTTP sidecar."""

import io
import json
import sys, os
import threading
import urllib.error
import urllib.request
from http.server import HTTPServer
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from contact_redactor import ContentFilter, FilterConfig, create_filter, load_config, load_from_yaml
from contact_redactor.cli import main
from contact_redactor.config import ENV_ALLOWED_DOMAINS
from contact_redactor.filter import DEFAULT_ALLOWED_DOMAINS, VALIDATION_WARNING
from contact_redactor import server


# ── Config ───────────────────────────────────────────────────────────

def test_load_config_nested(monkeypatch):
    monkeypatch.delenv(ENV_ALLOWED_DOMAINS, raising=False)
    cfg = load_config({"content_filter": {"allowed_domains": ["a.com"], "skip_kinds": ["zoom"]}})
    assert cfg["enabled"] is True
    assert cfg["allowed_domains"] == {"a.com"}
    assert cfg["skip_kinds"] == {"zoom"}
    assert cfg["detect_suspicious"] is True


def test_load_config_defaults(monkeypatch):
    monkeypatch.delenv(ENV_ALLOWED_DOMAINS, raising=False)
    cfg = load_config({})
    assert cfg["allowed_domains"] == set(DEFAULT_ALLOWED_DOMAINS)
    assert cfg["skip_kinds"] == set()


def test_load_config_env_domains(monkeypatch):
    monkeypatch.setenv(ENV_ALLOWED_DOMAINS, "x.com, y.com")
    assert load_config({})["allowed_domains"] == {"x.com", "y.com"}
    # Explicit config wins over the environment
    assert load_config({"allowed_domains": ["z.com"]})["allowed_domains"] == {"z.com"}


def test_load_from_yaml(tmp_path, monkeypatch):
    monkeypatch.delenv(ENV_ALLOWED_DOMAINS, raising=False)
    path = tmp_path / "filter.yaml"
    path.write_text(
        "content_filter:\n"
        "  enabled: true\n"
        "  allowed_domains:\n"
        "    - evilsite.com\n"
        "  skip_kinds: [phone]\n"
    )
    cfg = load_from_yaml(path)
    f = create_filter(cfg)
    result = f.filter("see evilsite.com or 555-123-4567")
    assert result.filtered_text == "see evilsite.com or 555-123-4567"


def test_create_filter_disabled():
    f = create_filter({"enabled": False})
    result = f.filter("a@b.com")
    assert result.filtered_text == "a@b.com"
    assert not result.was_filtered
    assert f.validate("a@b.com").warning is None


def test_create_filter_flat_dict():
    f = create_filter({"enabled": True, "skip_kinds": ["email"]})
    assert isinstance(f, ContentFilter)
    assert "email" in f.config.skip_kinds


# ── CLI ──────────────────────────────────────────────────────────────

def _run_cli(monkeypatch, capsys, argv, stdin=""):
    monkeypatch.delenv("CONTENT_FILTER_CONFIG", raising=False)
    monkeypatch.delenv(ENV_ALLOWED_DOMAINS, raising=False)
    monkeypatch.setattr(sys, "stdin", io.StringIO(stdin))
    main(argv)
    return json.loads(capsys.readouterr().out)


def test_cli_filter(monkeypatch, capsys):
    out = _run_cli(monkeypatch, capsys, ["filter"], "reach me at john@x.com\n")
    assert out["filtered"] == "reach me at [EMAIL REDACTED]"
    assert out["was_filtered"] is True
    assert out["blocked_items"] == [{"kind": "email", "value": "john@x.com"}]
    assert out["warning"] == "For your safety, email addresses have been removed from this message."


def test_cli_allow_domain(monkeypatch, capsys):
    out = _run_cli(monkeypatch, capsys, ["--allow-domain", "evilsite.com", "filter"], "see evilsite.com")
    assert out["filtered"] == "see evilsite.com"
    assert out["was_filtered"] is False


def test_cli_validate(monkeypatch, capsys):
    out = _run_cli(monkeypatch, capsys, ["validate"], "call 555-123-4567\n")
    assert out["allowed"] is True
    assert out["filtered"] == "call [PHONE REDACTED]"
    assert out["warning"] == VALIDATION_WARNING


def test_cli_filter_messages(monkeypatch, capsys):
    stdin = json.dumps([{"role": "user", "content": "see evilsite.com"}])
    out = _run_cli(monkeypatch, capsys, ["filter-messages"], stdin)
    assert out == [{"role": "user", "content": "see [LINK REDACTED]"}]


def test_cli_rules(monkeypatch, capsys):
    out = _run_cli(monkeypatch, capsys, ["rules"])
    assert len(out) == 10
    assert out[0] == {"kind": "email", "replacement": "[EMAIL REDACTED]", "tracked": True}


def test_cli_bad_json(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("not json"))
    with pytest.raises(json.JSONDecodeError):
        main(["filter-messages"])


# ── HTTP Sidecar ─────────────────────────────────────────────────────

@pytest.fixture
def sidecar():
    server.set_filter(ContentFilter(FilterConfig(allowed_domains={"piconnect.com"})))
    httpd = HTTPServer(("127.0.0.1", 0), server.FilterHandler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()
    server.set_filter(None)


def _get(url):
    with urllib.request.urlopen(url) as resp:
        return resp.status, json.loads(resp.read())


def _post(url, body):
    data = body if isinstance(body, bytes) else json.dumps(body).encode()
    req = urllib.request.Request(url, data=data, headers={"Content-Type": "application/json"})
    with urllib.request.urlopen(req) as resp:
        return resp.status, json.loads(resp.read())


def test_sidecar_health(sidecar):
    status, body = _get(sidecar + "/health")
    assert status == 200
    assert body == {"status": "ok", "rules": 10}


def test_sidecar_rules(sidecar):
    _, body = _get(sidecar + "/rules")
    assert [r["kind"] for r in body["rules"]][:3] == ["email", "phone", "url"]


def test_sidecar_filter(sidecar):
    _, body = _post(sidecar + "/filter", {"text": "visit piconnect.com/help or evilsite.com"})
    assert body["filtered"] == "visit piconnect.com/help or [LINK REDACTED]"
    assert body["blocked_items"] == [{"kind": "url", "value": "evilsite.com"}]
    assert body["warning"] == "For your safety, external links have been removed from this message."


def test_sidecar_filter_null_text(sidecar):
    _, body = _post(sidecar + "/filter", {})
    assert body["filtered"] is None
    assert body["was_filtered"] is False


def test_sidecar_validate(sidecar):
    _, body = _post(sidecar + "/validate", {"text": "let's take this offline"})
    assert body["allowed"] is True
    assert body["warning"] is None


def test_sidecar_filter_messages(sidecar):
    _, body = _post(sidecar + "/filter-messages", {"messages": [{"role": "user", "content": "@jane_doe"}]})
    assert body["messages"] == [{"role": "user", "content": "[HANDLE REDACTED]"}]


def test_sidecar_warning(sidecar):
    _, body = _post(sidecar + "/warning", {"blocked_items": [{"kind": "email"}, {"kind": "phone"}]})
    assert body["warning"] == "For your safety, contact information has been removed from this message."


def test_sidecar_not_found(sidecar):
    with pytest.raises(urllib.error.HTTPError) as exc:
        _get(sidecar + "/nope")
    assert exc.value.code == 404


def test_sidecar_bad_json(sidecar):
    with pytest.raises(urllib.error.HTTPError) as exc:
        _post(sidecar + "/filter", b"{not json")
    assert exc.value.code == 400


@pytest.mark.parametrize("payload", [b"[1]", b'"x"', b"42", b"null"])
def test_sidecar_non_object_body(sidecar, payload):
    with pytest.raises(urllib.error.HTTPError) as exc:
        _post(sidecar + "/filter", payload)
    assert exc.value.code == 400
    assert "expected a JSON object" in json.loads(exc.value.read())["error"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
