import json
from datetime import datetime, timezone

from comma.audit import AuditEvent, AuditLogger, estimate_tokens

NOW = 1_700_000_000.0  # 2023-11-14 UTC


def read_events(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_events_are_appended_as_json_lines(tmp_path):
    audit = AuditLogger(tmp_path, clock=lambda: NOW)

    audit.record_event(AuditEvent(action="generate", provider="openai", repo_name="demo", tokens_used=42))
    audit.record_event(AuditEvent(action="commit", status="error", error="hook failed", user="dev"))

    events = read_events(tmp_path / "2023-11-audit.log")
    assert [e["action"] for e in events] == ["generate", "commit"]
    assert events[0]["provider"] == "openai"
    assert events[0]["tokens_used"] == 42
    assert events[0]["status"] == "success"
    assert events[0]["user"]
    assert events[0]["timestamp"].startswith("2023-11-14T")
    assert "error" not in events[0]
    assert events[1]["error"] == "hook failed"
    assert events[1]["user"] == "dev"


def test_explicit_timestamp_selects_log_file(tmp_path):
    audit = AuditLogger(tmp_path, clock=lambda: NOW)
    when = datetime(2024, 2, 1, tzinfo=timezone.utc)

    audit.record_event(AuditEvent(action="generate", timestamp=when))

    assert (tmp_path / "2024-02-audit.log").exists()


def test_disabled_logger_writes_nothing(tmp_path):
    AuditLogger(tmp_path, enabled=False).record_event(AuditEvent(action="generate"))

    assert list(tmp_path.iterdir()) == []


def test_write_failure_is_swallowed(tmp_path):
    blocker = tmp_path / "audit"
    blocker.write_text("")

    AuditLogger(blocker, clock=lambda: NOW).record_event(AuditEvent(action="generate"))


def test_estimate_tokens():
    assert estimate_tokens("a" * 12, "b" * 4) == 4
    assert estimate_tokens("abc") == 0


def test_usage_report(tmp_path):
    audit = AuditLogger(tmp_path, clock=lambda: NOW)
    audit.record_event(AuditEvent(action="generate", provider="openai", tokens_used=100))
    audit.record_event(AuditEvent(action="generate", provider="openai", tokens_used=50))
    audit.record_event(AuditEvent(action="generate", provider="local", status="error"))
    audit.record_event(AuditEvent(action="commit"))

    report = audit.usage_report()

    assert report == {
        "total_requests": 3,
        "total_tokens": 150,
        "avg_tokens": 50,
        "by_provider": {"openai": 2, "local": 1},
        "errors": 1,
    }
