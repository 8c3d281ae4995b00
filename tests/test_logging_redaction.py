import json
import logging

from netlife_session.logging_utils import JsonFormatter, RedactionFilter, redact_payload


def test_log_redaction_filter_masks_sensitive_fields(monkeypatch):
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role-xyz")
    f = RedactionFilter()

    record = logging.LogRecord(
        name="x",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='profile={"phone":"+256700000000","access_token":"sekret-tok-1"} key=%s',
        args=("service-role-xyz",),
        exc_info=None,
    )

    ok = f.filter(record)
    assert ok
    msg = str(record.msg)
    assert "+256700000000" not in msg
    assert "sekret-tok-1" not in msg
    assert "service-role-xyz" not in msg
    assert "***REDACTED***" in msg


def test_json_formatter_includes_extras():
    record = logging.LogRecord("InactivityMonitor", logging.INFO, __file__, 1, "inactivity warning", (), None)
    record.event_type = "auto_logout_warning"
    record.remaining_ms = 60000
    payload = json.loads(JsonFormatter().format(record))
    assert payload["logger"] == "InactivityMonitor"
    assert payload["event_type"] == "auto_logout_warning"
    assert payload["remaining_ms"] == 60000
    assert "session_id" not in payload


def test_redact_payload_nested():
    out = redact_payload({"user": {"phone_number": "+1", "name": "A"}, "items": [{"refresh_token": "r"}]})
    assert out["user"]["phone_number"] == "***REDACTED***"
    assert out["user"]["name"] == "A"
    assert out["items"][0]["refresh_token"] == "***REDACTED***"
