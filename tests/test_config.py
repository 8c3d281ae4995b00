import pytest

from netlife_session.config import AutoLogoutConfig, load_config, validate_auto_logout
from netlife_session.types import DEFAULT_ACTIVITY_EVENTS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("AUTO_LOGOUT_TIMEOUT", "AUTO_LOGOUT_WARNING", "LOG_LEVEL", "DIAGNOSTICS_DB_PATH"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_when_file_missing(tmp_path):
    cfg = load_config(str(tmp_path / "missing.yaml"))
    assert cfg.auto_logout.inactivity_timeout_ms == 180000
    assert cfg.auto_logout.warning_lead_time_ms == 60000
    assert cfg.auto_logout.poll_interval_ms == 10000
    assert cfg.auto_logout.activity_events == DEFAULT_ACTIVITY_EVENTS
    assert cfg.runtime.log_level == "INFO"


def test_yaml_values_and_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(
        "runtime:\n  log_level: DEBUG\n"
        "auto_logout:\n  inactivity_timeout_ms: 600000\n  warning_lead_time_ms: 120000\n"
        "  poll_interval_ms: 5000\n  activity_events: [click, keypress]\n"
        "diagnostics:\n  db_path: /tmp/x.db\n"
    )
    cfg = load_config(str(path))
    assert cfg.auto_logout.inactivity_timeout_ms == 600000
    assert cfg.auto_logout.activity_events == ("click", "keypress")
    assert cfg.runtime.log_level == "DEBUG"
    assert cfg.diagnostics.db_path == "/tmp/x.db"

    monkeypatch.setenv("AUTO_LOGOUT_TIMEOUT", "15")
    monkeypatch.setenv("AUTO_LOGOUT_WARNING", "2")
    monkeypatch.setenv("DIAGNOSTICS_DB_PATH", "/tmp/y.db")
    cfg = load_config(str(path))
    assert cfg.auto_logout.inactivity_timeout_ms == 15 * 60 * 1000
    assert cfg.auto_logout.warning_lead_time_ms == 2 * 60 * 1000
    assert cfg.diagnostics.db_path == "/tmp/y.db"


def test_env_override_that_breaks_ordering_is_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("AUTO_LOGOUT_TIMEOUT", "1")
    monkeypatch.setenv("AUTO_LOGOUT_WARNING", "2")
    with pytest.raises(ValueError):
        load_config(str(tmp_path / "missing.yaml"))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"inactivity_timeout_ms": 0},
        {"warning_lead_time_ms": 200000},
        {"poll_interval_ms": 61000},
        {"activity_events": ()},
    ],
)
def test_validation_errors(kwargs):
    with pytest.raises(ValueError):
        validate_auto_logout(AutoLogoutConfig(**kwargs))


def test_lead_time_equal_to_timeout_is_allowed():
    cfg = AutoLogoutConfig(inactivity_timeout_ms=60000, warning_lead_time_ms=60000)
    assert validate_auto_logout(cfg) is cfg
