from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from netlife_session.types import DEFAULT_ACTIVITY_EVENTS


MINUTE_MS = 60 * 1000

DEFAULT_INACTIVITY_TIMEOUT_MS = 3 * MINUTE_MS
DEFAULT_WARNING_LEAD_TIME_MS = 1 * MINUTE_MS
DEFAULT_POLL_INTERVAL_MS = 10 * 1000
DEFAULT_WARNING_MESSAGE = "You will be logged out due to inactivity in 1 minute."


@dataclass(slots=True)
class AutoLogoutConfig:
    inactivity_timeout_ms: int = DEFAULT_INACTIVITY_TIMEOUT_MS
    warning_lead_time_ms: int = DEFAULT_WARNING_LEAD_TIME_MS
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    activity_events: tuple[str, ...] = DEFAULT_ACTIVITY_EVENTS
    warning_message: str = DEFAULT_WARNING_MESSAGE


@dataclass(slots=True)
class RuntimeConfig:
    log_level: str = "INFO"


@dataclass(slots=True)
class DiagnosticsConfig:
    db_path: str = "data/diagnostics.db"
    flush_interval_sec: float = 2.0
    buffer_maxsize: int = 1000
    flush_timeout_sec: float = 3.0


@dataclass(slots=True)
class AppConfig:
    auto_logout: AutoLogoutConfig
    runtime: RuntimeConfig
    diagnostics: DiagnosticsConfig
    raw: dict[str, Any] = field(default_factory=dict)


def validate_auto_logout(cfg: AutoLogoutConfig) -> AutoLogoutConfig:
    if cfg.inactivity_timeout_ms <= 0 or cfg.warning_lead_time_ms <= 0 or cfg.poll_interval_ms <= 0:
        raise ValueError("auto-logout durations must be positive")
    if cfg.warning_lead_time_ms > cfg.inactivity_timeout_ms:
        raise ValueError(
            f"warning_lead_time_ms={cfg.warning_lead_time_ms} exceeds inactivity_timeout_ms={cfg.inactivity_timeout_ms}"
        )
    if cfg.poll_interval_ms > cfg.warning_lead_time_ms:
        raise ValueError(
            f"poll_interval_ms={cfg.poll_interval_ms} exceeds warning_lead_time_ms={cfg.warning_lead_time_ms}"
        )
    if not cfg.activity_events:
        raise ValueError("activity_events must not be empty")
    return cfg


def _minutes_env(name: str, default_ms: int) -> int:
    # Overrides are whole minutes, as in the web client's build env.
    raw = os.getenv(name)
    if not raw:
        return default_ms
    return int(raw) * MINUTE_MS


def auto_logout_from_dict(data: dict[str, Any] | None) -> AutoLogoutConfig:
    section = data or {}
    events = section.get("activity_events")
    cfg = AutoLogoutConfig(
        inactivity_timeout_ms=int(section.get("inactivity_timeout_ms", DEFAULT_INACTIVITY_TIMEOUT_MS)),
        warning_lead_time_ms=int(section.get("warning_lead_time_ms", DEFAULT_WARNING_LEAD_TIME_MS)),
        poll_interval_ms=int(section.get("poll_interval_ms", DEFAULT_POLL_INTERVAL_MS)),
        activity_events=tuple(events) if events is not None else DEFAULT_ACTIVITY_EVENTS,
        warning_message=str(section.get("warning_message", DEFAULT_WARNING_MESSAGE)),
    )
    cfg.inactivity_timeout_ms = _minutes_env("AUTO_LOGOUT_TIMEOUT", cfg.inactivity_timeout_ms)
    cfg.warning_lead_time_ms = _minutes_env("AUTO_LOGOUT_WARNING", cfg.warning_lead_time_ms)
    return validate_auto_logout(cfg)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    load_dotenv()
    path = Path(config_path)
    data: dict[str, Any] = yaml.safe_load(path.read_text()) if path.exists() else {}
    data = data or {}

    runtime_section = data.get("runtime", {})
    runtime = RuntimeConfig(log_level=os.getenv("LOG_LEVEL", str(runtime_section.get("log_level", "INFO"))))

    diag_section = data.get("diagnostics", {})
    diagnostics = DiagnosticsConfig(
        db_path=os.getenv("DIAGNOSTICS_DB_PATH", str(diag_section.get("db_path", "data/diagnostics.db"))),
        flush_interval_sec=float(diag_section.get("flush_interval_sec", 2.0)),
        buffer_maxsize=int(diag_section.get("buffer_maxsize", 1000)),
        flush_timeout_sec=float(diag_section.get("flush_timeout_sec", 3.0)),
    )

    return AppConfig(
        auto_logout=auto_logout_from_dict(data.get("auto_logout")),
        runtime=runtime,
        diagnostics=diagnostics,
        raw=data,
    )
