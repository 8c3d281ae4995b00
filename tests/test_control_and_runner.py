import asyncio
import json

from netlife_session.activity_bus import ActivityBus
from netlife_session.config import AppConfig, AutoLogoutConfig, DiagnosticsConfig, RuntimeConfig
from netlife_session.control import CLIControl
from netlife_session.countdown import WarningCountdown
from netlife_session.debug_tools import AutoLogoutDebugTools
from netlife_session.monitor import InactivityMonitor
from netlife_session.persistence import MemoryDiagnosticStore
from netlife_session.runner import SessionRunner
from netlife_session.session import Session
from netlife_session.types import LAST_ACTIVITY_KEY, MonitorState


T0 = 1_700_000_000_000.0


class FakeClock:
    def __init__(self, start: float = T0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def mk_control():
    clock = FakeClock()
    session = Session("u1")
    bus = ActivityBus()
    store = MemoryDiagnosticStore()
    cfg = AutoLogoutConfig()
    monitor = InactivityMonitor(cfg, session.logout, session.is_active, bus=bus, store=store, clock=clock)
    countdown = WarningCountdown(monitor, session.logout, session.is_active)
    debug = AutoLogoutDebugTools(cfg, store, bus=bus, monitor=monitor, clock=clock)
    session.on_logout(monitor.end_session)
    return clock, session, monitor, countdown, CLIControl(session, bus, monitor, countdown, debug)


def test_control_commands(capsys):
    clock, session, monitor, countdown, control = mk_control()

    async def scenario():
        monitor.start()
        clock.now += 100000
        assert control.handle("activity click")
        assert monitor.get_remaining_time() == 180000
        assert control.handle("")
        assert control.handle("warn")
        assert countdown.visible
        assert control.handle("stay")
        assert not countdown.visible
        assert control.handle("status")
        assert control.handle("bogus")
        assert not control.handle("logout")

    asyncio.run(scenario())
    status = json.loads(capsys.readouterr().out.strip().splitlines()[0])
    assert status["state"] == "IDLE_TRACKING"
    assert status["remaining"] == "3:00"
    assert not session.is_active()
    assert monitor.state == MonitorState.TERMINATED


def test_control_quit_and_debug(capsys):
    _, _, monitor, _, control = mk_control()
    monitor.record_activity()
    assert control.handle("debug")
    info = json.loads(capsys.readouterr().out)
    assert info["config"]["inactivity_timeout_min"] == 3.0
    assert not control.handle("quit")


def test_runner_logout_tears_down_monitor(tmp_path):
    cfg = AppConfig(
        auto_logout=AutoLogoutConfig(),
        runtime=RuntimeConfig(),
        diagnostics=DiagnosticsConfig(db_path=str(tmp_path / "diagnostics.db")),
    )

    async def scenario():
        runner = SessionRunner(cfg, user_id="u9")
        await runner.store.init()
        runner.session.login("u9")
        runner.monitor.start(runner.session.is_active)
        assert runner.bus.listener_count() == len(cfg.auto_logout.activity_events)
        runner.session.logout()
        assert runner.monitor.state == MonitorState.TERMINATED
        assert runner.bus.listener_count() == 0
        assert runner._logged_out.is_set()
        await runner.store.flush_once()
        stored = await runner.store.load()
        await runner.store.stop()
        return stored

    stored = asyncio.run(scenario())
    assert LAST_ACTIVITY_KEY in stored


def test_control_debug_dump_masks_phone(capsys):
    _, session, _, _, control = mk_control()
    session.login("u1", phone="+256700000000")
    assert control.handle("debug")
    out = capsys.readouterr().out
    info = json.loads(out)
    assert "+256700000000" not in out
    assert info["session"]["phone"] == "***REDACTED***"
    assert info["session"]["user_id"] == "u1"
