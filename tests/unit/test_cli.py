import structlog

from twquant.app import main as cli
from twquant.infrastructure.logging.logging import configure_logging


class FakeScreen:
    def screen(self, snapshots, strict=True):
        return list(snapshots)


class FakeState:
    def __init__(self):
        self.screen = FakeScreen()
        self.snapshots = []
        self.stats = type("Stats", (), {})()


def capture_refresh(monkeypatch):
    calls = []

    async def fake_run_refresh(config_path=None, *, json_logs=True):
        calls.append({"config_path": config_path, "json_logs": json_logs})
        return FakeState()

    monkeypatch.setattr(cli, "run_refresh", fake_run_refresh)
    return calls


def test_refresh_logs_json_by_default(monkeypatch, capsys):
    calls = capture_refresh(monkeypatch)
    cli.main(["refresh"])
    assert calls == [{"config_path": None, "json_logs": True}]
    assert '"snapshots": []' in capsys.readouterr().out


def test_pretty_logs_flag_selects_console_renderer(monkeypatch):
    calls = capture_refresh(monkeypatch)
    cli.main(["refresh", "--pretty-logs"])
    assert calls[0]["json_logs"] is False


def test_configure_logging_renderers():
    try:
        configure_logging("INFO", json_logs=False)
        assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)
        configure_logging("INFO")
        assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)
    finally:
        structlog.reset_defaults()
