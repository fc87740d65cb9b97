from __future__ import annotations

import asyncio
import logging

import pytest

import app
import settings
from core.config import WorkerConfig


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)


def test_redacting_formatter_masks_secrets() -> None:
    formatter = app._RedactingFormatter(["token-123", ""], fmt="%(message)s")

    assert formatter.format(_record("sending with token-123")) == "sending with ***"


def test_redaction_values_longest_first() -> None:
    values = app._collect_redaction_values({}, ["abc", "abcdef", "", "abc"])

    assert values == ["abcdef", "abc"]


def test_redaction_can_be_disabled() -> None:
    assert app._collect_redaction_values({"redact": False}, ["secret"]) == []


def test_init_command_writes_default_files(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(app, "_configure_logging", lambda *args, **kwargs: None)
    config_path = tmp_path / "config.ini"
    prompt_path = tmp_path / "prompt.txt"

    app.main(["--config", str(config_path), "--prompt", str(prompt_path), "init"])

    assert "[websocket]" in config_path.read_text(encoding="utf-8")
    assert prompt_path.read_text(encoding="utf-8").endswith("\n")


def test_run_exits_when_config_is_unreadable(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(app, "_configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(app, "_print_banner", lambda: None)
    config_path = tmp_path / "config.ini"
    config_path.write_text("not an ini file", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        app.main(["--config", str(config_path), "--prompt", str(tmp_path / "prompt.txt"), "run"])

    assert excinfo.value.code == 1


def _settings(**overrides) -> settings.Settings:
    fields = dict(
        http_url="http://127.0.0.1:3000",
        http_token="",
        ws_url="ws://127.0.0.1:3001/",
        ws_token="",
        gemini_api_key="key",
        gemini_model="gemini-1.5-flash",
        system_prompt="be brief\n",
    )
    fields.update(overrides)
    return settings.Settings(**fields)


class FakeSource:
    def __init__(self) -> None:
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.closed = True


class FakeIngestionLoop:
    def __init__(self, source, decode, queue, config) -> None:
        self.stopped = False

    async def run(self) -> None:
        return None

    def stop(self) -> None:
        self.stopped = True


def test_serve_logs_queue_capacity_and_closes_source(monkeypatch, caplog) -> None:
    source = FakeSource()
    monkeypatch.setattr(app, "build_frame_source", lambda config: source)
    monkeypatch.setattr(app, "build_backend", lambda config: object())
    monkeypatch.setattr(app, "build_delivery", lambda config: object())
    monkeypatch.setattr(app, "IngestionLoop", FakeIngestionLoop)

    config = _settings(workers=WorkerConfig(count=3, queue_size=17))
    with caplog.at_level(logging.INFO, logger="app"):
        asyncio.run(app._serve(config))

    assert source.connected and source.closed
    assert "queue capacity 17, 3 workers" in caplog.text


def test_run_exits_on_connect_timeout(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(app, "_configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(app, "_print_banner", lambda: None)
    monkeypatch.setattr(app, "_bootstrap_files", lambda *args: None)
    monkeypatch.setattr(settings, "load_settings", lambda *args: _settings())

    async def stall(config) -> None:
        raise asyncio.TimeoutError()

    monkeypatch.setattr(app, "_serve", stall)

    with pytest.raises(SystemExit) as excinfo:
        app.main(["--config", str(tmp_path / "config.ini"), "--prompt", str(tmp_path / "prompt.txt"), "run"])

    assert excinfo.value.code == 1
