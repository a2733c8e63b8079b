"""Tests for configuration, logging and the event emitter."""

import asyncio

import pytest
import structlog
from unittest.mock import patch

from prcapi.core.config import Settings, get_settings, reload_settings
from prcapi.observability.events import EventEmitter, EventType
from prcapi.utils.logging import get_logger, setup_logging


class TestSettings:
    """Tests for Settings."""

    def test_default_values(self):
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings(_env_file=None)
        assert settings.api.base_url == "https://api.policeroleplay.community"
        assert settings.api.authorization_key is None
        assert settings.api.has_authorization is False
        assert settings.queue.default_queue == "main"
        assert settings.queue.pace_interval_ms == 250.0
        assert settings.queue.capacity is None
        assert settings.log_level == "INFO"

    def test_environment_overrides(self):
        env = {
            "PRC_API_AUTHORIZATION_KEY": "secret",
            "PRC_QUEUE_PACE_INTERVAL_MS": "1000",
            "PRC_QUEUE_CAPACITY": "25",
            "PRC_LOG_LEVEL": "debug",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = Settings(_env_file=None)
        assert settings.api.authorization_key.get_secret_value() == "secret"
        assert settings.queue.pace_interval_ms == 1000.0
        assert settings.queue.capacity == 25
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            Settings(log_level="LOUD")

    def test_invalid_log_format(self):
        with pytest.raises(ValueError):
            Settings(log_format="xml")

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "prcapi.yaml"
        path.write_text(
            "log_level: warning\n"
            "queue:\n"
            "  pace_interval_ms: 500\n"
            "  capacity: 10\n"
        )
        settings = Settings.from_yaml(path)
        assert settings.log_level == "WARNING"
        assert settings.queue.pace_interval_ms == 500
        assert settings.queue.capacity == 10

    def test_from_missing_yaml(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
        assert reload_settings() is get_settings()


class TestLogging:
    """Tests for logging setup."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_setup_json_logging(self):
        setup_logging(level="DEBUG", json_format=True)
        logger = get_logger("prcapi.test")
        logger.info("configured", queue="main")

    def test_setup_console_logging(self, capsys):
        setup_logging(level="WARNING", json_format=False)
        logger = structlog.get_logger("prcapi.test")
        logger.info("hidden")
        logger.warning("shown")
        err = capsys.readouterr().err
        assert "shown" in err
        assert "hidden" not in err


class TestEventEmitter:
    """Tests for the diagnostic event emitter."""

    @pytest.mark.asyncio
    async def test_typed_and_global_handlers(self):
        emitter = EventEmitter()
        typed, everything = [], []

        @emitter.on(EventType.DISPATCH_FAILED)
        async def on_failure(event):
            typed.append(event)

        @emitter.on()
        async def on_any(event):
            everything.append(event)

        error = RuntimeError("boom")
        emitter.emit(EventType.DISPATCH_FAILED, "main", error=error, endpoint="v1/server")
        emitter.emit(EventType.REQUEST_COMPLETED, "main")
        await emitter.flush()

        assert [e.event_type for e in typed] == [EventType.DISPATCH_FAILED]
        assert typed[0].error is error
        assert typed[0].data == {"endpoint": "v1/server"}
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self):
        emitter = EventEmitter()
        received = []

        async def broken(event):
            raise RuntimeError("handler bug")

        async def working(event):
            received.append(event)

        emitter.on(EventType.QUEUE_FULL, broken)
        emitter.on(EventType.QUEUE_FULL, working)
        emitter.emit(EventType.QUEUE_FULL, "main", capacity=1)
        await emitter.flush()

        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_off(self):
        emitter = EventEmitter()
        received = []

        async def handler(event):
            received.append(event)

        emitter.on(EventType.RATE_LIMITED, handler)
        emitter.off(EventType.RATE_LIMITED, handler)
        emitter.emit(EventType.RATE_LIMITED, "main")
        await emitter.flush()

        assert received == []

    @pytest.mark.asyncio
    async def test_disabled_emitter(self):
        emitter = EventEmitter(enabled=False)
        received = []

        async def handler(event):
            received.append(event)

        emitter.on(None, handler)
        event = emitter.emit(EventType.DISPATCH_FAILED, "main")
        await asyncio.sleep(0)

        assert received == []
        assert event.to_dict()["event_type"] == "queue.dispatch_failed"

    def test_emit_without_handlers_needs_no_loop(self):
        event = EventEmitter().emit(EventType.REQUEST_COMPLETED, "main")
        data = event.to_dict()
        assert data["queue"] == "main"
        assert data["error"] is None
