"""Unit tests for settings and process-wide engine configuration."""

import logging

import pytest

import safevosk.engine as engine_module
from safevosk.config import Settings, configure, load_settings
from safevosk.engine import get_engine, get_log_level, set_engine, set_log_level
from safevosk.engine.fake import FakeEngine
from safevosk.engine.native import NativeEngine
from safevosk.errors import ConfigError
from safevosk.model import Model


@pytest.fixture
def fresh_globals(monkeypatch):
    """Isolate the default engine and recorded log level."""
    monkeypatch.setattr(engine_module, "_engine", None)
    monkeypatch.setattr(engine_module, "_log_level", None)


class TestLoadSettings:
    """Tests for reading settings from the environment."""

    def test_defaults(self):
        settings = load_settings({})
        assert settings == Settings(
            library_path=None,
            model_path="model",
            speaker_model_path=None,
            sample_rate=16000.0,
            engine_log_level=0,
            log_level="INFO",
        )

    def test_values(self):
        settings = load_settings(
            {
                "VOSK_LIBRARY": "/opt/vosk/libvosk.so",
                "VOSK_MODEL_PATH": "models/en",
                "VOSK_SPK_MODEL_PATH": "models/spk",
                "VOSK_SAMPLE_RATE": "8000",
                "VOSK_LOG_LEVEL": "-1",
                "LOG_LEVEL": "debug",
            }
        )
        assert settings.library_path == "/opt/vosk/libvosk.so"
        assert settings.model_path == "models/en"
        assert settings.speaker_model_path == "models/spk"
        assert settings.sample_rate == 8000.0
        assert settings.engine_log_level == -1
        assert settings.log_level == "debug"

    @pytest.mark.parametrize(
        "env",
        [
            {"VOSK_SAMPLE_RATE": "fast"},
            {"VOSK_SAMPLE_RATE": "0"},
            {"VOSK_LOG_LEVEL": "loud"},
        ],
    )
    def test_invalid(self, env):
        with pytest.raises(ConfigError):
            load_settings(env)

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("VOSK_MODEL_PATH", "from-env")
        assert load_settings().model_path == "from-env"


class TestEngineLogLevel:
    """Tests for the process-wide native verbosity setting."""

    def test_set_log_level(self, fresh_globals):
        engine = FakeEngine()
        set_log_level(-1, engine=engine)
        assert engine.log_levels == [-1]
        assert get_log_level() == -1

    def test_idempotent(self, fresh_globals):
        engine = FakeEngine()
        set_log_level(0, engine=engine)
        set_log_level(0, engine=engine)
        assert get_log_level() == 0

    def test_applied_to_new_default_engine(self, fresh_globals):
        set_log_level(2, engine=FakeEngine())
        engine = FakeEngine()
        set_engine(engine)
        assert engine.log_levels == [2]

    def test_default_engine(self, fresh_globals):
        engine = FakeEngine()
        set_engine(engine)
        assert get_engine() is engine
        assert Model("model").engine is engine

    def test_lazy_native_default(self, fresh_globals):
        """The default engine is native but loads nothing until used."""
        engine = get_engine()
        assert isinstance(engine, NativeEngine)
        assert not engine.is_loaded


class TestConfigure:
    def test_configure(self, fresh_globals, monkeypatch):
        applied = []
        monkeypatch.setattr(NativeEngine, "set_log_level", lambda self, level: applied.append(level))
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: None)

        configure(load_settings({"VOSK_LOG_LEVEL": "-1", "VOSK_LIBRARY": "/nowhere/libvosk.so"}))

        assert isinstance(get_engine(), NativeEngine)
        assert applied == [-1]
        assert get_log_level() == -1
