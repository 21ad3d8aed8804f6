"""Process configuration read from the environment.

    VOSK_LIBRARY          libvosk build to use instead of the bundled one
    VOSK_MODEL_PATH       model directory (default "model")
    VOSK_SPK_MODEL_PATH   speaker model directory (optional)
    VOSK_SAMPLE_RATE      audio sample rate in Hz (default 16000)
    VOSK_LOG_LEVEL        native engine verbosity (default 0)
    LOG_LEVEL             Python logging level (default INFO)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

from safevosk.constants import MODEL_PATH, SAMPLE_RATE
from safevosk.engine import set_engine, set_log_level
from safevosk.errors import ConfigError
from safevosk.logging_config import setup_logging

DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_ENGINE_LOG_LEVEL: Final[int] = 0


def _parse_int(value: str, *, var_name: str) -> int:
    value = value.strip()
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{var_name} must be an integer, got {value!r}") from e


def _parse_rate(value: str, *, var_name: str) -> float:
    value = value.strip()
    try:
        rate = float(value)
    except ValueError as e:
        raise ConfigError(f"{var_name} must be a number, got {value!r}") from e
    if rate <= 0:
        raise ConfigError(f"{var_name} must be positive, got {value!r}")
    return rate


@dataclass(frozen=True, slots=True)
class Settings:
    library_path: str | None
    model_path: str
    speaker_model_path: str | None
    sample_rate: float
    engine_log_level: int
    log_level: str


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    rate_raw = env.get("VOSK_SAMPLE_RATE", "").strip()
    level_raw = env.get("VOSK_LOG_LEVEL", "").strip()

    return Settings(
        library_path=env.get("VOSK_LIBRARY", "").strip() or None,
        model_path=env.get("VOSK_MODEL_PATH", MODEL_PATH).strip() or MODEL_PATH,
        speaker_model_path=env.get("VOSK_SPK_MODEL_PATH", "").strip() or None,
        sample_rate=(
            _parse_rate(rate_raw, var_name="VOSK_SAMPLE_RATE") if rate_raw else SAMPLE_RATE
        ),
        engine_log_level=(
            _parse_int(level_raw, var_name="VOSK_LOG_LEVEL")
            if level_raw
            else DEFAULT_ENGINE_LOG_LEVEL
        ),
        log_level=env.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip() or DEFAULT_LOG_LEVEL,
    )


def configure(settings: Settings) -> None:
    """Apply settings: Python logging, the native engine and its verbosity."""
    from safevosk.engine.native import NativeEngine

    setup_logging(log_level=settings.log_level)
    set_engine(NativeEngine(settings.library_path))
    set_log_level(settings.engine_log_level)
