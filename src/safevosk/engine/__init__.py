"""Engine selection and process-wide engine settings.

The default engine is a lazily created ``NativeEngine``. Tests and embedders
can install another implementation of the ``Engine`` protocol with
``set_engine``.
"""

import logging
import threading

from safevosk.engine.protocol import Engine, Handle

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_engine: Engine | None = None
_log_level: int | None = None


def get_engine() -> Engine:
    """Return the process-wide default engine, creating it on first use."""
    global _engine
    with _lock:
        if _engine is None:
            from safevosk.engine.native import NativeEngine

            _engine = NativeEngine()
        return _engine


def set_engine(engine: Engine) -> None:
    """Install the default engine used when no engine is passed explicitly.

    A log level recorded by ``set_log_level`` is applied to the new engine.
    Existing models keep the engine they were created with.
    """
    global _engine
    with _lock:
        _engine = engine
        level = _log_level
    if level is not None:
        engine.set_log_level(level)


def set_log_level(level: int, engine: Engine | None = None) -> None:
    """Set native engine verbosity for the whole process.

    0 prints info and error messages, a negative level suppresses info
    messages, a positive level is more verbose. May be called at any time;
    it takes effect for subsequent native calls. Setting the same level
    again is harmless.
    """
    global _log_level
    level = int(level)
    target = engine if engine is not None else get_engine()
    target.set_log_level(level)
    with _lock:
        _log_level = level
    logger.debug("Engine log level set to %d", level)


def get_log_level() -> int | None:
    """Return the last level passed to ``set_log_level``, or None."""
    return _log_level


__all__ = [
    "Engine",
    "Handle",
    "get_engine",
    "set_engine",
    "set_log_level",
    "get_log_level",
]
