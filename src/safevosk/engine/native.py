"""Real engine bound to libvosk through the ``vosk`` package's cffi handle.

The ``vosk`` distribution ships libvosk inside the package directory and a
cffi ``ffi`` declaring its C API. Both are loaded lazily, on the first native
call, so importing this module never requires libvosk to be installed.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Any

import numpy as np

from safevosk.engine.protocol import Handle
from safevosk.errors import EngineUnavailableError, VoskError

logger = logging.getLogger(__name__)


class NativeEngine:
    """Engine implementation calling into libvosk.

    One instance can serve any number of models and recognizers. It holds no
    per-recognizer state, so it is safe to share across threads. Native
    pointers cross the ``Engine`` boundary as integer addresses.
    """

    def __init__(self, library_path: str | Path | None = None):
        """Initialize the native engine.

        Args:
            library_path: Path to a libvosk build to use instead of the one
                bundled with the ``vosk`` package. Falls back to VOSK_LIBRARY.
        """
        self._library_path = library_path
        self._ffi: Any = None
        self._lib: Any = None
        self._load_lock = threading.Lock()

    def _load_library(self) -> Any:
        """Open libvosk (lazy initialization)."""
        if self._lib is not None:
            return self._lib

        with self._load_lock:
            if self._lib is not None:
                return self._lib
            path = self._library_path or os.environ.get("VOSK_LIBRARY")
            try:
                import vosk
                from vosk.vosk_cffi import ffi

                lib = ffi.dlopen(str(path)) if path else vosk.open_dll()
            except (ImportError, OSError) as e:
                where = path or "the vosk package"
                raise EngineUnavailableError(f"Failed to load libvosk from {where}: {e}") from e

            logger.info("Loaded libvosk from %s", path or "the vosk package")
            self._ffi = ffi
            self._lib = lib
        return self._lib

    @property
    def is_loaded(self) -> bool:
        """Check if libvosk is loaded."""
        return self._lib is not None

    # -- pointer <-> handle ------------------------------------------------

    def _handle(self, ptr: Any) -> Handle | None:
        if ptr == self._ffi.NULL:
            return None
        return int(self._ffi.cast("uintptr_t", ptr))

    def _ptr(self, handle: Handle) -> Any:
        return self._ffi.cast("void *", handle)

    def _string(self, ptr: Any) -> bytes:
        # copy out before the engine reuses its buffer
        if ptr == self._ffi.NULL:
            return b""
        return self._ffi.string(ptr)

    # -- Engine ------------------------------------------------------------

    def set_log_level(self, level: int) -> None:
        self._load_library().vosk_set_log_level(level)

    def model_new(self, path: bytes) -> Handle | None:
        return self._handle(self._load_library().vosk_model_new(path))

    def model_free(self, model: Handle) -> None:
        self._load_library().vosk_model_free(self._ptr(model))

    def model_find_word(self, model: Handle, word: bytes) -> int:
        return self._load_library().vosk_model_find_word(self._ptr(model), word)

    def spk_model_new(self, path: bytes) -> Handle | None:
        return self._handle(self._load_library().vosk_spk_model_new(path))

    def spk_model_free(self, spk_model: Handle) -> None:
        self._load_library().vosk_spk_model_free(self._ptr(spk_model))

    def recognizer_new(self, model: Handle, sample_rate: float) -> Handle | None:
        lib = self._load_library()
        return self._handle(lib.vosk_recognizer_new(self._ptr(model), sample_rate))

    def recognizer_new_grm(
        self, model: Handle, sample_rate: float, grammar: bytes
    ) -> Handle | None:
        lib = self._load_library()
        return self._handle(lib.vosk_recognizer_new_grm(self._ptr(model), sample_rate, grammar))

    def recognizer_new_spk(
        self, model: Handle, spk_model: Handle, sample_rate: float
    ) -> Handle | None:
        lib = self._load_library()
        ptr = lib.vosk_recognizer_new_spk(self._ptr(model), self._ptr(spk_model), sample_rate)
        return self._handle(ptr)

    def recognizer_free(self, recognizer: Handle) -> None:
        self._load_library().vosk_recognizer_free(self._ptr(recognizer))

    def recognizer_reset(self, recognizer: Handle) -> None:
        self._load_library().vosk_recognizer_reset(self._ptr(recognizer))

    def accept_waveform_s(self, recognizer: Handle, data: np.ndarray) -> bool:
        lib = self._load_library()
        data = np.ascontiguousarray(data, dtype=np.int16)
        buf = self._ffi.from_buffer("short[]", data)
        return _boundary(
            lib.vosk_recognizer_accept_waveform_s(self._ptr(recognizer), buf, len(data))
        )

    def accept_waveform_f(self, recognizer: Handle, data: np.ndarray) -> bool:
        lib = self._load_library()
        data = np.ascontiguousarray(data, dtype=np.float32)
        buf = self._ffi.from_buffer("float[]", data)
        return _boundary(
            lib.vosk_recognizer_accept_waveform_f(self._ptr(recognizer), buf, len(data))
        )

    def partial_result(self, recognizer: Handle) -> bytes:
        lib = self._load_library()
        return self._string(lib.vosk_recognizer_partial_result(self._ptr(recognizer)))

    def result(self, recognizer: Handle) -> bytes:
        lib = self._load_library()
        return self._string(lib.vosk_recognizer_result(self._ptr(recognizer)))

    def final_result(self, recognizer: Handle) -> bytes:
        lib = self._load_library()
        return self._string(lib.vosk_recognizer_final_result(self._ptr(recognizer)))


def _boundary(status: int) -> bool:
    """Map the native accept_waveform status to the boundary flag.

    libvosk returns 1 on silence, 0 while listening, -1 on a decoding error.
    """
    if status < 0:
        raise VoskError("libvosk failed to process the waveform chunk")
    return status != 0
