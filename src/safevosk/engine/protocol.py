"""Engine protocol defining the opaque-handle interface of the native recognizer.

This is the "sealed boundary" that isolates libvosk from the rest of the
system (handles, recognizers, tests). Handles are address-like ints; a
constructor returning None (or 0) means the native call failed.
"""

from typing import Protocol

import numpy as np

Handle = int


class Engine(Protocol):
    """Protocol for native speech-recognition engines.

    Implementations mirror the libvosk C API one call per method. Result
    methods return a copy of the engine-owned buffer, so the bytes stay valid
    after the next call on the same recognizer.
    """

    def set_log_level(self, level: int) -> None:
        """Set process-wide engine verbosity (0 default, <0 quieter, >0 verbose)."""
        ...

    def model_new(self, path: bytes) -> Handle | None:
        """Load a model from an encoded path, or return None on failure."""
        ...

    def model_free(self, model: Handle) -> None: ...

    def model_find_word(self, model: Handle, word: bytes) -> int:
        """Return the word's symbol id, or -1 if it is not in the model."""
        ...

    def spk_model_new(self, path: bytes) -> Handle | None: ...

    def spk_model_free(self, spk_model: Handle) -> None: ...

    def recognizer_new(self, model: Handle, sample_rate: float) -> Handle | None: ...

    def recognizer_new_grm(
        self, model: Handle, sample_rate: float, grammar: bytes
    ) -> Handle | None: ...

    def recognizer_new_spk(
        self, model: Handle, spk_model: Handle, sample_rate: float
    ) -> Handle | None: ...

    def recognizer_free(self, recognizer: Handle) -> None: ...

    def recognizer_reset(self, recognizer: Handle) -> None: ...

    def accept_waveform_s(self, recognizer: Handle, data: np.ndarray) -> bool:
        """Feed int16 samples; return True when an utterance boundary was found."""
        ...

    def accept_waveform_f(self, recognizer: Handle, data: np.ndarray) -> bool:
        """Feed float32 samples; return True when an utterance boundary was found."""
        ...

    def partial_result(self, recognizer: Handle) -> bytes: ...

    def result(self, recognizer: Handle) -> bytes: ...

    def final_result(self, recognizer: Handle) -> bytes: ...
