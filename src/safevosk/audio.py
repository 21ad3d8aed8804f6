"""Audio conversion utilities.

Recognizers take mono PCM either as 16-bit integers or as float32 samples.
Note that libvosk expects float input in the int16 value range, not [-1, 1].
"""

from collections.abc import Sequence

import numpy as np

from safevosk.constants import BYTES_PER_SAMPLE


def pcm16_to_int16(data: bytes) -> np.ndarray:
    """Interpret raw PCM16 little-endian bytes as an int16 array.

    Raises:
        ValueError: If the byte count is odd.
    """
    if not validate_audio_format(data):
        raise ValueError(f"PCM16 data must have an even byte count, got {len(data)}")
    return np.frombuffer(data, dtype="<i2").astype(np.int16)


def as_int16(chunk: bytes | bytearray | memoryview | np.ndarray | Sequence[int]) -> np.ndarray:
    """Coerce a waveform chunk to a contiguous 1-D int16 array.

    Bytes-like input is read as PCM16; arrays and sequences are cast.
    """
    if isinstance(chunk, (bytes, bytearray, memoryview)):
        return pcm16_to_int16(bytes(chunk))
    return np.ascontiguousarray(np.asarray(chunk, dtype=np.int16).reshape(-1))


def as_float32(chunk: np.ndarray | Sequence[float]) -> np.ndarray:
    """Coerce a waveform chunk to a contiguous 1-D float32 array.

    Values are passed through unscaled, so int16-range input stays in range.
    """
    return np.ascontiguousarray(np.asarray(chunk, dtype=np.float32).reshape(-1))


def validate_audio_format(data: bytes) -> bool:
    """Check if audio data has valid PCM16 format (even byte count)."""
    return len(data) % BYTES_PER_SAMPLE == 0
