"""Core constants for the Vosk wrapper.

Vosk models are trained on 16kHz mono audio (8kHz for telephony models).
Audio is fed as 16-bit PCM or as float samples in the int16 value range.
"""

# Audio format defaults
SAMPLE_RATE: float = 16000.0  # Hz - most Vosk models
BYTES_PER_SAMPLE: int = 2  # 16-bit PCM

# Symbol table conventions of the native model
NOT_FOUND_SYMBOL: int = -1

# Default location of a model directory
MODEL_PATH: str = "model"

INVALID_TEXT_MSG: str = (
    "Invalid UTF-8 in output, which may be from the word list used by the model."
)
