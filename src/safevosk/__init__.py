"""Safe, shareable Python API over the Vosk speech-recognition engine."""

from safevosk.constants import SAMPLE_RATE
from safevosk.engine import get_log_level, set_log_level
from safevosk.errors import (
    InvalidTextError,
    MalformedResultError,
    NoValidModelError,
    RecognizerBusyError,
    RecognizerClosedError,
    RecognizerCreationError,
    VoskError,
)
from safevosk.model import Model, SpeakerModel
from safevosk.recognizer import Recognizer
from safevosk.results import RecognizedPartial, RecognizedText, RecognizedWord

__all__ = [
    "SAMPLE_RATE",
    "Model",
    "SpeakerModel",
    "Recognizer",
    "RecognizedPartial",
    "RecognizedText",
    "RecognizedWord",
    "set_log_level",
    "get_log_level",
    "VoskError",
    "NoValidModelError",
    "RecognizerCreationError",
    "InvalidTextError",
    "MalformedResultError",
    "RecognizerClosedError",
    "RecognizerBusyError",
]
