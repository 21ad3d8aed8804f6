"""Recognition result types and the decoder for engine output.

The engine returns JSON text in one of these shapes:

    {"partial": "<text>"}
    {"text": ""}
    {"result": [{"word": ..., "conf": ..., "start": ..., "end": ...}], "text": "..."}

Speaker-aware recognizers may add ``"spk": [floats]`` and ``"spk_frames": int``
to final results.
"""

import json
from dataclasses import dataclass
from typing import Any

from safevosk.constants import INVALID_TEXT_MSG
from safevosk.errors import InvalidTextError, MalformedResultError


@dataclass(frozen=True, slots=True)
class RecognizedPartial:
    """In-progress hypothesis. May be empty and may repeat across calls."""

    partial: str

    def to_dict(self) -> dict[str, Any]:
        return {"partial": self.partial}


@dataclass(frozen=True, slots=True)
class RecognizedWord:
    """Information about a word including confidence and timing."""

    word: str
    conf: float  # <= 1.0
    start: float  # seconds
    end: float  # seconds

    @property
    def confidence(self) -> float:
        return self.conf

    def to_dict(self) -> dict[str, Any]:
        return {"word": self.word, "conf": self.conf, "start": self.start, "end": self.end}


@dataclass(frozen=True, slots=True)
class RecognizedText:
    """Finalized utterance.

    ``result`` carries per-word detail and is None when no speech was found.
    ``spk``/``spk_frames`` are only set by speaker-aware recognizers.
    """

    text: str
    result: tuple[RecognizedWord, ...] | None = None
    spk: tuple[float, ...] | None = None
    spk_frames: int | None = None

    @property
    def words(self) -> tuple[RecognizedWord, ...]:
        return self.result or ()

    @property
    def is_empty(self) -> bool:
        return not self.text

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.result is not None:
            out["result"] = [w.to_dict() for w in self.result]
        out["text"] = self.text
        if self.spk is not None:
            out["spk"] = list(self.spk)
        if self.spk_frames is not None:
            out["spk_frames"] = self.spk_frames
        return out


def decode_text(raw: bytes) -> str:
    """Decode engine output bytes to text.

    Raises:
        InvalidTextError: If the bytes are not valid UTF-8.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidTextError(f"{INVALID_TEXT_MSG} ({e})", raw=raw) from e


def _load_object(raw: bytes) -> tuple[str, dict[str, Any]]:
    text = decode_text(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResultError(f"Engine output is not JSON: {e}", text=text) from e
    if not isinstance(data, dict):
        raise MalformedResultError("Engine output is not a JSON object", text=text)
    return text, data


def _require_str(data: dict[str, Any], key: str, text: str) -> str:
    if key not in data:
        raise MalformedResultError(f"Missing {key!r} in engine output", text=text)
    value = data[key]
    if not isinstance(value, str):
        raise MalformedResultError(f"{key!r} is not a string", text=text)
    return value


def _number(value: Any, key: str, text: str) -> float:
    # bool is an int subclass but never a valid timing or confidence
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResultError(f"{key!r} is not a number", text=text)
    return float(value)


def _parse_word(item: Any, text: str) -> RecognizedWord:
    if not isinstance(item, dict):
        raise MalformedResultError("Word entry is not an object", text=text)
    return RecognizedWord(
        word=_require_str(item, "word", text),
        conf=_number(item.get("conf"), "conf", text),
        start=_number(item.get("start"), "start", text),
        end=_number(item.get("end"), "end", text),
    )


def parse_partial(raw: bytes) -> RecognizedPartial:
    """Parse ``partial_result`` output.

    Raises:
        InvalidTextError: Output is not UTF-8.
        MalformedResultError: Output is not ``{"partial": str}``.
    """
    text, data = _load_object(raw)
    return RecognizedPartial(partial=_require_str(data, "partial", text))


def parse_text(raw: bytes) -> RecognizedText:
    """Parse ``result``/``final_result`` output, including speaker fields.

    Raises:
        InvalidTextError: Output is not UTF-8.
        MalformedResultError: Output does not match the final-result shape.
    """
    text, data = _load_object(raw)
    utterance = _require_str(data, "text", text)

    words = None
    if data.get("result") is not None:
        items = data["result"]
        if not isinstance(items, list):
            raise MalformedResultError("'result' is not a list", text=text)
        words = tuple(_parse_word(item, text) for item in items)

    spk = None
    if data.get("spk") is not None:
        vector = data["spk"]
        if not isinstance(vector, list):
            raise MalformedResultError("'spk' is not a list", text=text)
        spk = tuple(_number(v, "spk", text) for v in vector)

    spk_frames = None
    if data.get("spk_frames") is not None:
        spk_frames = int(_number(data["spk_frames"], "spk_frames", text))

    return RecognizedText(text=utterance, result=words, spk=spk, spk_frames=spk_frames)
