"""Streaming session helper on top of a Recognizer.

Implements the usual feed loop: read the final result on an utterance
boundary, otherwise report the partial hypothesis only when it changed, and
flush with ``final_result`` once the audio runs out.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Literal

import numpy as np

from safevosk.recognizer import Recognizer
from safevosk.results import RecognizedText


@dataclass(frozen=True, slots=True)
class RecognitionEvent:
    """A transcription update produced while streaming."""

    kind: Literal["partial", "final"]
    text: str
    result: RecognizedText | None = None

    @property
    def final(self) -> bool:
        return self.kind == "final"


class StreamSession:
    """Drives one recognizer through a stream of waveform chunks."""

    def __init__(self, recognizer: Recognizer, emit_empty_finals: bool = False):
        """Initialize a stream session.

        Args:
            recognizer: Recognizer owned by this session.
            emit_empty_finals: Also report utterances with no recognized text.
        """
        self.recognizer = recognizer
        self.emit_empty_finals = emit_empty_finals
        self._last_partial = ""
        self._utterances = 0

    @property
    def utterances(self) -> int:
        """Number of final events produced so far."""
        return self._utterances

    def feed(self, chunk: bytes | np.ndarray) -> RecognitionEvent | None:
        """Feed int16 PCM and return an event if there is something new."""
        return self._after(self.recognizer.accept_waveform(chunk))

    def feed_f32(self, chunk: np.ndarray) -> RecognitionEvent | None:
        """Feed float PCM (int16 value range) and return an event if any."""
        return self._after(self.recognizer.accept_waveform_f32(chunk))

    def finish(self) -> RecognitionEvent | None:
        """Flush buffered audio and return the terminal result."""
        return self._final(self.recognizer.final_result())

    def _after(self, completed: bool) -> RecognitionEvent | None:
        if completed:
            return self._final(self.recognizer.final_result())

        partial = self.recognizer.partial_result().partial
        if partial == self._last_partial:
            return None
        self._last_partial = partial
        if not partial:
            return None
        return RecognitionEvent("partial", partial)

    def _final(self, result: RecognizedText) -> RecognitionEvent | None:
        self._last_partial = ""
        if result.is_empty and not self.emit_empty_finals:
            return None
        self._utterances += 1
        return RecognitionEvent("final", result.text, result)


def transcribe(
    recognizer: Recognizer,
    chunks: Iterable[bytes | np.ndarray],
    emit_empty_finals: bool = False,
) -> Iterator[RecognitionEvent]:
    """Yield events for an iterable of int16 chunks, ending with the flush."""
    session = StreamSession(recognizer, emit_empty_finals=emit_empty_finals)
    for chunk in chunks:
        event = session.feed(chunk)
        if event is not None:
            yield event
    event = session.finish()
    if event is not None:
        yield event
