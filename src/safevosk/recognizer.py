"""Streaming recognizer bound to a shared model.

A ``Recognizer`` is a single-owner, mutable decoding session. It keeps its
model (and speaker model) alive through its own shares and releases the
native recognizer exactly once: at the end of a ``with`` block, or when it
is garbage collected.

Protocol:
- ``accept_waveform`` returns True when silence ends an utterance; read it
  with ``final_result`` (or ``result``).
- While it returns False, ``partial_result`` shows the unstable hypothesis.
- At end of stream call ``final_result`` to flush buffered audio.
"""

import logging
import threading
import weakref
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager

import numpy as np

from safevosk.audio import as_float32, as_int16
from safevosk.constants import SAMPLE_RATE
from safevosk.engine.protocol import Handle
from safevosk.errors import RecognizerBusyError, RecognizerClosedError, RecognizerCreationError
from safevosk.grammar import encode_phrases, phrase_list, vocabulary_phrases
from safevosk.model import Model, SpeakerModel
from safevosk.results import RecognizedPartial, RecognizedText, parse_partial, parse_text

logger = logging.getLogger(__name__)


def _free_recognizer(free: Callable[[Handle], None], handle: Handle, keepalive: tuple) -> None:
    # keepalive holds the model shares until the recognizer itself is freed
    logger.debug("Releasing recognizer handle %#x", handle)
    free(handle)


class Recognizer:
    """The main object which processes data.

    Takes audio as input and returns decoded information: words,
    confidences, times and, for speaker-aware recognizers, speaker vectors.

    Not shareable. Calls from a second thread while one is in progress raise
    ``RecognizerBusyError``; copying or pickling raises ``TypeError``.
    """

    __slots__ = (
        "_engine",
        "_handle",
        "_model",
        "_speaker_model",
        "_sample_rate",
        "_grammar",
        "_busy",
        "_finalizer",
        "__weakref__",
    )

    def __init__(self, model: Model, sample_rate: float = SAMPLE_RATE):
        """Create a recognizer over the model's full vocabulary.

        Args:
            model: Loaded model.
            sample_rate: Sample rate of the audio that will be fed in.

        Raises:
            RecognizerCreationError: If the engine returned no recognizer.
        """
        self._create(model, sample_rate)

    @classmethod
    def with_vocabulary(
        cls, model: Model, sample_rate: float, word_list: str
    ) -> "Recognizer":
        """Create a recognizer limited to a space-separated list of words.

        Only recognizers with lookahead models support this type of quick
        configuration. Precompiled HCLG graph models ignore it.
        """
        recognizer = cls.__new__(cls)
        recognizer._create(model, sample_rate, grammar=vocabulary_phrases(word_list))
        return recognizer

    @classmethod
    def with_grammar(
        cls, model: Model, sample_rate: float, phrases: Iterable[Iterable[str] | str]
    ) -> "Recognizer":
        """Create a recognizer limited to a list of phrases.

        ``phrases`` yields each phrase, and each phrase yields its words, e.g.
        ``[["hello", "world"], ["initiate", "the", "process"]]`` or
        ``(line.split() for line in text.splitlines())``.

        Same model limitation as ``with_vocabulary``.
        """
        recognizer = cls.__new__(cls)
        recognizer._create(model, sample_rate, grammar=phrase_list(phrases))
        return recognizer

    @classmethod
    def with_speaker(
        cls, model: Model, speaker_model: SpeakerModel, sample_rate: float
    ) -> "Recognizer":
        """Create a recognizer that also returns speaker vectors.

        Final results carry ``spk`` (and ``spk_frames``) for speaker
        identification.
        """
        recognizer = cls.__new__(cls)
        recognizer._create(model, sample_rate, speaker_model=speaker_model)
        return recognizer

    def _create(
        self,
        model: Model,
        sample_rate: float,
        grammar: list[str] | None = None,
        speaker_model: SpeakerModel | None = None,
    ) -> None:
        engine = model.engine
        sample_rate = float(sample_rate)

        if speaker_model is not None:
            if speaker_model.engine is not engine:
                raise ValueError("model and speaker model belong to different engines")
            handle = engine.recognizer_new_spk(model._handle, speaker_model._handle, sample_rate)
        elif grammar is not None:
            handle = engine.recognizer_new_grm(model._handle, sample_rate, encode_phrases(grammar))
        else:
            handle = engine.recognizer_new(model._handle, sample_rate)

        if not handle:
            raise RecognizerCreationError(
                f"Engine failed to create a recognizer at {sample_rate:g} Hz"
            )

        self._engine = engine
        self._handle = handle
        self._model = model.share()
        self._speaker_model = speaker_model.share() if speaker_model is not None else None
        self._sample_rate = sample_rate
        self._grammar = tuple(grammar) if grammar is not None else None
        self._busy = threading.Lock()
        self._finalizer = weakref.finalize(
            self,
            _free_recognizer,
            engine.recognizer_free,
            handle,
            (self._model, self._speaker_model),
        )
        logger.debug(
            "Created recognizer %#x (rate=%g, grammar=%s, speaker=%s)",
            handle,
            sample_rate,
            grammar is not None,
            speaker_model is not None,
        )

    @contextmanager
    def _exclusive(self) -> Iterator[Handle]:
        if not self._busy.acquire(blocking=False):
            raise RecognizerBusyError("Recognizer is already in use by another caller")
        try:
            if not self._finalizer.alive:
                raise RecognizerClosedError("Recognizer has been released")
            yield self._handle
        finally:
            self._busy.release()

    # -- ownership ---------------------------------------------------------

    def __enter__(self) -> "Recognizer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # waits for a call in progress on another thread instead of raising
        with self._busy:
            self._finalizer()

    def __copy__(self):
        raise TypeError("Recognizer has a single owner and cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("Recognizer has a single owner and cannot be copied")

    def __reduce__(self):
        raise TypeError("Recognizer cannot be pickled")

    # -- properties --------------------------------------------------------

    @property
    def model(self) -> Model:
        return self._model

    @property
    def speaker_model(self) -> SpeakerModel | None:
        return self._speaker_model

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def grammar(self) -> tuple[str, ...] | None:
        """Phrase list the recognizer was restricted to, if any."""
        return self._grammar

    @property
    def speaker_aware(self) -> bool:
        return self._speaker_model is not None

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    # -- streaming ---------------------------------------------------------

    def accept_waveform(self, data: bytes | np.ndarray | Iterable[int]) -> bool:
        """Accept and process a new chunk of voice data.

        Args:
            data: Audio in PCM 16-bit mono format, as an int16 array, a
                sequence of ints, or little-endian PCM16 bytes.

        Returns:
            True if silence has occurred and a new utterance can be read with
            ``result``/``final_result``; otherwise ``partial_result`` can be
            used to read the incomplete sentence.
        """
        samples = as_int16(data)
        with self._exclusive() as handle:
            return bool(self._engine.accept_waveform_s(handle, samples))

    def accept_waveform_f32(self, data: np.ndarray | Iterable[float]) -> bool:
        """Alternative to ``accept_waveform`` taking float samples.

        Samples are in the int16 value range, as libvosk expects.
        """
        samples = as_float32(data)
        with self._exclusive() as handle:
            return bool(self._engine.accept_waveform_f(handle, samples))

    def partial_result(self) -> RecognizedPartial:
        """Return the not yet finalized text; it may change with more audio."""
        with self._exclusive() as handle:
            return parse_partial(self._engine.partial_result(handle))

    def result(self) -> RecognizedText:
        """Return the utterance after ``accept_waveform`` returned True."""
        with self._exclusive() as handle:
            return parse_text(self._engine.result(handle))

    def final_result(self) -> RecognizedText:
        """Return the result without waiting for silence.

        Usually called at the end of the stream: it flushes the feature
        pipeline so all remaining audio is processed.
        """
        with self._exclusive() as handle:
            return parse_text(self._engine.final_result(handle))

    def reset(self) -> None:
        """Drop any partially decoded audio and start a fresh utterance."""
        with self._exclusive() as handle:
            self._engine.recognizer_reset(handle)

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"handle={self._handle:#x}"
        return f"<Recognizer {state} rate={self._sample_rate:g} speaker={self.speaker_aware}>"
