"""Fake engine for CPU-based testing.

Simulates libvosk's opaque-handle API with a deterministic energy detector,
allowing reliable unit tests without the native library or a model download.
Every handle release is counted so tests can check exactly-once release.
"""

import itertools
import json
import os
import threading
import time
from collections import Counter
from dataclasses import dataclass, field

import numpy as np

from safevosk.constants import NOT_FOUND_SYMBOL
from safevosk.engine.protocol import Handle

DEFAULT_VOCABULARY: tuple[str, ...] = (
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
)

# Samples with |amplitude| above this count as speech (int16 scale)
VOICE_THRESHOLD: float = 500.0


@dataclass
class _Utterance:
    """Words decoded so far in one utterance, as (start_sample, end_sample)."""

    spans: list[list[int]] = field(default_factory=list)
    in_word: bool = False
    silence: int = 0


@dataclass
class _RecognizerState:
    model: Handle
    sample_rate: float
    tokens: tuple[str, ...]
    spk_model: Handle | None = None
    position: int = 0
    current: _Utterance = field(default_factory=_Utterance)
    ready: list[_Utterance] = field(default_factory=list)
    injected: list[bytes] = field(default_factory=list)


class FakeEngine:
    """Deterministic CPU engine for testing.

    Each run of loud samples becomes one word; words are drawn in order from the
    grammar (if any) or the vocabulary. A run of silence of at least
    ``silence_ms`` after speech marks an utterance boundary. Finished
    utterances queue up until read, so one chunk may end several.
    """

    def __init__(
        self,
        vocabulary: tuple[str, ...] = DEFAULT_VOCABULARY,
        model_paths: tuple[str, ...] = ("model",),
        spk_model_paths: tuple[str, ...] = ("spk-model",),
        silence_ms: float = 300.0,
        latency_ms: float = 0.0,
    ):
        """Initialize the fake engine.

        Args:
            vocabulary: Words known to every fake model; symbol ids start at 1.
            model_paths: Paths that load successfully as models.
            spk_model_paths: Paths that load successfully as speaker models.
            silence_ms: Trailing silence that ends an utterance.
            latency_ms: Simulated latency of each waveform call.
        """
        self.vocabulary = tuple(vocabulary)
        self._model_paths = set(model_paths)
        self._spk_model_paths = set(spk_model_paths)
        self._silence_ms = silence_ms
        self._latency_ms = latency_ms

        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._models: set[Handle] = set()
        self._spk_models: set[Handle] = set()
        self._recognizers: dict[Handle, _RecognizerState] = {}
        self._in_flight = 0

        self.fail_recognizer_creation = False
        self.log_levels: list[int] = []
        self.grammars: list[bytes] = []
        self.released: Counter[Handle] = Counter()

    # -- handles ---------------------------------------------------------

    def _new_handle(self, table: set[Handle]) -> Handle:
        with self._lock:
            handle = next(self._ids)
            table.add(handle)
        return handle

    def _release(
        self, table: set[Handle] | dict[Handle, _RecognizerState], handle: Handle
    ) -> None:
        with self._lock:
            self.released[handle] += 1
            if handle not in table:
                raise RuntimeError(f"handle {handle} released twice or never allocated")
            if isinstance(table, dict):
                del table[handle]
            else:
                table.discard(handle)

    @property
    def live_models(self) -> int:
        return len(self._models)

    @property
    def live_spk_models(self) -> int:
        return len(self._spk_models)

    @property
    def live_recognizers(self) -> int:
        return len(self._recognizers)

    @property
    def in_flight(self) -> int:
        """Number of waveform calls currently executing."""
        return self._in_flight

    def set_log_level(self, level: int) -> None:
        self.log_levels.append(level)

    def model_new(self, path: bytes) -> Handle | None:
        if os.fsdecode(path) not in self._model_paths:
            return None
        return self._new_handle(self._models)

    def model_free(self, model: Handle) -> None:
        self._release(self._models, model)

    def model_find_word(self, model: Handle, word: bytes) -> int:
        text = word.decode("utf-8")
        if text == "<eps>":
            return 0
        if text in self.vocabulary:
            return self.vocabulary.index(text) + 1
        return NOT_FOUND_SYMBOL

    def spk_model_new(self, path: bytes) -> Handle | None:
        if os.fsdecode(path) not in self._spk_model_paths:
            return None
        return self._new_handle(self._spk_models)

    def spk_model_free(self, spk_model: Handle) -> None:
        self._release(self._spk_models, spk_model)

    def _new_recognizer(self, state: _RecognizerState) -> Handle | None:
        if self.fail_recognizer_creation:
            return None
        with self._lock:
            if state.model not in self._models:
                raise RuntimeError(f"model handle {state.model} is not live")
            if state.spk_model is not None and state.spk_model not in self._spk_models:
                raise RuntimeError(f"speaker model handle {state.spk_model} is not live")
            handle = next(self._ids)
            self._recognizers[handle] = state
        return handle

    def recognizer_new(self, model: Handle, sample_rate: float) -> Handle | None:
        return self._new_recognizer(_RecognizerState(model, sample_rate, self.vocabulary))

    def recognizer_new_grm(
        self, model: Handle, sample_rate: float, grammar: bytes
    ) -> Handle | None:
        self.grammars.append(grammar)
        phrases = json.loads(grammar.decode("utf-8"))
        tokens = tuple(word for phrase in phrases for word in phrase.split())
        return self._new_recognizer(_RecognizerState(model, sample_rate, tokens))

    def recognizer_new_spk(
        self, model: Handle, spk_model: Handle, sample_rate: float
    ) -> Handle | None:
        state = _RecognizerState(model, sample_rate, self.vocabulary, spk_model=spk_model)
        return self._new_recognizer(state)

    def recognizer_free(self, recognizer: Handle) -> None:
        self._release(self._recognizers, recognizer)

    def recognizer_reset(self, recognizer: Handle) -> None:
        state = self._recognizers[recognizer]
        state.current = _Utterance()
        state.ready.clear()

    # -- decoding --------------------------------------------------------

    def inject_output(self, recognizer: Handle, raw: bytes) -> None:
        """Make the next result call on ``recognizer`` return ``raw`` verbatim."""
        self._recognizers[recognizer].injected.append(raw)

    def accept_waveform_s(self, recognizer: Handle, data: np.ndarray) -> bool:
        return self._accept(recognizer, np.asarray(data, dtype=np.int16))

    def accept_waveform_f(self, recognizer: Handle, data: np.ndarray) -> bool:
        return self._accept(recognizer, np.asarray(data, dtype=np.float32))

    def _accept(self, recognizer: Handle, data: np.ndarray) -> bool:
        state = self._recognizers[recognizer]
        with self._lock:
            self._in_flight += 1
        try:
            if self._latency_ms > 0:
                time.sleep(self._latency_ms / 1000.0)
            return self._decode(state, np.abs(data.astype(np.float64)) > VOICE_THRESHOLD)
        finally:
            with self._lock:
                self._in_flight -= 1

    def _decode(self, state: _RecognizerState, voiced: np.ndarray) -> bool:
        silence_limit = max(1, int(state.sample_rate * self._silence_ms / 1000))
        boundary = False
        for is_voiced, length in _runs(voiced):
            utt = state.current
            if is_voiced:
                if not utt.in_word:
                    utt.spans.append([state.position, state.position + length])
                    utt.in_word = True
                else:
                    utt.spans[-1][1] = state.position + length
                utt.silence = 0
            else:
                utt.in_word = False
                utt.silence += length
                if utt.spans and utt.silence >= silence_limit:
                    state.ready.append(utt)
                    state.current = _Utterance()
                    boundary = True
            state.position += length
        return boundary

    def _words(self, state: _RecognizerState, utt: _Utterance) -> list[str]:
        if not state.tokens:
            return ["[unk]"] * len(utt.spans)
        return [state.tokens[i % len(state.tokens)] for i in range(len(utt.spans))]

    def partial_result(self, recognizer: Handle) -> bytes:
        state = self._recognizers[recognizer]
        if state.injected:
            return state.injected.pop(0)
        partial = " ".join(self._words(state, state.current))
        return json.dumps({"partial": partial}).encode("utf-8")

    def result(self, recognizer: Handle) -> bytes:
        return self._finish(recognizer)

    def final_result(self, recognizer: Handle) -> bytes:
        return self._finish(recognizer)

    def _finish(self, recognizer: Handle) -> bytes:
        state = self._recognizers[recognizer]
        if state.injected:
            return state.injected.pop(0)
        if state.ready:
            utt = state.ready.pop(0)
        else:
            utt, state.current = state.current, _Utterance()
        if not utt.spans:
            return json.dumps({"text": ""}).encode("utf-8")

        words = self._words(state, utt)
        payload: dict = {
            "result": [
                {
                    "conf": 1.0,
                    "end": round(end / state.sample_rate, 6),
                    "start": round(start / state.sample_rate, 6),
                    "word": word,
                }
                for word, (start, end) in zip(words, utt.spans)
            ],
            "text": " ".join(words),
        }
        if state.spk_model is not None:
            voiced = sum(end - start for start, end in utt.spans)
            payload["spk"] = [float(len(words)), float(state.spk_model), 0.5, -0.5]
            payload["spk_frames"] = int(voiced // (state.sample_rate / 100))
        return json.dumps(payload).encode("utf-8")


def _runs(mask: np.ndarray) -> list[tuple[bool, int]]:
    """Run-length encode a boolean mask."""
    if mask.size == 0:
        return []
    edges = np.flatnonzero(np.diff(mask.astype(np.int8))) + 1
    starts = np.concatenate(([0], edges))
    ends = np.concatenate((edges, [mask.size]))
    return [(bool(mask[s]), int(e - s)) for s, e in zip(starts, ends)]
