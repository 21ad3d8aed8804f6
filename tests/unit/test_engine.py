"""Unit tests for the engine implementations."""

import json

import numpy as np
import pytest

from safevosk.engine import native
from safevosk.engine.fake import FakeEngine
from safevosk.engine.native import NativeEngine
from safevosk.errors import EngineUnavailableError, VoskError


class TestFakeEngine:
    """Tests for the FakeEngine implementation."""

    def test_handles_are_unique(self):
        engine = FakeEngine()
        handles = {engine.model_new(b"model") for _ in range(3)}
        assert len(handles) == 3
        assert engine.live_models == 3

    def test_invalid_path(self):
        assert FakeEngine().model_new(b"missing") is None

    def test_double_release_detected(self):
        engine = FakeEngine()
        handle = engine.model_new(b"model")
        engine.model_free(handle)
        with pytest.raises(RuntimeError):
            engine.model_free(handle)
        assert engine.released[handle] == 2

    def test_recognizer_requires_live_model(self):
        engine = FakeEngine()
        handle = engine.model_new(b"model")
        engine.model_free(handle)
        with pytest.raises(RuntimeError):
            engine.recognizer_new(handle, 16000.0)

    def test_grammar_tokens(self):
        engine = FakeEngine()
        model = engine.model_new(b"model")
        rec = engine.recognizer_new_grm(model, 16000.0, b'["yes no"]')
        engine.accept_waveform_s(rec, np.full(800, 9000, dtype=np.int16))
        assert json.loads(engine.partial_result(rec)) == {"partial": "yes"}

    def test_empty_final(self):
        engine = FakeEngine()
        rec = engine.recognizer_new(engine.model_new(b"model"), 16000.0)
        assert json.loads(engine.final_result(rec)) == {"text": ""}

    def test_log_levels_recorded(self):
        engine = FakeEngine()
        engine.set_log_level(1)
        assert engine.log_levels == [1]

    def test_two_boundaries_in_one_chunk(self):
        """Every utterance ended inside one chunk is kept, oldest first."""
        engine = FakeEngine()
        rec = engine.recognizer_new(engine.model_new(b"model"), 16000.0)
        utterance = np.concatenate([np.full(1600, 9000), np.zeros(6400)]).astype(np.int16)
        assert engine.accept_waveform_s(rec, np.concatenate([utterance, utterance])) is True

        first = json.loads(engine.result(rec))
        second = json.loads(engine.result(rec))
        assert first["result"][0]["start"] == 0.0
        assert second["result"][0]["start"] == 0.5
        assert json.loads(engine.final_result(rec)) == {"text": ""}

    def test_reset_drops_queued_utterances(self):
        engine = FakeEngine()
        rec = engine.recognizer_new(engine.model_new(b"model"), 16000.0)
        utterance = np.concatenate([np.full(1600, 9000), np.zeros(6400)]).astype(np.int16)
        engine.accept_waveform_s(rec, np.concatenate([utterance, utterance]))
        engine.recognizer_reset(rec)
        assert json.loads(engine.final_result(rec)) == {"text": ""}


class TestNativeEngine:
    """Tests for the libvosk binding that do not need a model."""

    def test_lazy_loading(self):
        engine = NativeEngine("/nowhere/libvosk.so")
        assert not engine.is_loaded

    def test_load_failure(self, tmp_path):
        engine = NativeEngine(tmp_path / "libvosk.so")
        with pytest.raises(EngineUnavailableError, match="libvosk.so"):
            engine.model_new(b"model")
        assert not engine.is_loaded

    def test_library_override_from_env(self, monkeypatch, tmp_path):
        """VOSK_LIBRARY replaces the library bundled with the vosk package."""
        monkeypatch.setenv("VOSK_LIBRARY", str(tmp_path / "custom-vosk.so"))
        with pytest.raises(EngineUnavailableError, match="custom-vosk.so"):
            NativeEngine().set_log_level(-1)

    def test_pointer_handles(self):
        """Native pointers cross the boundary as int addresses and NULL as None."""
        vosk_cffi = pytest.importorskip("vosk.vosk_cffi")
        engine = NativeEngine()
        engine._ffi = vosk_cffi.ffi
        assert engine._handle(vosk_cffi.ffi.NULL) is None
        assert engine._handle(vosk_cffi.ffi.cast("void *", 0x1234)) == 0x1234
        assert int(vosk_cffi.ffi.cast("uintptr_t", engine._ptr(0x1234))) == 0x1234

    def test_result_strings_copied(self):
        vosk_cffi = pytest.importorskip("vosk.vosk_cffi")
        engine = NativeEngine()
        engine._ffi = vosk_cffi.ffi
        buf = vosk_cffi.ffi.new("char[]", b'{"text" : ""}')
        copied = engine._string(buf)
        buf[0] = b"x"
        assert copied == b'{"text" : ""}'
        assert engine._string(vosk_cffi.ffi.NULL) == b""

    def test_boundary_status(self):
        assert native._boundary(1) is True
        assert native._boundary(0) is False
        with pytest.raises(VoskError):
            native._boundary(-1)
