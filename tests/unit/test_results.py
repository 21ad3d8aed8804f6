"""Unit tests for result parsing and the text safety boundary."""

import pytest

from safevosk.errors import InvalidTextError, MalformedResultError
from safevosk.results import (
    RecognizedPartial,
    RecognizedText,
    RecognizedWord,
    decode_text,
    parse_partial,
    parse_text,
)

FULL = (
    b'{"result": [{"conf": 1.0, "end": 1.02, "start": 0.54, "word": "hello"},'
    b' {"conf": 0.87, "end": 1.5, "start": 1.02, "word": "world"}], "text": "hello world"}'
)


class TestDecodeText:
    """Tests for UTF-8 validation of engine output."""

    def test_valid_utf8(self):
        assert decode_text("héllo".encode("utf-8")) == "héllo"

    def test_invalid_utf8_raises(self):
        """Invalid bytes raise a recoverable error mentioning the word list."""
        with pytest.raises(InvalidTextError, match="word list") as excinfo:
            decode_text(b'{"partial": "\xff\xfe"}')
        assert excinfo.value.raw == b'{"partial": "\xff\xfe"}'


class TestParsePartial:
    """Tests for partial result parsing."""

    def test_partial(self):
        assert parse_partial(b'{"partial": "hello wor"}') == RecognizedPartial("hello wor")

    def test_empty_partial(self):
        assert parse_partial(b'{"partial" : ""}').partial == ""

    def test_missing_key(self):
        with pytest.raises(MalformedResultError, match="partial"):
            parse_partial(b'{"text": "x"}')

    def test_not_json(self):
        with pytest.raises(MalformedResultError):
            parse_partial(b"partial: x")

    def test_not_an_object(self):
        with pytest.raises(MalformedResultError):
            parse_partial(b'["partial"]')


class TestParseText:
    """Tests for final result parsing."""

    def test_no_speech(self):
        """Empty text implies no word detail."""
        result = parse_text(b'{"text": ""}')
        assert result == RecognizedText(text="")
        assert result.is_empty
        assert result.result is None
        assert result.words == ()

    def test_with_words(self):
        result = parse_text(FULL)
        assert result.text == "hello world"
        assert result.words == (
            RecognizedWord("hello", 1.0, 0.54, 1.02),
            RecognizedWord("world", 0.87, 1.02, 1.5),
        )
        assert result.words[1].confidence == pytest.approx(0.87)
        assert result.spk is None

    def test_integer_timings_accepted(self):
        result = parse_text(b'{"result": [{"word": "a", "conf": 1, "start": 0, "end": 1}], "text": "a"}')
        assert result.words[0].end == 1.0

    def test_speaker_fields(self):
        result = parse_text(b'{"text": "hi", "spk": [0.1, -0.2, 3], "spk_frames": 42}')
        assert result.spk == (0.1, -0.2, 3.0)
        assert result.spk_frames == 42

    def test_unknown_keys_ignored(self):
        assert parse_text(b'{"text": "a", "alternatives": []}').text == "a"

    def test_to_dict_matches_wire_schema(self):
        result = parse_text(FULL)
        assert result.to_dict()["result"][0] == {
            "word": "hello",
            "conf": 1.0,
            "start": 0.54,
            "end": 1.02,
        }
        assert RecognizedText("").to_dict() == {"text": ""}

    @pytest.mark.parametrize(
        "raw",
        [
            b'{"result": []}',
            b'{"text": 5}',
            b'{"text": "a", "result": {"word": "a"}}',
            b'{"text": "a", "result": ["a"]}',
            b'{"text": "a", "result": [{"word": "a", "conf": "high", "start": 0, "end": 1}]}',
            b'{"text": "a", "result": [{"word": "a", "conf": true, "start": 0, "end": 1}]}',
            b'{"text": "a", "result": [{"conf": 1, "start": 0, "end": 1}]}',
            b'{"text": "a", "spk": 1.5}',
            b"",
        ],
    )
    def test_malformed_shapes(self, raw):
        """Every unexpected shape is a typed, recoverable error."""
        with pytest.raises(MalformedResultError):
            parse_text(raw)

    def test_invalid_utf8(self):
        with pytest.raises(InvalidTextError):
            parse_text(b'{"text": "\xc3\x28"}')
