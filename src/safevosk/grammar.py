"""Grammar encoding for vocabulary- and phrase-restricted recognizers.

The engine takes its grammar as a JSON array of phrase strings, e.g.
``["hello world", "initiate the process"]``. No semantic validation happens
here; empty phrases and empty lists go to the engine unchanged.
"""

import json
from collections.abc import Iterable


def phrase_list(phrases: Iterable[Iterable[str] | str]) -> list[str]:
    """Join each phrase's tokens with single spaces, preserving order.

    A phrase given as a plain string is treated as a single token.
    """
    result = []
    for phrase in phrases:
        tokens = [phrase] if isinstance(phrase, str) else phrase
        result.append(" ".join(str(token) for token in tokens).strip())
    return result


def vocabulary_phrases(word_list: str) -> list[str]:
    """Split a whitespace-separated word list into one phrase per word."""
    return phrase_list([word] for word in word_list.split())


def encode_phrases(phrases: list[str]) -> bytes:
    """Serialize a phrase list to the compact JSON bytes the engine expects.

    The JSON encoder escapes control characters (NUL included), so the result
    never contains an interior NUL and can be passed as a C string.
    """
    return json.dumps(phrases, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def encode_grammar(phrases: Iterable[Iterable[str] | str]) -> bytes:
    """Encode an iterable of phrases (each an iterable of words)."""
    return encode_phrases(phrase_list(phrases))


def encode_vocabulary(word_list: str) -> bytes:
    """Encode a whitespace-separated word list."""
    return encode_phrases(vocabulary_phrases(word_list))
