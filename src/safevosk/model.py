"""Shared, immutable model handles.

A loaded model is wrapped in a ``_SharedHandle`` that frees the native
resource exactly once, when the last owner is gone. ``Model`` and
``SpeakerModel`` values are cheap views onto that handle: ``share()`` (or
``copy.copy``) returns another owner of the same resource, and every
recognizer built from a model holds its own share.
"""

import logging
import os
import threading
import weakref
from collections.abc import Callable
from pathlib import Path

from safevosk.constants import NOT_FOUND_SYMBOL
from safevosk.engine import get_engine
from safevosk.engine.protocol import Engine, Handle
from safevosk.errors import NoValidModelError

logger = logging.getLogger(__name__)


def encode_path(path: str | os.PathLike) -> bytes:
    """Encode a filesystem path as the byte string libvosk expects.

    On POSIX this is the raw filesystem encoding (``os.fsencode``). Elsewhere
    libvosk reads ``char *`` paths as UTF-8.

    Raises:
        ValueError: If the path contains a NUL character.
    """
    if os.name == "posix":
        encoded = os.fsencode(path)
    else:
        encoded = os.fspath(path).encode("utf-8")
    if b"\x00" in encoded:
        raise ValueError("embedded null byte in model path")
    return encoded


def _free(free: Callable[[Handle], None], handle: Handle, kind: str) -> None:
    logger.debug("Releasing %s handle %#x", kind, handle)
    free(handle)


class _SharedHandle:
    """Owns one native model resource on behalf of any number of owners."""

    def __init__(self, engine: Engine, handle: Handle, free: Callable[[Handle], None], kind: str):
        self.engine = engine
        self.handle = handle
        self.kind = kind
        self._owners = 0
        self._lock = threading.Lock()
        # finalize runs at most once, whichever thread drops the last reference
        self._finalizer = weakref.finalize(self, _free, free, handle, kind)

    def acquire(self) -> None:
        with self._lock:
            self._owners += 1

    def release(self) -> None:
        with self._lock:
            self._owners -= 1

    @property
    def owners(self) -> int:
        with self._lock:
            return self._owners


class _SharedModel:
    """Common sharing discipline of Model and SpeakerModel."""

    __slots__ = ("_shared", "__weakref__")

    _kind = "model"

    def __init__(self, path: str | Path, engine: Engine | None = None):
        engine = engine if engine is not None else get_engine()
        try:
            encoded = encode_path(path)
        except ValueError as e:
            raise NoValidModelError(os.fspath(path), kind=self._kind) from e
        handle = self._construct(engine, encoded)
        if not handle:
            logger.warning("Failed to load %s from %s", self._kind, path)
            raise NoValidModelError(os.fspath(path), kind=self._kind)
        logger.info("Loaded %s from %s", self._kind, path)
        self._bind(_SharedHandle(engine, handle, self._free_fn(engine), self._kind))

    @staticmethod
    def _construct(engine: Engine, path: bytes) -> Handle | None:
        raise NotImplementedError

    @staticmethod
    def _free_fn(engine: Engine) -> Callable[[Handle], None]:
        raise NotImplementedError

    def _bind(self, shared: _SharedHandle) -> None:
        self._shared = shared
        shared.acquire()
        weakref.finalize(self, shared.release)

    def share(self):
        """Return another owner of the same loaded resource."""
        other = object.__new__(type(self))
        other._bind(self._shared)
        return other

    def __copy__(self):
        return self.share()

    def __deepcopy__(self, memo):
        return self.share()

    def __reduce__(self):
        raise TypeError(f"{type(self).__name__} cannot be pickled")

    @property
    def engine(self) -> Engine:
        return self._shared.engine

    @property
    def ref_count(self) -> int:
        """Number of live owners (values and recognizers) of the resource."""
        return self._shared.owners

    @property
    def _handle(self) -> Handle:
        return self._shared.handle

    def shares_resource_with(self, other: "_SharedModel") -> bool:
        return self._shared is other._shared

    def __repr__(self) -> str:
        return f"<{type(self).__name__} handle={self._handle:#x} owners={self.ref_count}>"


class Model(_SharedModel):
    """Stores all the data required for recognition.

    Load once and share freely: a Model exposes no mutation and may be used
    from any number of threads and recognizers at the same time.

    Raises:
        NoValidModelError: If no valid model could be loaded from ``path``.
    """

    __slots__ = ()

    _kind = "model"

    @staticmethod
    def _construct(engine: Engine, path: bytes) -> Handle | None:
        return engine.model_new(path)

    @staticmethod
    def _free_fn(engine: Engine) -> Callable[[Handle], None]:
        return engine.model_free

    def find_word(self, word: str) -> int | None:
        """Check if a word can be recognized by the model.

        Returns the symbol for ``word`` if it exists inside the model, or
        None otherwise. Symbol 0 is ``<eps>`` and is a valid result.
        """
        encoded = word.encode("utf-8")
        if b"\x00" in encoded:
            raise ValueError("embedded null byte in word")
        symbol = self.engine.model_find_word(self._handle, encoded)
        if symbol == NOT_FOUND_SYMBOL:
            return None
        return symbol


class SpeakerModel(_SharedModel):
    """Stores all the data required for speaker identification.

    Raises:
        NoValidModelError: If no valid speaker model could be loaded from ``path``.
    """

    __slots__ = ()

    _kind = "speaker model"

    @staticmethod
    def _construct(engine: Engine, path: bytes) -> Handle | None:
        return engine.spk_model_new(path)

    @staticmethod
    def _free_fn(engine: Engine) -> Callable[[Handle], None]:
        return engine.spk_model_free
