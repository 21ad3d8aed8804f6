"""Exception hierarchy for the Vosk wrapper.

Model construction is the one failure expected in normal operation. The rest
mark engine output or usage the wrapper refuses to guess about.
"""


class VoskError(RuntimeError):
    """Base class for all errors raised by safevosk."""


class NoValidModelError(VoskError):
    """The native layer could not load a model from the given path."""

    def __init__(self, path: str = "", kind: str = "model"):
        self.path = path
        self.kind = kind
        super().__init__(f"Could not find valid {kind} at given path: {path!r}")


class RecognizerCreationError(VoskError):
    """The native recognizer constructor returned a null handle."""


class InvalidTextError(VoskError):
    """Engine output was not valid UTF-8."""

    def __init__(self, message: str, raw: bytes = b""):
        self.raw = raw
        super().__init__(message)


class MalformedResultError(VoskError):
    """Engine output did not match the expected JSON result shape."""

    def __init__(self, message: str, text: str = ""):
        self.text = text
        super().__init__(message)


class RecognizerClosedError(VoskError):
    """A recognizer was used after it was released."""


class RecognizerBusyError(VoskError):
    """A recognizer was driven from two call sites at once."""


class EngineUnavailableError(VoskError):
    """The native libvosk library could not be loaded."""


class ConfigError(VoskError, ValueError):
    """Invalid configuration value."""
