from __future__ import annotations

GENERIC_FAILURE_MESSAGE = "Unable to analyse the video frames. Try another file or refresh."


class InvalidInputError(ValueError):
    """Raised when the supplied media is not a usable video."""


class InvalidConfigurationError(ValueError):
    """Raised when a capture configuration falls outside the fixed option sets."""


class SeekError(RuntimeError):
    """Raised when the media handle reports an error while seeking."""


class AnalysisFailedError(RuntimeError):
    """Single user-facing failure for a generation run."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE) -> None:
        super().__init__(message)


class GeneratorBusyError(RuntimeError):
    """Raised when a generation run is requested while another is in flight."""
