"""Exception types raised by the video screener."""

__all__ = [
    'ScreenerError',
    'InvalidLengthError',
    'FrameUnavailableError',
    'AnalysisCancelledError',
]


class ScreenerError(Exception):
    """Base class for all video screener errors."""


class InvalidLengthError(ScreenerError, ValueError):
    """Transform input length is zero or not a power of two."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Transform length must be a non-zero power of 2, got {length}")


class FrameUnavailableError(ScreenerError, RuntimeError):
    """A frame source could not produce a frame for the requested timestamp."""

    def __init__(self, timestamp: float, reason: str = "frame could not be read"):
        self.timestamp = timestamp
        self.reason = reason
        super().__init__(f"Frame unavailable at t={timestamp:.3f}s: {reason}")


class AnalysisCancelledError(ScreenerError, RuntimeError):
    """An analysis run was abandoned by its caller."""
