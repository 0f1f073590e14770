"""
Error types for Shotmark.

Services raise these; the editor controller turns export failures into a
status message and the CLI turns capture failures into a non-zero exit.
"""


class ShotmarkError(Exception):
    """Base class for all Shotmark errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class CaptureFailed(ShotmarkError):
    """The screen could not be captured (portal denied, no backend, ...)."""


class CaptureCancelled(CaptureFailed):
    """The user dismissed the capture picker."""


class EncodeFailed(ShotmarkError):
    """The composed image could not be encoded as PNG/BMP."""


class ClipboardUnavailable(ShotmarkError):
    """No clipboard helper accepted the image."""


class SaveFailed(ShotmarkError):
    """Writing the image to disk failed."""
