"""
Error types raised by pipeline components.

``StoreUnavailable`` ends a run. Every other ``PipelineError`` only ends the
processing of the item it was raised for.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline failures."""


class StoreUnavailable(PipelineError):
    """The candidate query could not be executed."""


class SizeUnknown(PipelineError):
    """The asset size could not be determined from a metadata probe."""


ProbeFailed = SizeUnknown


class DownloadFailed(PipelineError):
    """The asset body could not be fetched."""


class TranscodeFailed(PipelineError):
    """Audio extraction failed. ``diagnostic`` holds the external error output."""

    def __init__(self, message: str, diagnostic: str = ""):
        super().__init__(message)
        self.diagnostic = diagnostic

    def __str__(self) -> str:
        base = super().__str__()
        if self.diagnostic:
            return f"{base}: {self.diagnostic.strip()}"
        return base


class TranscriptionFailed(PipelineError):
    """The ASR service rejected the upload or returned an unusable body."""

    def __init__(self, status: Optional[int], body: str):
        super().__init__(f"transcription failed (status={status}): {body}")
        self.status = status
        self.body = body


class PersistFailed(PipelineError):
    """Writing a result back to the store failed."""
