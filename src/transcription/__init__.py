"""
Transcription module: client for the remote speech-to-text service.
"""

__version__ = "1.0.0"

from .asr_client import TranscriptionClient
from .postprocess import DEFAULT_ARTIFACT_MARKER, clean_transcript

__all__ = [
    "TranscriptionClient",
    "DEFAULT_ARTIFACT_MARKER",
    "clean_transcript",
]
