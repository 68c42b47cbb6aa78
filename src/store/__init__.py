"""
Candidate stores: where media items needing a transcription are read from and
where results are written back.
"""

from .base import CandidateStore

__all__ = ["CandidateStore"]
