"""
Media Transcription Pipeline Module

This module drives the batch transcription of short-form social media videos:
1. Selects untranscribed items from the post or story store
2. Probes the remote media size
3. Routes each item by size (ledger, reject, direct upload, transcode)
4. Transcribes audio through an OpenAI-style ASR service
5. Cleans the transcript and writes it back to the store
"""

__version__ = "1.0.0"
