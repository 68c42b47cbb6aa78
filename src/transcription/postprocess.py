"""
Cleanup applied to ASR output before it is stored.
"""

# Emitted by the Whisper large-v3 models for music or inaudible segments
DEFAULT_ARTIFACT_MARKER = "Altyazı M.K."


def clean_transcript(text: str, marker: str = DEFAULT_ARTIFACT_MARKER) -> str:
    """Replace every exact occurrence of ``marker`` with a single period."""
    if not marker:
        return text
    return text.replace(marker, ".")
