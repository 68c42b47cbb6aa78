"""
Size based routing for media assets.
"""

from enum import Enum

from pipeline.config import SizeThresholds


class Route(str, Enum):
    LEDGER = "ledger"        # too large, record id and skip
    REJECT = "reject"        # too large for transcription, skip silently
    DIRECT = "direct"        # submit the raw asset to the ASR service
    TRANSCODE = "transcode"  # extract audio first, then transcribe


def decide_route(size: int, thresholds: SizeThresholds) -> Route:
    """Pick the processing path for an asset of ``size`` bytes.

    The bands are checked from largest to smallest, so a configured
    ``reject_above`` only applies to sizes not already caught by
    ``ledger_above``.
    """
    if size > thresholds.ledger_above:
        return Route.LEDGER
    if thresholds.reject_above is not None and size > thresholds.reject_above:
        return Route.REJECT
    if size < thresholds.direct_below:
        return Route.DIRECT
    return Route.TRANSCODE
