"""
Append-only record of media ids skipped for being too large.
"""

import logging
import threading
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class OversizeLedger:
    """Plain text file, one id per line, created on first write."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def mark_oversize(self, item_id: str) -> bool:
        """Append ``item_id``. Failures are logged and reported as ``False``."""
        try:
            with self._lock:
                with self.path.open("a", encoding="utf-8") as fh:
                    fh.write(f"{item_id}\n")
        except OSError as e:
            logger.warning(f"Failed to record oversize id {item_id} in {self.path}: {e}")
            return False
        return True

    def read_ids(self) -> list:
        """Return every recorded id in file order, duplicates included.

        For inspection only; the pipeline itself never reads the ledger.
        """
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as fh:
            return [line.strip() for line in fh if line.strip()]
