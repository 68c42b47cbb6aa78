"""
Timers and on-demand triggers for pipeline runs.
"""

import asyncio
import logging
import uuid
from typing import Dict, Optional

from pipeline.orchestrator import TranscriptionPipeline

logger = logging.getLogger(__name__)


class PipelineScheduler:
    """Starts runs of one pipeline on an interval and on request.

    Runs started here are fire-and-forget: callers get a task id for log
    correlation only, never the outcome. Overlapping requests are absorbed by
    the pipeline's own single-flight guard.
    """

    def __init__(self, pipeline: TranscriptionPipeline, interval_seconds: float):
        self.pipeline = pipeline
        self.interval_seconds = interval_seconds
        self._timer: Optional[asyncio.Task] = None
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def kind(self) -> str:
        return self.pipeline.kind

    async def _run_guarded(self, task_id: str) -> None:
        """Run the pipeline, logging anything that escapes it."""
        try:
            await self.pipeline.run()
        except asyncio.CancelledError:
            logger.info(f"{self.kind} run {task_id} cancelled")
            raise
        except Exception:
            logger.exception(f"{self.kind} run {task_id} failed")

    def trigger(self) -> str:
        """Start a run in the background and return immediately."""
        task_id = uuid.uuid4().hex
        task = asyncio.create_task(self._run_guarded(task_id))
        self._tasks[task_id] = task

        # Automatically remove task from registry when done
        def _cleanup(t: asyncio.Task):
            self._tasks.pop(task_id, None)

        task.add_done_callback(_cleanup)
        logger.info(f"Started {self.kind} transcription task {task_id}")
        return task_id

    async def _timer_loop(self) -> None:
        logger.info(f"{self.kind} transcription scheduled every {self.interval_seconds:.0f} seconds")
        while True:
            await asyncio.sleep(self.interval_seconds)
            logger.debug(f"Periodic {self.kind} transcription triggered")
            await self._run_guarded("timer")

    def start(self) -> None:
        if self._timer is None or self._timer.done():
            self._timer = asyncio.create_task(self._timer_loop())

    async def stop(self) -> None:
        """Cancel the timer and any run still in flight."""
        pending = list(self._tasks.values())
        if self._timer is not None:
            pending.append(self._timer)
            self._timer = None
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
