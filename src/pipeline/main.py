"""
One-shot command line run of a transcription pipeline.

Usage:
    python -m pipeline.main --kind post
    python -m pipeline.main --kind story

Runs exactly one pass over the candidates of the given kind and exits. The
exit status is 1 when the run was aborted because candidates could not be
selected.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from pipeline.bootstrap import build_runtime
from pipeline.config import PipelineConfig
from pipeline.orchestrator import RunSummary

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Transcribe pending media items once")
    parser.add_argument("--kind", choices=("post", "story"), required=True, help="media kind to process")
    parser.add_argument("--ledger", help="override the oversize ledger path")
    return parser.parse_args(argv)


async def run_once(config: PipelineConfig, kind: str) -> Optional[RunSummary]:
    runtime = await build_runtime(config, kinds=[kind])
    try:
        return await runtime.schedulers[kind].pipeline.run()
    finally:
        await runtime.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = PipelineConfig.from_env()
    if args.ledger:
        config.oversize_ledger_path = args.ledger

    summary = asyncio.run(run_once(config, args.kind))
    if summary is None or summary.aborted:
        logger.error(f"{args.kind} transcription run did not complete")
        return 1
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    sys.exit(main())
