"""
Relational store for influencer posts (Supabase / PostgreSQL).
"""

import logging
import re
import time
from typing import Callable, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from pipeline.errors import PersistFailed, StoreUnavailable
from pipeline.models import MediaKind, Post
from store.base import CandidateStore

logger = logging.getLogger(__name__)

# Signed CDN urls carry their expiry as hex epoch seconds: ...&oe=6650A1B2&...
EXPIRY_PATTERN = re.compile(r"oe=([0-9A-Fa-f]+)")


def parse_url_expiry(url: Optional[str]) -> Optional[int]:
    """Return the epoch expiry embedded in ``url``, or ``None`` when absent."""
    if not url:
        return None
    match = EXPIRY_PATTERN.search(url)
    if match is None:
        return None
    return int(match.group(1), 16)


def _normalize_db_url(db_url: str) -> str:
    if db_url.startswith("postgres://"):
        return "postgresql+psycopg2://" + db_url.split("://", 1)[1]
    return db_url


def create_post_engine(dsn: str, timeout: float = 30.0) -> Engine:
    """Create a pooled engine for the posts database."""
    return create_engine(
        _normalize_db_url(dsn),
        pool_pre_ping=True,
        pool_recycle=1800,  # recycle connections every 30 minutes
        connect_args={
            "connect_timeout": int(timeout),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        },
    )


class PostStore(CandidateStore):
    """Posts of accounts with collection enabled, read through SQLAlchemy."""

    kind = MediaKind.POST
    supports_download_flag = False

    def __init__(
        self,
        engine: Engine,
        posts_table: str = "n8n_influencer_posts",
        accounts_table: str = "n8n_influencer_accounts",
        clock: Callable[[], float] = time.time,
    ):
        self.engine = engine
        self.posts_table = posts_table
        self.accounts_table = accounts_table
        self.clock = clock

    def _candidate_query(self):
        return text(
            f"""
            SELECT p.id, p.account_id, p.video_url, p.transcription, p.taken_at
            FROM {self.posts_table} p
            LEFT JOIN {self.accounts_table} a ON p.account_id = a.id
            WHERE a.collect_stories = true
              AND p.transcription IS NULL
              AND p.video_url IS NOT NULL
              AND p.video_url LIKE :expiry_marker
            ORDER BY p.taken_at DESC
            """
        )

    def _fetch_rows(self):
        with self.engine.connect() as conn:
            return conn.execute(self._candidate_query(), {"expiry_marker": "%oe=%"}).fetchall()

    async def fetch_candidates(self) -> List[Post]:
        try:
            rows = await self._run_blocking(self._fetch_rows)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"post candidate query failed: {e}") from e

        now = int(self.clock())
        posts: List[Post] = []
        expired = 0
        for row in rows:
            expiry = parse_url_expiry(row.video_url)
            if expiry is None or expiry < now:
                expired += 1
                continue
            posts.append(
                Post(
                    id=str(row.id),
                    source_url=row.video_url,
                    ordering_key=row.taken_at,
                    transcription=row.transcription,
                    account_id=row.account_id,
                )
            )
        if expired:
            logger.info(f"Dropped {expired} posts with expired or unmarked video urls")
        return posts

    def _update_transcription(self, item_id: str, transcription: str) -> int:
        stmt = text(f"UPDATE {self.posts_table} SET transcription = :transcription WHERE id = :id")
        with self.engine.begin() as conn:
            result = conn.execute(stmt, {"transcription": transcription, "id": item_id})
            return result.rowcount

    async def set_transcription(self, item_id: str, transcription: str) -> None:
        try:
            updated = await self._run_blocking(self._update_transcription, item_id, transcription)
        except (SQLAlchemyError, UnicodeError) as e:
            raise PersistFailed(f"post update failed: {e}") from e
        if updated == 0:
            raise PersistFailed(f"no post row with id {item_id}")

    async def set_download_failed(self, item_id: str) -> None:
        raise PersistFailed("post rows have no download flag")
