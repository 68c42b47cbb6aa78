"""
Document store for harvested stories (MongoDB).
"""

import logging
from typing import Any, Dict, List

from bson.errors import BSONError
from pymongo import DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from pipeline.errors import PersistFailed, StoreUnavailable
from pipeline.models import MediaKind, Story
from store.base import CandidateStore

logger = logging.getLogger(__name__)

CANDIDATE_FILTER: Dict[str, Any] = {
    "media_type": "v",
    "transcription": {"$exists": False},
    "downloaded": True,
    "has_audio": True,
}


def connect_story_collection(uri: str, database: str, collection: str, timeout: float = 30.0) -> Collection:
    client = MongoClient(
        uri,
        serverSelectionTimeoutMS=int(timeout * 1000),
        socketTimeoutMS=int(timeout * 1000),
    )
    return client[database][collection]


class StoryStore(CandidateStore):
    """Video stories with audio that were downloaded but not yet transcribed."""

    kind = MediaKind.STORY
    supports_download_flag = True

    def __init__(self, collection: Collection, url_template: str, timeout: float = 30.0):
        self.collection = collection
        self.url_template = url_template
        self.timeout = timeout

    def _to_story(self, doc: Dict[str, Any]) -> Story:
        story_id = str(doc["story_id"])
        inst_account = str(doc.get("inst_account", ""))
        return Story(
            id=story_id,
            source_url=self.url_template.format(inst_account=inst_account, story_id=story_id),
            ordering_key=doc.get("published_at"),
            transcription=doc.get("transcription"),
            inst_account=inst_account,
            media_type=doc.get("media_type", "v"),
            has_audio=bool(doc.get("has_audio", False)),
            downloaded=bool(doc.get("downloaded", False)),
        )

    def _find_documents(self) -> List[Dict[str, Any]]:
        cursor = self.collection.find(
            CANDIDATE_FILTER,
            max_time_ms=int(self.timeout * 1000),
        ).sort("published_at", DESCENDING)
        return list(cursor)

    async def fetch_candidates(self) -> List[Story]:
        try:
            docs = await self._run_blocking(self._find_documents)
        except PyMongoError as e:
            raise StoreUnavailable(f"story candidate query failed: {e}") from e
        stories: List[Story] = []
        for doc in docs:
            if doc.get("story_id") is None:
                logger.warning(f"Skipping story document {doc.get('_id')} without story_id")
                continue
            stories.append(self._to_story(doc))
        return stories

    def _set_fields(self, item_id: str, fields: Dict[str, Any]) -> int:
        result = self.collection.update_one({"story_id": item_id}, {"$set": fields})
        return result.matched_count

    async def _update(self, item_id: str, fields: Dict[str, Any]) -> None:
        try:
            matched = await self._run_blocking(self._set_fields, item_id, fields)
        except (PyMongoError, BSONError) as e:
            raise PersistFailed(f"story update failed: {e}") from e
        if matched == 0:
            raise PersistFailed(f"no story document with story_id {item_id}")

    async def set_transcription(self, item_id: str, transcription: str) -> None:
        await self._update(item_id, {"transcription": transcription})

    async def set_download_failed(self, item_id: str) -> None:
        await self._update(item_id, {"downloaded": False})
