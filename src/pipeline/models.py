from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class MediaKind(str, Enum):
    POST = "post"
    STORY = "story"


@dataclass
class MediaItem:
    """
    A media record that may need a transcription.

    Fields:
        id: Stable identifier, shared by the store and the oversize ledger.
        source_url: Locator of the raw video/audio asset.
        ordering_key: Timestamp used for newest-first processing.
        transcription: ``None`` until the item has been processed.
    """

    id: str
    source_url: str
    ordering_key: Union[datetime, int, float, str, None] = None
    transcription: Optional[str] = None
    kind: MediaKind = field(init=False)


@dataclass
class Post(MediaItem):
    account_id: Optional[int] = None
    kind: MediaKind = field(init=False, default=MediaKind.POST)


@dataclass
class Story(MediaItem):
    inst_account: str = ""
    media_type: str = "v"
    has_audio: bool = True
    downloaded: bool = True
    kind: MediaKind = field(init=False, default=MediaKind.STORY)
