"""Common types and Pydantic models shared across services and routes."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel


class ContentKind(str, Enum):
    NEWS = "news"
    COMMUNITY = "community"


class ReactionKind(str, Enum):
    LIKE = "like"
    SAD = "sad"
    ANGRY = "angry"
    SURPRISED = "surprised"
    ANXIOUS = "anxious"


class SortBy(str, Enum):
    RECENCY = "recency"
    POPULARITY = "popularity"


class NoticeKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class PanelState(str, Enum):
    """Comment panel lifecycle for one content item."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    LOADED = "loaded"
    DEGRADED = "degraded"


def empty_reaction_counts() -> Dict[str, int]:
    return {k.value: 0 for k in ReactionKind}


class AuthorInfo(BaseModel):
    id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class NoticeOut(BaseModel):
    message: str
    kind: NoticeKind


class BinaryStateOut(BaseModel):
    on: bool = False
    count: int = 0


class CommentOut(BaseModel):
    id: str
    content_item_id: str
    user_id: str
    content: str
    like_count: int = 0
    created_at: str
    updated_at: Optional[str] = None
    author: Optional[AuthorInfo] = None
    user_liked: bool = False
