"""Request/response models for content item views and their engagements."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .common import (
    BinaryStateOut,
    CommentOut,
    ContentKind,
    NoticeOut,
    PanelState,
    ReactionKind,
    SortBy,
)


class OpenViewRequest(BaseModel):
    content_item_id: str = Field(min_length=1)
    content_kind: ContentKind = ContentKind.COMMUNITY


class ReactionRequest(BaseModel):
    kind: ReactionKind


class CreateCommentRequest(BaseModel):
    # Length rules are enforced by the comment engine so they surface as a notice
    content: str


class ViewSnapshot(BaseModel):
    """Everything the UI needs to render the engagement area of one content item."""

    view_id: str
    content_item_id: str
    content_kind: ContentKind
    mounted: bool
    user_id: Optional[str] = None
    reaction: Optional[ReactionKind] = None
    reaction_counts: Dict[str, int] = {}
    like: BinaryStateOut = BinaryStateOut()
    bookmark: BinaryStateOut = BinaryStateOut()
    view_count: int = 0
    comment_count: int = 0
    comment_sort: SortBy = SortBy.RECENCY
    comment_panel: PanelState = PanelState.UNINITIALIZED
    comments: List[CommentOut] = []
    notice: Optional[NoticeOut] = None


class ActionResponse(BaseModel):
    """Result of one user-initiated action plus the refreshed snapshot."""

    dropped: bool = False
    applied: bool = True
    view: ViewSnapshot


class CommentListResponse(BaseModel):
    sort_by: SortBy
    panel: PanelState
    comments: List[CommentOut]


class ReconcileResponse(BaseModel):
    content_item_id: str
    like_count: Optional[int] = None
    comment_count: Optional[int] = None
    corrected: List[str] = []


class AuthorStatsResponse(BaseModel):
    user_id: str
    post_count: int
    comment_count: int
