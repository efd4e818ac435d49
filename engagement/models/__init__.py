"""Engagement types and Pydantic request/response models for the API."""

from .common import (
    AuthorInfo,
    BinaryStateOut,
    CommentOut,
    ContentKind,
    NoticeKind,
    NoticeOut,
    PanelState,
    ReactionKind,
    SortBy,
    empty_reaction_counts,
)
from .views import (
    ActionResponse,
    AuthorStatsResponse,
    CommentListResponse,
    CreateCommentRequest,
    OpenViewRequest,
    ReactionRequest,
    ReconcileResponse,
    ViewSnapshot,
)

__all__ = [
    "AuthorInfo",
    "BinaryStateOut",
    "CommentOut",
    "ContentKind",
    "NoticeKind",
    "NoticeOut",
    "PanelState",
    "ReactionKind",
    "SortBy",
    "empty_reaction_counts",
    "ActionResponse",
    "AuthorStatsResponse",
    "CommentListResponse",
    "CreateCommentRequest",
    "OpenViewRequest",
    "ReactionRequest",
    "ReconcileResponse",
    "ViewSnapshot",
]
