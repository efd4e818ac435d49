"""
Per-content-item view state.

ContentItemView is the local mirror of engagement state for one open content item:
reaction counts, like/bookmark mirrors, counters, and the comment panel. It is a
cache with explicit invalidation points (every engine mutation and refresh()), not
shared state written from anywhere.

Cancellation: unmount() bumps the generation. Engines capture the generation when
an operation starts and only write results back while view.accepts(generation).
In-flight store calls are not aborted; their results are dropped.
"""

import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..models import (
    AuthorInfo,
    BinaryStateOut,
    CommentOut,
    ContentKind,
    NoticeOut,
    PanelState,
    ReactionKind,
    SortBy,
    ViewSnapshot,
    empty_reaction_counts,
)
from .notifier import DEFAULT_TTL_SECONDS, Notifier
from .operation_guard import OperationGuard


@dataclass
class BinaryMirror:
    """Local mirror of an existence-based engagement and its denormalized counter."""

    on: bool = False
    count: int = 0

    def apply(self, on: bool, delta: int) -> None:
        self.on = on
        self.count = max(0, self.count + delta)

    def to_out(self) -> BinaryStateOut:
        return BinaryStateOut(on=self.on, count=self.count)


@dataclass
class CommentEntry:
    id: str
    content_item_id: str
    user_id: str
    content: str
    created_at: str
    updated_at: Optional[str] = None
    like_count: int = 0
    author: Optional[AuthorInfo] = None
    user_liked: bool = False

    @classmethod
    def from_row(cls, row: dict, author: Optional[AuthorInfo] = None, user_liked: bool = False) -> "CommentEntry":
        return cls(
            id=str(row["id"]),
            content_item_id=str(row.get("content_item_id", "")),
            user_id=str(row.get("user_id", "")),
            content=row.get("content") or "",
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at"),
            like_count=int(row.get("like_count") or 0),
            author=author,
            user_liked=user_liked,
        )

    def to_out(self) -> CommentOut:
        return CommentOut(
            id=self.id,
            content_item_id=self.content_item_id,
            user_id=self.user_id,
            content=self.content,
            like_count=self.like_count,
            created_at=self.created_at,
            updated_at=self.updated_at,
            author=self.author,
            user_liked=self.user_liked,
        )


class ContentItemView:
    """Engagement state container for one content item as one viewer sees it."""

    def __init__(
        self,
        content_item_id: str,
        content_kind: ContentKind = ContentKind.COMMUNITY,
        view_id: Optional[str] = None,
        notice_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.view_id = view_id or uuid.uuid4().hex[:16]
        self.content_item_id = content_item_id
        self.content_kind = ContentKind(content_kind)
        self.notifier = Notifier(ttl=notice_ttl, clock=clock)
        self.guard = OperationGuard()

        self.mounted = False
        self.generation = 0

        # Reactions
        self.reaction: Optional[ReactionKind] = None
        self.reaction_counts: Dict[str, int] = empty_reaction_counts()

        # Binary engagements and counters
        self.like = BinaryMirror()
        self.bookmark = BinaryMirror()
        self.view_count = 0
        self.comment_count = 0

        # Comment panel
        self.comment_sort = SortBy.RECENCY
        self.comment_panel = PanelState.UNINITIALIZED
        self.comments: List[CommentEntry] = []
        self._list_seq = 0

    # -- lifecycle ---------------------------------------------------------

    def mount(self) -> int:
        self.mounted = True
        self.generation += 1
        return self.generation

    def unmount(self) -> None:
        self.mounted = False
        self.generation += 1

    def accepts(self, generation: int) -> bool:
        """True while results from an operation started at `generation` may be applied."""
        return self.mounted and generation == self.generation

    # -- comment panel helpers --------------------------------------------

    def next_list_seq(self) -> int:
        self._list_seq += 1
        return self._list_seq

    def is_latest_list(self, seq: int) -> bool:
        return seq == self._list_seq

    def find_comment(self, comment_id: str) -> Optional[CommentEntry]:
        for c in self.comments:
            if c.id == comment_id:
                return c
        return None

    # -- output ------------------------------------------------------------

    def snapshot(self, user_id: Optional[str] = None) -> ViewSnapshot:
        notice = self.notifier.current()
        return ViewSnapshot(
            view_id=self.view_id,
            content_item_id=self.content_item_id,
            content_kind=self.content_kind,
            mounted=self.mounted,
            user_id=user_id,
            reaction=self.reaction,
            reaction_counts=dict(self.reaction_counts),
            like=self.like.to_out(),
            bookmark=self.bookmark.to_out(),
            view_count=self.view_count,
            comment_count=self.comment_count,
            comment_sort=self.comment_sort,
            comment_panel=self.comment_panel,
            comments=[c.to_out() for c in self.comments],
            notice=NoticeOut(message=notice.message, kind=notice.kind) if notice else None,
        )
