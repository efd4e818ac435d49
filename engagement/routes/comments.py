"""Comment endpoints for an open view."""

from typing import Optional

from fastapi import APIRouter, Query, Request

from ..models import ActionResponse, CommentListResponse, CreateCommentRequest, SortBy
from .views import bind_panel, snapshot

router = APIRouter()


@router.get("/{view_id}/comments", response_model=CommentListResponse)
async def list_comments(view_id: str, request: Request, sort_by: Optional[SortBy] = Query(None)):
    """Fresh list in the requested order (switching order always re-reads the store)."""
    view, panel = bind_panel(view_id, request)
    entries = await panel.list_comments(sort_by)
    return CommentListResponse(
        sort_by=view.comment_sort,
        panel=view.comment_panel,
        comments=[e.to_out() for e in entries],
    )


@router.post("/{view_id}/comments", response_model=ActionResponse)
async def create_comment(view_id: str, body: CreateCommentRequest, request: Request):
    _, panel = bind_panel(view_id, request)
    entry = await panel.create_comment(body.content)
    return ActionResponse(applied=entry is not None, view=await snapshot(panel))


@router.delete("/{view_id}/comments/{comment_id}", response_model=ActionResponse)
async def delete_comment(view_id: str, comment_id: str, request: Request):
    _, panel = bind_panel(view_id, request)
    deleted = await panel.delete_comment(comment_id)
    return ActionResponse(applied=deleted, view=await snapshot(panel))


@router.post("/{view_id}/comments/{comment_id}/like", response_model=ActionResponse)
async def toggle_comment_like(view_id: str, comment_id: str, request: Request):
    _, panel = bind_panel(view_id, request)
    outcome = await panel.toggle_comment_like(comment_id)
    return ActionResponse(dropped=outcome.dropped, applied=outcome.applied, view=await snapshot(panel))
