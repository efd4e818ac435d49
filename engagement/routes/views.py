"""Content item view endpoints: open/refresh/close, reactions, likes, bookmarks, counters."""

from typing import Tuple

from fastapi import APIRouter, HTTPException, Request

from ..models import (
    ActionResponse,
    OpenViewRequest,
    ReactionRequest,
    ReconcileResponse,
    ViewSnapshot,
)
from ..services import ContentItemView, EngagementPanel
from ..state import get_state

router = APIRouter()


def bind_panel(view_id: str, request: Request) -> Tuple[ContentItemView, EngagementPanel]:
    """Look up an open view and bind it to this request's identity."""
    state = get_state()
    view = state.get_view(view_id)
    if view is None:
        raise HTTPException(status_code=404, detail=f"View not found or closed: {view_id}")
    identity = state.identity_for(request.headers)
    return view, state.panel(view, identity)


async def snapshot(panel: EngagementPanel) -> ViewSnapshot:
    return panel.view.snapshot(user_id=await panel.identity.current_user())


@router.post("", response_model=ViewSnapshot)
async def open_view(body: OpenViewRequest, request: Request):
    """Open (mount) a view for a content item and load its engagement state."""
    state = get_state()
    view = state.open_view(body.content_item_id, body.content_kind)
    panel = state.panel(view, state.identity_for(request.headers))
    await panel.open()
    return await snapshot(panel)


@router.get("/{view_id}", response_model=ViewSnapshot)
async def get_view(view_id: str, request: Request):
    _, panel = bind_panel(view_id, request)
    return await snapshot(panel)


@router.post("/{view_id}/refresh", response_model=ViewSnapshot)
async def refresh_view(view_id: str, request: Request):
    _, panel = bind_panel(view_id, request)
    await panel.refresh()
    return await snapshot(panel)


@router.delete("/{view_id}")
def close_view(view_id: str):
    """Unmount the view. Responses still in flight for it are discarded."""
    view = get_state().close_view(view_id)
    if view is None:
        raise HTTPException(status_code=404, detail=f"View not found or closed: {view_id}")
    return {"view_id": view_id, "closed": True}


@router.post("/{view_id}/reactions", response_model=ActionResponse)
async def apply_reaction(view_id: str, body: ReactionRequest, request: Request):
    _, panel = bind_panel(view_id, request)
    outcome = await panel.apply_reaction(body.kind)
    return ActionResponse(dropped=outcome.dropped, applied=outcome.applied, view=await snapshot(panel))


@router.post("/{view_id}/like", response_model=ActionResponse)
async def toggle_like(view_id: str, request: Request):
    _, panel = bind_panel(view_id, request)
    outcome = await panel.toggle_like()
    return ActionResponse(dropped=outcome.dropped, applied=outcome.applied, view=await snapshot(panel))


@router.post("/{view_id}/bookmark", response_model=ActionResponse)
async def toggle_bookmark(view_id: str, request: Request):
    _, panel = bind_panel(view_id, request)
    outcome = await panel.toggle_bookmark()
    return ActionResponse(dropped=outcome.dropped, applied=outcome.applied, view=await snapshot(panel))


@router.post("/{view_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_counters(view_id: str, request: Request):
    """Recount denormalized counters from rows and write back the ones that drifted."""
    _, panel = bind_panel(view_id, request)
    result = await panel.reconcile()
    return ReconcileResponse(
        content_item_id=result.content_item_id,
        like_count=result.like_count,
        comment_count=result.comment_count,
        corrected=result.corrected,
    )
