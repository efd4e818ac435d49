"""Author activity stats."""

from fastapi import APIRouter

from ..models import AuthorStatsResponse
from ..services import ActivityService
from ..state import get_state

router = APIRouter()


@router.get("/{user_id}/stats", response_model=AuthorStatsResponse)
async def author_stats(user_id: str):
    """Post and comment counts for an author. Missing data reads as zero."""
    stats = await ActivityService(get_state().store).author_stats(user_id)
    return AuthorStatsResponse(
        user_id=stats.user_id,
        post_count=stats.post_count,
        comment_count=stats.comment_count,
    )
