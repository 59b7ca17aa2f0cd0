# src/rally_feed/api/v1/endpoints/posts.py
"""Post-related endpoints for the Rally API."""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from rally_feed.api.v1.dependencies import CurrentViewerDep, PostServiceDep
from rally_feed.schemas.post import PostCreate, PostOut, to_post_out

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", response_model=PostOut, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    viewer_id: CurrentViewerDep,
    service: PostServiceDep,
) -> PostOut:
    """Create a post and show it at the top of the author's feed."""
    try:
        post = await service.create_post(viewer_id, payload)
    except SQLAlchemyError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Post could not be saved",
        ) from err
    return to_post_out(post, is_optimistic=True)
