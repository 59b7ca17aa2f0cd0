"""Shared API dependencies for authentication and feed services."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rally_feed.core.security import InvalidTokenError, decode_subject
from rally_feed.services.post_service import PostService
from rally_feed.services.sessions import FeedSessionRegistry

# Bearer auth is optional so anonymous viewers can read the public feed
bearer_scheme = HTTPBearer(auto_error=False)


def get_optional_viewer(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """Return the viewer id from the bearer token, or None when absent.

    Raises:
        HTTPException: If a token is supplied but cannot be validated.
    """
    if credentials is None:
        return None
    try:
        return decode_subject(credentials.credentials)
    except InvalidTokenError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err


def get_current_viewer(
    viewer_id: Annotated[str | None, Depends(get_optional_viewer)],
) -> str:
    """Require an authenticated viewer."""
    if viewer_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return viewer_id


def get_feed_sessions(request: Request) -> FeedSessionRegistry:
    """Return the feed session registry built at application startup."""
    registry: FeedSessionRegistry | None = getattr(request.app.state, "feed_sessions", None)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Feed service is not ready",
        )
    return registry


FeedSessionsDep = Annotated[FeedSessionRegistry, Depends(get_feed_sessions)]


def get_post_service(sessions: FeedSessionsDep) -> PostService:
    return PostService(sessions.services.posts, sessions)


# Type aliases for viewer dependencies
OptionalViewerDep = Annotated[str | None, Depends(get_optional_viewer)]
CurrentViewerDep = Annotated[str, Depends(get_current_viewer)]
PostServiceDep = Annotated[PostService, Depends(get_post_service)]
