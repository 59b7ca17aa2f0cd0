# tests/v1/test_dependencies.py
"""Tests for API dependencies module."""

import pytest
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from rally_feed.api.v1.dependencies import (
    get_current_viewer,
    get_feed_sessions,
    get_optional_viewer,
    get_post_service,
)
from rally_feed.core.security import create_access_token
from rally_feed.services.post_service import PostService


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestViewerDependencies:
    """Test bearer token resolution."""

    def test_missing_credentials_mean_anonymous(self):
        assert get_optional_viewer(None) is None

    def test_valid_token_yields_viewer_id(self):
        assert get_optional_viewer(_credentials(create_access_token("viewer"))) == "viewer"

    def test_invalid_token_raises_401(self):
        with pytest.raises(HTTPException) as exc_info:
            get_optional_viewer(_credentials("garbage"))
        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_current_viewer_required(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_viewer(None)
        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert get_current_viewer("viewer") == "viewer"


class TestFeedSessionDependencies:
    def test_missing_registry_is_unavailable(self, mocker):
        request = mocker.MagicMock()
        request.app.state = object()

        with pytest.raises(HTTPException) as exc_info:
            get_feed_sessions(request)
        assert exc_info.value.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_registry_read_from_app_state(self, mocker, feed_sessions):
        request = mocker.MagicMock()
        request.app.state.feed_sessions = feed_sessions

        assert get_feed_sessions(request) is feed_sessions

    def test_post_service_bound_to_registry(self, feed_sessions):
        service = get_post_service(feed_sessions)

        assert isinstance(service, PostService)
        assert service.sessions is feed_sessions
        assert service.store is feed_sessions.services.posts
