"""Unit tests for CSRF protection middleware."""

import pytest
from unittest.mock import Mock, patch
from fastapi import Request

from jargoyle.config import settings
from jargoyle.middleware.csrf_protection import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    CSRFProtectionMiddleware,
)


@pytest.mark.unit
class TestCSRFProtectionMiddleware:
    """Test CSRF protection middleware."""

    @pytest.fixture
    def middleware(self):
        app = Mock()
        return CSRFProtectionMiddleware(app)

    @pytest.fixture
    def mock_request(self):
        request = Mock(spec=Request)
        request.url = Mock()
        request.url.path = "/logout"
        request.method = "POST"
        request.cookies = {}
        request.headers = {}
        return request

    @pytest.fixture
    def mock_call_next(self):
        async def call_next(request):
            response = Mock()
            response.status_code = 200
            response.set_cookie = Mock()
            return response
        return call_next

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exempt_path", [
        "/api/auth/logout",
        "/api/documents/123",
        "/api/anything",
    ])
    async def test_skips_csrf_check_for_api_paths(
        self, middleware, mock_request, mock_call_next, exempt_path
    ):
        """API paths are exempt even without any token."""
        mock_request.url.path = exempt_path
        with patch.object(settings, "SKIP_CSRF_IN_TESTS", False):
            response = await middleware.dispatch(mock_request, mock_call_next)
        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/logout", "/", "/api", "/apix/form"])
    async def test_enforces_csrf_outside_api_prefix(
        self, middleware, mock_request, mock_call_next, path
    ):
        """Only the '/api/' prefix is exempt; lookalike paths are not."""
        mock_request.url.path = path
        with patch.object(settings, "SKIP_CSRF_IN_TESTS", False):
            response = await middleware.dispatch(mock_request, mock_call_next)
        assert response.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS"])
    async def test_skips_csrf_check_for_safe_methods(
        self, middleware, mock_request, mock_call_next, method
    ):
        """Should skip CSRF validation for safe HTTP methods."""
        mock_request.method = method
        mock_request.cookies = {CSRF_COOKIE_NAME: "existing"}
        with patch.object(settings, "SKIP_CSRF_IN_TESTS", False):
            response = await middleware.dispatch(mock_request, mock_call_next)
        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    async def test_accepts_matching_tokens(self, middleware, mock_request, mock_call_next, method):
        mock_request.method = method
        mock_request.cookies = {CSRF_COOKIE_NAME: "test-token-123"}
        mock_request.headers = {CSRF_HEADER_NAME: "test-token-123"}
        with patch.object(settings, "SKIP_CSRF_IN_TESTS", False):
            response = await middleware.dispatch(mock_request, mock_call_next)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_rejects_missing_cookie(self, middleware, mock_request, mock_call_next):
        mock_request.headers = {CSRF_HEADER_NAME: "test-token"}
        with patch.object(settings, "SKIP_CSRF_IN_TESTS", False):
            response = await middleware.dispatch(mock_request, mock_call_next)
        assert response.status_code == 403
        assert response.body == b'{"detail":"CSRF token missing"}'

    @pytest.mark.asyncio
    async def test_rejects_missing_header(self, middleware, mock_request, mock_call_next):
        mock_request.cookies = {CSRF_COOKIE_NAME: "test-token"}
        with patch.object(settings, "SKIP_CSRF_IN_TESTS", False):
            response = await middleware.dispatch(mock_request, mock_call_next)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_rejects_mismatched_tokens(self, middleware, mock_request, mock_call_next):
        mock_request.cookies = {CSRF_COOKIE_NAME: "token-1"}
        mock_request.headers = {CSRF_HEADER_NAME: "token-2"}
        with patch.object(settings, "SKIP_CSRF_IN_TESTS", False):
            response = await middleware.dispatch(mock_request, mock_call_next)
        assert response.status_code == 403
        assert response.body == b'{"detail":"CSRF token invalid"}'

    @pytest.mark.asyncio
    async def test_allows_bypass_when_skip_csrf_in_tests(
        self, middleware, mock_request, mock_call_next
    ):
        """Missing token passes only when SKIP_CSRF_IN_TESTS is set."""
        with patch.object(settings, "SKIP_CSRF_IN_TESTS", True):
            response = await middleware.dispatch(mock_request, mock_call_next)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_does_not_bypass_csrf_when_environment_is_test(
        self, middleware, mock_request, mock_call_next
    ):
        """ENVIRONMENT=test must not bypass CSRF, only SKIP_CSRF_IN_TESTS can."""
        with patch.object(settings, "ENVIRONMENT", "test"):
            with patch.object(settings, "SKIP_CSRF_IN_TESTS", False):
                response = await middleware.dispatch(mock_request, mock_call_next)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_sets_cookie_on_successful_get(self, middleware, mock_request, mock_call_next):
        mock_request.method = "GET"
        response = await middleware.dispatch(mock_request, mock_call_next)

        response.set_cookie.assert_called_once()
        kwargs = response.set_cookie.call_args.kwargs
        assert kwargs["key"] == CSRF_COOKIE_NAME
        assert kwargs["httponly"] is False
        assert kwargs["samesite"] == "lax"

    @pytest.mark.asyncio
    async def test_does_not_set_cookie_if_already_present(
        self, middleware, mock_request, mock_call_next
    ):
        mock_request.method = "GET"
        mock_request.cookies = {CSRF_COOKIE_NAME: "existing-token"}
        response = await middleware.dispatch(mock_request, mock_call_next)
        assert not response.set_cookie.called

    @pytest.mark.asyncio
    async def test_does_not_set_cookie_on_failed_request(self, middleware, mock_request):
        mock_request.method = "GET"

        async def call_next_error(request):
            response = Mock()
            response.status_code = 500
            response.set_cookie = Mock()
            return response

        response = await middleware.dispatch(mock_request, call_next_error)
        assert not response.set_cookie.called
