"""Tests for RequestExecutor: header attachment and the one-shot re-login."""

import pytest

from myclinic.errors import NotAuthenticatedError, SessionExpiredError, UpstreamError


class TestSend:
    @pytest.mark.asyncio
    async def test_attaches_session_cookie(self, logged_in, fake):
        await logged_in.executor.send("GET", "/")

        request = fake.last("GET", "/")
        assert request.headers["cookie"] == "bemp-session=auth-1"
        assert "x-requested-with" not in request.headers

    @pytest.mark.asyncio
    async def test_xhr_headers(self, logged_in, fake):
        await logged_in.executor.send("GET", "/", xhr=True)

        request = fake.last("GET", "/")
        assert request.headers["x-requested-with"] == "XMLHttpRequest"
        assert request.headers["x-csrf-token"] == "login-token"
        assert request.headers["accept"].startswith("application/json")

    @pytest.mark.asyncio
    async def test_unauthorized_is_session_expired(self, logged_in, fake):
        fake.expire_sessions()

        with pytest.raises(SessionExpiredError) as exc_info:
            await logged_in.executor.send("GET", "/")
        assert exc_info.value.status_code == 401
        assert exc_info.value.cookie == "auth-1"

    @pytest.mark.asyncio
    async def test_sign_in_redirect_is_session_expired(self, logged_in):
        with pytest.raises(SessionExpiredError) as exc_info:
            await logged_in.executor.send("GET", "/expired-redirect")
        assert exc_info.value.status_code == 302

    @pytest.mark.asyncio
    async def test_server_error_is_upstream_error(self, logged_in):
        with pytest.raises(UpstreamError) as exc_info:
            await logged_in.executor.send("GET", "/boom")
        assert not isinstance(exc_info.value, SessionExpiredError)
        assert exc_info.value.status_code == 502


class TestRequest:
    @pytest.mark.asyncio
    async def test_relogin_and_retry_once(self, logged_in, fake):
        fake.expire_sessions()

        response = await logged_in.executor.request("GET", "/")

        assert response.status_code == 200
        assert fake.count("POST", "/users/sign_in") == 2
        assert fake.count("GET", "/") == 2
        assert fake.last("GET", "/").headers["cookie"] == "bemp-session=auth-2"
        assert logged_in.session_cookie == "auth-2"

    @pytest.mark.asyncio
    async def test_gives_up_after_second_rejection(self, logged_in, fake):
        with pytest.raises(SessionExpiredError):
            await logged_in.executor.request("GET", "/always-401")

        assert fake.count("GET", "/always-401") == 2
        assert fake.count("POST", "/users/sign_in") == 2

    @pytest.mark.asyncio
    async def test_failed_relogin_raises_original_error(self, logged_in, fake):
        fake.expire_sessions()
        fake.password = "rotated"

        with pytest.raises(SessionExpiredError) as exc_info:
            await logged_in.executor.request("GET", "/")
        assert exc_info.value.cookie == "auth-1"
        assert fake.count("GET", "/") == 1

    @pytest.mark.asyncio
    async def test_without_credentials(self, client, fake):
        with pytest.raises(NotAuthenticatedError):
            await client.executor.request("GET", "/")
        assert fake.count("POST", "/users/sign_in") == 0

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, logged_in, fake):
        with pytest.raises(UpstreamError):
            await logged_in.executor.request("GET", "/boom")
        assert fake.count("GET", "/boom") == 1
