"""Myclinic session management: login handshake, cookie and CSRF token.

SessionManager owns the only mutable state of the client. Every write to the
session (login, re-login, invalidation) happens while holding one asyncio.Lock,
and logins are single-flight: a coroutine that waited on the lock re-checks
the session before issuing a login of its own.
"""

import asyncio

import httpx
from pydantic import SecretStr

from myclinic.errors import (
    AuthenticationError,
    NotAuthenticatedError,
    ParseError,
    UpstreamError,
)
from myclinic.executor import dispatch
from myclinic.logging import get_logger
from myclinic.models import Credentials, Session
from myclinic.utils import (
    SESSION_COOKIE_NAME,
    extract_csrf_token,
    extract_session_cookie,
    has_login_form,
)

logger = get_logger(__name__)

LOGIN_PATH = "/users/sign_in"
HOME_PATH = "/"


class SessionManager:
    """Cookie-based Myclinic session with silent re-authentication.

    Credentials are stored after the first successful login so that an
    expired session can be recovered without the caller noticing.
    """

    def __init__(self, http: httpx.AsyncClient, subdomain: str) -> None:
        """Initialize SessionManager.

        Args:
            http: Shared HTTP client whose base_url points at the Myclinic site.
            subdomain: Organization subdomain sent with the login form.
        """
        self.http = http
        self.subdomain = subdomain
        self.session = Session()
        self._lock = asyncio.Lock()

    @property
    def session_cookie(self) -> str | None:
        return self.session.cookie

    @property
    def csrf_token(self) -> str | None:
        return self.session.csrf_token

    @property
    def has_credentials(self) -> bool:
        return self.session.credentials is not None

    def is_authenticated(self) -> bool:
        """True iff a session cookie is present."""
        return self.session.cookie is not None

    def cookie_header(self) -> dict[str, str]:
        if self.session.cookie is None:
            return {}
        return {"Cookie": f"{SESSION_COOKIE_NAME}={self.session.cookie}"}

    async def login(self, identity: str, secret: str) -> bool:
        """Log in with a username and password.

        Never raises: every failure is logged with its cause and reduced to
        False. A failed call to this method leaves the current session
        untouched; ``relogin`` instead clears the stale cookie first, so a
        failed re-login leaves the client unauthenticated.

        Returns:
            True if the site issued an authenticated session cookie.
        """
        credentials = Credentials(identity=identity, secret=SecretStr(secret))
        async with self._lock:
            return await self._login_locked(credentials)

    async def ensure_authenticated(self) -> None:
        """Make sure a session cookie exists, logging in again if possible.

        Raises:
            NotAuthenticatedError: No session and no stored credentials.
            AuthenticationError: Stored credentials no longer log in.
        """
        if self.is_authenticated():
            return

        async with self._lock:
            if self.is_authenticated():
                return
            credentials = self.session.credentials
            if credentials is None:
                raise NotAuthenticatedError("Not authenticated. Please login first.")
            if not await self._login_locked(credentials):
                raise AuthenticationError("Auto-login failed. Please login manually.")

    async def relogin(self, stale_cookie: str | None) -> bool:
        """Replace an expired session cookie with a fresh one.

        Single-flight: if another coroutine already replaced ``stale_cookie``
        while this one waited for the lock, no second login is made. The
        stale cookie is cleared before logging in, so on failure the client
        is left unauthenticated with its credentials kept.

        Raises:
            NotAuthenticatedError: No credentials were ever stored.
        """
        async with self._lock:
            current = self.session.cookie
            if current is not None and current != stale_cookie:
                logger.debug("relogin_skipped", reason="session_already_replaced")
                return True

            credentials = self.session.credentials
            if credentials is None:
                raise NotAuthenticatedError("Session expired and no credentials are stored")

            self.session.cookie = None
            logger.info("relogin_started", identity=credentials.identity)
            return await self._login_locked(credentials)

    async def refresh_csrf_token(self) -> str | None:
        """Fetch the home page and re-read the CSRF token from it.

        Errors are logged and swallowed; the previous token (possibly None)
        is kept.

        Returns:
            The new token, or None if the refresh failed.
        """
        cookie = self.session.cookie
        try:
            response = await dispatch(self.http, "GET", HOME_PATH, headers=self.cookie_header())
        except UpstreamError as e:
            logger.warning("csrf_refresh_failed", reason="upstream", error=str(e))
            return None
        if self.session.cookie != cookie:
            logger.debug("csrf_refresh_discarded", reason="session_changed")
            return None
        return self.update_csrf_token(response.text)

    def update_csrf_token(self, html: str) -> str | None:
        """Store the CSRF token found in ``html``; keep the old one if absent."""
        try:
            token = extract_csrf_token(html)
        except ParseError as e:
            logger.warning("csrf_refresh_failed", reason="marker_missing", error=str(e))
            return None
        self.session.csrf_token = token
        logger.debug("csrf_token_refreshed")
        return token

    async def _login_locked(self, credentials: Credentials) -> bool:
        logger.info("login_started", identity=credentials.identity)
        try:
            cookie, token = await self._handshake(credentials)
        except (AuthenticationError, UpstreamError) as e:
            logger.warning(
                "login_failed",
                identity=credentials.identity,
                reason=type(e).__name__,
                status_code=getattr(e, "status_code", None),
                error=str(e),
            )
            return False

        self.session.cookie = cookie
        self.session.csrf_token = token
        self.session.credentials = credentials
        logger.info("login_succeeded", identity=credentials.identity)
        return True

    async def _handshake(self, credentials: Credentials) -> tuple[str, str]:
        """Run the two-step Rails form login.

        Returns:
            The authenticated session cookie and the CSRF token of the form.

        Raises:
            AuthenticationError: Missing token, rejected credentials, or no cookie.
            UpstreamError: Network or HTTP failure.
        """
        page = await dispatch(self.http, "GET", LOGIN_PATH)
        initial_cookie = extract_session_cookie(page.headers.get_list("set-cookie"))

        try:
            token = extract_csrf_token(page.text)
        except ParseError as e:
            raise AuthenticationError(f"Failed to extract authenticity token: {e}") from e

        form = {
            "authenticity_token": token,
            "user[organization][subdomain]": self.subdomain,
            "user[username]": credentials.identity,
            "user[password]": credentials.secret.get_secret_value(),
            "button": "",
        }
        base_url = str(self.http.base_url).rstrip("/")
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Origin": base_url,
            "Referer": f"{base_url}{LOGIN_PATH}",
            "Sec-Fetch-Site": "same-origin",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-User": "?1",
            "Sec-Fetch-Dest": "document",
            "Upgrade-Insecure-Requests": "1",
        }
        if initial_cookie:
            headers["Cookie"] = f"{SESSION_COOKIE_NAME}={initial_cookie}"

        response = await dispatch(self.http, "POST", LOGIN_PATH, data=form, headers=headers)

        if response.is_redirect and LOGIN_PATH in response.headers.get("location", ""):
            raise AuthenticationError("Credentials rejected")
        if has_login_form(response.text):
            raise AuthenticationError("Credentials rejected, login form rendered again")

        cookie = extract_session_cookie(response.headers.get_list("set-cookie"))
        if cookie is None:
            raise AuthenticationError("Login response carried no session cookie")
        return cookie, token
