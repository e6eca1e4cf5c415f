"""Authorized request execution against the Myclinic site.

RequestExecutor attaches the session cookie (and, for XHR calls, the CSRF
header) to every request. On an authorization failure it re-logs in once and
retries once. The bound is a tenacity loop, so a site that keeps
invalidating sessions cannot trigger a retry storm.
"""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from myclinic.errors import SessionExpiredError, UpstreamError
from myclinic.logging import get_logger

if TYPE_CHECKING:
    from myclinic.session import SessionManager

logger = get_logger(__name__)

T = TypeVar("T")

AUTH_FAILURE_STATUSES: frozenset[int] = frozenset({401, 403})

SIGN_IN_PATH = "/users/sign_in"

XHR_HEADERS: dict[str, str] = {
    "X-Requested-With": "XMLHttpRequest",
    "Accept": "application/json, text/javascript, */*; q=0.01",
}


async def dispatch(
    http: httpx.AsyncClient, method: str, path: str, **kwargs: Any
) -> httpx.Response:
    """Send one request and classify failures.

    The transport cookie jar is cleared after every response: the session
    cookie is owned by SessionManager and always sent explicitly.

    Raises:
        UpstreamError: Transport failure or HTTP status >= 400.
    """
    try:
        response = await http.request(method, path, **kwargs)
    except httpx.HTTPError as e:
        raise UpstreamError(f"{method} {path} failed: {e}") from e
    finally:
        http.cookies.clear()

    if response.status_code >= 400:
        raise UpstreamError(
            f"{method} {path} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )
    return response


class RequestExecutor:
    """Sends authorized requests and recovers once from session expiry."""

    def __init__(self, http: httpx.AsyncClient, session: "SessionManager") -> None:
        self.http = http
        self.session = session

    async def send(
        self,
        method: str,
        path: str,
        *,
        xhr: bool = False,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one authorized request without any retry.

        Args:
            method: HTTP method.
            path: Path relative to the Myclinic base URL.
            xhr: Add XMLHttpRequest and X-Csrf-Token headers.
            headers: Extra headers; they override the defaults.

        Raises:
            SessionExpiredError: 401/403, or a redirect to the sign-in page.
            UpstreamError: Any other HTTP or transport failure.
        """
        cookie = self.session.session_cookie
        merged = dict(self.session.cookie_header())
        if xhr:
            merged.update(XHR_HEADERS)
            merged["X-Csrf-Token"] = self.session.csrf_token or ""
        if headers:
            merged.update(headers)

        try:
            response = await dispatch(self.http, method, path, headers=merged, **kwargs)
        except UpstreamError as e:
            if e.status_code in AUTH_FAILURE_STATUSES:
                raise SessionExpiredError(
                    str(e), status_code=e.status_code, cookie=cookie
                ) from e
            raise

        if response.is_redirect and SIGN_IN_PATH in response.headers.get("location", ""):
            raise SessionExpiredError(
                f"{method} {path} redirected to sign-in",
                status_code=response.status_code,
                cookie=cookie,
            )
        return response

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one authorized request, re-logging in once on session expiry."""
        return await self.with_relogin(lambda: self.send(method, path, **kwargs))

    async def with_relogin(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation``; on session expiry re-login once and run it again.

        If the re-login fails the original SessionExpiredError propagates.

        Raises:
            NotAuthenticatedError: Session expired and no credentials are stored.
        """
        failure: SessionExpiredError | None = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(2),
            retry=retry_if_exception_type(SessionExpiredError),
            reraise=True,
        ):
            with attempt:
                if failure is not None:
                    await self._relogin_or_raise(failure)
                try:
                    return await operation()
                except SessionExpiredError as e:
                    failure = e
                    raise
        raise AssertionError("unreachable")  # pragma: no cover

    async def _relogin_or_raise(self, failure: SessionExpiredError) -> None:
        logger.info("session_expired", status_code=failure.status_code, error=str(failure))
        if not await self.session.relogin(failure.cookie):
            logger.warning("relogin_failed", error=str(failure))
            raise failure
