"""Error hierarchy for Myclinic scraping failures.

Errors split into transient failures (the upstream misbehaved, the call may
succeed later) and permanent failures (retrying the same call cannot help).
``SessionExpiredError`` is the only error the client retries, once, after a
re-login.

Example:
    try:
        items = await client.get_agenda("2025-09-03", "2025-09-03")
    except NotAuthenticatedError:
        ...  # no session and no stored credentials
    except UpstreamError as e:
        ...  # e.status_code is None for transport failures
"""


class ScrapingError(Exception):
    """Base exception for all scraping errors."""

    pass


class TransientError(ScrapingError):
    """Temporary failure that may succeed later.

    Examples: network timeouts, 5xx responses, expired sessions.
    """

    pass


class UpstreamError(TransientError):
    """Network or HTTP failure talking to the Myclinic site."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionExpiredError(UpstreamError):
    """The site rejected the session cookie (401/403 or sign-in redirect).

    Recoverable with a single re-login when credentials are stored.
    ``cookie`` is the session cookie the rejected request carried.
    """

    def __init__(
        self, message: str, status_code: int | None = None, cookie: str | None = None
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.cookie = cookie


class PermanentError(ScrapingError):
    """Failure that won't succeed on retry."""

    pass


class AuthenticationError(PermanentError):
    """Credentials rejected, or token/cookie extraction failed during login."""

    pass


class NotAuthenticatedError(PermanentError):
    """No session cookie and no stored credentials to recover one."""

    pass


class ParseError(PermanentError):
    """An expected HTML marker is absent from an upstream page.

    Callers catch it and degrade to partial or empty data.
    """

    pass
