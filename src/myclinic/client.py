"""MyclinicClient - the scraping client behind the HTTP facade.

Wires SessionManager, RequestExecutor and the two page scrapers over one
shared httpx.AsyncClient. Redirects are never followed: the login handshake
needs the Set-Cookie of the 302 itself, and a redirect to the sign-in page is
how an expired session shows up.
"""

from collections.abc import Sequence

import httpx

from myclinic.config import ScraperConfig
from myclinic.executor import RequestExecutor
from myclinic.logging import get_logger
from myclinic.models import AgendaItem, BirthdayEntry
from myclinic.pages.agenda import AgendaRetriever
from myclinic.pages.birthdays import BirthdayReportParser
from myclinic.session import SessionManager

logger = get_logger(__name__)

BROWSER_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
    "image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
)


class MyclinicClient:
    """Authenticated Myclinic client exposing the four public operations."""

    def __init__(
        self,
        config: ScraperConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize MyclinicClient.

        Args:
            config: Site URL, tenant, salon id, timeouts and fan-out bound.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self.config = config
        self.http = httpx.AsyncClient(
            base_url=config.myclinic_base_url,
            headers={
                "User-Agent": config.user_agent,
                "Accept": BROWSER_ACCEPT,
                "Accept-Language": "en-US,en;q=0.9",
            },
            timeout=httpx.Timeout(config.request_timeout_seconds),
            follow_redirects=False,
            transport=transport,
        )
        self.session = SessionManager(self.http, subdomain=config.myclinic_subdomain)
        self.executor = RequestExecutor(self.http, self.session)
        self.agenda = AgendaRetriever(
            self.session,
            self.executor,
            detail_concurrency=config.detail_concurrency,
        )
        self.birthdays = BirthdayReportParser(
            self.session, self.executor, salon_id=config.myclinic_salon_id
        )

    async def login(self, identity: str, secret: str) -> bool:
        return await self.session.login(identity, secret)

    def is_authenticated(self) -> bool:
        return self.session.is_authenticated()

    @property
    def session_cookie(self) -> str | None:
        return self.session.session_cookie

    async def get_agenda(
        self,
        start_date: str,
        end_date: str,
        exclude_no_show: bool = False,
        status_filter: str | Sequence[str] | None = None,
    ) -> list[AgendaItem]:
        return await self.agenda.get_agenda(start_date, end_date, exclude_no_show, status_filter)

    async def get_birthday_celebrants(
        self, start_date: str, end_date: str, situation_id: str = ""
    ) -> list[BirthdayEntry]:
        return await self.birthdays.get_birthday_celebrants(start_date, end_date, situation_id)

    async def aclose(self) -> None:
        await self.http.aclose()
        logger.debug("client_closed")

    async def __aenter__(self) -> "MyclinicClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
