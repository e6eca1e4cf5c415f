"""BirthdayReportParser - customers' birthdays report from Myclinic.

The report is a Rails form rendered inside a Turbo frame:

  GET  /report/customers_birthdays   form page (fresh CSRF token)
  POST /report/customers_birthdays   Turbo-Frame: report -> HTML fragment

Result rows have exactly three cells (confirmed from captured responses):

  <tr>
    <td><a href="/customers/123">Maria Souza</a></td>
    <td>+55 (11) 98765-4321<a href="https://wa.me/..." class="fab fa-whatsapp"></a></td>
    <td class="date text-center">24/10/1990</td>
  </tr>

The report does not show ids, sex, e-mail or situation; those fields get
fixed sentinels (see myclinic.models).
"""

import re
import uuid

from bs4 import NavigableString, Tag

from myclinic.errors import SessionExpiredError, UpstreamError
from myclinic.executor import RequestExecutor
from myclinic.logging import get_logger
from myclinic.models import BirthdayEntry, BirthdayRow
from myclinic.session import SessionManager
from myclinic.utils import digits_only, parse_html

log = get_logger(__name__)

ROW_CELL_COUNT = 3
WHATSAPP_CLASS = "fa-whatsapp"
DATE_CELL_CLASS_PREFIX = "date"

BIRTH_DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$")
PHONE_TEXT_PATTERN = re.compile(r"^[+\d\s()-]+$")


def _has_class(tag: Tag, name: str) -> bool:
    return name in (tag.get("class") or [])


def _is_whatsapp_anchor(anchor: Tag) -> bool:
    if _has_class(anchor, WHATSAPP_CLASS):
        return True
    return any(_has_class(icon, WHATSAPP_CLASS) for icon in anchor.find_all("i"))


def _extract_name(cells: list[Tag]) -> str:
    for anchor in (a for cell in cells for a in cell.find_all("a")):
        if _is_whatsapp_anchor(anchor):
            continue
        text = anchor.get_text().strip()
        if text:
            return text
    return ""


def _extract_phone(cells: list[Tag]) -> str:
    """Digits of the text right before the WhatsApp anchor of a cell."""
    for cell in cells:
        anchor = next((a for a in cell.find_all("a") if _is_whatsapp_anchor(a)), None)
        if anchor is None or anchor.parent is not cell:
            continue
        leading = []
        for node in cell.children:
            if node is anchor:
                break
            if isinstance(node, NavigableString):
                leading.append(str(node))
        text = "".join(leading).strip()
        if text and PHONE_TEXT_PATTERN.match(text):
            return digits_only(text)
    return ""


def _extract_birth_date(cells: list[Tag]) -> str:
    for cell in cells:
        classes = cell.get("class") or []
        if not classes or not classes[0].startswith(DATE_CELL_CLASS_PREFIX):
            continue
        text = cell.get_text().strip()
        if BIRTH_DATE_PATTERN.match(text):
            return text
    return ""


def parse_birthday_rows(html: str) -> list[BirthdayRow]:
    """Parse the report fragment into rows.

    Only <tr> elements with exactly three <td> cells are considered. A row
    without a name or without a birth date is dropped. Markup that has no
    such rows yields an empty list.
    """
    soup = parse_html(html)
    rows: list[BirthdayRow] = []
    skipped = 0

    for tr in soup.find_all("tr"):
        cells = tr.find_all("td", recursive=False)
        if len(cells) != ROW_CELL_COUNT:
            continue

        name = _extract_name(cells)
        birth_date = _extract_birth_date(cells)
        if not name or not birth_date:
            skipped += 1
            continue

        rows.append(BirthdayRow(name=name, phone=_extract_phone(cells), birth_date=birth_date))

    if not rows and not skipped:
        log.warning("birthday_rows_missing", html_length=len(html or ""))
    elif skipped:
        log.debug("birthday_rows_skipped", skipped=skipped)
    return rows


class BirthdayReportParser:
    """Birthday report at /report/customers_birthdays."""

    REPORT_PATH = "/report/customers_birthdays"
    FORM_PREFIX = "report_customers_birthdays_report"

    def __init__(
        self, session: SessionManager, executor: RequestExecutor, *, salon_id: str
    ) -> None:
        self.session = session
        self.executor = executor
        self.salon_id = salon_id

    async def get_birthday_celebrants(
        self, start_date: str, end_date: str, situation_id: str = ""
    ) -> list[BirthdayEntry]:
        """Customers with a birthday between two dates.

        Args:
            start_date: First day, YYYY-MM-DD.
            end_date: Last day, YYYY-MM-DD.
            situation_id: Accepted for compatibility; the report form has no
                situation field, so it is not sent.

        Raises:
            NotAuthenticatedError: No session and no stored credentials.
            AuthenticationError: Stored credentials no longer log in.
            UpstreamError: The report request failed, even after one re-login.
        """
        entries = await self.executor.with_relogin(
            lambda: self._retrieve(start_date, end_date)
        )
        log.info(
            "birthdays_fetched",
            start_date=start_date,
            end_date=end_date,
            situation_id=situation_id or None,
            count=len(entries),
        )
        return entries

    async def _retrieve(self, start_date: str, end_date: str) -> list[BirthdayEntry]:
        await self.session.ensure_authenticated()
        await self._refresh_token_from_report_page()

        token = self.session.csrf_token or ""
        form = {
            "authenticity_token": token,
            f"{self.FORM_PREFIX}[start_date]": start_date,
            f"{self.FORM_PREFIX}[end_date]": end_date,
            f"{self.FORM_PREFIX}[merge_salon_ids][]": self.salon_id,
            "button": "",
        }
        base_url = str(self.executor.http.base_url).rstrip("/")
        headers = {
            "X-Csrf-Token": token,
            "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
            "Accept": "text/vnd.turbo-stream.html, text/html, application/xhtml+xml",
            "Turbo-Frame": "report",
            "X-Turbo-Request-Id": str(uuid.uuid4()),
            "Origin": base_url,
            "Referer": f"{base_url}{self.REPORT_PATH}",
            "Sec-Fetch-Site": "same-origin",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Dest": "empty",
        }

        response = await self.executor.send("POST", self.REPORT_PATH, data=form, headers=headers)
        return [BirthdayEntry.from_row(row) for row in parse_birthday_rows(response.text)]

    async def _refresh_token_from_report_page(self) -> None:
        """Re-read the CSRF token from the report form.

        Any failure other than session expiry keeps the previous token.
        """
        try:
            page = await self.executor.send("GET", self.REPORT_PATH)
        except SessionExpiredError:
            raise
        except UpstreamError as e:
            log.warning("report_page_failed", reason=type(e).__name__, error=str(e))
            return
        self.session.update_csrf_token(page.text)
