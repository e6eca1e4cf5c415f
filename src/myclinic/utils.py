"""Shared extraction rules for Myclinic HTML and headers.

Every rule here depends on the markup the Myclinic site renders today. If the
site changes, these return nothing (or raise ParseError) instead of guessing.
"""

import re

from bs4 import BeautifulSoup, Tag

from myclinic.errors import ParseError

SESSION_COOKIE_NAME = "bemp-session"

CSRF_META_NAME = "csrf-token"
CSRF_INPUT_NAME = "authenticity_token"

# "+55 (11) 98765-4321", "(11) 3456-7890", "11987654321"
PHONE_PATTERN = re.compile(r"\+?\d{0,2}\s?\(?\d{2}\)?\s?\d{4,5}-?\d{4}")

_NON_DIGITS = re.compile(r"\D")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def extract_csrf_token(html: str) -> str:
    """Extract the CSRF token from a Rails page.

    Strategies, first match wins:
      1. <meta name="csrf-token" content="...">
      2. <input name="authenticity_token" value="...">

    Raises:
        ParseError: If neither marker carries a non-empty token.
    """
    soup = parse_html(html)

    meta = soup.find("meta", attrs={"name": CSRF_META_NAME})
    if isinstance(meta, Tag) and meta.get("content"):
        return str(meta["content"])

    field = soup.find("input", attrs={"name": CSRF_INPUT_NAME})
    if isinstance(field, Tag) and field.get("value"):
        return str(field["value"])

    raise ParseError("No csrf-token meta tag or authenticity_token field found")


def extract_session_cookie(set_cookie_headers: list[str]) -> str | None:
    """Return the bemp-session value from raw Set-Cookie headers, if any."""
    prefix = f"{SESSION_COOKIE_NAME}="
    for header in set_cookie_headers:
        if header.startswith(prefix):
            value = header[len(prefix):].split(";", 1)[0]
            return value or None
    return None


def extract_customer_name(title_html: str) -> str:
    """Customer name from a schedule title.

    The title wraps the name in a <span> next to status icons; without a span
    the whole title text is used.
    """
    soup = parse_html(title_html)
    span = soup.find("span")
    if isinstance(span, Tag):
        text = span.get_text().strip()
        if text:
            return text
    return soup.get_text().strip()


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def extract_phone(description_html: str) -> str:
    """First phone-looking number in an event description, digits only."""
    text = parse_html(description_html).get_text(" ")
    match = PHONE_PATTERN.search(text)
    return digits_only(match.group(0)) if match else ""


def split_timestamp(value: str) -> tuple[str, str]:
    """Split "2025-10-24T11:00:00.000-03:00" into ("2025-10-24", "11:00").

    Purely lexical: the offset is ignored, never applied.
    """
    day, _, time_part = value.partition("T")
    return day, time_part[:5]


def has_login_form(html: str) -> bool:
    """True if the page renders the sign-in form (password field present)."""
    soup = parse_html(html)
    return soup.find("input", attrs={"name": "user[password]"}) is not None
