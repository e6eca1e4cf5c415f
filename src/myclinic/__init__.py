"""Myclinic scraping client and HTTP facade.

Myclinic (bemp.app) is browser-only clinic software with no API. This
package logs in like a browser and scrapes the agenda and the birthday report.
"""

from myclinic.client import MyclinicClient
from myclinic.errors import (
    AuthenticationError,
    NotAuthenticatedError,
    ParseError,
    ScrapingError,
    SessionExpiredError,
    UpstreamError,
)
from myclinic.models import AgendaItem, BirthdayEntry

__all__ = [
    "MyclinicClient",
    "AgendaItem",
    "BirthdayEntry",
    "ScrapingError",
    "AuthenticationError",
    "NotAuthenticatedError",
    "ParseError",
    "SessionExpiredError",
    "UpstreamError",
]
