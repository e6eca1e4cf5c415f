"""Scrapers for individual Myclinic pages."""

from myclinic.pages.agenda import AgendaRetriever
from myclinic.pages.birthdays import BirthdayReportParser

__all__ = ["AgendaRetriever", "BirthdayReportParser"]
