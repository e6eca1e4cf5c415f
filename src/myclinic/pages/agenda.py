"""AgendaRetriever - daily appointment listing from Myclinic.

The calendar widget loads its events from an XHR endpoint:

  GET /schedules/entries?date=YYYY-MM-DD
    -> {"schedules": [{id, title, start, end, status, note, ...}], "blocks": [...]}

  title  is HTML, the customer name inside a <span> after status icons
  start  "2025-10-24T11:00:00.000-03:00" (local time with offset)

The listing has no phone numbers. Each appointment's popover is loaded from

  GET /schedules/<id>/event_detail?_=<epoch ms>
    -> {"id": ..., "description": "<html with the customer's phone>"}

so every entry costs one extra request. They run concurrently, bounded by a
semaphore.

The endpoint only accepts a single date: a requested end date cannot be sent
upstream and has no effect.
"""

import asyncio
import time
from collections.abc import Sequence

from pydantic import ValidationError

from myclinic.errors import ScrapingError
from myclinic.executor import RequestExecutor
from myclinic.logging import get_logger
from myclinic.models import AgendaItem, EventDetail, ScheduleEntry, ScheduleListing
from myclinic.session import SessionManager
from myclinic.utils import extract_customer_name, extract_phone, split_timestamp

log = get_logger(__name__)

# Status substrings that mark a missed appointment
NO_SHOW_MARKERS: tuple[str, ...] = ("falta", "ausente")

DEFAULT_DETAIL_CONCURRENCY = 8


def normalize_status_filter(status_filter: str | Sequence[str] | None) -> list[str]:
    """Turn a single status or a sequence of statuses into a list, dropping blanks."""
    if status_filter is None:
        return []
    if isinstance(status_filter, str):
        status_filter = [status_filter]
    return [s for s in status_filter if s]


def matches_status(status: str, filters: Sequence[str]) -> bool:
    lowered = status.lower()
    return any(f.lower() in lowered for f in filters)


def is_no_show(status: str) -> bool:
    return matches_status(status, NO_SHOW_MARKERS)


class AgendaRetriever:
    """Schedule listing at /schedules/entries, enriched with phone numbers."""

    ENTRIES_PATH = "/schedules/entries"
    DETAIL_PATH = "/schedules/{schedule_id}/event_detail"

    def __init__(
        self,
        session: SessionManager,
        executor: RequestExecutor,
        *,
        detail_concurrency: int = DEFAULT_DETAIL_CONCURRENCY,
    ) -> None:
        if detail_concurrency < 1:
            raise ValueError("detail_concurrency must be at least 1")
        self.session = session
        self.executor = executor
        self.detail_concurrency = detail_concurrency

    async def get_agenda(
        self,
        start_date: str,
        end_date: str,
        exclude_no_show: bool = False,
        status_filter: str | Sequence[str] | None = None,
    ) -> list[AgendaItem]:
        """Appointments of ``start_date``, filtered.

        Args:
            start_date: Day to list, YYYY-MM-DD.
            end_date: Accepted for compatibility; the upstream listing ignores it.
            exclude_no_show: Drop "Falta"/"Ausente" appointments, after status filtering.
            status_filter: Keep entries whose status contains any of these,
                case-insensitively.

        Raises:
            NotAuthenticatedError: No session and no stored credentials.
            AuthenticationError: Stored credentials no longer log in.
            UpstreamError: The listing request failed, even after one re-login.
        """
        filters = normalize_status_filter(status_filter)

        items = await self.executor.with_relogin(lambda: self._retrieve(start_date))

        if filters:
            items = [item for item in items if matches_status(item.status, filters)]
        if exclude_no_show:
            items = [item for item in items if not is_no_show(item.status)]

        log.info(
            "agenda_fetched",
            date=start_date,
            end_date=end_date,
            count=len(items),
            status_filter=filters or None,
            exclude_no_show=exclude_no_show,
        )
        return items

    async def _retrieve(self, day: str) -> list[AgendaItem]:
        """One full retrieval: listing, then detail fan-out."""
        await self.session.ensure_authenticated()
        if not self.session.csrf_token:
            await self.session.refresh_csrf_token()

        entries = await self._fetch_entries(day)
        semaphore = asyncio.Semaphore(self.detail_concurrency)

        async def enrich(entry: ScheduleEntry) -> AgendaItem:
            async with semaphore:
                phone = await self._fetch_phone(entry.id)
            return self._to_item(entry, phone)

        return list(await asyncio.gather(*(enrich(entry) for entry in entries)))

    async def _fetch_entries(self, day: str) -> list[ScheduleEntry]:
        response = await self.executor.send(
            "GET", self.ENTRIES_PATH, params={"date": day}, xhr=True
        )
        try:
            listing = ScheduleListing.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            log.warning("schedule_listing_unparseable", date=day, error=str(e))
            return []
        entries: list[ScheduleEntry] = []
        for raw in listing.schedules:
            try:
                entries.append(ScheduleEntry.model_validate(raw))
            except ValidationError as e:
                log.warning(
                    "schedule_entry_unparseable",
                    date=day,
                    schedule_id=raw.get("id") if isinstance(raw, dict) else None,
                    error=str(e),
                )
        log.debug(
            "schedule_entries",
            date=day,
            count=len(entries),
            skipped=len(listing.schedules) - len(entries),
        )
        return entries

    async def _fetch_phone(self, schedule_id: int) -> str:
        """Phone from the event detail popover; "" if anything goes wrong."""
        path = self.DETAIL_PATH.format(schedule_id=schedule_id)
        try:
            response = await self.executor.send(
                "GET", path, params={"_": int(time.time() * 1000)}, xhr=True
            )
            detail = EventDetail.model_validate(response.json())
        except (ScrapingError, ValueError, ValidationError) as e:
            log.warning(
                "event_detail_failed",
                schedule_id=schedule_id,
                reason=type(e).__name__,
                error=str(e),
            )
            return ""
        return extract_phone(detail.description or "")

    @staticmethod
    def _to_item(entry: ScheduleEntry, phone: str) -> AgendaItem:
        day, start_time = split_timestamp(entry.start)
        _, end_time = split_timestamp(entry.end)
        return AgendaItem(
            id=entry.id,
            date=day,
            date_time=entry.start,
            start_time=start_time,
            end_time=end_time,
            person_name=extract_customer_name(entry.title or ""),
            phone=phone,
            mobile=phone,
            services=[entry.note] if entry.note else [],
            status=entry.status or "",
        )
