"""Agenda endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from myclinic.api.dependencies import require_auth
from myclinic.api.errors import to_api_error
from myclinic.api.models import AgendaByDateResponse, AgendaResponse, ErrorResponse
from myclinic.client import MyclinicClient
from myclinic.errors import ScrapingError
from myclinic.logging import get_logger
from myclinic.models import AgendaItem

logger = get_logger(__name__)

router = APIRouter(prefix="/api/agenda", tags=["Agenda"])

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

ERROR_RESPONSES = {401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def split_status(values: list[str] | None) -> list[str] | None:
    """Flatten repeated and comma-separated ``status`` query values."""
    if not values:
        return None
    parts = [part.strip() for value in values for part in value.split(",")]
    return [part for part in parts if part] or None


async def fetch_agenda(
    client: MyclinicClient,
    start_date: str,
    end_date: str,
    sem_falta: bool,
    status: list[str] | None,
) -> list[AgendaItem]:
    try:
        return await client.get_agenda(start_date, end_date, sem_falta, split_status(status))
    except ScrapingError as e:
        logger.error(
            "agenda_fetch_failed",
            start_date=start_date,
            reason=type(e).__name__,
            error=str(e),
        )
        raise to_api_error(e, "Failed to fetch agenda") from e


@router.get("", response_model=AgendaResponse, responses=ERROR_RESPONSES)
async def get_agenda(
    startDate: Annotated[str, Query(pattern=DATE_PATTERN, description="e.g. 2025-09-03")],
    endDate: Annotated[
        str,
        Query(pattern=DATE_PATTERN, description="Accepted; Myclinic lists startDate only"),
    ],
    semFalta: Annotated[bool, Query(description="Exclude no-shows")] = False,
    status: Annotated[
        list[str] | None,
        Query(description='Status filter, e.g. "Confirmado"; repeat or comma-separate'),
    ] = None,
    client: MyclinicClient = Depends(require_auth),
):
    """Appointments of a day (the upstream listing ignores endDate)."""
    items = await fetch_agenda(client, startDate, endDate, semFalta, status)
    return AgendaResponse(data=items, count=len(items))


@router.get("/date/{date}", response_model=AgendaByDateResponse, responses=ERROR_RESPONSES)
async def get_agenda_by_date(
    date: Annotated[str, Path(pattern=DATE_PATTERN)],
    semFalta: Annotated[bool, Query(description="Exclude no-shows")] = False,
    status: Annotated[list[str] | None, Query()] = None,
    client: MyclinicClient = Depends(require_auth),
):
    items = await fetch_agenda(client, date, date, semFalta, status)
    return AgendaByDateResponse(date=date, data=items, count=len(items))
