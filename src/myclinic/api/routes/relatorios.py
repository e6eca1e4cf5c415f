"""Report endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from myclinic.api.dependencies import require_auth
from myclinic.api.errors import to_api_error
from myclinic.api.models import BirthdayResponse, ErrorResponse, Period
from myclinic.client import MyclinicClient
from myclinic.errors import ScrapingError
from myclinic.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/relatorios", tags=["Relatorios"])

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


@router.get(
    "/aniversariantes",
    response_model=BirthdayResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_birthdays(
    startDate: Annotated[str, Query(pattern=DATE_PATTERN, description="e.g. 2025-09-01")],
    endDate: Annotated[str, Query(pattern=DATE_PATTERN, description="e.g. 2025-09-30")],
    situacaoId: Annotated[str, Query(description="Accepted; not sent upstream")] = "",
    client: MyclinicClient = Depends(require_auth),
):
    """Customers with a birthday in the period."""
    try:
        entries = await client.get_birthday_celebrants(startDate, endDate, situacaoId)
    except ScrapingError as e:
        logger.error(
            "birthdays_fetch_failed",
            start_date=startDate,
            end_date=endDate,
            reason=type(e).__name__,
            error=str(e),
        )
        raise to_api_error(e, "Failed to fetch aniversariantes") from e

    return BirthdayResponse(
        data=entries,
        count=len(entries),
        periodo=Period(startDate=startDate, endDate=endDate),
    )
