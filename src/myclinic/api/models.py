"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel

from myclinic.models import AgendaItem, BirthdayEntry


class LoginRequest(BaseModel):
    """Credentials for the Myclinic login form."""

    email: str  # username, not necessarily an e-mail
    password: str


class LoginResponse(BaseModel):
    success: bool
    message: str
    authenticated: bool


class AuthStatusResponse(BaseModel):
    authenticated: bool
    sessionCookie: str | None = None


class AgendaResponse(BaseModel):
    success: bool = True
    data: list[AgendaItem]
    count: int


class AgendaByDateResponse(AgendaResponse):
    date: str


class Period(BaseModel):
    startDate: str
    endDate: str


class BirthdayResponse(BaseModel):
    success: bool = True
    data: list[BirthdayEntry]
    count: int
    periodo: Period


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    timestamp: str  # ISO 8601 UTC


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    message: str
