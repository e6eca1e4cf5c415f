"""Pydantic models for Myclinic schedule and report data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Derived records serialize with the Portuguese wire names the HTTP facade exposes
(``model_dump(by_alias=True)``).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

# Fields the birthday report HTML does not carry
NOT_AVAILABLE_ID = 0
NOT_AVAILABLE_TEXT = ""
DEFAULT_SITUATION_LABEL = "Ativo"


class Credentials(BaseModel):
    """Login credentials kept for silent re-authentication."""

    model_config = ConfigDict(frozen=True)

    identity: str
    secret: SecretStr


class Session(BaseModel):
    """Mutable session state; `cookie is None` means not authenticated."""

    cookie: str | None = None
    csrf_token: str | None = None
    credentials: Credentials | None = None


class ScheduleEntry(BaseModel):
    """A raw schedule entry from /schedules/entries.

    Timestamps look like "2025-10-24T11:00:00.000-03:00" and are never
    converted between timezones.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    title: str | None = None  # HTML markup, customer name inside a <span>
    description: str | None = None
    start: str
    end: str
    status: str | None = None
    status_label: str | None = Field(default=None, alias="statusLabel")
    note: str | None = None


class ScheduleListing(BaseModel):
    """Body of the schedule listing endpoint.

    Entries stay raw here and are validated one by one, so a single malformed
    entry does not discard the rest of the day.
    """

    model_config = ConfigDict(extra="ignore")

    schedules: list[Any] = []


class EventDetail(BaseModel):
    """Body of /schedules/<id>/event_detail."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    description: str | None = None


class AgendaItem(BaseModel):
    """One appointment of the agenda, enriched with the customer's phone."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    date: str = Field(alias="data")  # "2025-10-24"
    date_time: str = Field(alias="dataHora")  # raw start string
    start_time: str = Field(alias="horaInicio")  # "11:00"
    end_time: str = Field(alias="horaFim")  # "12:00"
    person_name: str = Field(alias="nomePessoa")
    phone: str = Field(default="", alias="telefone")  # digits only
    mobile: str = Field(default="", alias="celular")  # digits only
    services: list[str] = Field(default_factory=list, alias="servicos")
    status: str = ""


class BirthdayRow(BaseModel):
    """A row of the birthday report table, as scraped."""

    model_config = ConfigDict(frozen=True)

    name: str
    phone: str  # digits only, may be empty
    birth_date: str  # DD/MM/YYYY, verbatim


class BirthdayEntry(BaseModel):
    """A birthday celebrant, with sentinels for fields the report lacks."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    person_id: int = Field(default=NOT_AVAILABLE_ID, alias="pessoaId")
    date: str = Field(alias="data")  # DD/MM/YYYY
    name: str = Field(alias="nomeCliente")
    sex: str = Field(default=NOT_AVAILABLE_TEXT, alias="sexo")
    phone: str = Field(default="", alias="telefone")
    mobile: str = Field(default="", alias="celular")
    email: str = Field(default=NOT_AVAILABLE_TEXT)
    situation_label: str = Field(
        default=DEFAULT_SITUATION_LABEL, alias="nomeSituacao"
    )

    @classmethod
    def from_row(cls, row: BirthdayRow) -> "BirthdayEntry":
        return cls(date=row.birth_date, name=row.name, phone=row.phone, mobile=row.phone)
