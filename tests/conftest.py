"""
Pytest configuration and shared fixtures.

FakeMyclinic plays the Myclinic site behind an httpx.MockTransport, so the
whole client runs without network access.
"""

import re
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio

from myclinic.client import MyclinicClient
from myclinic.config import ScraperConfig

BASE_URL = "https://myclinic.test"

USERNAME = "recepcao@clinica.com"
PASSWORD = "s3cret"

LOGIN_PAGE = """<!DOCTYPE html>
<html><head>
<meta name="csrf-param" content="authenticity_token" />
<meta name="csrf-token" content="login-token" />
</head><body>
<form action="/users/sign_in" method="post">
<input type="hidden" name="authenticity_token" value="form-token" autocomplete="off" />
<input type="text" name="user[organization][subdomain]" />
<input type="email" name="user[username]" />
<input type="password" name="user[password]" />
<button name="button" type="submit">Entrar</button>
</form></body></html>"""

LOGIN_PAGE_INPUT_ONLY = """<html><head></head><body>
<form><input type="hidden" name="authenticity_token" value="form-token" /></form>
</body></html>"""

HOME_PAGE = '<html><head><meta name="csrf-token" content="home-token" /></head><body></body></html>'

REPORT_PAGE = """<html><head><meta name="csrf-token" content="report-token" /></head>
<body><turbo-frame id="report"><form></form></turbo-frame></body></html>"""

BIRTHDAY_REPORT = """<turbo-frame id="report">
<table class="table table-striped">
<thead><tr><th>Cliente</th><th>Telefone</th><th>Aniversário</th></tr></thead>
<tbody>
<tr><td><a href="/customers/1">Maria Souza</a></td><td>+55 (11) 98765-4321<a href="https://wa.me/5511987654321" target="_blank" class="fab fa-whatsapp"></a></td><td class="date text-center">24/10/1990</td></tr>
<tr><td><a href="/customers/2">João Lima</a></td><td>(21) 3456-7890<a href="https://wa.me/552134567890"><i class="fab fa-whatsapp"></i></a></td><td class="date">03/09/1985</td></tr>
<tr><td><a href="/customers/3">Sem Data</a></td><td>11 99999-0000<a class="fab fa-whatsapp"></a></td><td></td></tr>
<tr><td><a href="/customers/4">Sem Telefone</a></td><td></td><td class="date">01/01/2000</td></tr>
</tbody>
</table>
</turbo-frame>"""

SCHEDULES = {
    "2025-09-03": [
        {
            "id": 101,
            "title": '<i class="fa fa-check"></i> <span class="customer">Maria Souza</span>',
            "start": "2025-09-03T09:00:00.000-03:00",
            "end": "2025-09-03T10:00:00.000-03:00",
            "status": "Confirmado",
            "statusLabel": "Confirmado",
            "note": "Limpeza de pele",
            "description": "",
            "allDay": False,
            "resourceId": 7,
        },
        {
            "id": 102,
            "title": "<span>João Lima</span>",
            "start": "2025-09-03T23:30:00.000-03:00",
            "end": "2025-09-04T00:30:00.000-03:00",
            "status": "Falta",
            "note": "",
        },
        {
            "id": 103,
            "title": "Ana Costa",
            "start": "2025-09-03T14:00:00-03:00",
            "end": "2025-09-03T15:00:00-03:00",
            "status": "Agendado",
            "note": None,
        },
        {
            "id": 104,
            "title": "<span>Carla Dias</span>",
            "start": "2025-09-03T16:00:00.000-03:00",
            "end": "2025-09-03T16:30:00.000-03:00",
            "status": "Cliente Ausente",
            "note": "Retorno",
        },
    ],
    "2025-09-10": [
        {
            "id": 201,
            "title": "<span>Outro Dia</span>",
            "start": "2025-09-10T09:00:00.000-03:00",
            "end": "2025-09-10T10:00:00.000-03:00",
            "status": "Confirmado",
            "note": "",
        }
    ],
}

DETAILS = {
    101: "<p><strong>Telefone:</strong> +55 (11) 98765-4321</p><p>Obs: primeira vez</p>",
    102: "<p>(21) 3456-7890</p>",
    103: "<p>Sem telefone cadastrado</p>",
    104: "<div>Celular 11987650000</div>",
    201: "<p>(31) 3333-4444</p>",
}

_DETAIL_PATH = re.compile(r"^/schedules/(\d+)/event_detail$")


class FakeMyclinic:
    """In-memory stand-in for the Myclinic Rails app."""

    def __init__(self) -> None:
        self.username = USERNAME
        self.password = PASSWORD
        self.valid_tokens = {"login-token", "form-token"}
        self.login_page = LOGIN_PAGE
        self.login_page_status = 200
        self.home_status = 200
        self.report_page_status = 200
        self.birthday_report = BIRTHDAY_REPORT
        self.schedules = {day: list(entries) for day, entries in SCHEDULES.items()}
        self.details = dict(DETAILS)
        self.detail_status: dict[int, int] = {}
        self.detail_body: dict[int, str] = {}
        self.sessions: set[str] = set()
        self.requests: list[httpx.Request] = []
        self._logins = 0

    def expire_sessions(self) -> None:
        self.sessions.clear()

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def last(self, method: str, path: str) -> httpx.Request:
        return [r for r in self.requests if r.method == method and r.url.path == path][-1]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        parsed = parse_qs(request.content.decode(), keep_blank_values=True)
        return {key: values[0] for key, values in parsed.items()}

    @staticmethod
    def cookie(request: httpx.Request) -> str | None:
        for part in request.headers.get("cookie", "").split(";"):
            name, _, value = part.strip().partition("=")
            if name == "bemp-session":
                return value
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/users/sign_in":
            return self._sign_in(request)
        if path == "/always-401":
            return httpx.Response(401)
        if self.cookie(request) not in self.sessions:
            return httpx.Response(401, text="Unauthorized")

        if path == "/":
            return httpx.Response(self.home_status, text=HOME_PAGE)
        if path == "/expired-redirect":
            return httpx.Response(302, headers={"location": f"{BASE_URL}/users/sign_in"})
        if path == "/boom":
            return httpx.Response(502, text="Bad Gateway from nginx")
        if path == "/schedules/entries":
            day = request.url.params.get("date", "")
            return httpx.Response(200, json={"schedules": self.schedules.get(day, []), "blocks": []})

        match = _DETAIL_PATH.match(path)
        if match:
            schedule_id = int(match.group(1))
            if schedule_id in self.detail_status:
                return httpx.Response(self.detail_status[schedule_id])
            if schedule_id in self.detail_body:
                return httpx.Response(200, text=self.detail_body[schedule_id])
            return httpx.Response(
                200, json={"id": schedule_id, "description": self.details.get(schedule_id, "")}
            )

        if path == "/report/customers_birthdays":
            if request.method == "GET":
                return httpx.Response(self.report_page_status, text=REPORT_PAGE)
            return httpx.Response(200, text=self.birthday_report)

        return httpx.Response(404)

    def _sign_in(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(
                self.login_page_status,
                headers=[("set-cookie", "bemp-session=anon-1; path=/; HttpOnly")],
                text=self.login_page,
            )

        form = self.form(request)
        accepted = (
            form.get("authenticity_token") in self.valid_tokens
            and form.get("user[username]") == self.username
            and form.get("user[password]") == self.password
            and self.cookie(request) == "anon-1"
        )
        if not accepted:
            return httpx.Response(
                302,
                headers=[
                    ("location", f"{BASE_URL}/users/sign_in"),
                    ("set-cookie", "bemp-session=anon-2; path=/; HttpOnly"),
                ],
            )

        self._logins += 1
        cookie = f"auth-{self._logins}"
        self.sessions.add(cookie)
        return httpx.Response(
            302,
            headers=[
                ("location", f"{BASE_URL}/"),
                ("set-cookie", f"bemp-session={cookie}; path=/; HttpOnly"),
            ],
        )


def make_config(**overrides) -> ScraperConfig:
    return ScraperConfig(_env_file=None, myclinic_base_url=BASE_URL, **overrides)


@pytest.fixture
def fake():
    """A fresh fake Myclinic site."""
    return FakeMyclinic()


@pytest.fixture
def client(fake):
    """MyclinicClient wired to the fake site."""
    return MyclinicClient(make_config(), transport=httpx.MockTransport(fake.handler))


@pytest_asyncio.fixture
async def logged_in(client):
    """Client holding an authenticated session (cookie auth-1)."""
    assert await client.login(USERNAME, PASSWORD)
    return client
