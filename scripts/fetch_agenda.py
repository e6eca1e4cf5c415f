"""Get a day's agenda or the birthday report from Myclinic as JSON or table.

Standalone CLI script around MyclinicClient. Logs in with the credentials
from .env, runs one query, and prints JSON or a human-readable table.

Run with:  python scripts/fetch_agenda.py agenda --date 2025-09-03
No-shows:  python scripts/fetch_agenda.py agenda --date 2025-09-03 --sem-falta
Status:    python scripts/fetch_agenda.py agenda --date 2025-09-03 --status Confirmado
Table:     python scripts/fetch_agenda.py --table agenda --date 2025-09-03
Birthdays: python scripts/fetch_agenda.py birthdays --start 2025-09-01 --end 2025-09-30

Exit codes:
  0 = success (JSON or table on stdout)
  1 = error (message on stderr)
"""

import argparse
import asyncio
import json
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add src to path so the script runs from a plain checkout
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from myclinic.client import MyclinicClient  # noqa: E402
from myclinic.config import get_config  # noqa: E402
from myclinic.logging import setup_logging  # noqa: E402
from myclinic.models import AgendaItem, BirthdayEntry  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Get the Myclinic agenda or birthday report as JSON or table.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--table",
        action="store_true",
        help="Output a human-readable table instead of JSON.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    agenda = sub.add_parser("agenda", help="Appointments of one day.")
    agenda.add_argument("--date", required=True, help="Day to list (YYYY-MM-DD).")
    agenda.add_argument(
        "--end-date",
        default=None,
        help="Accepted for parity with the API; Myclinic lists --date only.",
    )
    agenda.add_argument(
        "--sem-falta",
        action="store_true",
        help="Exclude no-shows (Falta/Ausente).",
    )
    agenda.add_argument(
        "--status",
        action="append",
        default=None,
        help="Keep statuses containing this text (repeatable).",
    )

    birthdays = sub.add_parser("birthdays", help="Birthday celebrants report.")
    birthdays.add_argument("--start", required=True, help="First day (YYYY-MM-DD).")
    birthdays.add_argument("--end", required=True, help="Last day (YYYY-MM-DD).")

    return parser.parse_args(argv)


def _format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format rows as a fixed-width table."""
    if not rows:
        return "(no results)"

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [
        " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)) for row in rows
    ]
    return "\n".join([header_line, separator, *row_lines])


def agenda_table(items: list[AgendaItem]) -> str:
    return _format_table(
        ["Time", "Customer", "Phone", "Status", "Services"],
        [
            [
                f"{i.start_time}-{i.end_time}",
                i.person_name,
                i.phone or "-",
                i.status,
                ", ".join(i.services) or "-",
            ]
            for i in items
        ],
    )


def birthdays_table(entries: list[BirthdayEntry]) -> str:
    return _format_table(
        ["Birthday", "Customer", "Phone"],
        [[e.date, e.name, e.phone or "-"] for e in entries],
    )


async def main(args: argparse.Namespace) -> int:
    config = get_config()
    if not config.has_credentials:
        _log("ERROR: MYCLINIC_EMAIL and MYCLINIC_PASSWORD must be set in .env")
        return 1

    async with MyclinicClient(config) as client:
        _log(f"fetch_agenda: logging in to {config.myclinic_base_url}")
        if not await client.login(
            config.myclinic_email, config.myclinic_password.get_secret_value()
        ):
            _log("ERROR: login failed")
            return 1

        if args.command == "agenda":
            items = await client.get_agenda(
                args.date, args.end_date or args.date, args.sem_falta, args.status
            )
            _log(f"  {len(items)} appointments on {args.date}")
            if args.table:
                print(agenda_table(items))
            else:
                output = [i.model_dump(by_alias=True) for i in items]
                print(json.dumps(output, indent=2, ensure_ascii=False))
        else:
            entries = await client.get_birthday_celebrants(args.start, args.end)
            _log(f"  {len(entries)} birthdays between {args.start} and {args.end}")
            if args.table:
                print(birthdays_table(entries))
            else:
                output = [e.model_dump(by_alias=True) for e in entries]
                print(json.dumps(output, indent=2, ensure_ascii=False))

    return 0


if __name__ == "__main__":
    args = _parse_args()
    setup_logging(log_level=os.getenv("LOG_LEVEL", "WARNING"), stream=sys.stderr)
    try:
        sys.exit(asyncio.run(main(args)))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
