# Google Calendar Client — read-only Calendar API access for a resolved account.
# Created: 2026-10-05

from __future__ import annotations

import calendar
import logging
import re
from datetime import datetime, timedelta
from typing import Any

from gscli.integrations.session import GoogleClient

logger = logging.getLogger(__name__)

_CALENDAR_BASE = "https://www.googleapis.com/calendar/v3"

_RANGE_RE = re.compile(r"^(\d+)([dwm])$", re.IGNORECASE)


def _add_months(dt: datetime, months: int) -> datetime:
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def parse_relative_range(text: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Turn '7d', '2w' or '1m' into (start of today, start of today + span).

    Raises:
        ValueError: on any other format.
    """
    match = _RANGE_RE.match(text.strip())
    if not match:
        raise ValueError(
            'Invalid range format. Use format like "7d" for 7 days, '
            '"2w" for 2 weeks, "1m" for 1 month'
        )
    value, unit = int(match.group(1)), match.group(2).lower()

    start = (now or datetime.now().astimezone()).replace(hour=0, minute=0, second=0, microsecond=0)
    if unit == "d":
        end = start + timedelta(days=value)
    elif unit == "w":
        end = start + timedelta(weeks=value)
    else:
        end = _add_months(start, value)
    return start, end


def _parse_date(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    return dt if dt.tzinfo else dt.astimezone()


def _event_record(item: dict[str, Any]) -> dict[str, Any]:
    start = item.get("start", {})
    end = item.get("end", {})
    return {
        "id": item.get("id", ""),
        "summary": item.get("summary", "(No Title)"),
        "description": item.get("description"),
        "start": start.get("dateTime", start.get("date", "")),
        "end": end.get("dateTime", end.get("date", "")),
        "location": item.get("location"),
        "organizer": item.get("organizer", {}).get("email"),
        "attendees": [a["email"] for a in item.get("attendees", []) if a.get("email")],
        "status": item.get("status", ""),
        "htmlLink": item.get("htmlLink"),
    }


class CalendarClient:
    """Read-only client for the Google Calendar API (primary calendar)."""

    def __init__(self, session: GoogleClient):
        self.session = session

    async def _events(
        self, time_min: datetime, time_max: datetime, limit: int, query: str | None = None
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "maxResults": limit,
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        if query:
            params["q"] = query

        data = await self.session.get_json(
            f"{_CALENDAR_BASE}/calendars/primary/events", params=params
        )
        return [_event_record(item) for item in data.get("items", [])]

    async def list_events(
        self,
        range_spec: str | None = None,
        start: str | None = None,
        end: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """List events for a relative range ('7d'), explicit dates, or today."""
        if range_spec:
            time_min, time_max = parse_relative_range(range_spec)
        elif start and end:
            time_min, time_max = _parse_date(start), _parse_date(end)
        else:
            time_min = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
            time_max = time_min + timedelta(days=1)
        return await self._events(time_min, time_max, limit)

    async def search(self, query: str, days_ahead: int = 90, limit: int = 50) -> list[dict[str, Any]]:
        """Free-text search over events from now to ``days_ahead`` days out."""
        time_min = datetime.now().astimezone()
        return await self._events(time_min, time_min + timedelta(days=days_ahead), limit, query)

    async def list_calendars(self) -> list[dict[str, str]]:
        data = await self.session.get_json(f"{_CALENDAR_BASE}/users/me/calendarList")
        return [
            {"id": c.get("id", ""), "summary": c.get("summary", "")}
            for c in data.get("items", [])
        ]
