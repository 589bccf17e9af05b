"""Google Calendar: stored OAuth token and event creation."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

import httpx

from synapse.storage import GOOGLE_TOKEN_KEY, JsonStore

logger = logging.getLogger(__name__)

EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar.events"
EXPIRY_BUFFER_MS = 5 * 60 * 1000
DEFAULT_DESCRIPTION = "Created by Synapse"


def _now_ms() -> int:
    return int(time.time() * 1000)


class TokenStore:
    """Bearer token with expiry, as handed over by the OAuth token client."""

    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def save(self, access_token: str, expires_in: int, now_ms: Optional[int] = None) -> Dict[str, Any]:
        now_ms = _now_ms() if now_ms is None else now_ms
        data = {"access_token": access_token, "expires_at": now_ms + int(expires_in) * 1000}
        self._store.set(GOOGLE_TOKEN_KEY, data)
        return data

    def get(self, now_ms: Optional[int] = None) -> Optional[str]:
        """Stored token, or None when missing or expiring within 5 minutes."""
        now_ms = _now_ms() if now_ms is None else now_ms
        data = self._store.get(GOOGLE_TOKEN_KEY, None)
        if not isinstance(data, dict) or not data.get("access_token"):
            return None
        try:
            expires_at = int(data.get("expires_at", 0))
        except (TypeError, ValueError):
            expires_at = 0
        if expires_at < now_ms + EXPIRY_BUFFER_MS:
            self._store.remove(GOOGLE_TOKEN_KEY)
            return None
        return str(data["access_token"])

    def is_connected(self) -> bool:
        return self.get() is not None

    def disconnect(self) -> None:
        self._store.remove(GOOGLE_TOKEN_KEY)


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(body: Any) -> Optional[str]:
    """Google errors are {"error": {"message": ...}}; OAuth errors are {"error": "invalid_token"}."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return str(message) if message else None
    if isinstance(error, str) and error:
        return str(body.get("error_description") or error)
    return None


class CalendarClient:
    def __init__(self, tokens: TokenStore, timezone: str = "UTC", http: Optional[httpx.Client] = None) -> None:
        self._tokens = tokens
        self._timezone = timezone
        self._http = http

    def _post(self, url: str, **kwargs) -> httpx.Response:
        if self._http is not None:
            return self._http.post(url, **kwargs)
        with httpx.Client(timeout=10.0) as client:
            return client.post(url, **kwargs)

    def create_event(
        self,
        title: str,
        start: datetime,
        end: datetime,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        token = self._tokens.get()
        if not token:
            return {"success": False, "error": "Not authenticated"}

        payload = {
            "summary": title,
            "description": description or DEFAULT_DESCRIPTION,
            "start": {"dateTime": start.isoformat(), "timeZone": self._timezone},
            "end": {"dateTime": end.isoformat(), "timeZone": self._timezone},
        }
        try:
            response = self._post(
                EVENTS_URL,
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            logger.error("calendar: create event failed error=%s", exc)
            return {"success": False, "error": str(exc)}

        body = _json_body(response)
        if response.is_error:
            logger.error("calendar: create event failed status=%s", response.status_code)
            return {"success": False, "error": _error_message(body) or "Failed to create event"}
        event_id = body.get("id") if isinstance(body, dict) else None
        return {"success": True, "eventId": event_id}

    def sync_task(self, title: str, day: date, clock: str, duration_minutes: int) -> Dict[str, Any]:
        """Create an event for a parsed task with a date and "HH:MM" time."""
        hours, minutes = (int(part) for part in clock.split(":"))
        start = datetime(day.year, day.month, day.day, hours, minutes, tzinfo=ZoneInfo(self._timezone))
        end = start + timedelta(minutes=duration_minutes)
        return self.create_event(title, start, end)
