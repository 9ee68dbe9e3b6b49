from __future__ import annotations
from typing import Protocol, Dict, Any, Optional
from datetime import datetime


class CalendarProvider(Protocol):
    """Abstracts the upstream calendar API for testability."""

    def get_calendar_view(
        self,
        access_token: str,
        start: datetime,
        end: datetime,
        calendar_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Return the raw calendar view body: { 'value': [event, ...] }.
        Raises GraphApiError on a non-success status.
        """
        ...

    def list_calendars(self, access_token: str) -> Dict[str, Any]:
        """Return the raw calendar list body: { 'value': [calendar, ...] }."""
        ...
