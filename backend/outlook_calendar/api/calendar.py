from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..adapters.graph_calendar_provider import GraphCalendarProvider
from ..config import get_settings
from ..domain.session import Session
from ..ports.calendar_provider import CalendarProvider
from ..usecases.fetch_week_events import FetchWeekEventsUseCase
from ..usecases.list_calendars import ListCalendarsUseCase
from .auth import get_session

router = APIRouter(prefix="/api", tags=["calendar"])


@lru_cache(maxsize=1)
def get_calendar_provider() -> CalendarProvider:
    return GraphCalendarProvider(get_settings())


@router.get("/calendar")
def get_week_events(
    calendar_id: Optional[str] = Query(default=None, alias="calendarId"),
    session: Optional[Session] = Depends(get_session),
    provider: CalendarProvider = Depends(get_calendar_provider),
):
    """This week's events; the Graph body is returned as-is ({ value: [...] })."""
    uc = FetchWeekEventsUseCase(provider, time_zone=get_settings().calendar_time_zone)
    return uc.execute(session, calendar_id=calendar_id or None).to_body()


@router.get("/calendars-debug")
def list_calendars(
    session: Optional[Session] = Depends(get_session),
    provider: CalendarProvider = Depends(get_calendar_provider),
):
    return ListCalendarsUseCase(provider).execute(session).to_body()
