from __future__ import annotations
import logging
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from ..domain.calendar import CalendarViewResponse
from ..domain.date_window import compute_week_window
from ..domain.session import Session, require_access_token
from ..errors import GraphApiError, UpstreamError
from ..ports.calendar_provider import CalendarProvider

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "カレンダーの取得に失敗しました"


class FetchWeekEventsUseCase:
    """This week's events for the signed-in user, optionally from one calendar."""

    def __init__(
        self,
        provider: CalendarProvider,
        time_zone: str = "Asia/Tokyo",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.provider = provider
        self._zone = ZoneInfo(time_zone)
        self._clock = clock or (lambda: datetime.now(self._zone))

    def execute(self, session: Optional[Session], calendar_id: Optional[str] = None) -> CalendarViewResponse:
        logger.debug(
            "Session check: exists=%s has_token=%s",
            session is not None,
            bool(session and session.has_token),
        )
        token = require_access_token(session)
        window = compute_week_window(self._clock())
        try:
            raw = self.provider.get_calendar_view(token, window.start, window.end, calendar_id=calendar_id)
            view = CalendarViewResponse.model_validate(raw)
        except GraphApiError as e:
            raise UpstreamError(FETCH_FAILED_MESSAGE, str(e), upstream_status=e.status_code)
        except ValidationError as e:
            logger.error("Unexpected calendarView payload: %d validation errors", e.error_count())
            raise UpstreamError(FETCH_FAILED_MESSAGE, f"Invalid Graph response: {e}")
        except Exception as e:
            logger.exception("Calendar fetch failed")
            raise UpstreamError(FETCH_FAILED_MESSAGE, str(e) or e.__class__.__name__)
        logger.info("Retrieved %d events", len(view.value))
        return view
