from __future__ import annotations
import logging
from typing import Optional

from pydantic import ValidationError

from ..domain.calendar import CalendarInfo, CalendarListOut, GraphCalendarList
from ..domain.session import Session, require_access_token
from ..errors import GraphApiError, UpstreamError
from ..ports.calendar_provider import CalendarProvider

logger = logging.getLogger(__name__)

LIST_FAILED_MESSAGE = "カレンダー一覧の取得に失敗しました"


class ListCalendarsUseCase:
    def __init__(self, provider: CalendarProvider):
        self.provider = provider

    def execute(self, session: Optional[Session]) -> CalendarListOut:
        token = require_access_token(session)
        try:
            raw = self.provider.list_calendars(token)
            listing = GraphCalendarList.model_validate(raw)
        except GraphApiError as e:
            raise UpstreamError(LIST_FAILED_MESSAGE, str(e), upstream_status=e.status_code)
        except ValidationError as e:
            raise UpstreamError(LIST_FAILED_MESSAGE, f"Invalid Graph response: {e}")
        except Exception as e:
            logger.exception("Calendar list failed")
            raise UpstreamError(LIST_FAILED_MESSAGE, str(e) or e.__class__.__name__)
        calendars = [CalendarInfo.from_graph(c) for c in listing.value]
        return CalendarListOut(total=len(calendars), calendars=calendars)
