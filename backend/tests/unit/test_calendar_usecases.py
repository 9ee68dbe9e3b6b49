from __future__ import annotations
from typing import Dict, Any, List, Optional
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
import requests

from outlook_calendar.domain.session import Session
from outlook_calendar.errors import GraphApiError, UnauthenticatedError, UpstreamError
from outlook_calendar.ports.calendar_provider import CalendarProvider
from outlook_calendar.usecases.fetch_week_events import FetchWeekEventsUseCase
from outlook_calendar.usecases.list_calendars import ListCalendarsUseCase

TOKYO = ZoneInfo("Asia/Tokyo")
SIGNED_IN = Session(authenticated=True, access_token="tok")


class FakeProvider(CalendarProvider):
    def __init__(self, view: Any = None, calendars: Any = None, error: Optional[Exception] = None):
        self._view = view if view is not None else {"value": []}
        self._calendars = calendars if calendars is not None else {"value": []}
        self._error = error
        self.calls: List[Dict[str, Any]] = []

    def get_calendar_view(self, access_token, start, end, calendar_id=None):
        self.calls.append({"op": "view", "token": access_token, "start": start, "end": end, "calendar_id": calendar_id})
        if self._error:
            raise self._error
        return self._view

    def list_calendars(self, access_token):
        self.calls.append({"op": "calendars", "token": access_token})
        if self._error:
            raise self._error
        return self._calendars


def fixed_clock():
    return datetime(2024, 6, 5, 10, 30, tzinfo=TOKYO)  # Wednesday


@pytest.mark.parametrize("session", [None, Session(authenticated=False), Session(authenticated=True, access_token="")])
def test_fetch_without_token_is_unauthenticated_and_skips_upstream(session):
    provider = FakeProvider()
    with pytest.raises(UnauthenticatedError) as exc:
        FetchWeekEventsUseCase(provider, clock=fixed_clock).execute(session)
    assert exc.value.http_status == 401
    assert exc.value.to_body() == {"error": "認証が必要です"}
    assert provider.calls == []


def test_fetch_queries_current_week_with_token():
    provider = FakeProvider(view={"value": [{"id": "e1", "subject": "Standup",
                                             "start": {"dateTime": "2024-06-03T09:00:00Z"},
                                             "end": {"dateTime": "2024-06-03T09:30:00Z"}}]})
    view = FetchWeekEventsUseCase(provider, clock=fixed_clock).execute(SIGNED_IN, calendar_id="C1")

    assert [e.id for e in view.value] == ["e1"]
    call = provider.calls[0]
    assert call["token"] == "tok"
    assert call["calendar_id"] == "C1"
    assert call["start"] == datetime(2024, 6, 2, tzinfo=TOKYO)
    assert call["end"] == datetime(2024, 6, 8, tzinfo=TOKYO)


def test_fetch_upstream_failure_keeps_status_in_details():
    provider = FakeProvider(error=GraphApiError(403, {"error": {"code": "ErrorAccessDenied"}}))
    with pytest.raises(UpstreamError) as exc:
        FetchWeekEventsUseCase(provider, clock=fixed_clock).execute(SIGNED_IN)
    err = exc.value
    assert err.http_status == 500
    assert err.upstream_status == 403
    assert err.message == "カレンダーの取得に失敗しました"
    assert "403" in err.details
    assert "ErrorAccessDenied" in err.details
    assert len(provider.calls) == 1  # no retry


def test_fetch_transport_error_becomes_upstream_error():
    provider = FakeProvider(error=requests.ConnectionError("connection refused"))
    with pytest.raises(UpstreamError) as exc:
        FetchWeekEventsUseCase(provider, clock=fixed_clock).execute(SIGNED_IN)
    assert exc.value.details == "connection refused"
    assert exc.value.upstream_status is None


def test_fetch_malformed_payload_becomes_upstream_error():
    provider = FakeProvider(view={"value": [{"subject": "no id"}]})
    with pytest.raises(UpstreamError) as exc:
        FetchWeekEventsUseCase(provider, clock=fixed_clock).execute(SIGNED_IN)
    assert exc.value.details.startswith("Invalid Graph response")


def test_list_calendars_reshapes_records():
    provider = FakeProvider(calendars={"value": [
        {"id": "c1", "name": "Calendar", "owner": {"name": "Taro"}, "isDefaultCalendar": True,
         "canShare": True, "canViewPrivateItems": True},
        {"id": "c2", "name": "Holidays"},
    ]})
    out = ListCalendarsUseCase(provider).execute(SIGNED_IN)

    assert out.total == 2
    second = out.to_body()["calendars"][1]
    assert second == {"id": "c2", "name": "Holidays", "owner": "Unknown", "isDefault": False,
                      "canShare": False, "canViewPrivateItems": False}
    assert provider.calls == [{"op": "calendars", "token": "tok"}]


def test_list_calendars_requires_session():
    provider = FakeProvider()
    with pytest.raises(UnauthenticatedError):
        ListCalendarsUseCase(provider).execute(None)
    assert provider.calls == []


def test_list_calendars_upstream_failure():
    provider = FakeProvider(error=GraphApiError(401, {"error": {"code": "InvalidAuthenticationToken"}}))
    with pytest.raises(UpstreamError) as exc:
        ListCalendarsUseCase(provider).execute(SIGNED_IN)
    assert exc.value.to_body()["error"] == "カレンダー一覧の取得に失敗しました"
    assert exc.value.to_body()["details"].startswith("Graph API Error: 401 - ")
