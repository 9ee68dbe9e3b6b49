from __future__ import annotations
import logging
import threading
from datetime import datetime
from typing import Dict, Any, Optional
from urllib.parse import quote

import requests
from prometheus_client import Counter, Histogram

from ..config import Settings
from ..domain.date_window import to_graph_timestamp
from ..errors import GraphApiError
from ..ports.calendar_provider import CalendarProvider

logger = logging.getLogger(__name__)

GRAPH_REQUEST_COUNT = Counter(
    "outlook_calendar_graph_requests_total", "Microsoft Graph calls", ["endpoint", "outcome"]
)
GRAPH_REQUEST_LATENCY = Histogram(
    "outlook_calendar_graph_request_duration_seconds", "Latency of Microsoft Graph calls", ["endpoint"]
)


class GraphCalendarProvider(CalendarProvider):
    """Microsoft Graph v1.0 calendar endpoints over ``requests``."""

    def __init__(self, settings: Settings, http: Optional[requests.Session] = None):
        self._base_url = settings.graph_base_url
        self._timeout = settings.graph_timeout_seconds
        self._time_zone = settings.calendar_time_zone
        self._http = http
        # requests.Session is not thread-safe; one per worker thread
        self._local = threading.local()

    def calendar_view_url(self, calendar_id: Optional[str] = None) -> str:
        if calendar_id:
            return f"{self._base_url}/me/calendars/{quote(calendar_id, safe='')}/calendarView"
        return f"{self._base_url}/me/calendar/calendarView"

    def get_calendar_view(
        self,
        access_token: str,
        start: datetime,
        end: datetime,
        calendar_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = {
            "startDateTime": to_graph_timestamp(start),
            "endDateTime": to_graph_timestamp(end),
        }
        headers = self._headers(access_token)
        headers["Prefer"] = f'outlook.timezone="{self._time_zone}"'
        return self._get("calendarView", self.calendar_view_url(calendar_id), headers, params)

    def list_calendars(self, access_token: str) -> Dict[str, Any]:
        return self._get("calendars", f"{self._base_url}/me/calendars", self._headers(access_token))

    def _session(self) -> requests.Session:
        if self._http is not None:
            return self._http
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def _headers(self, access_token: str) -> Dict[str, str]:
        if not access_token:
            raise ValueError("access token required for Graph calls")
        return {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}

    def _get(
        self,
        endpoint: str,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        try:
            with GRAPH_REQUEST_LATENCY.labels(endpoint=endpoint).time():
                resp = self._session().get(url, headers=headers, params=params, timeout=self._timeout)
        except requests.RequestException:
            GRAPH_REQUEST_COUNT.labels(endpoint=endpoint, outcome="transport_error").inc()
            raise
        if not resp.ok:
            GRAPH_REQUEST_COUNT.labels(endpoint=endpoint, outcome="error").inc()
            logger.warning("Graph %s returned %s", endpoint, resp.status_code)
            raise GraphApiError(resp.status_code, _error_body(resp))
        GRAPH_REQUEST_COUNT.labels(endpoint=endpoint, outcome="success").inc()
        return resp.json()


def _error_body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text
