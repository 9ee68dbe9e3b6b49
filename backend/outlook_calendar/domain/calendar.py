"""Typed views over the Microsoft Graph calendar payloads.

Event payloads are validated but otherwise passed through: unknown fields are
kept (``extra="allow"``) and dumps use ``exclude_unset`` so the response body
matches what Graph sent. Calendar records are reshaped into ``CalendarInfo``.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_OWNER = "Unknown"


class _GraphModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class EventDateTime(_GraphModel):
    date_time: str = Field(alias="dateTime")
    time_zone: Optional[str] = Field(default=None, alias="timeZone")


class EventLocation(_GraphModel):
    display_name: Optional[str] = Field(default=None, alias="displayName")


class CalendarEvent(_GraphModel):
    id: str
    subject: Optional[str] = None
    start: EventDateTime
    end: EventDateTime
    location: Optional[EventLocation] = None


class CalendarViewResponse(_GraphModel):
    value: List[CalendarEvent] = Field(default_factory=list)

    def to_body(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class CalendarOwner(_GraphModel):
    name: Optional[str] = None
    address: Optional[str] = None


class GraphCalendar(_GraphModel):
    id: str
    name: Optional[str] = None
    owner: Optional[CalendarOwner] = None
    is_default_calendar: Optional[bool] = Field(default=None, alias="isDefaultCalendar")
    can_share: Optional[bool] = Field(default=None, alias="canShare")
    can_view_private_items: Optional[bool] = Field(default=None, alias="canViewPrivateItems")


class GraphCalendarList(_GraphModel):
    value: List[GraphCalendar] = Field(default_factory=list)


class CalendarInfo(BaseModel):
    id: str
    name: str
    owner: str
    is_default: bool = Field(alias="isDefault")
    can_share: bool = Field(alias="canShare")
    can_view_private_items: bool = Field(alias="canViewPrivateItems")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_graph(cls, cal: GraphCalendar) -> "CalendarInfo":
        owner_name = cal.owner.name if cal.owner else None
        return cls(
            id=cal.id,
            name=cal.name or "",
            owner=owner_name or UNKNOWN_OWNER,
            is_default=bool(cal.is_default_calendar),
            can_share=bool(cal.can_share),
            can_view_private_items=bool(cal.can_view_private_items),
        )


class CalendarListOut(BaseModel):
    total: int
    calendars: List[CalendarInfo]

    def to_body(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
