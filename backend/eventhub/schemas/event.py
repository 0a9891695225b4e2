"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from eventhub.models.event import Event, EventState
from eventhub.schemas.common import CamelModel, WireDateTime


class Actor(str, Enum):
    ADMIN = "ADMIN"
    OWNER = "OWNER"


class StateAction(str, Enum):
    PUBLISH_EVENT = "PUBLISH_EVENT"
    REJECT_EVENT = "REJECT_EVENT"
    SEND_TO_REVIEW = "SEND_TO_REVIEW"
    CANCEL_REVIEW = "CANCEL_REVIEW"


ALLOWED_ACTIONS = {
    Actor.ADMIN: {StateAction.PUBLISH_EVENT, StateAction.REJECT_EVENT},
    Actor.OWNER: {StateAction.SEND_TO_REVIEW, StateAction.CANCEL_REVIEW},
}


class SortOption(str, Enum):
    VIEWS = "VIEWS"
    EVENT_DATE = "EVENT_DATE"
    RATING = "RATING"


class PublicSearchParams(BaseModel):
    text: Optional[str] = None
    categories: Optional[list[int]] = None
    paid: Optional[bool] = None
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None
    only_available: bool = False
    sort: SortOption = SortOption.EVENT_DATE
    offset: int = Field(0, ge=0)
    size: int = Field(10, gt=0)

    def cache_key(self) -> str:
        return self.model_dump_json()


class AdminSearchParams(BaseModel):
    users: Optional[list[int]] = None
    states: Optional[list[EventState]] = None
    categories: Optional[list[int]] = None
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None
    offset: int = Field(0, ge=0)
    size: int = Field(10, gt=0)


class Location(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class NewEvent(CamelModel):
    title: str = Field(..., min_length=3, max_length=120)
    annotation: str = Field(..., min_length=20, max_length=2000)
    description: str = Field(..., min_length=20, max_length=7000)
    category: int = Field(..., gt=0)
    event_date: WireDateTime
    location: Location
    paid: bool = False
    participant_limit: int = Field(0, ge=0)
    request_moderation: bool = True


class EventUpdate(CamelModel):
    """
    One update command for both moderators and owners.

    `actor` is the discriminator: it is stamped by the route that received the
    request (never read from the body) and decides which state actions are
    legal. Every other field is optional; absent means unchanged.
    """

    actor: Optional[Actor] = Field(None, exclude=True)
    state_action: Optional[StateAction] = None
    title: Optional[str] = Field(None, min_length=3, max_length=120)
    annotation: Optional[str] = Field(None, min_length=20, max_length=2000)
    description: Optional[str] = Field(None, min_length=20, max_length=7000)
    category: Optional[int] = Field(None, gt=0)
    event_date: Optional[WireDateTime] = None
    location: Optional[Location] = None
    paid: Optional[bool] = None
    participant_limit: Optional[int] = Field(None, ge=0)
    request_moderation: Optional[bool] = None

    def as_actor(self, actor: Actor) -> "EventUpdate":
        return self.model_copy(update={"actor": actor})

    def column_values(self) -> dict:
        """Present field updates mapped onto Event columns."""
        values = {}
        for name in ("title", "annotation", "description", "event_date",
                     "paid", "participant_limit", "request_moderation"):
            value = getattr(self, name)
            if value is not None:
                values[name] = value
        if self.category is not None:
            values["category_id"] = self.category
        if self.location is not None:
            values["lat"] = self.location.lat
            values["lon"] = self.location.lon
        return values


class EventShort(CamelModel):
    id: int
    title: str
    annotation: str
    category: int
    event_date: WireDateTime
    initiator: int
    paid: bool
    confirmed_requests: int
    views: int = 0
    rating: int = 0

    @classmethod
    def from_event(cls, event: Event, views: int = 0, rating: int = 0):
        return cls.model_validate(_event_fields(event, views, rating))


class EventFull(EventShort):
    description: str
    location: Location
    participant_limit: int
    request_moderation: bool
    state: str
    created_on: WireDateTime
    published_on: Optional[WireDateTime] = None


def _event_fields(event: Event, views: int, rating: int) -> dict:
    return {
        "id": event.id,
        "title": event.title,
        "annotation": event.annotation,
        "category": event.category_id,
        "event_date": event.event_date,
        "initiator": event.owner_id,
        "paid": event.paid,
        "confirmed_requests": event.confirmed_requests,
        "views": views,
        "rating": rating,
        "description": event.description,
        "location": {"lat": event.lat, "lon": event.lon},
        "participant_limit": event.participant_limit,
        "request_moderation": event.request_moderation,
        "state": event.state,
        "created_on": event.created_at,
        "published_on": event.published_on,
    }
