from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from enum import Enum

from social_events.models.common import DeleteResult, ObjectIdStr, UTCDateTime


class EventBase(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    eventType: Optional[str] = None
    thumbnail: Optional[str] = None
    images: Optional[List[str]] = None
    location: Optional[str] = None


class EventCreate(EventBase):
    """
    Request body for creating an event. Required fields are checked by the
    controller so that every rejection carries a readable message.
    """
    eventDate: Optional[str] = None


class EventUpdate(EventBase):
    """
    Partial update; only the supplied, non-null fields are applied.
    """
    eventDate: Optional[str] = None


class EventResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: ObjectIdStr = Field(..., alias="_id")
    title: str
    description: Optional[str] = None
    eventType: Optional[str] = None
    thumbnail: Optional[str] = None
    images: Optional[List[str]] = None
    location: Optional[str] = None
    eventDate: UTCDateTime
    creatorEmail: Optional[str] = None
    createdAt: Optional[UTCDateTime] = None
    updatedAt: Optional[UTCDateTime] = None


class JoinedEventResponse(EventResponse):
    """
    An event as seen from a user's joined list, carrying the join timestamp.
    """
    joinedAt: UTCDateTime


class EventListResponse(BaseModel):
    events: List[EventResponse]
    totalEvents: int
    totalPages: int
    currentPage: int
    limit: int


class EventCountResponse(BaseModel):
    count: int


class EventDeleteResult(DeleteResult):
    deletedJoins: int


class SortOption(str, Enum):
    DATE = "eventDate"
    NEWEST = "newest"
    TITLE = "title"


class DateRange(str, Enum):
    THIS_WEEK = "thisWeek"
    THIS_MONTH = "thisMonth"
    NEXT_MONTH = "nextMonth"
