import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from social_events.api.deps import get_current_user, get_db_service
from social_events.models.common import InsertResult, UpdateResult
from social_events.models.event import (
    EventCountResponse,
    EventCreate,
    EventDeleteResult,
    EventListResponse,
    EventResponse,
    EventUpdate,
    JoinedEventResponse,
)
from social_events.models.user import Principal
from social_events.services.database_service import MongoDBService
from social_events.services.event_query import DEFAULT_PAGE_SIZE
from social_events.controllers.events import (
    list_events_controller,
    get_event_controller,
    create_event_controller,
    update_event_controller,
    delete_event_controller,
    list_my_events_controller,
    join_event_controller,
    list_joined_events_controller,
)

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/events", response_model=EventListResponse, summary="List upcoming events")
async def list_events(
    type: Optional[str] = Query(None, description="Exact event type."),
    search: Optional[str] = Query(None, description="Case-insensitive title substring."),
    location: Optional[str] = Query(None, description="Case-insensitive location substring."),
    dateRange: Optional[str] = Query(None, description="thisWeek, thisMonth or nextMonth."),
    sortBy: Optional[str] = Query(None, description="newest, title, or event date by default."),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    db_service: MongoDBService = Depends(get_db_service),
):
    """
    Lists events that have not happened yet, filtered, sorted and paginated.
    A page past the end returns an empty list.
    """
    return await list_events_controller(db_service, type, search, location, dateRange, sortBy, page, limit)

@router.get("/events/count", response_model=EventCountResponse, summary="Count events")
async def count_events(db_service: MongoDBService = Depends(get_db_service)):
    return EventCountResponse(count=await db_service.count_events())

@router.get("/events/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, db_service: MongoDBService = Depends(get_db_service)):
    """Retrieves a single event. No authentication required."""
    return await get_event_controller(event_id, db_service)

@router.post("/events", response_model=InsertResult, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
):
    """Creates an event owned by the authenticated user."""
    return await create_event_controller(payload, current_user, db_service)

@router.put("/events/{event_id}", response_model=UpdateResult)
async def update_event(
    event_id: str,
    payload: EventUpdate,
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
):
    """
    Updates the supplied fields of an event. Only the creator may update it;
    an unknown id is refused the same way as a foreign one.
    """
    return await update_event_controller(event_id, payload, current_user, db_service)

@router.delete("/events/{event_id}", response_model=EventDeleteResult)
async def delete_event(
    event_id: str,
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
):
    """Deletes an event owned by the caller along with everyone's joins to it."""
    return await delete_event_controller(event_id, current_user, db_service)

@router.post("/events/{event_id}/join", response_model=InsertResult)
async def join_event(
    event_id: str,
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
):
    return await join_event_controller(event_id, current_user, db_service)

@router.get("/users/me/events", response_model=List[EventResponse], summary="Events I created")
async def list_my_events(
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
):
    return await list_my_events_controller(current_user, db_service)

@router.get("/users/me/joined", response_model=List[JoinedEventResponse], summary="Events I joined")
async def list_joined_events(
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
):
    return await list_joined_events_controller(current_user, db_service)
