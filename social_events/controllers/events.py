import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import HTTPException, status

from social_events.models.common import InsertResult, UpdateResult
from social_events.models.event import (
    EventCreate,
    EventDeleteResult,
    EventListResponse,
    EventResponse,
    EventUpdate,
    JoinedEventResponse,
)
from social_events.models.user import Principal
from social_events.services.database_service import MongoDBService
from social_events.services.event_query import (
    build_event_filter,
    build_sort,
    page_window,
    total_pages,
    utcnow,
)

logger = logging.getLogger(__name__)

REQUIRED_EVENT_FIELDS = ("title", "eventType", "location", "eventDate")


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def parse_object_id(value: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise _bad_request("Invalid event id")
    return ObjectId(value)


def parse_future_date(value: str, now: datetime) -> datetime:
    """Parse an ISO-8601 timestamp into naive UTC and require it to be after ``now``.

    Timestamps without an offset are taken as UTC.
    """
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise _bad_request("Invalid event date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    if parsed <= now:
        raise _bad_request("Event date must be in the future")
    return parsed


def clean_images(images: Optional[List[str]]) -> List[str]:
    return [url.strip() for url in images or [] if url and url.strip()]


async def list_events_controller(
    db_service: MongoDBService,
    event_type: Optional[str],
    search: Optional[str],
    location: Optional[str],
    date_range: Optional[str],
    sort_by: Optional[str],
    page: int,
    limit: int,
) -> EventListResponse:
    query = build_event_filter(
        utcnow(), event_type=event_type, search=search, location=location, date_range=date_range
    )
    skip, limit = page_window(page, limit)
    records = await db_service.find_events(query, build_sort(sort_by), skip=skip, limit=limit)
    total = await db_service.count_events(query)
    return EventListResponse(
        events=[EventResponse.model_validate(r) for r in records],
        totalEvents=total,
        totalPages=total_pages(total, limit),
        currentPage=page,
        limit=limit,
    )


async def get_event_controller(event_id: str, db_service: MongoDBService) -> EventResponse:
    record = await db_service.get_event(parse_object_id(event_id))
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return EventResponse.model_validate(record)


async def create_event_controller(
    payload: EventCreate,
    current_user: Principal,
    db_service: MongoDBService,
) -> InsertResult:
    data = payload.model_dump()
    missing = [f for f in REQUIRED_EVENT_FIELDS if not (data.get(f) or "").strip()]
    if missing:
        raise _bad_request(f"Missing required fields: {', '.join(missing)}")

    now = utcnow()
    event_date = parse_future_date(payload.eventDate, now)

    images = clean_images(payload.images)
    thumbnail = (payload.thumbnail or "").strip() or (images[0] if images else "")
    if not thumbnail:
        raise _bad_request("At least one image is required")

    document: Dict[str, Any] = {
        "title": payload.title.strip(),
        "description": (payload.description or "").strip(),
        "eventType": payload.eventType.strip(),
        "thumbnail": thumbnail,
        "images": images,
        "location": payload.location.strip(),
        "eventDate": event_date,
        "creatorEmail": current_user.email,
        "createdAt": now,
    }
    inserted_id = await db_service.insert_event(document)
    return InsertResult(insertedId=inserted_id)


async def update_event_controller(
    event_id: str,
    payload: EventUpdate,
    current_user: Principal,
    db_service: MongoDBService,
) -> UpdateResult:
    oid = parse_object_id(event_id)
    changes: Dict[str, Any] = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise _bad_request("No fields to update")

    now = utcnow()
    for field in ("title", "eventType", "location"):
        if field in changes:
            if not changes[field].strip():
                raise _bad_request(f"{field} cannot be empty")
            changes[field] = changes[field].strip()
    if "eventDate" in changes:
        changes["eventDate"] = parse_future_date(changes["eventDate"], now)
    if "images" in changes:
        changes["images"] = clean_images(changes["images"])
        if not changes["images"]:
            raise _bad_request("Images must be a non-empty list")
    if "thumbnail" in changes:
        changes["thumbnail"] = changes["thumbnail"].strip()
        if not changes["thumbnail"]:
            images = changes.get("images")
            if images is None:
                # A missing or foreign event is left for the owner-scoped update to refuse
                existing = await db_service.get_event(oid)
                if existing and existing.get("creatorEmail") == current_user.email:
                    images = clean_images(existing.get("images"))
            if images is not None:
                if not images:
                    raise _bad_request("At least one image is required")
                changes["thumbnail"] = images[0]
    changes["updatedAt"] = now

    matched, modified = await db_service.update_owned_event(oid, current_user.email, changes)
    if not matched:
        logger.warning("Update of event %s refused for %s", event_id, current_user.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to update this event",
        )
    return UpdateResult(matchedCount=matched, modifiedCount=modified)


async def delete_event_controller(
    event_id: str,
    current_user: Principal,
    db_service: MongoDBService,
) -> EventDeleteResult:
    oid = parse_object_id(event_id)
    deleted, deleted_joins = await db_service.delete_owned_event(oid, current_user.email)
    if not deleted:
        logger.warning("Delete of event %s refused for %s", event_id, current_user.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to delete this event",
        )
    return EventDeleteResult(deletedCount=deleted, deletedJoins=deleted_joins)


async def list_my_events_controller(
    current_user: Principal, db_service: MongoDBService
) -> List[EventResponse]:
    records = await db_service.find_events(
        {"creatorEmail": current_user.email}, build_sort(None)
    )
    return [EventResponse.model_validate(r) for r in records]


async def join_event_controller(
    event_id: str,
    current_user: Principal,
    db_service: MongoDBService,
) -> InsertResult:
    oid = parse_object_id(event_id)
    if not await db_service.get_event(oid):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    # Not atomic with the insert; a simultaneous duplicate can slip through
    if await db_service.has_joined(oid, current_user.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already joined this event")
    inserted_id = await db_service.insert_join(oid, current_user.email, utcnow())
    return InsertResult(insertedId=inserted_id)


async def list_joined_events_controller(
    current_user: Principal, db_service: MongoDBService
) -> List[JoinedEventResponse]:
    records = await db_service.get_joined_events(current_user.email)
    return [JoinedEventResponse.model_validate(r) for r in records]
