import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from social_events.models.common import MessageResponse
from social_events.models.user import (
    BlockUpdateRequest,
    Principal,
    PublicUserProfile,
    RoleUpdateRequest,
    UserProfile,
    UserProfileUpdate,
    UserUpsertRequest,
)
from social_events.services.database_service import MongoDBService
from social_events.services.event_query import utcnow

logger = logging.getLogger(__name__)

# Never writable through the self-service profile endpoint
PROTECTED_USER_FIELDS = {
    "_id", "email", "createdAt", "role", "isBlocked", "firebaseUID", "lastLogin", "updatedAt",
}


def _user_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


async def upsert_user_controller(
    current_user: Principal,
    db_service: MongoDBService,
    payload: Optional[UserUpsertRequest] = None,
) -> UserProfile:
    """Refresh the caller's record from the verified token, creating it on first login."""
    hints = payload or UserUpsertRequest()
    now = utcnow()
    profile = {
        "displayName": current_user.name or hints.displayName or "",
        "photoURL": current_user.picture or hints.photoURL or "",
        "firebaseUID": current_user.uid,
        "lastLogin": now,
    }
    on_insert = {"role": "user", "isBlocked": False, "createdAt": now}
    record = await db_service.upsert_user(current_user.email, profile, on_insert)
    return UserProfile.model_validate(record)


async def get_me_controller(current_user: Principal, db_service: MongoDBService) -> UserProfile:
    record = await db_service.get_user(current_user.email)
    if not record:
        raise _user_not_found()
    return UserProfile.model_validate(record)


async def update_me_controller(
    payload: UserProfileUpdate,
    current_user: Principal,
    db_service: MongoDBService,
) -> UserProfile:
    # Protected fields are dropped silently rather than rejected; dotted and
    # operator keys would reach into stored fields, so they go too
    changes: Dict[str, Any] = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items()
        if k not in PROTECTED_USER_FIELDS and "." not in k and not k.startswith("$")
    }
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No updatable fields provided")
    changes["updatedAt"] = utcnow()
    record = await db_service.update_user(current_user.email, changes)
    if not record:
        raise _user_not_found()
    return UserProfile.model_validate(record)


async def get_public_profile_controller(email: str, db_service: MongoDBService) -> PublicUserProfile:
    record = await db_service.get_public_user(email)
    if not record:
        raise _user_not_found()
    return PublicUserProfile.model_validate(record)


async def list_users_controller(db_service: MongoDBService) -> List[UserProfile]:
    return [UserProfile.model_validate(r) for r in await db_service.list_users()]


async def update_role_controller(
    email: str,
    payload: RoleUpdateRequest,
    admin: Principal,
    db_service: MongoDBService,
) -> UserProfile:
    record = await db_service.update_user(email, {"role": payload.role, "updatedAt": utcnow()})
    if not record:
        raise _user_not_found()
    logger.info("%s changed role of %s to %s", admin.email, email, payload.role)
    return UserProfile.model_validate(record)


async def update_block_controller(
    email: str,
    payload: Optional[BlockUpdateRequest],
    admin: Principal,
    db_service: MongoDBService,
) -> UserProfile:
    """Set the block flag, or flip the stored one when the body leaves it out."""
    is_blocked = payload.isBlocked if payload else None
    if is_blocked is None:
        current = await db_service.get_user(email)
        if not current:
            raise _user_not_found()
        is_blocked = not current.get("isBlocked", False)

    record = await db_service.update_user(email, {"isBlocked": is_blocked, "updatedAt": utcnow()})
    if not record:
        raise _user_not_found()
    logger.info("%s set isBlocked=%s on %s", admin.email, is_blocked, email)
    return UserProfile.model_validate(record)


async def delete_user_controller(
    email: str,
    admin: Principal,
    db_service: MongoDBService,
) -> MessageResponse:
    if not await db_service.delete_user(email):
        raise _user_not_found()
    logger.info("%s deleted user %s", admin.email, email)
    return MessageResponse(message="User deleted")
