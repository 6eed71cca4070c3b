import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from social_events.api.deps import get_current_user, get_db_service, require_admin
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
from social_events.controllers.users import (
    upsert_user_controller,
    get_me_controller,
    update_me_controller,
    get_public_profile_controller,
    list_users_controller,
    update_role_controller,
    update_block_controller,
    delete_user_controller,
)

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("", response_model=UserProfile, summary="Register or refresh the caller")
async def upsert_user(
    payload: Optional[UserUpsertRequest] = None,
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
):
    """
    Called on every login. Profile fields are refreshed from the token;
    role and block status are only set when the user is first created.
    """
    return await upsert_user_controller(current_user, db_service, payload)

@router.get("", response_model=List[UserProfile], summary="List all users")
async def list_users(
    admin: Principal = Depends(require_admin),
    db_service: MongoDBService = Depends(get_db_service),
):
    return await list_users_controller(db_service)

@router.get("/me", response_model=UserProfile)
async def read_users_me(
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
):
    """Returns the stored profile of the authenticated user."""
    return await get_me_controller(current_user, db_service)

@router.put("/me", response_model=UserProfile)
async def update_users_me(
    payload: UserProfileUpdate,
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
):
    """
    Updates the caller's profile. email, createdAt, role and isBlocked are
    dropped from the body before the write.
    """
    return await update_me_controller(payload, current_user, db_service)

@router.get("/email/{email}", response_model=PublicUserProfile, summary="Public profile")
async def get_public_profile(email: str, db_service: MongoDBService = Depends(get_db_service)):
    return await get_public_profile_controller(email, db_service)

@router.put("/{email}/role", response_model=UserProfile)
async def update_role(
    email: str,
    payload: RoleUpdateRequest,
    admin: Principal = Depends(require_admin),
    db_service: MongoDBService = Depends(get_db_service),
):
    return await update_role_controller(email, payload, admin, db_service)

@router.patch("/{email}/block", response_model=UserProfile)
async def update_block(
    email: str,
    payload: Optional[BlockUpdateRequest] = None,
    admin: Principal = Depends(require_admin),
    db_service: MongoDBService = Depends(get_db_service),
):
    """Sets isBlocked from the body, or toggles it when the body omits it."""
    return await update_block_controller(email, payload, admin, db_service)

@router.delete("/{email}", response_model=MessageResponse)
async def delete_user(
    email: str,
    admin: Principal = Depends(require_admin),
    db_service: MongoDBService = Depends(get_db_service),
):
    return await delete_user_controller(email, admin, db_service)
