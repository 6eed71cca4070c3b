from pydantic import BaseModel, ConfigDict
from typing import Literal, Optional

from social_events.models.common import UTCDateTime

Role = Literal["user", "organizer", "admin"]


class Principal(BaseModel):
    """
    Represents an identity verified by Firebase.
    """
    uid: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


class UserUpsertRequest(BaseModel):
    """
    Optional profile hints sent on registration, used only where the
    token carries no name or picture yet.
    """
    displayName: Optional[str] = None
    photoURL: Optional[str] = None


class UserProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: str
    displayName: Optional[str] = None
    photoURL: Optional[str] = None
    firebaseUID: Optional[str] = None
    role: Role = "user"
    isBlocked: bool = False
    createdAt: Optional[UTCDateTime] = None
    lastLogin: Optional[UTCDateTime] = None
    updatedAt: Optional[UTCDateTime] = None


class UserProfileUpdate(BaseModel):
    """
    Self-service profile changes. Known fields are type-checked; any other
    keys are kept as extra profile fields.
    """
    model_config = ConfigDict(extra="allow")

    displayName: Optional[str] = None
    photoURL: Optional[str] = None


class PublicUserProfile(BaseModel):
    email: str
    displayName: Optional[str] = None
    photoURL: Optional[str] = None


class RoleUpdateRequest(BaseModel):
    role: Role


class BlockUpdateRequest(BaseModel):
    isBlocked: Optional[bool] = None
