from datetime import datetime, timezone
from typing import Annotated, Any

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, BeforeValidator


def _stringify_object_id(value: Any) -> Any:
    return str(value) if isinstance(value, ObjectId) else value


def _as_utc(value: datetime) -> datetime:
    # The driver hands back naive datetimes that are already UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


ObjectIdStr = Annotated[str, BeforeValidator(_stringify_object_id)]
UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]


class InsertResult(BaseModel):
    acknowledged: bool = True
    insertedId: ObjectIdStr


class UpdateResult(BaseModel):
    acknowledged: bool = True
    matchedCount: int
    modifiedCount: int


class DeleteResult(BaseModel):
    acknowledged: bool = True
    deletedCount: int


class MessageResponse(BaseModel):
    message: str
