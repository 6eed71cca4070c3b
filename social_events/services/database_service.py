import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from social_events.core.config import Settings

logger = logging.getLogger(__name__)

SortSpec = Sequence[Tuple[str, int]]

# Users are always returned without the storage id
USER_PROJECTION = {"_id": 0}
PUBLIC_USER_PROJECTION = {"_id": 0, "email": 1, "displayName": 1, "photoURL": 1}


class MongoDBService:
    """Small wrapper around an async MongoDB client.

    One instance is created at start-up and shared by every request. It
    owns the client and exposes the ``events``, ``joins`` and ``users``
    collections through methods named after what the routes need, so the
    controllers never build raw driver calls themselves.
    """

    def __init__(self, client: AsyncIOMotorClient, db_name: str):
        self.client = client
        self.db = client[db_name]
        self.events = self.db["events"]
        self.joins = self.db["joins"]
        self.users = self.db["users"]

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoDBService":
        client = AsyncIOMotorClient(settings.mongodb_uri, server_api=ServerApi("1"))
        logger.info("MongoDB client created for database '%s'", settings.DB_NAME)
        return cls(client, settings.DB_NAME)

    def close(self) -> None:
        self.client.close()
        logger.info("MongoDB client closed.")

    # ---- Events ---------------------------------------------------------------
    async def find_events(
        self,
        query: Dict[str, Any],
        sort: SortSpec,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """Return one page of events matching ``query``.

        ``limit=0`` means no limit, following the driver.
        """
        try:
            cursor = self.events.find(query, sort=list(sort), skip=skip, limit=limit)
            return await cursor.to_list(length=None)
        except PyMongoError:
            logger.exception("Failed to query events")
            raise

    async def count_events(self, query: Optional[Dict[str, Any]] = None) -> int:
        try:
            return await self.events.count_documents(query or {})
        except PyMongoError:
            logger.exception("Failed to count events")
            raise

    async def get_event(self, event_id: ObjectId) -> Optional[Dict[str, Any]]:
        try:
            return await self.events.find_one({"_id": event_id})
        except PyMongoError:
            logger.exception("Failed to fetch event %s", event_id)
            raise

    async def insert_event(self, document: Dict[str, Any]) -> ObjectId:
        try:
            result = await self.events.insert_one(document)
        except PyMongoError:
            logger.exception("Failed to insert event")
            raise
        logger.info("Created event %s for %s", result.inserted_id, document.get("creatorEmail"))
        return result.inserted_id

    async def update_owned_event(
        self, event_id: ObjectId, owner_email: str, changes: Dict[str, Any]
    ) -> Tuple[int, int]:
        """Apply ``changes`` to an event only if ``owner_email`` created it.

        Returns ``(matched, modified)``; ``matched == 0`` covers both an
        unknown id and a foreign event.
        """
        try:
            result = await self.events.update_one(
                {"_id": event_id, "creatorEmail": owner_email},
                {"$set": changes},
            )
        except PyMongoError:
            logger.exception("Failed to update event %s", event_id)
            raise
        logger.debug("Update of event %s matched=%d modified=%d", event_id, result.matched_count, result.modified_count)
        return result.matched_count, result.modified_count

    async def delete_owned_event(self, event_id: ObjectId, owner_email: str) -> Tuple[int, int]:
        """Delete an event owned by ``owner_email`` together with its joins.

        Returns ``(deleted_events, deleted_joins)``. The joins are removed
        only when the event itself was deleted.
        """
        try:
            result = await self.events.delete_one({"_id": event_id, "creatorEmail": owner_email})
            if result.deleted_count == 0:
                return 0, 0
            joins_result = await self.joins.delete_many({"eventId": event_id})
        except PyMongoError:
            logger.exception("Failed to delete event %s", event_id)
            raise
        logger.info(
            "Deleted event %s and %d join(s) for %s",
            event_id,
            joins_result.deleted_count,
            owner_email,
        )
        return result.deleted_count, joins_result.deleted_count

    # ---- Joins ----------------------------------------------------------------
    async def has_joined(self, event_id: ObjectId, user_email: str) -> bool:
        try:
            existing = await self.joins.find_one({"eventId": event_id, "userEmail": user_email})
        except PyMongoError:
            logger.exception("Failed to look up join for event %s", event_id)
            raise
        return existing is not None

    async def insert_join(self, event_id: ObjectId, user_email: str, joined_at: datetime) -> ObjectId:
        try:
            result = await self.joins.insert_one(
                {"eventId": event_id, "userEmail": user_email, "joinedAt": joined_at}
            )
        except PyMongoError:
            logger.exception("Failed to insert join for event %s", event_id)
            raise
        logger.info("%s joined event %s", user_email, event_id)
        return result.inserted_id

    async def get_joined_events(self, user_email: str) -> List[Dict[str, Any]]:
        """Return the user's joined events merged with their join timestamp.

        Joins whose event has been removed disappear at the ``$unwind``.
        """
        pipeline = [
            {"$match": {"userEmail": user_email}},
            {
                "$lookup": {
                    "from": "events",
                    "localField": "eventId",
                    "foreignField": "_id",
                    "as": "event",
                }
            },
            {"$unwind": "$event"},
            {"$sort": {"event.eventDate": 1}},
        ]
        try:
            rows = await self.joins.aggregate(pipeline).to_list(length=None)
        except PyMongoError:
            logger.exception("Failed to aggregate joined events for %s", user_email)
            raise
        return [{**row["event"], "joinedAt": row["joinedAt"]} for row in rows]

    # ---- Users ----------------------------------------------------------------
    async def upsert_user(
        self, email: str, profile: Dict[str, Any], on_insert: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Refresh ``profile`` fields and seed ``on_insert`` fields for a new user.

        Returns the stored user after the write.
        """
        try:
            user = await self.users.find_one_and_update(
                {"email": email},
                {"$set": profile, "$setOnInsert": {"email": email, **on_insert}},
                upsert=True,
                projection=USER_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError:
            logger.exception("Failed to upsert user %s", email)
            raise
        logger.info("Upserted user %s", email)
        return user

    async def get_user(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.users.find_one({"email": email}, USER_PROJECTION)
        except PyMongoError:
            logger.exception("Failed to fetch user %s", email)
            raise

    async def get_public_user(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.users.find_one({"email": email}, PUBLIC_USER_PROJECTION)
        except PyMongoError:
            logger.exception("Failed to fetch public profile for %s", email)
            raise

    async def list_users(self) -> List[Dict[str, Any]]:
        try:
            cursor = self.users.find({}, USER_PROJECTION).sort([("createdAt", -1)])
            return await cursor.to_list(length=None)
        except PyMongoError:
            logger.exception("Failed to list users")
            raise

    async def update_user(self, email: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply ``changes`` to a user and return the stored result, or None if absent."""
        try:
            return await self.users.find_one_and_update(
                {"email": email},
                {"$set": changes},
                projection=USER_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError:
            logger.exception("Failed to update user %s", email)
            raise

    async def delete_user(self, email: str) -> int:
        try:
            result = await self.users.delete_one({"email": email})
        except PyMongoError:
            logger.exception("Failed to delete user %s", email)
            raise
        return result.deleted_count

    async def is_admin(self, email: str) -> bool:
        """Whether the stored record for ``email`` holds the admin role.

        The record is re-read on every call so a demotion takes effect
        immediately.
        """
        user = await self.get_user(email)
        return bool(user) and user.get("role") == "admin"
