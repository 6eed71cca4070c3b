"""
Test configuration and fixtures.

The app is driven in-process through httpx's ASGI transport. MongoDB is
replaced by mongomock-motor and Firebase by a stub verifier that knows a
fixed set of tokens, both swapped in through dependency overrides.
"""

from datetime import datetime, timedelta
from typing import Any, AsyncGenerator, Dict, Optional

import pytest
import pytest_asyncio
from fastapi import HTTPException, status
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from main import app
from social_events.api.deps import get_auth_service, get_db_service
from social_events.models.user import Principal
from social_events.services.database_service import MongoDBService
from social_events.services.event_query import utcnow


ALICE = Principal(uid="uid-alice", email="alice@example.com", name="Alice", picture="https://img.test/alice.png")
BOB = Principal(uid="uid-bob", email="bob@example.com", name="Bob", picture=None)
ADMIN = Principal(uid="uid-admin", email="admin@socialevents.com", name="Admin User", picture=None)

TOKENS = {
    "alice-token": ALICE,
    "bob-token": BOB,
    "admin-token": ADMIN,
}


class StubAuthService:
    """Stands in for FirebaseAuthService; unknown tokens are rejected like bad ID tokens."""

    def verify_token(self, token: str) -> Principal:
        principal = TOKENS.get(token)
        if principal is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden access")
        return principal


def auth(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def in_days(days: float) -> datetime:
    return utcnow() + timedelta(days=days)


@pytest.fixture
def db_service() -> MongoDBService:
    return MongoDBService(AsyncMongoMockClient(), "social-events-test")


@pytest_asyncio.fixture
async def client(db_service) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with dependency overrides"""
    app.dependency_overrides[get_db_service] = lambda: db_service
    app.dependency_overrides[get_auth_service] = lambda: StubAuthService()
    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_event(db_service):
    """Insert an event document directly and return its id as a string."""

    async def _make_event(
        title: str = "Sample Event",
        days: float = 10,
        creator: str = ALICE.email,
        event_type: str = "Community",
        location: str = "Riverside Park, Chicago",
        created_at: Optional[datetime] = None,
        **extra: Any,
    ) -> str:
        document = {
            "title": title,
            "description": "",
            "eventType": event_type,
            "thumbnail": "https://img.test/thumb.png",
            "images": ["https://img.test/thumb.png"],
            "location": location,
            "eventDate": in_days(days),
            "creatorEmail": creator,
            "createdAt": created_at or utcnow(),
        }
        document.update(extra)
        inserted_id = await db_service.insert_event(document)
        return str(inserted_id)

    return _make_event


@pytest.fixture
def make_user(db_service):
    """Insert a user record directly with the given role."""

    async def _make_user(principal: Principal, role: str = "user", is_blocked: bool = False) -> None:
        now = utcnow()
        await db_service.users.insert_one({
            "email": principal.email,
            "displayName": principal.name,
            "photoURL": principal.picture or "",
            "firebaseUID": principal.uid,
            "role": role,
            "isBlocked": is_blocked,
            "createdAt": now,
            "lastLogin": now,
        })

    return _make_user
