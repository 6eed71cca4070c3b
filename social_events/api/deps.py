import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from social_events.core.config import get_settings, Settings
from social_events.models.user import Principal
from social_events.services.auth_service import FirebaseAuthService
from social_events.services.database_service import MongoDBService

logger = logging.getLogger(__name__)

# auto_error is off so a missing header maps to 401 rather than FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)

# Service Dependencies
def get_db_service(request: Request) -> MongoDBService:
    # Opened once at startup, see main.py
    return request.app.state.db_service

def get_auth_service(settings: Settings = Depends(get_settings)) -> FirebaseAuthService:
    return FirebaseAuthService(settings)

# User Dependencies
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: FirebaseAuthService = Depends(get_auth_service),
) -> Principal:
    """
    Verifies the Firebase ID token and returns the caller's principal.
    FastAPI runs this synchronous function in a thread pool.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized access",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_service.verify_token(credentials.credentials)

async def require_admin(
    current_user: Principal = Depends(get_current_user),
    db_service: MongoDBService = Depends(get_db_service),
) -> Principal:
    """
    Lets the request through only when the caller's stored role is admin.
    """
    if not await db_service.is_admin(current_user.email):
        logger.warning(f"Admin action refused for {current_user.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
