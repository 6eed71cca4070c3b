import base64
import json
import logging
import threading
import firebase_admin
from firebase_admin import auth, credentials
from fastapi import HTTPException, status
from social_events.models.user import Principal
from social_events.core.config import Settings

logger = logging.getLogger(__name__)

# Thread-pool workers verify tokens concurrently; only one may initialize the app
_init_lock = threading.Lock()

def _load_service_account(encoded: str) -> dict:
    """Decode the base64 service account blob carried in FB_SERVICE_KEY."""
    return json.loads(base64.b64decode(encoded).decode("utf-8"))

class FirebaseAuthService:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _ensure_app(self) -> None:
        # Deferred so requests without a credential never touch Firebase
        settings = self.settings
        with _init_lock:
            try:
                firebase_admin.get_app()
                logger.debug("Firebase app already initialized.")
                return
            except ValueError:
                pass

            logger.info("Initializing Firebase app...")
            if settings.FB_SERVICE_KEY:
                cred = credentials.Certificate(
                    _load_service_account(settings.FB_SERVICE_KEY.get_secret_value())
                )
            elif settings.GOOGLE_APPLICATION_CREDENTIALS:
                cred = credentials.Certificate(settings.GOOGLE_APPLICATION_CREDENTIALS)
            else:
                # For environments like Google Cloud Run where service account is implicit
                cred = credentials.ApplicationDefault()

            options = {"projectId": settings.GOOGLE_CLOUD_PROJECT} if settings.GOOGLE_CLOUD_PROJECT else None
            firebase_admin.initialize_app(cred, options)
            logger.info("Firebase app initialized successfully.")

    def verify_token(self, token: str) -> Principal:
        self._ensure_app()
        try:
            decoded_token = auth.verify_id_token(token)
        except Exception as e:
            # Malformed, expired, revoked and wrongly signed tokens all land here
            logger.warning(f"Rejected ID token: {e}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden access",
            )

        email = decoded_token.get('email')
        if not email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User email not found in token."
            )
        logger.debug(f"Token verified for user: {decoded_token.get('uid')}")
        return Principal(
            uid=decoded_token.get('uid') or decoded_token.get('sub', ''),
            email=email,
            name=decoded_token.get('name'),
            picture=decoded_token.get('picture'),
        )
