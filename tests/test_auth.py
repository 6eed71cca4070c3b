"""
Tests for Firebase token verification
"""

import base64
import json
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import HTTPException

from social_events.core.config import Settings
from social_events.services import auth_service
from social_events.services.auth_service import FirebaseAuthService, _load_service_account


@pytest.fixture
def firebase(monkeypatch):
    """Pretend the Firebase app exists and let each test script verify_id_token."""
    monkeypatch.setattr(auth_service.firebase_admin, "get_app", lambda: object())
    calls = {}

    def use(result=None, error=None):
        def fake_verify(token):
            calls["token"] = token
            if error is not None:
                raise error
            return result

        monkeypatch.setattr(auth_service.auth, "verify_id_token", fake_verify)
        return calls

    return use


def test_valid_token_yields_principal(firebase):
    calls = firebase(result={
        "uid": "abc123",
        "email": "carol@example.com",
        "name": "Carol",
        "picture": "https://img.test/carol.png",
    })
    principal = FirebaseAuthService(Settings()).verify_token("good-token")

    assert calls["token"] == "good-token"
    assert principal.uid == "abc123"
    assert principal.email == "carol@example.com"
    assert principal.name == "Carol"
    assert principal.picture == "https://img.test/carol.png"


def test_invalid_token_is_forbidden(firebase):
    firebase(error=ValueError("Illegal ID token provided."))
    with pytest.raises(HTTPException) as excinfo:
        FirebaseAuthService(Settings()).verify_token("garbage")
    assert excinfo.value.status_code == 403
    assert excinfo.value.detail == "Forbidden access"


def test_token_without_email_is_rejected(firebase):
    firebase(result={"uid": "anon"})
    with pytest.raises(HTTPException) as excinfo:
        FirebaseAuthService(Settings()).verify_token("anonymous-token")
    assert excinfo.value.status_code == 400


def test_service_account_blob_is_decoded():
    account = {"type": "service_account", "project_id": "social-events"}
    encoded = base64.b64encode(json.dumps(account).encode("utf-8")).decode("ascii")
    assert _load_service_account(encoded) == account


def test_mongodb_uri_from_credentials():
    settings = Settings(DB_USER="events", DB_PASS="p@ss word", MONGODB_URI=None)
    assert settings.mongodb_uri.startswith("mongodb+srv://events:p%40ss+word@")
    assert Settings(MONGODB_URI="mongodb://db:27017").mongodb_uri == "mongodb://db:27017"


def test_concurrent_first_verifications_initialize_once(monkeypatch):
    state = {"app": None, "inits": 0}

    def fake_get_app():
        if state["app"] is None:
            raise ValueError("The default Firebase app does not exist.")
        return state["app"]

    def fake_initialize_app(cred, options=None):
        if state["app"] is not None:
            raise ValueError("The default Firebase app already exists.")
        time.sleep(0.05)
        state["inits"] += 1
        state["app"] = object()
        return state["app"]

    monkeypatch.setattr(auth_service.firebase_admin, "get_app", fake_get_app)
    monkeypatch.setattr(auth_service.firebase_admin, "initialize_app", fake_initialize_app)
    monkeypatch.setattr(auth_service.credentials, "ApplicationDefault", lambda: object())
    monkeypatch.setattr(
        auth_service.auth, "verify_id_token", lambda token: {"uid": token, "email": f"{token}@example.com"}
    )

    service = FirebaseAuthService(
        Settings(FB_SERVICE_KEY=None, GOOGLE_APPLICATION_CREDENTIALS=None, GOOGLE_CLOUD_PROJECT=None)
    )
    with ThreadPoolExecutor(max_workers=4) as pool:
        principals = list(pool.map(service.verify_token, ["a", "b", "c", "d"]))

    assert [p.email for p in principals] == [f"{t}@example.com" for t in "abcd"]
    assert state["inits"] == 1
