import os, sys
import json
import pytest
import requests
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient

# Ensure app import path
backend_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if backend_root not in sys.path:
    sys.path.insert(0, backend_root)

# Deterministic test configuration; must be in place before the app is imported
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("SESSION_ENCRYPTION_KEY", Fernet.generate_key().decode())
os.environ.setdefault("AZURE_AD_CLIENT_ID", "test-client-id")
os.environ.setdefault("AZURE_AD_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("AZURE_AD_TENANT_ID", "test-tenant")
os.environ.setdefault("CALENDAR_TIME_ZONE", "Asia/Tokyo")

from outlook_calendar.main import app  # noqa: E402
from outlook_calendar.services.session_service import get_session_service  # noqa: E402


class RecordingHttp:
    """Stands in for requests.Session; records every GET and replays one response."""

    def __init__(self, status_code=200, body=None, exc=None):
        self.status_code = status_code
        self.body = body if body is not None else {"value": []}
        self.exc = exc
        self.calls = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        resp = requests.Response()
        resp.status_code = self.status_code
        raw = self.body if isinstance(self.body, str) else json.dumps(self.body)
        resp._content = raw.encode()
        resp.url = url
        return resp


@pytest.fixture
def recording_http():
    return RecordingHttp


@pytest.fixture(scope="function")
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def session_cookie():
    """(name, value) of a session cookie holding the Graph token 'graph-token'."""
    sessions = get_session_service()
    value, _ = sessions.issue({
        "access_token": "graph-token",
        "expires_in": 3600,
        "id_token_claims": {"oid": "u1", "name": "Taro Yamada", "preferred_username": "taro@example.com"},
    })
    return sessions.cookie_name, value
