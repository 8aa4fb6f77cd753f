"""
Shared pytest fixtures for the dashboard API tests.

Settings are read once at import time, so the environment is prepared
here before any app module is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("LOG_FORMAT", "human")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "10000")
os.environ.pop("APP_SECRET_NAME", None)

import pytest
from fastapi.testclient import TestClient

from app.core.security import create_access_token


USER_ID = "user-123"
USER_EMAIL = "alice@example.com"


@pytest.fixture
def client():
    from app.main import app
    return TestClient(app)


@pytest.fixture
def auth_headers():
    token = create_access_token(USER_ID, USER_EMAIL)
    return {"Authorization": f"Bearer {token}"}
