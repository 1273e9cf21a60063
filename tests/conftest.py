"""Pytest configuration and fixtures."""

from datetime import timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from src.config import Settings
from src.main import create_app
from src.models.enums import Role
from src.models.user import COLLECTION as USERS, User
from src.services.auth import build_claims, create_access_token, get_password_hash


class AuthHeaders(dict):
    """Dict subclass that also stores the user's id and email."""

    def __init__(self, *args, user_id: str | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        jwt_secret="test-secret",
        jwt_expiration_minutes=5,
        req_limit=2,
        environment="test",
    )


@pytest.fixture
def db():
    """A fresh in-memory database for each test."""
    client = mongomock.MongoClient()
    yield client["giftshop_test"]
    client.close()


@pytest.fixture
def client(settings, db):
    """Create a test client bound to the in-memory database."""
    app = create_app(settings, db)
    with TestClient(app) as test_client:
        yield test_client


def seed_user(db, name: str, email: str, password: str, role: Role = Role.USER) -> dict:
    """Insert a user directly, bypassing the API."""
    user = User(name=name, email=email, password=get_password_hash(password), role=role)
    document = user.model_dump(mode="json")
    db[USERS].insert_one(document)
    return document


def headers_for(settings, user: dict) -> AuthHeaders:
    token = create_access_token(
        build_claims(user),
        settings.jwt_secret,
        timedelta(minutes=settings.jwt_expiration_minutes),
        algorithm=settings.jwt_algorithm,
    )
    return AuthHeaders(
        {"Authorization": f"Bearer {token}"}, user_id=str(user["_id"]), email=user["email"]
    )


@pytest.fixture
def admin_headers(client, settings, db):
    """Seed an admin and return auth headers for it."""
    admin = seed_user(db, "Admin", "admin@example.com", "adminpass", role=Role.ADMIN)
    return headers_for(settings, admin)


@pytest.fixture
def user_headers(client, settings, db):
    """Seed a regular user and return auth headers for it."""
    user = seed_user(db, "Regular", "user@example.com", "userpass")
    return headers_for(settings, user)


@pytest.fixture
def make_user(db):
    """Insert users directly into the database."""

    def make(name: str, email: str, password: str, role: Role = Role.USER) -> dict:
        return seed_user(db, name, email, password, role=role)

    return make
