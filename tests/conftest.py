import os

# Settings are read once per process, so the test environment must be in
# place before anything imports the application.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from config import get_settings
from core.security import TokenService
from database import Base, SessionLocal, engine, init_models
from main import app
from services.user_service import UserService

init_models()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture(scope="function")
def test_db():
    """Fresh schema per test; requests and eager tasks share the same in-memory database."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(test_db):
    with TestClient(app) as client:
        yield client


# Model factories
@pytest.fixture
def create_user(test_db, settings):
    """Factory to register a user through the service layer."""
    counter = {"n": 0}

    def _create_user(name=None, email=None, password="password123", is_admin=False, is_banned=False):
        counter["n"] += 1
        name = name or f"user{counter['n']}"
        email = email or f"{name.lower()}@example.com"
        user = UserService(test_db, settings).create_user(name, email, password)
        if is_admin or is_banned:
            user.is_admin = is_admin
            user.is_banned = is_banned
            test_db.commit()
            test_db.refresh(user)
        return user
    return _create_user


@pytest.fixture
def token_for(settings):
    def _token_for(user):
        return TokenService(settings).create_access_token(user.id)
    return _token_for


@pytest.fixture
def auth_headers(token_for):
    """Authorization header for a user."""
    def _auth_headers(user):
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _auth_headers


@pytest.fixture
def create_post(client, auth_headers):
    """Factory to create a post over HTTP, which also runs feed fan-out."""
    def _create_post(author, title="Test Post", text="This is a test post", tags=None, reply_to=None):
        response = client.post(
            "/api/posts/",
            json={
                "userId": author.id,
                "title": title,
                "text": text,
                "tagString": tags,
                "replyTo": reply_to,
            },
            headers=auth_headers(author),
        )
        assert response.status_code == 201, response.text
        return response.json()["postId"]
    return _create_post
