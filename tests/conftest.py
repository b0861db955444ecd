import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel
from main import create_application
from core.config import Settings
from models import User, Post

@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        JWT_SECRET_KEY="test-secret-key",
        DATABASE_URI="sqlite://",
        RATE_LIMIT_ENABLED=False,
        METRICS_ENABLED=False,
        LOG_LEVEL="WARNING",
    )

@pytest.fixture
def app(settings):
    app = create_application(settings)
    SQLModel.metadata.create_all(app.state.engine)
    yield app
    SQLModel.metadata.drop_all(app.state.engine)

@pytest.fixture
def db_session(app):
    with Session(app.state.engine) as session:
        yield session

@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client

@pytest.fixture
def token_for(app):
    """Issue a signed token for a user id"""
    def _token_for(user_id: str) -> str:
        return app.state.token_verifier.issue(user_id)
    return _token_for

@pytest.fixture
def owner(db_session):
    user = User(id="u1", username="owner", email="owner@example.com", avatar="owner.png")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

@pytest.fixture
def other_user(db_session):
    user = User(id="u2", username="visitor", email="visitor@example.com")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

@pytest.fixture
def make_post(db_session, owner):
    def _make_post(**overrides) -> Post:
        data = {
            "title": "Flat A",
            "price": 1000,
            "images": ["a.jpg"],
            "address": "1 Main St",
            "city": "London",
            "bedroom": 2,
            "type": "rent",
            "property": "apartment",
            "user_id": owner.id,
        }
        data.update(overrides)
        post = Post(**data)
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post
    return _make_post
