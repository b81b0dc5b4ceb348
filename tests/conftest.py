import os
import pytest
from datetime import date
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from moviecatalog.database import Base, get_db
from moviecatalog.main import app
from moviecatalog.models import User, Genre, Movie
from moviecatalog.services.movie_service import MovieService
from moviecatalog.utils.cache import CacheService, CacheStore
from moviecatalog.utils.security import create_access_token

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cache(monkeypatch):
    """Fresh cache for each test, wired into MovieService."""
    cache_service = CacheService(CacheStore(max_size=100), invalidation_mode="prefix")
    monkeypatch.setattr(MovieService, "cache", cache_service)
    return cache_service


@pytest.fixture
def client(db_session, cache):
    """FastAPI test client with the database dependency overridden."""

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)


def create_user(session, username="testuser", email=None):
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        password_hash="$2b$12$LQv3c1yqBWVHxkd0LHAkCOYz6TtxMQJqhN8/X4.V2RqFi0W7e8y7e",
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def test_user(db_session):
    return create_user(db_session)


@pytest.fixture
def other_user(db_session):
    return create_user(db_session, username="otheruser")


@pytest.fixture
def auth_headers(test_user):
    token = create_access_token(data={"sub": test_user.email, "user_id": test_user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def genres(db_session):
    """Action, Comedy, Drama"""
    items = [Genre(id=28, name="Action"), Genre(id=35, name="Comedy"), Genre(id=18, name="Drama")]
    db_session.add_all(items)
    db_session.commit()
    return {g.name: g for g in items}


@pytest.fixture
def movie(db_session, genres):
    movie = Movie(
        id=550,
        title="Fight Club",
        overview="An insomniac office worker...",
        release_date=date(1999, 10, 15),
        vote_average=8.4,
        vote_count=26000,
        popularity=61.4,
        original_language="en",
        original_title="Fight Club",
    )
    movie.genres = [genres["Drama"]]
    db_session.add(movie)
    db_session.commit()
    db_session.refresh(movie)
    return movie
