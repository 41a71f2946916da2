import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

import itertools
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from watchlog.core.auth import create_access_token
from watchlog.core.dependencies import get_movie_catalog, get_tmdb_movie_service
from watchlog.db import Base, get_db
from watchlog.models import Group, GroupMember, GroupRole, Movie, User, Watch, WatchShare

from fakes import FakeCatalog, FakeTMDB

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(username=None, **fields):
        n = next(counter)
        username = username or f"user{n}"
        user = User(username=username, email=f"{username}@example.com", **fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_movie(db):
    counter = itertools.count(1000)

    def _make(title, tmdb_id=None, **fields):
        movie = Movie(tmdb_id=tmdb_id or next(counter), title=title, **fields)
        db.add(movie)
        db.commit()
        db.refresh(movie)
        return movie

    return _make


@pytest.fixture
def make_group(db):
    def _make(creator, *members, name="Film club"):
        group = Group(name=name, created_by_id=creator.id)
        db.add(group)
        db.flush()
        db.add(GroupMember(group_id=group.id, user_id=creator.id, role=GroupRole.CREATOR))
        for member in members:
            db.add(GroupMember(group_id=group.id, user_id=member.id, role=GroupRole.MEMBER))
        db.commit()
        db.refresh(group)
        return group

    return _make


@pytest.fixture
def make_watch(db):
    def _make(user, movie, watched_date=None, rating=None, group_ids=(), is_private=None, **fields):
        group_ids = list(group_ids)
        watch = Watch(
            user_id=user.id,
            movie_id=movie.id,
            watched_date=watched_date or datetime(2024, 1, 1, 20, 0),
            rating=rating,
            is_private=(not group_ids) if is_private is None else is_private,
            **fields,
        )
        watch.shares = [WatchShare(group_id=group_id) for group_id in group_ids]
        db.add(watch)
        db.commit()
        db.refresh(watch)
        return watch

    return _make


@pytest.fixture
def catalog(db):
    return FakeCatalog(db, missing={404404})


@pytest.fixture
def popular_movies():
    return [
        {"id": 603, "title": "The Matrix", "release_date": "1999-03-31", "vote_average": 8.2, "genre_ids": [28, 878]},
        {"id": 550, "title": "Fight Club", "release_date": "1999-10-15", "vote_average": 8.4, "genre_ids": [18]},
        {"id": 680, "title": "Pulp Fiction", "release_date": "1994-09-10", "vote_average": 8.5, "genre_ids": [53, 80]},
    ]


@pytest.fixture
def tmdb(popular_movies):
    return FakeTMDB(popular=popular_movies)


@pytest.fixture
def client(db, catalog, tmdb):
    from watchlog.main import app

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_movie_catalog] = lambda: catalog
    app.dependency_overrides[get_tmdb_movie_service] = lambda: tmdb
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers
