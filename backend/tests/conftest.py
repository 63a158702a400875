import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("DEFAULT_ACADEMIC_YEAR", "2024-2025")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from schoolhub.api.deps import get_db
from schoolhub.core.security import get_password_hash
from schoolhub.db.base import Base
from schoolhub.main import app
from schoolhub.models.user import User, UserRole
from schoolhub.services.locks import clear_teacher_day_locks

ACADEMIC_YEAR = "2024-2025"
PASSWORD = "password123"


@pytest.fixture()
def engine():
    # one shared in-memory database across threads
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    clear_teacher_day_locks()
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        clear_teacher_day_locks()


@pytest.fixture()
def client(engine, session_factory, monkeypatch):
    monkeypatch.setattr("schoolhub.db.bootstrap.engine", engine)
    monkeypatch.setattr("schoolhub.api.routes.health.engine", engine)
    clear_teacher_day_locks()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    clear_teacher_day_locks()


@pytest.fixture()
def make_user(db_session):
    def _make_user(name, role=UserRole.staff, subject=None, email=None, is_active=True):
        user = User(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@school.example.com",
            hashed_password=get_password_hash(PASSWORD),
            role=role,
            subject=subject,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


def register_user(client, payload):
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    return response.json()


def login_user(client, email, password, role):
    response = client.post(
        "/api/auth/login",
        json={"email": email, "password": password, "role": role},
    )
    assert response.status_code == 200
    return response.json()["access_token"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client):
    register_user(
        client,
        {"name": "Admin User", "email": "admin@school.example.com", "password": PASSWORD, "role": "admin"},
    )
    token = login_user(client, "admin@school.example.com", PASSWORD, "admin")
    return auth_headers(token)


@pytest.fixture()
def staff_factory(client):
    def _staff(name, subject="Mathematics"):
        email = f"{name.lower().replace(' ', '.')}@school.example.com"
        user = register_user(
            client,
            {"name": name, "email": email, "password": PASSWORD, "role": "staff", "subject": subject},
        )
        token = login_user(client, email, PASSWORD, "staff")
        return user, auth_headers(token)

    return _staff
