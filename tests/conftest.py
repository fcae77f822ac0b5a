import os

# Configure before the app modules read settings
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SHEETS_BACKEND"] = "memory"
os.environ["DRIVE_BACKEND"] = "memory"
os.environ["SMTP_HOST"] = ""
os.environ["SUPER_ADMIN_EMAILS"] = "owner@example.com"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.core.dependencies import SHEET_HEADERS, get_db, get_drive_client, get_sheets_client
from app.core.security import create_access_token
from app.integrations.google_drive import InMemoryDriveClient
from app.integrations.google_sheets import InMemorySheetsClient
from app.main import app
from app.models.user import UserRole
from app.services.user_service import create_user


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sheets():
    return InMemorySheetsClient({name: [list(header)] for name, header in SHEET_HEADERS.items()})


@pytest.fixture
def drive():
    return InMemoryDriveClient()


@pytest.fixture
def client(db_session, sheets, drive):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sheets_client] = lambda: sheets
    app.dependency_overrides[get_drive_client] = lambda: drive
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def users(db_session):
    return {
        "super_admin": create_user(db_session, "owner@example.com", "secret123", "Olivia Owner"),
        "admin": create_user(db_session, "treasurer@example.com", "secret123", "Tom Treasurer", UserRole.admin),
        "basic": create_user(db_session, "member@example.com", "secret123", "Mary Member"),
        "other": create_user(db_session, "visitor@example.com", "secret123", "Victor Visitor"),
    }


def auth_headers(user):
    token = create_access_token({"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def as_user(users):
    """as_user("admin") -> Authorization header for that seeded user."""
    return lambda name: auth_headers(users[name])


def transaction_payload(**overrides):
    payload = {
        "account": "MIYF",
        "date": "2024-03-10",
        "type": "Expense",
        "who": "Grace Bakery",
        "amount": 50,
        "description": "Snacks for youth night",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_transaction(client, as_user):
    def _create(user="basic", **overrides):
        response = client.post("/api/sheets/create", json=transaction_payload(**overrides), headers=as_user(user))
        assert response.status_code == 200, response.text
        return response.json()["record"]

    return _create
