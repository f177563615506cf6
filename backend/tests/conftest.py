import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-suite-0123456789")
os.environ.setdefault("BOOTSTRAP_ADMIN_PASSWORD", "admin-test-password")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dentalcare.core.config import settings
from dentalcare.core.database import Base, get_db, init_db
from dentalcare.main import app, bootstrap


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    bootstrap(session_factory)
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def login(client, username, password):
    response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, settings.BOOTSTRAP_ADMIN_USERNAME, settings.BOOTSTRAP_ADMIN_PASSWORD)


@pytest.fixture
def make_user(client, admin_headers):
    def _make(username, role, password="password-123"):
        response = client.post("/api/v1/auth/users", headers=admin_headers, json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "first_name": username.title(),
            "role": role,
        })
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def dentist(make_user):
    return make_user("drsmile", "dentist")


@pytest.fixture
def patient(client, admin_headers):
    response = client.post("/api/v1/patients", headers=admin_headers, json={
        "first_name": "Ada",
        "last_name": "Molar",
        "date_of_birth": "1990-05-17",
        "gender": "female",
        "phone": "+1 555 0100",
        "email": "ada@example.com",
    })
    assert response.status_code == 201, response.text
    return response.json()
