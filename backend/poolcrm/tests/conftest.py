"""
Pytest configuration and fixtures for backend testing.

Provides an in-memory SQLite database, the FastAPI test client with its
database and document storage dependencies overridden, and registered
users for two separate companies.
"""
import pytest
from typing import Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from poolcrm.api.main import app
from poolcrm.database.connection import build_engine, create_tables, drop_tables, get_db
from poolcrm.services.storage import DocumentStorage, get_storage

TEST_PASSWORD = "Password123!"


@pytest.fixture
def test_engine():
    """Create a fresh in-memory database for each test."""
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def db_session(test_engine) -> Generator[Session, None, None]:
    """Session bound to the test database."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path) -> DocumentStorage:
    return DocumentStorage(str(tmp_path / "documents"))


@pytest.fixture
def client(test_engine, storage) -> Generator[TestClient, None, None]:
    """Test client with database and storage dependencies overridden."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client: TestClient, company_id: str, email: str, password: str = TEST_PASSWORD, **extra):
    payload = {"company_id": company_id, "email": email, "password": password}
    payload.update(extra)
    return client.post("/api/auth/register", json=payload)


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_registration() -> Dict[str, str]:
    return {
        "company_id": "acme-pools",
        "email": "owner@example.com",
        "password": TEST_PASSWORD,
        "full_name": "Olivia Owner",
        "company_name": "Acme Pools"
    }


@pytest.fixture
def admin_auth(client, sample_registration) -> Dict:
    """Register the first user of ``acme-pools``, who becomes its admin."""
    response = client.post("/api/auth/register", json=sample_registration)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth_headers(admin_auth) -> Dict[str, str]:
    return bearer(admin_auth["access_token"])


@pytest.fixture
def member_headers(client, auth_headers) -> Dict[str, str]:
    """A non-admin user of ``acme-pools``, registered through the whitelist."""
    response = client.post("/api/whitelist", json={"email": "crew@example.com"}, headers=auth_headers)
    assert response.status_code == 201
    response = register(client, "acme-pools", "crew@example.com", full_name="Casey Crew")
    assert response.status_code == 201
    return bearer(response.json()["access_token"])


@pytest.fixture
def other_headers(client) -> Dict[str, str]:
    """Admin of a second, unrelated company."""
    response = register(client, "blue-lagoon", "boss@example.com", company_name="Blue Lagoon")
    assert response.status_code == 201
    return bearer(response.json()["access_token"])


@pytest.fixture
def customer(client, auth_headers) -> Dict:
    response = client.post("/api/customers", json={
        "first_name": "Pat",
        "last_name": "Poolman",
        "email": "pat@example.com",
        "phone": "(555) 123-4567",
        "city": "Tampa",
        "state": "FL"
    }, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def project(client, auth_headers, customer) -> Dict:
    response = client.post("/api/projects", json={
        "customer_id": customer["id"],
        "address": "12 Palm Way",
        "project_type": "residential",
        "pool_or_spa": "pool",
        "est_value": "50000",
        "status": "sold"
    }, headers=auth_headers)
    assert response.status_code == 201
    return response.json()
