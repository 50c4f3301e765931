# backend/tests/conftest.py
from datetime import date
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from finassist import models
from finassist.main import app
from finassist.db import Base, get_db
from finassist.auth import create_access_token
from finassist.core.settings import Settings, get_settings
from finassist.dependencies import get_registry
from finassist.enums import CategoryType
from finassist.services.ai.base import BackendHealth, ExtractionBackend
from finassist.services.ai.registry import BackendRegistry

ADMIN_KEY = "test-admin-key"

# One in-memory DB shared across threads (TestClient) via StaticPool
engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enforce FKs in SQLite (off by default otherwise)
@event.listens_for(engine, "connect")
def _set_sqlite_pragma(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class FakeBackend(ExtractionBackend):
    """Scripted backend: returns canned raw text and records every call"""

    def __init__(self, name: str = "fake", response: str = "", transcript: str = "", healthy: bool = True):
        self.name = name
        self.response = response
        self.transcript = transcript
        self.healthy = healthy
        self.calls: List[tuple] = []

    async def extract_from_image(self, image_bytes, mime_type, hint_text="", category_names=None):
        self.calls.append(("image", mime_type, list(category_names or [])))
        return self.response

    async def extract_from_text(self, text, hint_text="", category_names=None):
        self.calls.append(("text", text, list(category_names or [])))
        return self.response

    async def transcribe_audio(self, audio_path):
        self.calls.append(("transcribe", audio_path))
        return self.transcript

    async def check_health(self):
        if self.healthy:
            return BackendHealth(healthy=True, provider=self.name, model="fake-model")
        return BackendHealth(healthy=False, provider=self.name, error="down")


@pytest.fixture
def db_session():
    # Services commit and roll back for real, so every test gets a fresh schema
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_settings():
    return Settings(
        admin_api_key=ADMIN_KEY,
        openai_api_key=None,
        gemini_api_key=None,
        backend_timeout_s=2.0,
        auto_create_categories=False,
    )


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def registry(fake_backend):
    registry = BackendRegistry()
    registry.register(fake_backend.name, fake_backend)
    return registry


@pytest.fixture(autouse=True)
def _override_dependencies(db_session, registry, test_settings):
    def _get_db():
        yield db_session
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def make_tenant(db_session, name: str = "Sharma Household"):
    tenant = models.Tenant(name=name)
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


def make_user(db_session, tenant, full_name: str = "Asha Sharma", email: Optional[str] = None):
    user = models.User(
        tenant_id=tenant.id,
        full_name=full_name,
        email=email or f"{full_name.split()[0].lower()}@example.com",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def make_category(db_session, tenant, name: str, category_type: CategoryType = CategoryType.EXPENSE, **kwargs):
    category = models.Category(
        tenant_id=tenant.id,
        name=name,
        type=category_type,
        icon=kwargs.pop("icon", "📁"),
        tombstone=models.Tombstone(),
        **kwargs,
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def tenant(db_session):
    return make_tenant(db_session)


@pytest.fixture
def user(db_session, tenant):
    return make_user(db_session, tenant)


@pytest.fixture
def other_tenant_user(db_session):
    other = make_tenant(db_session, "Other Household")
    return make_user(db_session, other, "Ravi Kumar")


@pytest.fixture
def catalog(db_session, tenant):
    """Food & Dining, Transport, House and the Other fallback"""
    return {
        name: make_category(db_session, tenant, name)
        for name in ["Food & Dining", "Transport", "House", "Other"]
    }


@pytest.fixture
def auth_headers(user):
    token = create_access_token(data={"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return {"X-API-Key": ADMIN_KEY}


@pytest.fixture
def today():
    return date.today()
