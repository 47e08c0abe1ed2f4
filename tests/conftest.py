import os

# Must be set before the application modules read their settings
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_PER_HOUR", "1000")

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from sehat_sathi.main import app
from sehat_sathi.core.database import Base, engine_options, get_db, get_redis
from sehat_sathi.core.security import UserRole
from sehat_sathi.schemas.auth import AccountRegister
from sehat_sathi.services.identity_service import IdentityService
import sehat_sathi.models  # noqa: F401


class FakeRedis:
    """In-memory stand-in for the handful of redis commands the app uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def setex(self, key, time, value):
        self.data[key] = str(value)
        self.ttls[key] = time
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])

    def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0


class PlainHasher:
    """Deterministic password hasher for service tests."""

    def hash(self, password):
        return f"plain${password}"

    def verify(self, password, hashed_password):
        return hashed_password == f"plain${password}"


@pytest.fixture
def engine(tmp_path):
    url = f"sqlite:///{tmp_path / 'sehat_sathi_test.db'}"
    test_engine = create_engine(url, **engine_options(url))
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def identity(db):
    return IdentityService(db, hasher=PlainHasher())


@pytest.fixture
def make_account(identity):
    """Create accounts directly through the identity service."""
    counter = {"n": 0}

    def _make(role=UserRole.PATIENT, name=None, email=None, password="secret123"):
        counter["n"] += 1
        n = counter["n"]
        return identity.register_account(AccountRegister(
            name=name or f"{role.value.title()} {n}",
            email=email or f"{role.value}{n}@example.com",
            password=password,
            role=role,
            phone=f"98765432{n:02d}",
        ))

    return _make


@pytest.fixture
def client(session_factory, fake_redis):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    """Register through the API and return (user, auth headers)."""
    counter = {"n": 0}

    def _register(role="patient", **overrides):
        counter["n"] += 1
        payload = {
            "name": f"{role.title()} {counter['n']}",
            "email": f"{role}{counter['n']}@example.com",
            "password": "TestPassword123",
            "role": role,
            "phone": "9876543210",
        }
        payload.update(overrides)
        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def future_date():
    return (date.today() + timedelta(days=30)).isoformat()
