# Environment must be in place before any homegrown module is imported:
# common.auth refuses to load without a secret and persistence.session
# builds its engine at import time.
import os

os.environ.setdefault("HOMEGROWN_SECRET", "test-secret")
os.environ.setdefault("HOMEGROWN_DB_URL", "sqlite://")

import pytest

from factories import FakeBackend, FakeS3Client


@pytest.fixture
def backend():
    """Family used across the scenarios: parent A with players P1 and P2."""
    fake = FakeBackend()
    fake.add_profile("A", "parent", "Alex")
    fake.add_profile("P1", "player", "Pat")
    fake.add_profile("P2", "player", "Sam")
    fake.add_profile("SOLO", "player", "Jo")
    fake.add_profile("C", "coach", "Casey")
    fake.link("A", "P1")
    fake.link("A", "P2")
    return fake


@pytest.fixture
def db():
    from homegrown.persistence.models import Base
    from homegrown.persistence.session import SessionLocal, engine

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def client(s3):
    from fastapi.testclient import TestClient

    from homegrown.main import app
    from homegrown.persistence.account_api import get_storage
    from homegrown.persistence.models import Base
    from homegrown.persistence.session import engine
    from homegrown.persistence.storage import AvatarStorage

    storage = AvatarStorage(
        bucket="profile-photos",
        public_base_url="https://cdn.test/profile-photos",
        client=s3,
    )
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)
