"""
EasyInventory API - Test Configuration and Fixtures
"""
import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before the app reads its settings
_scratch = tempfile.mkdtemp(prefix="easyinventory-tests-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["UPLOAD_DIR"] = os.path.join(_scratch, "uploads")
os.environ["DOWNLOADS_DIR"] = os.path.join(_scratch, "downloads")

from main import app
from config import settings
from database import Base, get_db
from models.users import User
from models.inventory import InventoryItem
from utils.hashing import get_password_hash
from utils.storage import BlobStorage, get_storage
from utils.tokenJWT import create_access_token

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def engine():
    """Fresh in-memory database shared across the test client's threads"""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db_session(engine):
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()
    yield session
    session.close()


@pytest.fixture
def storage(tmp_path):
    return BlobStorage(tmp_path / "uploads")


@pytest.fixture
def downloads_dir(tmp_path, monkeypatch):
    path = tmp_path / "downloads"
    monkeypatch.setattr(settings, "DOWNLOADS_DIR", str(path))
    return path


@pytest.fixture
def client(engine, storage, downloads_dir):
    """Test client with database and blob storage overrides"""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(db_session, username="alice", email=None, password="secret123") -> User:
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        password_hash=get_password_hash(password),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def auth_headers_for(user: User) -> dict:
    token = create_access_token({"sub": user.id, "username": user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_user(db_session) -> User:
    return make_user(db_session, "alice")


@pytest.fixture
def other_user(db_session) -> User:
    return make_user(db_session, "bob")


@pytest.fixture
def auth_headers(test_user) -> dict:
    return auth_headers_for(test_user)


@pytest.fixture
def other_headers(other_user) -> dict:
    return auth_headers_for(other_user)


@pytest.fixture
def make_item(db_session):
    """Insert an inventory row directly, bypassing the API"""
    def _make(owner: User, name="Widget", quantity=1, price=1.0, photo=""):
        item = InventoryItem(name=name, quantity=quantity, price=price, photo=photo, owner_id=owner.id)
        db_session.add(item)
        db_session.commit()
        db_session.refresh(item)
        return item
    return _make


@pytest.fixture
def stored_photo(storage):
    """Write a blob into storage and return its /uploads/... reference"""
    def _store(name="existing.png", data=PNG_BYTES):
        storage.root.mkdir(parents=True, exist_ok=True)
        (storage.root / name).write_bytes(data)
        return f"/uploads/{name}"
    return _store
