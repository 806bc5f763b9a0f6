import os
from pathlib import Path
from uuid import uuid4

import pytest
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Load test overrides before settings are first read
backend_dir = Path(__file__).parent.parent
test_env_file = backend_dir / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file, override=False)
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests")

from inventory_hub.core.auth.dependencies import CurrentUser  # noqa: E402
from inventory_hub.core.config_file import get_settings  # noqa: E402
from inventory_hub.core.db.session import Base  # noqa: E402
from inventory_hub.core.files import ImageService, LocalStorageBackend  # noqa: E402
from inventory_hub.core.pubsub.errors import PublishError  # noqa: E402
from inventory_hub.modules.notifications.models import Notification  # noqa: E402, F401
from inventory_hub.modules.products.models import Category, Department  # noqa: E402
from inventory_hub.modules.routes.models import InventoryRoute  # noqa: E402, F401

get_settings.cache_clear()


@pytest.fixture
def settings():
    """Settings as seen by the code under test."""
    return get_settings()


@pytest.fixture
def db_session():
    """In-memory SQLite session with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_session):
    """Factory handing out the test session; close() is harmless on it."""
    return lambda: db_session


@pytest.fixture
def image_service(tmp_path):
    """Image service writing to a temporary directory."""
    storage = LocalStorageBackend(str(tmp_path / "images"), "/images/routes")
    return ImageService(storage, max_bytes=1024 * 1024)


class RecordingPublisher:
    """Stands in for EventPublisher; records (payload, routing_key) pairs."""

    def __init__(self):
        self.published: list[tuple[object, str]] = []
        self.fail_on: set[str] = set()

    async def publish(self, payload, routing_key: str) -> str:
        if routing_key in self.fail_on:
            raise PublishError(f"Failed to publish event: broker unavailable ({routing_key})")
        self.published.append((payload, routing_key))
        return uuid4().hex

    def routing_keys(self) -> list[str]:
        return [routing_key for _, routing_key in self.published]

    def payloads(self, routing_key: str) -> list:
        return [payload for payload, key in self.published if key == routing_key]


@pytest.fixture
def fake_publisher():
    """Publisher that records instead of talking to a broker."""
    return RecordingPublisher()


@pytest.fixture
def make_user():
    """Build a CurrentUser with the given permissions."""

    def _make(user_id: str = "user-1", name: str = "Test User", permissions=(), roles=()):
        return CurrentUser(
            id=user_id,
            name=name,
            claims={"sub": user_id, "name": name, "permissions": list(permissions), "roles": list(roles)},
        )

    return _make


@pytest.fixture
def catalog(db_session):
    """One category and two departments."""
    category = Category(id=1, name="Laptops")
    it = Department(id=1, name="IT", department_head="Alice")
    finance = Department(id=2, name="Finance")
    db_session.add_all([category, it, finance])
    db_session.commit()
    return {"category": category, "it": it, "finance": finance}
