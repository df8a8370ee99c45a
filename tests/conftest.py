"""Shared fixtures for the notification service test-suite."""

from __future__ import annotations

import json
import os
import sys
import tempfile
from pathlib import Path

import anyio
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "notification_service_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["REDIS_URL"] = ""
os.environ["ENVIRONMENT"] = "test"
os.environ["APP_TIMEZONE"] = "UTC"

from app.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.infrastructure.database import initialize_database  # noqa: E402
from app.infrastructure.notifications import (  # noqa: E402
    InMemoryConnectionRegistry,
    InMemoryOfflineQueue,
    NotificationConnectionHandler,
    NotificationDeliveryCoordinator,
)
from app.infrastructure.repositories import SqlAlchemyNotificationStore  # noqa: E402


class FakeConnection:
    """Stand-in websocket that records every text frame it is asked to send."""

    def __init__(
        self,
        *,
        fail_after: int | None = None,
        delay: float = 0.0,
        stalled_writes: int = 0,
        close_error: bool = False,
    ) -> None:
        self.sent: list[str] = []
        self.close_codes: list[int] = []
        self._fail_after = fail_after
        self._delay = delay
        self._stalled_writes = stalled_writes
        self._close_error = close_error

    async def send_text(self, data: str) -> None:
        if self._stalled_writes:
            self._stalled_writes -= 1
            await anyio.sleep(60)
        if self._delay:
            await anyio.sleep(self._delay)
        if self._fail_after is not None and len(self.sent) >= self._fail_after:
            raise RuntimeError("socket is closed")
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        if self._close_error:
            raise RuntimeError("socket is already closed")
        self.close_codes.append(code)

    @property
    def closed(self) -> bool:
        return bool(self.close_codes)

    @property
    def frames(self) -> list[dict]:
        return [json.loads(item) for item in self.sent]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def connection_factory():
    return FakeConnection


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    initialize_database(engine)
    yield sessionmaker(bind=engine, autoflush=False)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> SqlAlchemyNotificationStore:
    return SqlAlchemyNotificationStore(session_factory)


@pytest.fixture
def queue() -> InMemoryOfflineQueue:
    return InMemoryOfflineQueue()


@pytest.fixture
def registry() -> InMemoryConnectionRegistry:
    return InMemoryConnectionRegistry(send_timeout=0.5)


@pytest.fixture
def coordinator(store, queue, registry) -> NotificationDeliveryCoordinator:
    return NotificationDeliveryCoordinator(store=store, queue=queue, registry=registry)


@pytest.fixture
def handler(registry, coordinator) -> NotificationConnectionHandler:
    return NotificationConnectionHandler(registry=registry, coordinator=coordinator)
