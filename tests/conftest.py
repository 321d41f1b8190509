"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from edutrack.api.deps import get_delivery_channel
from edutrack.core.security import create_access_token
from edutrack.db.base import Base
from edutrack.db.session import get_db
from edutrack.main import app
from edutrack.models.identity import UserType
from edutrack.schemas.common import Principal
from edutrack.services.delivery_channel import DeliveryChannel

SCHOOL_ID = "school-1"


@pytest_asyncio.fixture
async def async_engine(tmp_path):
    """Create async test engine."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    # pysqlite's own transaction handling breaks SAVEPOINT, let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Create async test session."""
    async_session = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session


class RecordingWebSocket:
    """Stands in for a connected client and records what it is sent."""

    def __init__(self, name: str = "ws", fail: bool = False):
        self.name = name
        self.fail = fail
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(data)

    def events(self, name: str) -> list:
        return [frame["data"] for frame in self.sent if frame["event"] == name]

    def __repr__(self) -> str:
        return f"RecordingWebSocket({self.name})"


@pytest.fixture
def channel():
    return DeliveryChannel()


@pytest.fixture
def make_ws():
    return RecordingWebSocket


@pytest_asyncio.fixture
async def client(db_session, channel):
    """Create test client with overridden dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_delivery_channel] = lambda: channel

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def _principal(id: str, role: UserType, name: str) -> Principal:
    return Principal(id=id, role=role, name=name, school_id=SCHOOL_ID)


@pytest.fixture
def admin():
    return _principal("admin-1", UserType.ADMIN, "Alice Admin")


@pytest.fixture
def teacher():
    return _principal("teacher-1", UserType.TEACHER, "Tom Teacher")


@pytest.fixture
def student():
    return _principal("student-1", UserType.STUDENT, "Sam Student")


@pytest.fixture
def parent():
    return _principal("parent-1", UserType.PARENT, "Pat Parent")


@pytest.fixture
def outsider():
    return _principal("student-9", UserType.STUDENT, "Olly Outsider")


def auth_headers(principal: Principal) -> dict:
    token = create_access_token(
        subject=principal.id,
        role=principal.role.value,
        name=principal.name,
        school_id=principal.school_id,
    )
    return {"Authorization": f"Bearer {token}"}


def as_participant(principal: Principal) -> dict:
    return {"user_id": principal.id, "user_type": principal.role, "name": principal.name}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def participant_of():
    return as_participant
