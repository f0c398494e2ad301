"""Pytest configuration: in-memory database, mocked Telegram gateway, record factories."""

import os

# Set test environment BEFORE any imports from hrbot
# This ensures SessionLocal/engine and BotConfig use test values
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:test-token")
os.environ.setdefault("OWNER_ID", "1000")

import itertools  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from hrbot.models import Base, DepartmentChannel, Employee  # noqa: E402
from hrbot.services.platform import ChatInfo, CreatedInvite, TelegramGateway  # noqa: E402


@pytest.fixture
def db_session():
    """Create test database session."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def gateway():
    """TelegramGateway double; invite links get unique URLs."""
    counter = itertools.count(1)

    async def _create_invite_link(channel_id, expire_at, label, member_limit=1):
        n = next(counter)
        return CreatedInvite(url=f"https://t.me/+invite{n}", invite_link_id=f"invite{n}")

    mock = MagicMock(spec=TelegramGateway)
    mock.send_message = AsyncMock()
    mock.create_invite_link = AsyncMock(side_effect=_create_invite_link)
    mock.ban_member = AsyncMock()
    mock.unban_member = AsyncMock()
    mock.get_chat_info = AsyncMock(return_value=ChatInfo(title="Dev channel", username=None))
    mock.get_chat_member_status = AsyncMock(return_value="member")
    return mock


@pytest.fixture
def make_employee(db_session):
    """Factory for personnel records."""

    def _make(**overrides) -> Employee:
        data = {
            "last_name": "Иванов",
            "first_name": "Иван",
            "middle_name": "Иванович",
            "department_id": 10,
            "position_id": 101,
            "phone": "+7 900 111-22-33",
        }
        data.update(overrides)
        employee = Employee(**data)
        db_session.add(employee)
        db_session.commit()
        return employee

    return _make


@pytest.fixture
def bind_channel(db_session):
    """Bind a department to a channel."""

    def _bind(department: str | int, channel_id: str) -> DepartmentChannel:
        binding = DepartmentChannel(department=str(department), channel_id=channel_id)
        db_session.add(binding)
        db_session.commit()
        return binding

    return _bind
