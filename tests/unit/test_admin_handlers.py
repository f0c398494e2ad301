"""Unit tests for admin command handlers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram import Chat, Message, Update
from telegram import User as TgUser
from telegram.ext import ContextTypes

from hrbot.bot.handlers.admin import (
    handle_add_admin_command,
    handle_bind_department_command,
    handle_list_employees_command,
    handle_remove_user_command,
    handle_user_status_command,
)
from hrbot.services.admin_service import AdminService
from hrbot.services.channel_service import ChannelService
from hrbot.services.localizer import t

OWNER_ID = 1000
ADMIN_ID = 2000


def _update(user_id: int, chat_id: int = -100500):
    update = MagicMock(spec=Update)
    update.message = MagicMock(spec=Message)
    update.message.reply_text = AsyncMock()
    update.message.reply_to_message = None
    update.effective_user = MagicMock(spec=TgUser)
    update.effective_user.id = user_id
    update.effective_user.username = "actor"
    update.effective_chat = MagicMock(spec=Chat)
    update.effective_chat.id = chat_id
    return update


def _context(*args):
    context = MagicMock(spec=ContextTypes.DEFAULT_TYPE)
    context.args = list(args)
    context.bot = MagicMock()
    return context


@pytest.fixture
def wired(db_session, gateway):
    """Route handler sessions and gateway to the test doubles."""
    with patch("hrbot.bot.handlers.admin.SessionLocal", return_value=db_session), patch(
        "hrbot.bot.handlers.admin.TelegramGateway", return_value=gateway
    ):
        yield


def _replies(update) -> list[str]:
    return [c.args[0] for c in update.message.reply_text.call_args_list]


@pytest.mark.asyncio
async def test_add_admin_requires_owner(wired):
    update = _update(ADMIN_ID)

    await handle_add_admin_command(update, _context("@petrov"))

    assert _replies(update) == [t("admin.owner_only")]


@pytest.mark.asyncio
async def test_owner_adds_admin_by_username(db_session, wired):
    update = _update(OWNER_ID)

    await handle_add_admin_command(update, _context("@petrov"))

    assert _replies(update) == [t("admin.admin_added", target="@petrov")]
    assert AdminService(db_session).is_admin(3000, "petrov")


@pytest.mark.asyncio
async def test_add_admin_without_target_shows_usage(wired):
    update = _update(OWNER_ID)

    await handle_add_admin_command(update, _context())

    assert _replies(update) == [t("admin.add_admin_usage")]


@pytest.mark.asyncio
async def test_bind_department_denied_for_non_admin(wired):
    update = _update(ADMIN_ID)

    with patch("hrbot.bot.handlers.admin.has_admin_access", return_value=False):
        await handle_bind_department_command(update, _context("10"))

    assert _replies(update) == [t("admin.no_rights")]


@pytest.mark.asyncio
async def test_admin_binds_current_chat_once(db_session, wired):
    first = _update(ADMIN_ID, chat_id=-100777)
    second = _update(ADMIN_ID, chat_id=-100888)

    with patch("hrbot.bot.handlers.admin.has_admin_access", return_value=True):
        await handle_bind_department_command(first, _context("10"))
        await handle_bind_department_command(second, _context("10"))

    assert _replies(first) == [t("admin.bind_done", department="10", channel_id="-100777")]
    assert _replies(second) == [t("admin.bind_exists", department="10", channel_id="-100777")]
    assert ChannelService(db_session).resolve_department_channel(10) == "-100777"


@pytest.mark.asyncio
async def test_remove_user_requires_reason(wired):
    update = _update(OWNER_ID)

    await handle_remove_user_command(update, _context("@sidorov"))

    assert _replies(update) == [t("admin.remove_user_reason_required")]


@pytest.mark.asyncio
async def test_user_status_unknown_user(wired):
    update = _update(OWNER_ID)

    await handle_user_status_command(update, _context("12345"))

    assert _replies(update) == [t("admin.user_not_found")]


@pytest.mark.asyncio
async def test_list_employees_requires_owner(wired):
    update = _update(ADMIN_ID)

    await handle_list_employees_command(update, _context())

    assert _replies(update) == [t("admin.owner_only")]


@pytest.mark.asyncio
async def test_list_employees_empty(wired):
    update = _update(OWNER_ID)

    await handle_list_employees_command(update, _context())

    assert _replies(update) == [t("admin.employees_empty")]


@pytest.mark.asyncio
async def test_list_employees_sent_in_chunks(wired, make_employee):
    for i in range(45):
        make_employee(last_name=f"Сотрудник{i:02d}", middle_name=None)
    update = _update(OWNER_ID)

    await handle_list_employees_command(update, _context())

    replies = _replies(update)
    assert len(replies) == 2
    assert len(replies[0].splitlines()) == 40
    assert len(replies[1].splitlines()) == 5
    assert replies[0].splitlines()[0] == t(
        "admin.employee_line", index=1, full_name="Сотрудник00 Иван", position=101, department=10
    )
    assert replies[1].splitlines()[-1].startswith("45. ")
