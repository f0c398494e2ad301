"""Integration tests for the administrator allowlist and operator actions."""

import pytest
from sqlalchemy import select

from hrbot.models import AdminLog, AuditLog, VerifiedUser
from hrbot.services.admin_service import AdminService, RemoveStatus, Target
from hrbot.services.audit_service import AdminLogEntry, AdminLogService, format_admin_log
from hrbot.services.channel_service import ChannelService
from hrbot.services.errors import FailureReason, PlatformError

LOG_CHAT = "-100log"


@pytest.fixture
def admin_log(db_session, gateway):
    return AdminLogService(db_session, gateway, fallback_chat_id=LOG_CHAT)


@pytest.fixture
def service(db_session, gateway, admin_log):
    return AdminService(db_session, gateway, ChannelService(db_session), admin_log)


@pytest.fixture
def verified_user(db_session):
    user = VerifiedUser(
        telegram_id=700,
        telegram_username="sidorov",
        employee_id=1,
        full_name="Сидоров Сидор",
        department="10",
        position="101",
    )
    db_session.add(user)
    db_session.commit()
    return user


class TestAllowlist:
    def test_add_by_id(self, service):
        service.add_admin(Target(telegram_id=42))

        assert service.is_admin(42)
        assert not service.is_admin(43)

    def test_username_entry_gets_id_on_first_check(self, db_session, service):
        admin = service.add_admin(Target(username="petrov"))
        assert admin.telegram_id is None

        assert service.is_admin(77, "petrov")
        db_session.refresh(admin)
        assert admin.telegram_id == 77
        assert service.is_admin(77)

    def test_username_does_not_match_bound_entry(self, service):
        service.add_admin(Target(telegram_id=111, username="alice_admin"))

        assert not service.is_admin(999, "alice_admin")
        assert service.is_admin(111, "alice_admin")

    def test_bound_username_entry_rejects_later_owner(self, service):
        service.add_admin(Target(username="petrov"))
        assert service.is_admin(77, "petrov")

        assert not service.is_admin(88, "petrov")

    def test_adding_twice_keeps_one_row(self, service):
        service.add_admin(Target(telegram_id=42))
        service.add_admin(Target(telegram_id=42, username="ivanov"))

        admins = service.list_admins()
        assert len(admins) == 1
        assert admins[0].telegram_username == "ivanov"

    def test_remove(self, service):
        service.add_admin(Target(telegram_id=42))

        assert service.remove_admin(Target(telegram_id=42)) == 1
        assert service.remove_admin(Target(telegram_id=42)) == 0
        assert not service.is_admin(42)


class TestRemoveUser:
    @pytest.mark.asyncio
    async def test_bans_from_department_channel(
        self, db_session, gateway, service, verified_user, bind_channel
    ):
        bind_channel(10, "-100dept")

        result = await service.remove_user(Target(username="sidorov"), "уволен", actor_id=1000)

        assert result.status == RemoveStatus.REMOVED
        gateway.ban_member.assert_awaited_once_with("-100dept", 700)

        audit = db_session.execute(select(AuditLog)).scalar_one()
        assert audit.action == "remove_user"
        assert audit.payload["reason"] == "уволен"

        log = db_session.execute(select(AdminLog)).scalar_one()
        assert (log.action, log.target_telegram_id, log.channel_name) == (
            "remove_user",
            700,
            "Dev channel",
        )
        sent_to, text = gateway.send_message.call_args.args
        assert sent_to == LOG_CHAT
        assert "уволен" in text

    @pytest.mark.asyncio
    async def test_unknown_user(self, gateway, service):
        result = await service.remove_user(Target(telegram_id=1), "spam", actor_id=1000)

        assert result.status == RemoveStatus.USER_NOT_FOUND
        gateway.ban_member.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_channel(self, service, verified_user):
        result = await service.remove_user(Target(telegram_id=700), "spam", actor_id=1000)

        assert result.status == RemoveStatus.NO_CHANNEL

    @pytest.mark.asyncio
    async def test_ban_failure_is_logged(self, db_session, gateway, service, verified_user, bind_channel):
        bind_channel(10, "-100dept")
        gateway.ban_member.side_effect = PlatformError(FailureReason.OTHER, "Not enough rights")

        result = await service.remove_user(Target(telegram_id=700), "spam", actor_id=1000)

        assert result.status == RemoveStatus.FAILED
        assert result.error == "Not enough rights"
        log = db_session.execute(select(AdminLog)).scalar_one()
        assert log.action == "remove_user_failed"
        assert "Not enough rights" in log.reason


class TestStatusAndHistory:
    @pytest.mark.asyncio
    async def test_member_status(self, gateway, service, verified_user, bind_channel):
        bind_channel(10, "-100dept")

        channel_id, status = await service.get_member_status(verified_user)

        assert (channel_id, status) == ("-100dept", "member")
        gateway.get_chat_member_status.assert_awaited_once_with("-100dept", 700)

    @pytest.mark.asyncio
    async def test_history_filtered_by_target(self, service, admin_log):
        await admin_log.log_admin_action(
            AdminLogEntry(action="remove_user", actor_id=1, target_id=700, reason="a")
        )
        await admin_log.log_admin_action(
            AdminLogEntry(action="remove_user", actor_id=1, target_id=800, reason="b")
        )

        records = service.history(Target(telegram_id=700))

        assert [r.reason for r in records] == ["a"]
        assert len(service.history(None)) == 2

    @pytest.mark.asyncio
    async def test_admin_log_chat_setting_overrides_fallback(self, gateway, admin_log):
        admin_log.set_admin_log_chat_id("-100other")

        await admin_log.log_admin_action(AdminLogEntry(action="bind_department", actor_id=1))

        assert gateway.send_message.call_args.args[0] == "-100other"


def test_format_admin_log_lists_fields():
    record = AdminLog(
        action="bind_department",
        actor_telegram_id=1000,
        actor_username="owner",
        department="10",
        channel_id="-100dept",
        channel_name="Dev channel",
    )

    text = format_admin_log(record)

    assert "bind_department" in text
    assert "1000 (@owner)" in text
    assert "Dev channel (-100dept)" in text
