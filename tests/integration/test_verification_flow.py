"""Integration tests for the verification pipeline against an in-memory store."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from hrbot.models import AuditLog, Employee, VerifiedUser
from hrbot.services.channel_service import ChannelService
from hrbot.services.dialogue import FormField, RegistrationForm
from hrbot.services.employee_service import EmployeeService
from hrbot.services.errors import FailureReason, PlatformError
from hrbot.services.localizer import t
from hrbot.services.session_store import ClaimSessionStore
from hrbot.services.verification_service import VerificationOutcome, VerificationService

USER = 5001
DEPT_CHANNEL = "-100dept"
NEWS_CHANNEL = "-100news"

FORM = RegistrationForm(
    last_name="Иванов",
    first_name="Иван",
    middle_name="Иванович",
    department_id=10,
    position_id=101,
    phone="9001112233",
)


def _actions(db) -> list[str]:
    return [a.action for a in db.execute(select(AuditLog).order_by(AuditLog.id)).scalars()]


@pytest.fixture
def claim_sessions():
    return ClaimSessionStore()


@pytest.fixture
def service(db_session, gateway, claim_sessions, bind_channel):
    bind_channel(10, DEPT_CHANNEL)
    channels = ChannelService(db_session, default_news_channel_id=NEWS_CHANNEL)
    return VerificationService(db_session, gateway, claim_sessions, channel_service=channels)


class TestVerificationSuccess:
    @pytest.mark.asyncio
    async def test_links_account_and_issues_both_invites(self, db_session, gateway, service, make_employee):
        employee = make_employee()

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.SUCCESS
        assert [i.channel_id for i in result.invites] == [DEPT_CHANNEL, NEWS_CHANNEL]
        for invite in result.invites:
            assert invite.url in result.reply

        db_session.refresh(employee)
        assert employee.telegram_id == USER
        assert employee.telegram_username == "ivanov"
        assert EmployeeService(db_session).get_by_telegram_id(USER).id == employee.id

        user = db_session.execute(select(VerifiedUser)).scalar_one()
        assert user.telegram_id == USER
        assert user.employee_id == employee.id
        assert user.department == "10"

        assert _actions(db_session) == [
            "verification_success",
            "invite_issued",
            "news_invite_issued",
        ]

    @pytest.mark.asyncio
    async def test_repeat_verification_reuses_invites(self, gateway, service, make_employee):
        make_employee()

        first = await service.run_verification(USER, "ivanov", FORM)
        second = await service.run_verification(USER, "ivanov", FORM)

        assert second.outcome == VerificationOutcome.SUCCESS
        assert [i.url for i in first.invites] == [i.url for i in second.invites]
        assert gateway.create_invite_link.await_count == 2

    @pytest.mark.asyncio
    async def test_whitespace_and_phone_format_are_ignored(self, service, make_employee):
        make_employee(middle_name="Иванович ", phone="8 (900) 111-22-33")

        result = await service.run_verification(USER, None, FORM)

        assert result.outcome == VerificationOutcome.SUCCESS

    @pytest.mark.asyncio
    async def test_stale_blacklist_cleared_for_active_employee(
        self, db_session, gateway, service, make_employee
    ):
        employee = make_employee(blacklisted=True)

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.SUCCESS
        db_session.refresh(employee)
        assert employee.blacklisted is False
        unbanned = {c.args[0] for c in gateway.unban_member.call_args_list}
        assert unbanned == {DEPT_CHANNEL, NEWS_CHANNEL}

    @pytest.mark.asyncio
    async def test_unban_of_non_member_is_tolerated(self, gateway, service, make_employee):
        make_employee()
        gateway.unban_member.side_effect = PlatformError(FailureReason.NOT_IN_CHAT, "User not in chat")

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.SUCCESS


class TestVerificationRejected:
    @pytest.mark.asyncio
    async def test_not_found(self, db_session, gateway, service, make_employee):
        make_employee(phone="+7 900 999-99-99")

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.NOT_FOUND
        assert result.reply == t("verification.not_found")
        gateway.create_invite_link.assert_not_called()
        assert _actions(db_session) == ["verification_failed"]

    @pytest.mark.asyncio
    async def test_terminated_employee_is_banned_and_blacklisted(
        self, db_session, gateway, service, make_employee
    ):
        employee = make_employee(termination_date=datetime(2026, 1, 15, tzinfo=timezone.utc))

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.ACCESS_DENIED
        assert result.reply == t("verification.denied")
        banned = {(c.args[0], c.args[1]) for c in gateway.ban_member.call_args_list}
        assert banned == {(DEPT_CHANNEL, USER), (NEWS_CHANNEL, USER)}
        db_session.refresh(employee)
        assert employee.blacklisted is True
        assert employee.telegram_id is None
        gateway.create_invite_link.assert_not_called()
        assert _actions(db_session) == ["fired_blocked"]

    @pytest.mark.asyncio
    async def test_blacklisted_terminated_attempt_is_audited(
        self, db_session, gateway, service, make_employee
    ):
        make_employee(
            termination_date=datetime(2026, 1, 15, tzinfo=timezone.utc),
            blacklisted=True,
            telegram_id=4242,
        )

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.ACCESS_DENIED
        assert _actions(db_session) == ["blacklisted_attempt", "fired_blocked"]
        banned_users = {c.args[1] for c in gateway.ban_member.call_args_list}
        assert banned_users == {USER, 4242}

    @pytest.mark.asyncio
    async def test_record_linked_elsewhere_opens_claim(
        self, db_session, gateway, service, claim_sessions, make_employee
    ):
        employee = make_employee(telegram_id=4242, telegram_username="holder")

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.CLAIM_PENDING
        assert len(claim_sessions) == 1
        holder_call = gateway.send_message.call_args
        assert holder_call.args[0] == 4242
        assert "@ivanov" in holder_call.args[1]
        assert holder_call.kwargs["reply_markup"] is not None
        db_session.refresh(employee)
        assert employee.telegram_id == 4242
        assert _actions(db_session) == ["claim_requested"]

    @pytest.mark.asyncio
    async def test_account_linked_to_other_record_conflicts(self, db_session, service, make_employee):
        make_employee()
        make_employee(last_name="Петров", first_name="Пётр", telegram_id=USER)

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.CONFLICT
        owners = db_session.execute(
            select(Employee.last_name).where(Employee.telegram_id == USER)
        ).scalars().all()
        assert owners == ["Петров"]

    @pytest.mark.asyncio
    async def test_missing_telegram_id(self, service):
        result = await service.run_verification(None, None, FORM)

        assert result.outcome == VerificationOutcome.FAILED
        assert result.reply == t("verification.no_telegram_id")


class TestInviteFailures:
    @pytest.mark.asyncio
    async def test_no_channel_configured(self, db_session, gateway, claim_sessions, make_employee):
        make_employee(department_id=99)
        service = VerificationService(db_session, gateway, claim_sessions)

        result = await service.run_verification(USER, "ivanov", FORM.with_value(FormField.DEPARTMENT_ID, 99))

        assert result.outcome == VerificationOutcome.CHANNEL_MISCONFIGURED

    @pytest.mark.asyncio
    async def test_platform_chat_not_found(self, gateway, service, make_employee):
        make_employee()
        gateway.create_invite_link.side_effect = PlatformError(FailureReason.NOT_FOUND, "Chat not found")

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.CHANNEL_MISCONFIGURED
        assert result.reply == t("verification.channel_misconfigured")

    @pytest.mark.asyncio
    async def test_other_platform_failure(self, db_session, gateway, service, make_employee):
        make_employee()
        gateway.create_invite_link.side_effect = PlatformError(FailureReason.OTHER, "Too Many Requests")

        result = await service.run_verification(USER, "ivanov", FORM)

        assert result.outcome == VerificationOutcome.FAILED
        assert result.reply == t("verification.invite_failed")
        assert "verification_success" in _actions(db_session)
