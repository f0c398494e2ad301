"""Verification pipeline: identity match, employment gates, linkage and invites.

Runs when a user confirms the registration form:

1. Match the form against the personnel store (verification_failed on miss).
2. Active employee: clear a stale blacklist flag and unban from relevant channels.
3. Terminated employee: ban, set the blacklist flag, audit, generic failure.
4. Record linked to another Telegram account: open a claim session and ask
   the current holder to allow or block.
5. Success: audit, link the account, upsert the verified-user projection and
   issue one invite per destination channel.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from hrbot.models.employee import Employee
from hrbot.models.invite_link import InviteLink
from hrbot.models.verified_user import VerifiedUser
from hrbot.services.audit_service import AuditService
from hrbot.services.channel_service import ChannelAccessService, ChannelService
from hrbot.services.dialogue import RegistrationForm
from hrbot.services.employee_service import EmployeeService
from hrbot.services.errors import (
    AccessDeniedError,
    ChannelNotConfiguredError,
    ConflictError,
    FailureReason,
    NotFoundError,
    PlatformError,
)
from hrbot.services.invite_service import DEFAULT_TTL_HOURS, InviteService
from hrbot.services.locale_service import fixed_offset, format_local_datetime
from hrbot.services.localizer import t
from hrbot.services.notification_service import NotificationService
from hrbot.services.session_store import ClaimSessionStore

logger = logging.getLogger(__name__)


class VerificationOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    CLAIM_PENDING = "claim_pending"
    CONFLICT = "conflict"
    CHANNEL_MISCONFIGURED = "channel_misconfigured"
    FAILED = "failed"


@dataclass
class VerificationResult:
    outcome: VerificationOutcome
    reply: str
    employee_id: int | None = None
    invites: list[InviteLink] = field(default_factory=list)


class VerificationService:
    """Verification pipeline for one confirmed registration form."""

    def __init__(
        self,
        db_session: Session,
        gateway,
        claim_sessions: ClaimSessionStore,
        channel_service: ChannelService | None = None,
        link_ttl_hours: int = DEFAULT_TTL_HOURS,
        utc_offset_hours: int | None = None,
    ):
        self.db = db_session
        self.display_tz = fixed_offset(utc_offset_hours) if utc_offset_hours is not None else None
        self.claim_sessions = claim_sessions
        self.employees = EmployeeService(db_session)
        self.channels = channel_service or ChannelService(db_session)
        self.access = ChannelAccessService(gateway)
        self.invites = InviteService(db_session, gateway, ttl_hours=link_ttl_hours)
        self.notifications = NotificationService(gateway)

    async def run_verification(
        self, telegram_id: int | None, username: str | None, form: RegistrationForm
    ) -> VerificationResult:
        """Run the full pipeline and return the reply for the requester."""
        if not telegram_id:
            logger.warning("Verification requested without telegram id")
            return VerificationResult(VerificationOutcome.FAILED, t("verification.no_telegram_id"))

        try:
            employee = self._match(telegram_id, form)
            await self._normalize_active_employee(employee, telegram_id)
            await self._enforce_termination(employee, telegram_id, form)

            if employee.telegram_id and employee.telegram_id != telegram_id:
                return await self._open_claim(employee, telegram_id, username, form)

            return await self._grant_access(employee, telegram_id, username, form)

        except NotFoundError:
            return VerificationResult(VerificationOutcome.NOT_FOUND, t("verification.not_found"))
        except AccessDeniedError:
            return VerificationResult(VerificationOutcome.ACCESS_DENIED, t("verification.denied"))
        except ConflictError:
            return VerificationResult(VerificationOutcome.CONFLICT, t("verification.conflict"))
        except Exception as e:
            logger.error("Verification failed for telegram_id=%s: %s", telegram_id, e, exc_info=True)
            self.db.rollback()
            return VerificationResult(VerificationOutcome.FAILED, t("errors.try_later"))

    def _match(self, telegram_id: int, form: RegistrationForm) -> Employee:
        employee = self.employees.find_by_identity(
            last_name=form.last_name,
            first_name=form.first_name,
            middle_name=form.middle_name,
            department_id=form.department_id,
            position_id=form.position_id,
            phone=form.phone,
        )
        if employee is None:
            logger.info("No personnel record for telegram_id=%s", telegram_id)
            AuditService.log(self.db, "verification_failed", telegram_id, form.to_payload())
            raise NotFoundError("Personnel record not found")
        return employee

    async def _normalize_active_employee(self, employee: Employee, telegram_id: int) -> None:
        """Self-heal an active employee: clear a stale blacklist flag and unban."""
        if employee.is_terminated:
            return

        if employee.blacklisted:
            logger.info("Clearing stale blacklist flag of active employee %d", employee.id)
            self.employees.set_blacklist(employee, False)

        target_id = employee.telegram_id or telegram_id
        channels = self.channels.relevant_channels(employee.department_id)
        await self.access.unban_everywhere(channels, target_id)

    async def _enforce_termination(
        self, employee: Employee, telegram_id: int, form: RegistrationForm
    ) -> None:
        """Ban and blacklist a terminated employee.

        Raises:
            AccessDeniedError: Always, when the record has a termination date
        """
        if not employee.is_terminated:
            return

        payload = {**form.to_payload(), "employee_id": employee.id}
        if employee.blacklisted:
            AuditService.log(self.db, "blacklisted_attempt", telegram_id, payload)

        channels = self.channels.relevant_channels(employee.department_id)
        targets = {telegram_id}
        if employee.telegram_id:
            targets.add(employee.telegram_id)
        for target_id in targets:
            await self.access.ban_everywhere(channels, target_id)

        self.employees.set_blacklist(employee, True)
        AuditService.log(self.db, "fired_blocked", telegram_id, payload)
        raise AccessDeniedError(f"Employee {employee.id} is terminated")

    async def _open_claim(
        self,
        employee: Employee,
        telegram_id: int,
        username: str | None,
        form: RegistrationForm,
    ) -> VerificationResult:
        """Record is linked to another account: ask the holder to decide."""
        session = self.claim_sessions.create(
            requester_id=telegram_id,
            requester_username=username,
            holder_id=employee.telegram_id,
            employee_id=employee.id,
            form=form,
        )
        AuditService.log(
            self.db,
            "claim_requested",
            telegram_id,
            {"employee_id": employee.id, "holder_id": employee.telegram_id, "session_id": session.session_id},
        )

        delivered = await self.notifications.send_claim_request_to_holder(
            holder_id=employee.telegram_id,
            session_id=session.session_id,
            requester_id=telegram_id,
            requester_username=username,
        )
        if not delivered:
            logger.warning(
                "Claim prompt for employee %d not delivered to holder %s",
                employee.id,
                employee.telegram_id,
            )
        return VerificationResult(
            VerificationOutcome.CLAIM_PENDING, t("verification.claim_pending"), employee.id
        )

    async def _grant_access(
        self,
        employee: Employee,
        telegram_id: int,
        username: str | None,
        form: RegistrationForm,
    ) -> VerificationResult:
        display_name = employee.full_name or form.display_name
        AuditService.log(
            self.db,
            "verification_success",
            telegram_id,
            {**form.to_payload(), "employee_id": employee.id},
        )

        other = self.employees.find_linked_elsewhere(telegram_id, employee.id)
        if other is not None:
            logger.warning(
                "telegram_id=%s already linked to employee %d, refusing to link %d",
                telegram_id,
                other.id,
                employee.id,
            )
            raise ConflictError("Telegram account linked to a different record")

        self.employees.update_linkage(employee, telegram_id, username)
        self._upsert_verified_user(employee, telegram_id, username, display_name, form.phone)

        invites: list[InviteLink] = []
        try:
            channel_id = self.channels.resolve_department_channel(employee.department_id)
            invite = await self.invites.get_or_create(telegram_id, channel_id, display_name)
            invites.append(invite)
            AuditService.log(self.db, "invite_issued", telegram_id, _invite_payload(invite))

            news_channel_id = self.channels.get_news_channel_id()
            if news_channel_id and news_channel_id != channel_id:
                news_invite = await self.invites.get_or_create(
                    telegram_id, news_channel_id, display_name
                )
                invites.append(news_invite)
                AuditService.log(
                    self.db, "news_invite_issued", telegram_id, _invite_payload(news_invite)
                )
        except ChannelNotConfiguredError as e:
            logger.error("Invite for telegram_id=%s not issued: %s", telegram_id, e)
            return VerificationResult(
                VerificationOutcome.CHANNEL_MISCONFIGURED,
                t("verification.channel_misconfigured"),
                employee.id,
            )
        except PlatformError as e:
            logger.error(
                "Invite creation failed for telegram_id=%s: %s (%s)",
                telegram_id,
                e.description,
                e.reason.value,
            )
            if e.reason == FailureReason.NOT_FOUND:
                return VerificationResult(
                    VerificationOutcome.CHANNEL_MISCONFIGURED,
                    t("verification.channel_misconfigured"),
                    employee.id,
                )
            return VerificationResult(
                VerificationOutcome.FAILED, t("verification.invite_failed"), employee.id
            )

        logger.info(
            "Access granted: telegram_id=%s employee=%d invites=%d",
            telegram_id,
            employee.id,
            len(invites),
        )
        reply = render_invites(invites, self.display_tz)
        return VerificationResult(VerificationOutcome.SUCCESS, reply, employee.id, invites)

    def _upsert_verified_user(
        self,
        employee: Employee,
        telegram_id: int,
        username: str | None,
        display_name: str,
        phone: str | None,
    ) -> VerifiedUser:
        user = self.db.execute(
            select(VerifiedUser).where(VerifiedUser.telegram_id == telegram_id)
        ).scalar_one_or_none()
        if user is None:
            user = VerifiedUser(telegram_id=telegram_id)
            self.db.add(user)

        user.telegram_username = username
        user.employee_id = employee.id
        user.full_name = display_name
        user.phone = phone
        user.department = str(employee.department_id)
        user.position = str(employee.position_id)
        user.linked_at = datetime.now(timezone.utc)
        self.db.commit()
        return user


def _invite_payload(invite: InviteLink) -> dict:
    return {
        "invite_link_id": invite.invite_link_id,
        "channel_id": invite.channel_id,
        "expires_at": invite.expires_at.isoformat(),
    }


def render_invites(invites: list[InviteLink], tz: tzinfo | None = None) -> str:
    """Reply text listing invite URLs with their expiry shown in tz."""
    lines = [t("verification.invite_header")]
    for index, invite in enumerate(invites):
        key = "verification.invite_line" if index == 0 else "verification.news_invite_line"
        lines.append(
            t(key, url=invite.url, expires_at=format_local_datetime(invite.expires_at, tz=tz))
        )
    lines.append(t("verification.invite_footer"))
    return "\n\n".join(lines)


__all__ = [
    "VerificationService",
    "VerificationResult",
    "VerificationOutcome",
    "render_invites",
]
