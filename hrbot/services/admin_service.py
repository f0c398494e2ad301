"""Admin service: administrator allowlist and operator actions on verified users."""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from hrbot.models.admin_config import Administrator
from hrbot.models.admin_log import AdminLog
from hrbot.models.verified_user import VerifiedUser
from hrbot.services.audit_service import AdminLogEntry, AdminLogService, AuditService
from hrbot.services.channel_service import ChannelService
from hrbot.services.errors import ChannelNotConfiguredError, PlatformError

logger = logging.getLogger(__name__)

_USERNAME_PATTERN = re.compile(r"^@([A-Za-z][A-Za-z0-9_]{3,31})$")


@dataclass
class Target:
    """User referenced by an admin command: numeric id and/or @username."""

    telegram_id: int | None = None
    username: str | None = None

    def __str__(self) -> str:
        if self.telegram_id is not None:
            return str(self.telegram_id)
        return f"@{self.username}" if self.username else "—"


def parse_target(raw: str | None) -> Target | None:
    """Parse "123456789" or "@username" into a Target.

    Example:
        >>> parse_target("@ivanov")
        Target(telegram_id=None, username='ivanov')
    """
    value = (raw or "").strip()
    if not value:
        return None
    if value.lstrip("-").isdigit():
        return Target(telegram_id=int(value))
    match = _USERNAME_PATTERN.match(value)
    if match:
        return Target(username=match.group(1))
    return None


class RemoveStatus(str, Enum):
    REMOVED = "removed"
    USER_NOT_FOUND = "user_not_found"
    NO_CHANNEL = "no_channel"
    FAILED = "failed"


@dataclass
class RemoveResult:
    status: RemoveStatus
    user: VerifiedUser | None = None
    channel_id: str | None = None
    error: str | None = None


class AdminService:
    """Service for administrator management and /remove_user, /user_status lookups."""

    def __init__(
        self,
        db_session: Session,
        gateway=None,
        channel_service: ChannelService | None = None,
        admin_log: AdminLogService | None = None,
    ):
        self.db = db_session
        self.gateway = gateway
        self.channels = channel_service or ChannelService(db_session)
        self.admin_log = admin_log or AdminLogService(db_session, gateway)

    def _find_admin(self, telegram_id: int | None, username: str | None) -> Administrator | None:
        if telegram_id is not None:
            admin = self.db.execute(
                select(Administrator).where(Administrator.telegram_id == telegram_id)
            ).scalar_one_or_none()
            if admin:
                return admin
        if username:
            return self.db.execute(
                select(Administrator).where(Administrator.telegram_username == username)
            ).scalars().first()
        return None

    def is_admin(self, telegram_id: int | None, username: str | None = None) -> bool:
        """Check the allowlist by id, then by username.

        A username only matches an entry with no telegram id yet; that entry
        gets the id recorded on first match.
        """
        if telegram_id is not None:
            bound = self.db.execute(
                select(Administrator).where(Administrator.telegram_id == telegram_id)
            ).scalar_one_or_none()
            if bound:
                return True
        if not username:
            return False
        pending = self.db.execute(
            select(Administrator).where(
                Administrator.telegram_username == username,
                Administrator.telegram_id.is_(None),
            )
        ).scalars().first()
        if pending is None:
            return False
        if telegram_id is not None:
            pending.telegram_id = telegram_id
            self.db.commit()
        return True

    def add_admin(self, target: Target) -> Administrator:
        """Add an administrator; adding an existing one only refreshes its fields."""
        admin = self._find_admin(target.telegram_id, target.username)
        if admin is None:
            admin = Administrator()
            self.db.add(admin)
        if target.telegram_id is not None:
            admin.telegram_id = target.telegram_id
        if target.username:
            admin.telegram_username = target.username
        self.db.commit()
        logger.info("Administrator added: %s", target)
        return admin

    def remove_admin(self, target: Target) -> int:
        """Remove administrators matching the target's id or username.

        Returns:
            Number of removed rows
        """
        removed = 0
        if target.telegram_id is not None:
            removed += self.db.execute(
                delete(Administrator).where(Administrator.telegram_id == target.telegram_id)
            ).rowcount
        if target.username:
            removed += self.db.execute(
                delete(Administrator).where(Administrator.telegram_username == target.username)
            ).rowcount
        self.db.commit()
        logger.info("Administrator removal for %s: %d row(s)", target, removed)
        return removed

    def list_admins(self) -> list[Administrator]:
        return list(
            self.db.execute(select(Administrator).order_by(Administrator.created_at)).scalars().all()
        )

    def find_verified_user(self, target: Target) -> VerifiedUser | None:
        if target.telegram_id is not None:
            query = select(VerifiedUser).where(VerifiedUser.telegram_id == target.telegram_id)
        elif target.username:
            query = select(VerifiedUser).where(VerifiedUser.telegram_username == target.username)
        else:
            return None
        return self.db.execute(query).scalars().first()

    async def remove_user(
        self,
        target: Target,
        reason: str,
        actor_id: int,
        actor_username: str | None = None,
    ) -> RemoveResult:
        """Ban a verified user from their department channel.

        Writes remove_user or remove_user_failed to both the audit log and
        the admin log.
        """
        user = self.find_verified_user(target)
        if user is None:
            return RemoveResult(RemoveStatus.USER_NOT_FOUND)

        try:
            channel_id = self.channels.resolve_department_channel(user.department)
        except ChannelNotConfiguredError as e:
            logger.error("remove_user: %s", e)
            return RemoveResult(RemoveStatus.NO_CHANNEL, user=user)

        payload = {
            "target_id": user.telegram_id,
            "channel_id": channel_id,
            "department": user.department,
            "reason": reason,
        }
        entry = AdminLogEntry(
            action="remove_user",
            actor_id=actor_id,
            actor_username=actor_username,
            target_id=user.telegram_id,
            target_username=user.telegram_username,
            department=user.department,
            channel_id=channel_id,
            reason=reason,
        )

        try:
            await self.gateway.ban_member(channel_id, user.telegram_id)
        except PlatformError as e:
            logger.error("remove_user failed for %s in %s: %s", user.telegram_id, channel_id, e.description)
            AuditService.log(
                self.db, "remove_user_failed", actor_id, {**payload, "error": e.description}
            )
            entry.action = "remove_user_failed"
            entry.reason = f"{reason} ({e.description})"
            await self.admin_log.log_admin_action(entry)
            return RemoveResult(RemoveStatus.FAILED, user=user, channel_id=channel_id, error=e.description)

        AuditService.log(self.db, "remove_user", actor_id, payload)
        await self.admin_log.log_admin_action(entry)
        return RemoveResult(RemoveStatus.REMOVED, user=user, channel_id=channel_id)

    async def get_member_status(self, user: VerifiedUser) -> tuple[str | None, str]:
        """Department channel id and the user's member status in it.

        Raises:
            ChannelNotConfiguredError: Department has no channel
            PlatformError: Status lookup failed
        """
        channel_id = self.channels.resolve_department_channel(user.department)
        status = await self.gateway.get_chat_member_status(channel_id, user.telegram_id)
        return channel_id, status

    def history(self, target: Target | None, limit: int = 10) -> list[AdminLog]:
        if target is None:
            return self.admin_log.recent(limit=limit)
        return self.admin_log.recent(
            target_id=target.telegram_id, target_username=target.username, limit=limit
        )


__all__ = [
    "AdminService",
    "Target",
    "parse_target",
    "RemoveResult",
    "RemoveStatus",
]
