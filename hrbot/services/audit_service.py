"""Audit and admin log services."""

import logging
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from hrbot.models.admin_config import SETTINGS_ROW_ID, AdminSettings
from hrbot.models.admin_log import AdminLog
from hrbot.models.audit_log import AuditLog
from hrbot.services.errors import PlatformError

logger = logging.getLogger(__name__)


class AuditService:
    """Service for audit log operations.

    Provides static method to create minimal audit log entries.
    """

    @staticmethod
    def log(
        db: Session,
        action: str,
        telegram_id: int | None = None,
        payload: dict | None = None,
    ) -> AuditLog:
        """Create and commit an audit log entry.

        Args:
            db: Database session
            action: Action tag ("verification_success", "fired_blocked", etc.)
            telegram_id: Telegram account the event concerns (optional)
            payload: Optional JSON snapshot (form, employee id, invite details)

        Returns:
            Created AuditLog object
        """
        audit = AuditLog(action=action, telegram_id=telegram_id, payload=payload)
        db.add(audit)
        db.commit()
        logger.info("audit: action=%s telegram_id=%s", action, telegram_id)
        return audit


@dataclass
class AdminLogEntry:
    """Administrative action to record and echo."""

    action: str
    actor_id: int
    actor_username: str | None = None
    target_id: int | None = None
    target_username: str | None = None
    department: str | None = None
    channel_id: str | None = None
    channel_name: str | None = None
    reason: str | None = None


class AdminLogService:
    """Persists admin actions and echoes them to the admin-log chat."""

    def __init__(self, db_session: Session, gateway=None, fallback_chat_id: str | None = None):
        self.db = db_session
        self.gateway = gateway
        self.fallback_chat_id = fallback_chat_id or None

    def get_admin_log_chat_id(self) -> str | None:
        settings = self.db.get(AdminSettings, SETTINGS_ROW_ID)
        if settings and settings.admin_log_chat_id:
            return settings.admin_log_chat_id
        return self.fallback_chat_id

    def set_admin_log_chat_id(self, chat_id: str) -> None:
        settings = self.db.get(AdminSettings, SETTINGS_ROW_ID)
        if settings is None:
            settings = AdminSettings(id=SETTINGS_ROW_ID)
            self.db.add(settings)
        settings.admin_log_chat_id = str(chat_id)
        self.db.commit()
        logger.info("Admin log chat set to %s", chat_id)

    async def log_admin_action(self, entry: AdminLogEntry) -> AdminLog:
        """Save the entry, then echo it to the admin-log chat (best effort)."""
        if entry.channel_id and not entry.channel_name and self.gateway:
            try:
                info = await self.gateway.get_chat_info(entry.channel_id)
                entry.channel_name = info.display_name
            except PlatformError as e:
                logger.warning("Failed to fetch channel info for %s: %s", entry.channel_id, e)

        record = AdminLog(
            action=entry.action,
            actor_telegram_id=entry.actor_id,
            actor_username=entry.actor_username,
            target_telegram_id=entry.target_id,
            target_username=entry.target_username,
            department=entry.department,
            channel_id=entry.channel_id,
            channel_name=entry.channel_name,
            reason=entry.reason,
        )
        self.db.add(record)
        self.db.commit()

        dest = self.get_admin_log_chat_id()
        if dest and self.gateway:
            try:
                await self.gateway.send_message(dest, format_admin_log(record))
            except PlatformError as e:
                logger.error("Failed to send admin log message to %s: %s", dest, e)
        return record

    def recent(
        self,
        target_id: int | None = None,
        target_username: str | None = None,
        limit: int = 10,
    ) -> list[AdminLog]:
        query = select(AdminLog)
        if target_id is not None:
            query = query.where(AdminLog.target_telegram_id == target_id)
        elif target_username:
            query = query.where(
                or_(
                    AdminLog.target_username == target_username,
                    AdminLog.actor_username == target_username,
                )
            )
        query = query.order_by(AdminLog.created_at.desc(), AdminLog.id.desc()).limit(limit)
        return list(self.db.execute(query).scalars().all())


def _who(telegram_id: int | None, username: str | None) -> str:
    if telegram_id:
        return f"{telegram_id} (@{username})" if username else str(telegram_id)
    if username:
        return f"@{username}"
    return "—"


def format_admin_log(record: AdminLog) -> str:
    """Multi-line summary of an admin log entry for the admin chat."""
    lines = [
        f"Действие: {record.action}",
        f"Админ: {_who(record.actor_telegram_id, record.actor_username)}",
        f"Цель: {_who(record.target_telegram_id, record.target_username)}",
    ]
    if record.department:
        lines.append(f"Отдел: {record.department}")
    if record.channel_id:
        channel = (
            f"{record.channel_name} ({record.channel_id})"
            if record.channel_name
            else record.channel_id
        )
        lines.append(f"Канал: {channel}")
    if record.reason:
        lines.append(f"Причина/детали: {record.reason}")
    return "\n".join(lines)


def format_admin_log_line(record: AdminLog) -> str:
    """One-line summary used by /check_hist."""
    created = record.created_at.strftime("%Y-%m-%d %H:%M") if record.created_at else "—"
    return (
        f"• {record.action} | actor: {_who(record.actor_telegram_id, record.actor_username)} "
        f"| target: {_who(record.target_telegram_id, record.target_username)} "
        f"| dept: {record.department or '—'} | reason: {record.reason or '—'} | at {created}"
    )


__all__ = [
    "AuditService",
    "AdminLogEntry",
    "AdminLogService",
    "format_admin_log",
    "format_admin_log_line",
]
