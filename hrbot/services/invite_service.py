"""Invite link service: single-use, time-limited channel invitations."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from hrbot.models.invite_link import InviteLink, InviteStatus
from hrbot.services.locale_service import ensure_utc

logger = logging.getLogger(__name__)

DEFAULT_TTL_HOURS = 24
# Telegram limit for invite link names
LABEL_MAX_LENGTH = 32


def build_label(display_name: str) -> str:
    return f"Invite for {display_name}"[:LABEL_MAX_LENGTH]


def is_active_link(link: InviteLink, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return link.status == InviteStatus.ACTIVE and ensure_utc(link.expires_at) > now


class InviteService:
    """Keeps at most one usable invite per (telegram_id, channel_id).

    There is no lock around "look up, then create": two concurrent calls may
    both create a link. Each link is member_limit=1 and the cleanup job
    removes the unused one after expiry.
    """

    def __init__(self, db_session: Session, gateway=None, ttl_hours: int = DEFAULT_TTL_HOURS):
        self.db = db_session
        self.gateway = gateway
        self.ttl_hours = ttl_hours

    def get_active_link(
        self, telegram_id: int, channel_id: str, now: datetime | None = None
    ) -> InviteLink | None:
        """Newest ACTIVE, unexpired invite for the pair, or None."""
        now = now or datetime.now(timezone.utc)
        return (
            self.db.execute(
                select(InviteLink)
                .where(
                    InviteLink.telegram_id == telegram_id,
                    InviteLink.channel_id == str(channel_id),
                    InviteLink.status == InviteStatus.ACTIVE,
                    InviteLink.expires_at > now,
                )
                .order_by(InviteLink.created_at.desc(), InviteLink.id.desc())
            )
            .scalars()
            .first()
        )

    async def create_invite_link(
        self, telegram_id: int, channel_id: str, display_name: str
    ) -> InviteLink:
        """Create a new single-use link on the platform and persist it.

        Raises:
            PlatformError: Link creation failed on the platform side
        """
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(hours=self.ttl_hours)

        created = await self.gateway.create_invite_link(
            channel_id,
            expire_at=expires_at,
            label=build_label(display_name),
            member_limit=1,
        )

        record = InviteLink(
            telegram_id=telegram_id,
            channel_id=str(channel_id),
            url=created.url,
            invite_link_id=created.invite_link_id,
            expires_at=expires_at,
            ttl_seconds=self.ttl_hours * 3600,
            status=InviteStatus.ACTIVE,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)

        logger.info(
            "Invite link %s created for telegram_id=%s channel=%s (expires %s)",
            record.id,
            telegram_id,
            channel_id,
            expires_at.isoformat(),
        )
        return record

    async def get_or_create(
        self, telegram_id: int, channel_id: str, display_name: str
    ) -> InviteLink:
        """Reuse the outstanding invite or create a new one."""
        existing = self.get_active_link(telegram_id, channel_id)
        if existing and is_active_link(existing):
            logger.debug("Reusing invite link %s for telegram_id=%s", existing.id, telegram_id)
            return existing
        return await self.create_invite_link(telegram_id, channel_id, display_name)

    def expire_invite_link(self, invite_link_id: str) -> int:
        """Mark ACTIVE records with this platform link id as EXPIRED.

        Returns:
            Number of records updated
        """
        result = self.db.execute(
            update(InviteLink)
            .where(
                InviteLink.invite_link_id == invite_link_id,
                InviteLink.status == InviteStatus.ACTIVE,
            )
            .values(status=InviteStatus.EXPIRED)
        )
        self.db.commit()
        return result.rowcount

    def cleanup_expired(self, now: datetime | None = None) -> int:
        """Delete every invite whose expires_at has passed, regardless of status."""
        now = now or datetime.now(timezone.utc)
        result = self.db.execute(delete(InviteLink).where(InviteLink.expires_at <= now))
        self.db.commit()
        if result.rowcount:
            logger.info("Invite cleanup removed %d expired link(s)", result.rowcount)
        return result.rowcount

    def reset_all(self) -> int:
        """Administrative reset: drop every invite record."""
        result = self.db.execute(delete(InviteLink))
        self.db.commit()
        logger.warning("All invite links removed (%d)", result.rowcount)
        return result.rowcount


def run_invite_cleanup(db_session: Session) -> int:
    """Periodic job body: garbage-collect expired invites."""
    return InviteService(db_session).cleanup_expired()


__all__ = [
    "InviteService",
    "build_label",
    "is_active_link",
    "run_invite_cleanup",
    "DEFAULT_TTL_HOURS",
]
