"""InviteLink ORM model for single-use, time-limited channel invitations."""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import BigInteger, DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hrbot.models import Base, BaseModel


class InviteStatus(PyEnum):
    """Enumeration for invite link status."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


class InviteLink(Base, BaseModel):
    """
    Invite link issued to a verified employee for one channel.

    At most one ACTIVE, unexpired record per (telegram_id, channel_id) is treated
    as valid; the newest one wins. Expired rows are garbage-collected by the
    cleanup job.
    """

    __tablename__ = "invite_links"

    telegram_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    channel_id: Mapped[str] = mapped_column(String(64), nullable=False)
    url: Mapped[str] = mapped_column(String(255), nullable=False)
    invite_link_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Platform-side link identifier"
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ttl_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[InviteStatus] = mapped_column(
        Enum(InviteStatus, native_enum=False),
        default=InviteStatus.ACTIVE,
        nullable=False,
    )

    __table_args__ = (
        Index("idx_invite_owner_channel_status", "telegram_id", "channel_id", "status"),
        Index("idx_invite_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<InviteLink(id={self.id}, telegram_id={self.telegram_id}, "
            f"channel_id={self.channel_id}, status={self.status.value}, "
            f"expires_at={self.expires_at})>"
        )


__all__ = ["InviteLink", "InviteStatus"]
