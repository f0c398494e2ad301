"""Audit log model for verification and access events."""

from typing import Any

from sqlalchemy import JSON, BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from hrbot.models import Base, BaseModel


class AuditLog(Base, BaseModel):
    """Audit log entry (append-only).

    Records which Telegram account (telegram_id) triggered what (action)
    with an optional JSON payload: submitted form, employee id, invite details.
    """

    __tablename__ = "audit_logs"

    telegram_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)
    """Telegram account the event concerns. None for system actions."""

    action: Mapped[str] = mapped_column(String(64), index=True)
    """Action tag: "verification_success", "fired_blocked", "night_auto_block", etc."""

    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    """Optional JSON snapshot: {"employee_id": 5, "channel_id": "-100111"}."""

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action={self.action}, telegram_id={self.telegram_id}, "
            f"created_at={self.created_at})>"
        )


__all__ = ["AuditLog"]
