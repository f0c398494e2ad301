"""Admin log model for administrative actions."""

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hrbot.models import Base, BaseModel


class AdminLog(Base, BaseModel):
    """Administrative action entry (append-only), echoed to the admin-log chat."""

    __tablename__ = "admin_logs"

    action: Mapped[str] = mapped_column(String(64), index=True)
    actor_telegram_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    actor_username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    target_telegram_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)
    target_username: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    department: Mapped[str | None] = mapped_column(String(64), nullable=True)
    channel_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    channel_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AdminLog(id={self.id}, action={self.action}, actor={self.actor_telegram_id}, "
            f"target={self.target_telegram_id})>"
        )


__all__ = ["AdminLog"]
