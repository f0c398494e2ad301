"""VerifiedUser ORM model: local projection of a successfully verified account."""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hrbot.models import Base, BaseModel


class VerifiedUser(Base, BaseModel):
    """
    Verified Telegram account, keyed by telegram_id.

    Upserted on every successful verification; used by admin commands
    (/user_status, /remove_user) without touching the personnel store.
    """

    __tablename__ = "verified_users"

    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False, index=True)
    telegram_username: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    employee_id: Mapped[int] = mapped_column(Integer, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    department: Mapped[str] = mapped_column(String(64), nullable=False)
    position: Mapped[str] = mapped_column(String(64), nullable=False)
    linked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<VerifiedUser(telegram_id={self.telegram_id}, full_name={self.full_name}, "
            f"department={self.department})>"
        )


__all__ = ["VerifiedUser"]
