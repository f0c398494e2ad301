"""Administrator allowlist and singleton settings models."""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hrbot.models import Base

SETTINGS_ROW_ID = 1


class Administrator(Base):
    """Model for storing approved administrators (owner adds/removes them).

    Admins added by @username only get their telegram_id filled in on
    their first command.
    """

    __tablename__ = "administrators"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    telegram_id: Mapped[int | None] = mapped_column(
        BigInteger, unique=True, nullable=True, index=True
    )

    telegram_username: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Administrator(telegram_id={self.telegram_id}, "
            f"telegram_username={self.telegram_username})>"
        )


class AdminSettings(Base):
    """Singleton settings row (id=1): news channel and admin-log chat."""

    __tablename__ = "admin_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    news_channel_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    admin_log_chat_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<AdminSettings(news_channel_id={self.news_channel_id}, "
            f"admin_log_chat_id={self.admin_log_chat_id})>"
        )


__all__ = ["Administrator", "AdminSettings", "SETTINGS_ROW_ID"]
