"""Employee ORM model: the personnel record matched during verification."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hrbot.models import Base, BaseModel


class Employee(Base, BaseModel):
    """
    Personnel record loaded from the HR feed.

    Identity and organizational fields are read-only for the bot. The bot only
    writes the linkage fields (telegram_id, telegram_username) and the
    blacklisted flag. Records are never deleted here.

    Lifecycle:
    - termination_date is None: currently employed
    - termination_date is set: terminated, channel access must be revoked
    """

    __tablename__ = "employees"

    # Identity fields
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, comment="Фамилия")
    first_name: Mapped[str] = mapped_column(String(255), nullable=False, comment="Имя")
    middle_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Отчество (nullable)"
    )

    # Organizational fields
    department_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    position_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Contact (free-form, normalized only at comparison time)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True, comment="Сотовый")

    # Lifecycle
    termination_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="None means currently employed"
    )

    # Telegram linkage
    telegram_id: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
        unique=True,
        comment="Linked Telegram ID (at most one record per Telegram ID)",
    )
    telegram_username: Mapped[str | None] = mapped_column(String(255), nullable=True)

    blacklisted: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, comment="Channel access gate"
    )

    __table_args__ = (
        Index("idx_employee_name", "last_name", "first_name"),
        Index("idx_employee_department_position", "department_id", "position_id"),
    )

    @property
    def is_terminated(self) -> bool:
        return self.termination_date is not None

    @property
    def full_name(self) -> str:
        """Display name built from the name parts."""
        parts = [self.last_name, self.first_name, self.middle_name]
        return " ".join(p.strip() for p in parts if p and p.strip())

    def __repr__(self) -> str:
        return (
            f"<Employee(id={self.id}, name={self.full_name}, department_id={self.department_id}, "
            f"telegram_id={self.telegram_id}, terminated={self.is_terminated}, "
            f"blacklisted={self.blacklisted})>"
        )


__all__ = ["Employee"]
