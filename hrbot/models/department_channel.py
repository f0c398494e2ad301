"""DepartmentChannel ORM model: department key to channel binding."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from hrbot.models import Base, BaseModel


class DepartmentChannel(Base, BaseModel):
    """At most one channel per department (first writer wins, owner may override)."""

    __tablename__ = "department_channels"

    department: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    channel_id: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<DepartmentChannel(department={self.department}, channel_id={self.channel_id})>"


__all__ = ["DepartmentChannel"]
