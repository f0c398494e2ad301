"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from hrbot.models.admin_config import Administrator, AdminSettings  # noqa: E402
from hrbot.models.admin_log import AdminLog  # noqa: E402
from hrbot.models.audit_log import AuditLog  # noqa: E402
from hrbot.models.department_channel import DepartmentChannel  # noqa: E402
from hrbot.models.employee import Employee  # noqa: E402
from hrbot.models.invite_link import InviteLink, InviteStatus  # noqa: E402
from hrbot.models.verified_user import VerifiedUser  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "Administrator",
    "AdminSettings",
    "AdminLog",
    "AuditLog",
    "DepartmentChannel",
    "Employee",
    "InviteLink",
    "InviteStatus",
    "VerifiedUser",
]
