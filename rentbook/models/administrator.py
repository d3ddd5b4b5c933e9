"""Administrator ORM model for the admin list in global settings."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from rentbook.models import Base


class AdminRole(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class Administrator(Base):
    """Model for storing an administrator entry."""

    __tablename__ = "administrators"

    # Primary key: auth provider UID (unique per admin)
    uid: Mapped[str] = mapped_column(String(128), primary_key=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[AdminRole] = mapped_column(nullable=False, default=AdminRole.SECONDARY)

    # UID of the admin who added this entry
    added_by: Mapped[str | None] = mapped_column(String(128), nullable=True)

    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Administrator(uid={self.uid}, email={self.email}, role={self.role})>"


__all__ = ["Administrator", "AdminRole"]
