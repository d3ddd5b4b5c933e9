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
from rentbook.models.administrator import Administrator, AdminRole  # noqa: E402
from rentbook.models.electric_bill import ElectricBill  # noqa: E402
from rentbook.models.global_settings import GlobalSettings  # noqa: E402
from rentbook.models.member import BedType, Floor, Member  # noqa: E402
from rentbook.models.rent_history import PaymentStatus, RentHistory  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "Administrator",
    "AdminRole",
    "BedType",
    "ElectricBill",
    "Floor",
    "GlobalSettings",
    "Member",
    "PaymentStatus",
    "RentHistory",
]
