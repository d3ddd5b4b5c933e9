"""Member ORM model for hostel residents with room assignment and deposits."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentbook.models import Base, BaseModel


class Floor(str, Enum):
    """Floors with rentable beds."""

    SECOND = "2nd"
    THIRD = "3rd"


class BedType(str, Enum):
    """Accommodation types. Special is only offered on the 2nd floor."""

    BED = "Bed"
    ROOM = "Room"
    SPECIAL = "Special"


class Member(Base, BaseModel):
    """Model representing a hostel member and their running balance.

    total_agreed_deposit is fixed when the member joins
    (security deposit + rent at joining + advance deposit); later rent changes
    do not adjust it. outstanding_balance is the running net of all bills and
    payments (positive = member owes, negative = member has credit).
    """

    __tablename__ = "members"

    # Identity
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        comment="Normalized phone: +91 followed by 10 digits",
    )

    # Accommodation
    floor: Mapped[Floor] = mapped_column(nullable=False, index=True)
    bed_type: Mapped[BedType] = mapped_column(nullable=False)
    move_in_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Money
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    advance_deposit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    rent_at_joining: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    current_rent: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_agreed_deposit: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="security_deposit + rent_at_joining + advance_deposit at creation",
    )
    outstanding_balance: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=0,
        comment="Running net of bills and payments",
    )

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    opted_for_wifi: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    leave_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    ttl_expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the inactive member record may be purged",
    )
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    rent_history: Mapped[list["RentHistory"]] = relationship(  # noqa: F821
        "RentHistory",
        back_populates="member",
        cascade="all, delete-orphan",
        order_by="RentHistory.billing_month",
    )

    __table_args__ = (
        Index("idx_member_floor_active", "floor", "is_active"),
    )

    def __repr__(self) -> str:
        return (
            f"<Member(id={self.id}, name={self.name!r}, floor={self.floor}, "
            f"bed_type={self.bed_type}, is_active={self.is_active}, "
            f"outstanding_balance={self.outstanding_balance})>"
        )


__all__ = ["Member", "Floor", "BedType"]
