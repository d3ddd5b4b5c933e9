"""Rent history ORM model: one billing record per member per month."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentbook.models import Base, BaseModel


class PaymentStatus(str, Enum):
    """Payment status of a billing record."""

    DUE = "Due"
    PARTIAL = "Partial"
    PAID = "Paid"
    OVERPAID = "Overpaid"


class RentHistory(Base, BaseModel):
    """Model representing a member's charges and payments for one billing month.

    total_charges includes any outstanding forwarded from earlier periods
    (kept separately in previous_outstanding). current_outstanding is
    total_charges - amount_paid and may be negative (credit).
    """

    __tablename__ = "rent_history"

    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    billing_month: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        index=True,
        comment="Billing month key (YYYY-MM)",
    )
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Charges
    rent: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    electricity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    wifi: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    previous_outstanding: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    expenses: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment='List of {"amount": "<decimal>", "description": "..."}',
    )
    total_charges: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Payments
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    current_outstanding: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.DUE,
    )
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)

    member: Mapped["Member"] = relationship(  # noqa: F821
        "Member",
        back_populates="rent_history",
    )

    __table_args__ = (
        UniqueConstraint("member_id", "billing_month", name="uq_rent_history_member_month"),
    )

    def __repr__(self) -> str:
        return (
            f"<RentHistory(id={self.id}, member_id={self.member_id}, "
            f"billing_month={self.billing_month}, total_charges={self.total_charges}, "
            f"amount_paid={self.amount_paid}, status={self.status})>"
        )


__all__ = ["RentHistory", "PaymentStatus"]
