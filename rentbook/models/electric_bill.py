"""
Electric bill model: the shared electricity cost of a billing month, per floor.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from rentbook.models import Base, BaseModel


class ElectricBill(Base, BaseModel):
    """
    Model representing the shared electricity bill for one billing month.

    Attributes:
        billing_month: Billing month key (YYYY-MM), unique
        floor_costs: {"2nd": {"bill": "1500", "members": [{"id": 1, "name": "..."}]}, ...}
        applied_bulk_expenses: [{"amount": "200", "description": "...", "members": [...]}]
        generated_at: When bills for the month were first generated
        last_updated: Last time the month's bills were regenerated
    """

    __tablename__ = "electric_bills"

    billing_month: Mapped[str] = mapped_column(String(7), nullable=False, unique=True, index=True)
    floor_costs: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    applied_bulk_expenses: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self):
        return (
            f"<ElectricBill(id={self.id}, "
            f"billing_month={self.billing_month}, "
            f"floors={sorted(self.floor_costs or {})})>"
        )


__all__ = ["ElectricBill"]
