"""Global settings ORM model: default values and billing month markers."""

from datetime import date
from decimal import Decimal

from sqlalchemy import JSON, Date, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from rentbook.models import Base, BaseModel


class GlobalSettings(Base, BaseModel):
    """Single-row model holding default values for the whole house.

    bed_rents is the stored rate table: {"2nd": {"Bed": "1600", ...}, "3rd": {...}}.
    current_billing_month is the last month bills were generated for;
    next_billing_month is the month the next new bills must be generated for.
    """

    __tablename__ = "global_settings"

    bed_rents: Mapped[dict] = mapped_column(JSON, nullable=False)
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    wifi_monthly_charge: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    upi_vpa: Mapped[str | None] = mapped_column(String(50), nullable=True)
    current_billing_month: Mapped[date] = mapped_column(Date, nullable=False)
    next_billing_month: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<GlobalSettings(id={self.id}, current_billing_month={self.current_billing_month}, "
            f"next_billing_month={self.next_billing_month}, "
            f"wifi_monthly_charge={self.wifi_monthly_charge})>"
        )


__all__ = ["GlobalSettings"]
