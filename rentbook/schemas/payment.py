"""Pydantic schema for recording a payment."""

from decimal import Decimal

from pydantic import BaseModel, Field


class PaymentForm(BaseModel):
    member_id: int = Field(..., ge=1)
    month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="Billing month (YYYY-MM)")
    amount_paid: Decimal = Field(..., ge=0)
    note: str | None = None


__all__ = ["PaymentForm"]
