"""Pydantic schema for the monthly bill generation form."""

from datetime import date
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, model_validator

from rentbook.models.member import Floor
from rentbook.schemas import FieldError

FloorBill = Annotated[Decimal, Field(ge=100, le=9999)]
MemberCount = Annotated[int, Field(ge=1, le=10)]


class WifiCharges(BaseModel):
    """WiFi pool for the month and the members sharing it."""

    wifi_monthly_charge: Decimal = Field(Decimal(0), ge=0)
    wifi_member_ids: set[int] = Field(default_factory=set)

    @model_validator(mode="after")
    def check_charge_and_members(self) -> "WifiCharges":
        has_charge = self.wifi_monthly_charge > 0
        has_members = len(self.wifi_member_ids) > 0
        if has_charge != has_members:
            raise FieldError("wifi_member_ids", "Both Wifi charge and members are required")
        return self


class AdditionalExpenses(BaseModel):
    """One expense applied in bulk to a set of members."""

    add_expense_member_ids: set[int] = Field(default_factory=set)
    add_expense_amount: Decimal = Field(Decimal(0), ge=0)
    add_expense_description: str = ""

    @model_validator(mode="after")
    def check_all_or_nothing(self) -> "AdditionalExpenses":
        present = [
            len(self.add_expense_member_ids) > 0,
            self.add_expense_amount > 0,
            len(self.add_expense_description.strip()) > 0,
        ]
        if any(present) and not all(present):
            raise FieldError(
                "add_expense_description",
                "Members, amount and description for additional expenses are required",
            )
        return self

    @property
    def is_applied(self) -> bool:
        return self.add_expense_amount > 0


class BillsForm(BaseModel):
    """Inputs for generating (or regenerating) one month of bills."""

    selected_billing_month: date
    active_member_counts: dict[Floor, MemberCount]
    second_floor_electricity_bill: FloorBill
    third_floor_electricity_bill: FloorBill
    wifi_charges: WifiCharges = Field(default_factory=WifiCharges)
    additional_expenses: AdditionalExpenses = Field(default_factory=AdditionalExpenses)
    is_updating_bills: bool = False
    forward_previous_outstanding: bool = True

    def floor_bill(self, floor: Floor) -> Decimal:
        if floor == Floor.SECOND:
            return self.second_floor_electricity_bill
        return self.third_floor_electricity_bill


__all__ = ["BillsForm", "WifiCharges", "AdditionalExpenses"]
