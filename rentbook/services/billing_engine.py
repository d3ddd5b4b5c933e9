"""Billing engine: pure rules for monthly charges, payment status and settlement.

Charge formula:
    total_charges = rent + electricity + wifi + sum(expenses) + forwarded outstanding
    current_outstanding = total_charges - amount_paid

Settlement formula:
    settlement_amount = total_agreed_deposit - outstanding_balance

The engine performs no I/O and owns no state. Default values (the rate table)
are passed in explicitly; callers persist the results.
"""

import calendar
from datetime import date, datetime
from decimal import ROUND_CEILING, Decimal
from enum import Enum
from typing import Iterable, Mapping, NamedTuple

from rentbook.models.member import BedType, Floor
from rentbook.models.rent_history import PaymentStatus
from rentbook.services.errors import ConfigurationError, ValidationError

ZERO = Decimal(0)


class SettlementDirection(str, Enum):
    """Which way money moves when a member leaves."""

    REFUND = "refund"
    """House owes the member"""

    PAYMENT = "payment"
    """Member owes the house"""

    SETTLED = "settled"


class Expense(NamedTuple):
    """One-off charge attached to a billing period."""

    amount: Decimal
    description: str


class MonthlyCharge(NamedTuple):
    """Itemized charges for one member and one billing period."""

    rent: Decimal
    electricity: Decimal
    wifi: Decimal
    expenses: tuple[Expense, ...]
    previous_outstanding: Decimal
    total_charges: Decimal
    amount_paid: Decimal
    current_outstanding: Decimal
    status: PaymentStatus


class ForwardedOutstanding(NamedTuple):
    """Record totals after an outstanding amount is forwarded onto it."""

    total_charges: Decimal
    current_outstanding: Decimal
    status: PaymentStatus


class Settlement(NamedTuple):
    """Final amount exchanged when a tenancy ends."""

    settlement_amount: Decimal
    direction: SettlementDirection
    total_agreed_deposit: Decimal
    outstanding_balance: Decimal


class RateTable:
    """Monthly rent per (floor, bed type) pair."""

    def __init__(self, rents: Mapping[Floor, Mapping[BedType, Decimal]]):
        self._rents = {
            Floor(floor): {BedType(bed): to_amount(rent, f"{floor}/{bed}") for bed, rent in beds.items()}
            for floor, beds in rents.items()
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, object]]) -> "RateTable":
        """Build from the stored {"2nd": {"Bed": "1600", ...}} shape."""
        return cls({floor: dict(beds) for floor, beds in data.items()})

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {
            floor.value: {bed.value: str(rent) for bed, rent in beds.items()}
            for floor, beds in self._rents.items()
        }

    def rent_for(self, floor: Floor, bed_type: BedType) -> Decimal:
        """Look up monthly rent.

        Raises:
            ConfigurationError: If no rate is configured for the pair
        """
        try:
            return self._rents[Floor(floor)][BedType(bed_type)]
        except (KeyError, ValueError) as e:
            raise ConfigurationError(f"No rent configured for floor {floor} and bed type {bed_type}") from e

    def has_rate(self, floor: Floor, bed_type: BedType) -> bool:
        try:
            self.rent_for(floor, bed_type)
        except ConfigurationError:
            return False
        return True

    def __eq__(self, other) -> bool:
        return isinstance(other, RateTable) and self._rents == other._rents

    def __repr__(self) -> str:
        return f"<RateTable({self.to_dict()})>"


def to_amount(value, field: str = "amount") -> Decimal:
    """Convert a monetary input to Decimal, rejecting negatives.

    Raises:
        ValidationError: If the value is not a number or is negative
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except ArithmeticError as e:
        raise ValidationError(f"{field} must be a number", field=field) from e
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return amount


def calculate_per_head_bill(total_amount, member_count: int) -> Decimal:
    """Split a shared bill, rounding up so the pool is never short.

    Example: calculate_per_head_bill(1000, 3) == 334

    Raises:
        ValidationError: If the amount is negative or member_count < 1
    """
    total = to_amount(total_amount, "total_amount")
    if member_count < 1:
        raise ValidationError("member_count must be at least 1", field="member_count")
    return (total / Decimal(member_count)).to_integral_value(rounding=ROUND_CEILING)


def calculate_total_charges(
    rent: Decimal,
    electricity: Decimal,
    wifi: Decimal,
    expenses: Iterable[Expense],
    outstanding: Decimal,
) -> Decimal:
    return rent + electricity + wifi + sum((e.amount for e in expenses), ZERO) + outstanding


def derive_payment_status(total_charges: Decimal, amount_paid: Decimal) -> PaymentStatus:
    """Status from what is owed versus what was paid.

    outstanding > 0 -> Due (nothing paid) or Partial
    outstanding == 0 -> Paid
    outstanding < 0 -> Overpaid
    """
    outstanding = total_charges - amount_paid
    if outstanding > 0:
        return PaymentStatus.DUE if amount_paid == 0 else PaymentStatus.PARTIAL
    if outstanding == 0:
        return PaymentStatus.PAID
    return PaymentStatus.OVERPAID


def compute_monthly_charge(
    member,
    rate_table: RateTable,
    electricity_share,
    wifi_share,
    expenses: Iterable[Expense] = (),
    forward_previous_outstanding: bool = False,
    amount_paid=ZERO,
) -> MonthlyCharge:
    """Compute one member's charges for a billing period.

    Args:
        member: Object with floor, bed_type and outstanding_balance
        rate_table: Rent per (floor, bed type)
        electricity_share: Member's share of the floor electricity bill
        wifi_share: Member's WiFi share (0 when opted out)
        expenses: One-off expenses for this member
        forward_previous_outstanding: Fold the member's running outstanding into this period
        amount_paid: Amount already paid against this period (0 for a fresh bill)

    Returns:
        MonthlyCharge with totals and derived status

    Raises:
        ConfigurationError: If the rate table has no entry for the member's floor/bed type
        ValidationError: If any monetary input is negative
    """
    rent = rate_table.rent_for(member.floor, member.bed_type)
    electricity = to_amount(electricity_share, "electricity")
    wifi = to_amount(wifi_share, "wifi")
    paid = to_amount(amount_paid, "amount_paid")
    items = tuple(
        Expense(to_amount(e.amount, "expense"), e.description) for e in expenses
    )

    previous = ZERO
    if forward_previous_outstanding:
        previous = Decimal(member.outstanding_balance or 0)

    total = calculate_total_charges(rent, electricity, wifi, items, previous)

    return MonthlyCharge(
        rent=rent,
        electricity=electricity,
        wifi=wifi,
        expenses=items,
        previous_outstanding=previous,
        total_charges=total,
        amount_paid=paid,
        current_outstanding=total - paid,
        status=derive_payment_status(total, paid),
    )


def apply_forwarded_outstanding(
    total_charges: Decimal,
    amount_paid: Decimal,
    status: PaymentStatus,
    forwarded_amount,
) -> ForwardedOutstanding:
    """Fold an outstanding amount onto an existing billing record.

    A record that is not Due gets its status recomputed against the new total;
    a Due record stays Due.
    """
    forwarded = Decimal(str(forwarded_amount))
    new_total = total_charges + forwarded

    if PaymentStatus(status) != PaymentStatus.DUE:
        if amount_paid < new_total:
            new_status = PaymentStatus.PARTIAL
        elif amount_paid > new_total:
            new_status = PaymentStatus.OVERPAID
        else:
            new_status = PaymentStatus.PAID
    else:
        new_status = PaymentStatus.DUE

    return ForwardedOutstanding(
        total_charges=new_total,
        current_outstanding=new_total - amount_paid,
        status=new_status,
    )


def compute_settlement(member, leave_date: date) -> Settlement:
    """Compute the final settlement for a leaving member.

    Args:
        member: Object with total_agreed_deposit, outstanding_balance and move_in_date
        leave_date: Date the member leaves

    Returns:
        Settlement (positive amount = refund due to member)

    Raises:
        ValidationError: If leave_date precedes the move-in date
    """
    leave = to_date(leave_date, "leave_date")
    move_in = to_date(member.move_in_date, "move_in_date")
    if leave < move_in:
        raise ValidationError("Leave date cannot be before move-in date", field="leave_date")

    deposit = Decimal(member.total_agreed_deposit or 0)
    outstanding = Decimal(member.outstanding_balance or 0)
    amount = deposit - outstanding

    if amount > 0:
        direction = SettlementDirection.REFUND
    elif amount < 0:
        direction = SettlementDirection.PAYMENT
    else:
        direction = SettlementDirection.SETTLED

    return Settlement(
        settlement_amount=amount,
        direction=direction,
        total_agreed_deposit=deposit,
        outstanding_balance=outstanding,
    )


def add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the month end."""
    month_index = value.year * 12 + value.month - 1 + months
    year, month = divmod(month_index, 12)
    day = min(value.day, calendar.monthrange(year, month + 1)[1])
    return value.replace(year=year, month=month + 1, day=day)


def month_difference(end: date, start: date) -> float:
    """Fractional number of months from start to end (negative if end is earlier).

    Whole months are counted from the date with the later day of month so that
    month-end clamping never shortens the span.
    """
    if start.day < end.day:
        return -month_difference(start, end)

    whole = (end.year - start.year) * 12 + (end.month - start.month)
    anchor = add_months(start, whole)
    remainder = (end - anchor).days

    if remainder < 0:
        span = (anchor - add_months(start, whole - 1)).days
    else:
        span = (add_months(start, whole + 1) - anchor).days

    return whole + remainder / span


def is_within_one_month_diff(target_date: date, original_date: date) -> bool:
    """True iff the two dates are at most one (fractional) month apart."""
    target = to_date(target_date, "target_date")
    original = to_date(original_date, "original_date")
    return abs(month_difference(original, target)) <= 1


def ensure_move_in_edit_allowed(current_move_in: date, new_move_in: date) -> None:
    """Raise ValidationError when a move-in edit shifts the date by more than a month."""
    if not is_within_one_month_diff(current_move_in, new_move_in):
        raise ValidationError(
            "Move in date should be within one month of current move in date",
            field="move_in_date",
        )


def billing_month_key(value: date) -> str:
    """YYYY-MM key of the billing period containing the date."""
    return to_date(value, "billing_month").strftime("%Y-%m")


def to_date(value, field: str = "date") -> date:
    """Coerce a date, datetime or ISO string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError as e:
            raise ValidationError(f"{field} must be a valid date", field=field) from e
    raise ValidationError(f"{field} must be a valid date", field=field)


__all__ = [
    "Expense",
    "ForwardedOutstanding",
    "MonthlyCharge",
    "RateTable",
    "Settlement",
    "SettlementDirection",
    "add_months",
    "apply_forwarded_outstanding",
    "billing_month_key",
    "calculate_per_head_bill",
    "calculate_total_charges",
    "compute_monthly_charge",
    "compute_settlement",
    "derive_payment_status",
    "ensure_move_in_edit_allowed",
    "is_within_one_month_diff",
    "month_difference",
    "to_amount",
    "to_date",
]
