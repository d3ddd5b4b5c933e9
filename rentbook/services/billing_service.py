"""Billing service: monthly bill generation, payment recording and summaries."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentbook.models.electric_bill import ElectricBill
from rentbook.models.member import Floor, Member
from rentbook.models.rent_history import RentHistory
from rentbook.schemas import BillsForm, PaymentForm, SaveResponse, safe_parse
from rentbook.services.billing_engine import (
    Expense,
    MonthlyCharge,
    RateTable,
    billing_month_key,
    calculate_per_head_bill,
    compute_monthly_charge,
    derive_payment_status,
)
from rentbook.services.config import get_settings
from rentbook.services.errors import BillingError, ValidationError
from rentbook.services.member_service import MemberService
from rentbook.services.settings_service import SettingsService, first_of_month

logger = logging.getLogger(__name__)


@dataclass
class BillGenerationResult:
    """Counts and per-member errors from one generate_bills() run."""

    billing_month: str
    generated_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    errors: list[str] = field(default_factory=list)


class MemberDue(NamedTuple):
    member_id: int
    member_name: str
    amount: Decimal
    days_overdue: int


class RecentPayment(NamedTuple):
    member_id: int
    member_name: str
    amount: Decimal
    billing_month: str


class BillingSummary(NamedTuple):
    """Collection totals for one billing month."""

    billing_month: str
    total_generated: Decimal
    total_collected: Decimal
    total_outstanding: Decimal
    payment_rate: Decimal
    recent_payments: list[RecentPayment]
    dues: list[MemberDue]


class BillingService:
    """Service for billing database operations.

    Each member's bill is written in its own transaction; a failure for one
    member is logged and reported without undoing bills already committed for
    others.
    """

    def __init__(self, db_session: Session, payment_due_day: int | None = None):
        """Initialize with database session.

        Args:
            db_session: SQLAlchemy session
            payment_due_day: Day of month after which bills are overdue (default: PAYMENT_DUE_DAY)
        """
        self.db = db_session
        if payment_due_day is None:
            payment_due_day = get_settings().payment_due_day
        self.payment_due_day = payment_due_day
        self.settings_service = SettingsService(db_session)

    def get_rent_record(self, member_id: int, billing_month: str) -> RentHistory | None:
        return (
            self.db.query(RentHistory)
            .filter(RentHistory.member_id == member_id, RentHistory.billing_month == billing_month)
            .first()
        )

    def get_electric_bill(self, billing_month: str) -> ElectricBill | None:
        return self.db.query(ElectricBill).filter(ElectricBill.billing_month == billing_month).first()

    def generate_bills(self, data) -> SaveResponse:
        """Generate (or regenerate) bills for all active members for one month.

        New bills must target the next billing month; updates must target the
        current one. Members that already have a bill for a new month are
        skipped. Updates keep the amount already paid.

        Args:
            data: Mapping matching BillsForm

        Returns:
            SaveResponse with BillGenerationResult on success

        Raises:
            ConfigurationError: If default values were never initialized
        """
        result = safe_parse(BillsForm, data)
        if not result.success:
            return SaveResponse.failed(result.errors)
        form = result.output

        settings = self.settings_service.get_global_settings()
        rate_table = RateTable.from_dict(settings.bed_rents)

        expected = settings.current_billing_month if form.is_updating_bills else settings.next_billing_month
        if first_of_month(form.selected_billing_month) != first_of_month(expected):
            return SaveResponse.failed(
                {"nested": {"selected_billing_month": ["Selected billing month is not valid"]}}
            )

        members = (
            self.db.query(Member)
            .filter(Member.is_active == True)  # noqa: E712
            .order_by(Member.floor, Member.name)
            .all()
        )
        if not members:
            return SaveResponse.failed({"root": ["Members not found"]})

        by_floor: dict[Floor, list[Member]] = {floor: [] for floor in Floor}
        for member in members:
            by_floor[member.floor].append(member)

        count_errors = {
            f"active_member_counts.{floor.value}": ["Active member count does not match"]
            for floor, floor_members in by_floor.items()
            if floor_members and form.active_member_counts.get(floor) != len(floor_members)
        }
        if count_errors:
            return SaveResponse.failed({"nested": count_errors})

        month_key = billing_month_key(form.selected_billing_month)
        outcome = BillGenerationResult(billing_month=month_key)

        electricity_shares = {
            floor: calculate_per_head_bill(form.floor_bill(floor), len(floor_members))
            for floor, floor_members in by_floor.items()
            if floor_members
        }
        # WiFi pool is shared by listed members who opted in; opted-in members
        # missing from the list pay the default monthly charge
        wifi = form.wifi_charges
        wifi_sharers = {m.id for m in members if m.opted_for_wifi and m.id in wifi.wifi_member_ids}
        wifi_share = (
            calculate_per_head_bill(wifi.wifi_monthly_charge, len(wifi_sharers))
            if wifi_sharers
            else Decimal(0)
        )
        default_wifi = Decimal(settings.wifi_monthly_charge)
        bulk = form.additional_expenses

        for member in members:
            expenses = []
            if bulk.is_applied and member.id in bulk.add_expense_member_ids:
                expenses.append(Expense(bulk.add_expense_amount, bulk.add_expense_description.strip()))

            if member.id in wifi_sharers:
                member_wifi = wifi_share
            elif member.opted_for_wifi and member.id not in wifi.wifi_member_ids:
                member_wifi = default_wifi
            else:
                member_wifi = Decimal(0)

            try:
                written = self._write_member_bill(
                    member,
                    month_key,
                    rate_table,
                    electricity_shares[member.floor],
                    member_wifi,
                    expenses,
                    form.forward_previous_outstanding,
                    form.is_updating_bills,
                )
            except (BillingError, SQLAlchemyError) as e:
                self.db.rollback()
                logger.error("Error generating bill for member %d (%s): %s", member.id, member.name, e)
                outcome.errors.append(f"Error generating bill for {member.name}: {e}")
                continue

            if written is None:
                outcome.skipped_count += 1
            elif form.is_updating_bills:
                outcome.updated_count += 1
            else:
                outcome.generated_count += 1

        self._save_electric_bill(month_key, form, by_floor)
        if not form.is_updating_bills:
            self.settings_service.advance_billing_month(form.selected_billing_month)
        self.db.commit()

        logger.info(
            "Bills for %s: generated=%d, updated=%d, skipped=%d, errors=%d",
            month_key,
            outcome.generated_count,
            outcome.updated_count,
            outcome.skipped_count,
            len(outcome.errors),
        )
        return SaveResponse.ok(outcome)

    def record_payment(self, data) -> SaveResponse:
        """Record the total amount paid against a member's bill for a month.

        The member's running balance moves by the change in the bill's
        outstanding, in the same transaction.

        Returns:
            SaveResponse with the updated RentHistory

        Raises:
            MemberNotFoundError: If the member ID is unknown
            ValidationError: If the member has no bill for the month
        """
        result = safe_parse(PaymentForm, data)
        if not result.success:
            return SaveResponse.failed(result.errors)
        form = result.output

        member = MemberService(self.db).get_member(form.member_id)
        record = self.get_rent_record(member.id, form.month)
        if record is None:
            raise ValidationError(f"Rent history not found for {form.month}", field="month")

        try:
            old_outstanding = Decimal(record.current_outstanding)
            total = Decimal(record.total_charges)

            record.amount_paid = form.amount_paid
            record.current_outstanding = total - form.amount_paid
            record.status = derive_payment_status(total, form.amount_paid)
            if form.note:
                record.note = form.note

            member.outstanding_balance = (
                Decimal(member.outstanding_balance) + record.current_outstanding - old_outstanding
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Recorded payment: member=%d, month=%s, paid=%s, status=%s, balance=%s",
            member.id,
            form.month,
            form.amount_paid,
            record.status.value,
            member.outstanding_balance,
        )
        return SaveResponse.ok(record)

    def get_billing_summary(self, billing_month: str, as_of: date | None = None) -> BillingSummary:
        """Collection totals, recent payments and dues for one month.

        Args:
            billing_month: Month key (YYYY-MM)
            as_of: Date used to count days overdue (default: today)
        """
        as_of = as_of or date.today()
        year, month = (int(part) for part in billing_month.split("-"))
        due_date = date(year, month, self.payment_due_day)

        rows = (
            self.db.query(RentHistory, Member)
            .join(Member, RentHistory.member_id == Member.id)
            .filter(RentHistory.billing_month == billing_month, Member.is_active == True)  # noqa: E712
            .all()
        )

        total_generated = Decimal(0)
        total_collected = Decimal(0)
        total_outstanding = Decimal(0)
        payments: list[RecentPayment] = []
        dues: list[MemberDue] = []

        for record, member in rows:
            total_generated += Decimal(record.total_charges)
            total_collected += Decimal(record.amount_paid)

            outstanding = Decimal(record.total_charges) - Decimal(record.amount_paid)
            if outstanding > 0:
                total_outstanding += outstanding
                dues.append(
                    MemberDue(member.id, member.name, outstanding, max(0, (as_of - due_date).days))
                )
            if record.amount_paid > 0:
                payments.append(
                    RecentPayment(member.id, member.name, Decimal(record.amount_paid), billing_month)
                )

        payment_rate = Decimal(0)
        if total_generated > 0:
            payment_rate = round(total_collected / total_generated * 100, 2)

        payments.sort(key=lambda p: p.amount, reverse=True)
        dues.sort(key=lambda d: (d.days_overdue, d.amount), reverse=True)

        return BillingSummary(
            billing_month=billing_month,
            total_generated=total_generated,
            total_collected=total_collected,
            total_outstanding=total_outstanding,
            payment_rate=payment_rate,
            recent_payments=payments[:10],
            dues=dues[:10],
        )

    def _write_member_bill(
        self,
        member: Member,
        month_key: str,
        rate_table: RateTable,
        electricity_share: Decimal,
        wifi_share: Decimal,
        expenses: list[Expense],
        forward_previous_outstanding: bool,
        is_update: bool,
    ) -> RentHistory | None:
        """Compute and commit one member's bill. Returns None when skipped."""
        record = self.get_rent_record(member.id, month_key)
        if record is not None and not is_update:
            return None

        balance = Decimal(member.outstanding_balance)
        if record is not None:
            # Balance before this month's bill was applied
            balance += Decimal(record.previous_outstanding) - Decimal(record.current_outstanding)

        charge = compute_monthly_charge(
            _BalanceView(member, balance),
            rate_table,
            electricity_share,
            wifi_share,
            expenses,
            forward_previous_outstanding,
            amount_paid=record.amount_paid if record is not None else Decimal(0),
        )

        if record is None:
            record = RentHistory(member_id=member.id, billing_month=month_key)
            self.db.add(record)
        self._apply_charge(record, charge)

        # Running balance = carried balance (unless folded in) + this bill's outstanding
        carried = Decimal(0) if forward_previous_outstanding else balance
        member.outstanding_balance = carried + charge.current_outstanding
        member.current_rent = charge.rent

        self.db.commit()
        return record

    @staticmethod
    def _apply_charge(record: RentHistory, charge: MonthlyCharge) -> None:
        record.generated_at = datetime.now(timezone.utc)
        record.rent = charge.rent
        record.electricity = charge.electricity
        record.wifi = charge.wifi
        record.previous_outstanding = charge.previous_outstanding
        record.expenses = [
            {"amount": str(e.amount), "description": e.description} for e in charge.expenses
        ]
        record.total_charges = charge.total_charges
        record.amount_paid = charge.amount_paid
        record.current_outstanding = charge.current_outstanding
        record.status = charge.status

    def _save_electric_bill(self, month_key: str, form: BillsForm, by_floor: dict) -> ElectricBill:
        bill = self.get_electric_bill(month_key)
        if bill is None:
            bill = ElectricBill(billing_month=month_key)
            self.db.add(bill)

        bulk = form.additional_expenses
        bill.floor_costs = {
            floor.value: {
                "bill": str(form.floor_bill(floor)),
                "members": [{"id": m.id, "name": m.name} for m in floor_members],
            }
            for floor, floor_members in by_floor.items()
        }
        bill.applied_bulk_expenses = (
            [
                {
                    "amount": str(bulk.add_expense_amount),
                    "description": bulk.add_expense_description.strip(),
                    "members": sorted(bulk.add_expense_member_ids),
                }
            ]
            if bulk.is_applied
            else []
        )
        bill.last_updated = datetime.now(timezone.utc)
        return bill


class _BalanceView(NamedTuple):
    """Member attributes the engine reads, with an adjusted running balance."""

    member: Member
    outstanding_balance: Decimal

    @property
    def floor(self) -> Floor:
        return self.member.floor

    @property
    def bed_type(self):
        return self.member.bed_type


__all__ = [
    "BillingService",
    "BillGenerationResult",
    "BillingSummary",
    "MemberDue",
    "RecentPayment",
]
