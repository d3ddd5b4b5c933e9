"""Member service for adding, editing and deactivating hostel members."""

import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal

from sqlalchemy import or_
from sqlalchemy.orm import Session

from rentbook.models.member import Floor, Member
from rentbook.models.rent_history import RentHistory
from rentbook.schemas import MemberAction, MemberForm, SaveResponse, safe_parse
from rentbook.services.billing_engine import (
    Settlement,
    add_months,
    apply_forwarded_outstanding,
    billing_month_key,
    compute_settlement,
    derive_payment_status,
    ensure_move_in_edit_allowed,
    to_date,
)
from rentbook.services.config import get_settings
from rentbook.services.errors import MemberNotFoundError, ValidationError
from rentbook.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


class MemberService:
    """Service for member-related operations.

    Every write runs as one transaction for one member: changes are flushed and
    committed together, or rolled back when any step fails.
    """

    def __init__(self, db_session: Session, record_retention_months: int | None = None):
        """Initialize with database session.

        Args:
            db_session: SQLAlchemy session
            record_retention_months: Months a left member is kept (default: RECORD_RETENTION_MONTHS)
        """
        self.db = db_session
        if record_retention_months is None:
            record_retention_months = get_settings().record_retention_months
        self.record_retention_months = record_retention_months
        self.settings_service = SettingsService(db_session)

    # Queries

    def get_member(self, member_id: int) -> Member:
        """Get member by ID.

        Raises:
            MemberNotFoundError: If no member has this ID
        """
        member = self.db.get(Member, member_id) if member_id else None
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    def list_members(
        self,
        include_inactive: bool = False,
        floor: Floor | None = None,
        search_term: str | None = None,
    ) -> list[Member]:
        """List members ordered by floor and name.

        Args:
            include_inactive: Include members who have left
            floor: Only members on this floor
            search_term: Case-insensitive match on name or phone

        Returns:
            List of Member objects
        """
        query = self.db.query(Member)
        if not include_inactive:
            query = query.filter(Member.is_active == True)  # noqa: E712
        if floor is not None:
            query = query.filter(Member.floor == Floor(floor))
        if search_term and search_term.strip():
            pattern = f"%{search_term.strip()}%"
            query = query.filter(or_(Member.name.ilike(pattern), Member.phone.like(pattern)))
        return query.order_by(Member.floor, Member.name).all()

    def get_latest_rent(self, member_id: int) -> RentHistory | None:
        """Most recent billing record for a member."""
        return (
            self.db.query(RentHistory)
            .filter(RentHistory.member_id == member_id)
            .order_by(RentHistory.billing_month.desc())
            .first()
        )

    # Writes

    def save_member(self, data) -> SaveResponse:
        """Dispatch a member form by its action (add / edit / reactivate)."""
        result = safe_parse(MemberForm, data)
        if not result.success:
            return SaveResponse.failed(result.errors)

        form = result.output
        if form.action == MemberAction.ADD:
            return self.add_member(form)
        if form.action == MemberAction.EDIT:
            return self.update_member(form)
        return self.reactivate_member(form)

    def add_member(self, data) -> SaveResponse:
        """Create a member and their joining bill.

        The joining bill charges the total agreed deposit (plus any forwarded
        outstanding); the member's running balance starts at its outstanding.

        Returns:
            SaveResponse with the new Member, or field errors for duplicates

        Raises:
            ConfigurationError: If defaults are missing or the floor/bed type has no rate
        """
        result = safe_parse(MemberForm, data)
        if not result.success:
            return SaveResponse.failed(result.errors)
        form = result.output

        duplicate = self._duplicate_errors(form.name, form.phone)
        if duplicate:
            return SaveResponse.failed(duplicate)

        self.settings_service.get_rate_table().rent_for(form.floor, form.bed_type)

        member = Member(
            name=form.name,
            phone=form.phone,
            floor=form.floor,
            bed_type=form.bed_type,
            move_in_date=form.move_in_date,
            security_deposit=form.security_deposit,
            advance_deposit=form.advance_deposit,
            rent_at_joining=form.rent_amount,
            current_rent=form.rent_amount,
            total_agreed_deposit=form.total_agreed_deposit,
            opted_for_wifi=form.is_opted_for_wifi,
            note=form.note or None,
            is_active=True,
        )

        forwarded = form.outstanding_amount if form.should_forward_outstanding else Decimal(0)
        joining = self._joining_bill(member, form, forwarded)
        member.outstanding_balance = joining.current_outstanding
        member.rent_history = [joining]

        try:
            self.db.add(member)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Added member: id=%d, name=%s, floor=%s, bed_type=%s, balance=%s",
            member.id,
            member.name,
            member.floor.value,
            member.bed_type.value,
            member.outstanding_balance,
        )
        return SaveResponse.ok(member)

    def update_member(self, data) -> SaveResponse:
        """Edit a member's details, optionally forwarding an outstanding amount.

        Move-in date edits are limited to one month either way. The total
        agreed deposit is recomputed from the rent at joining, so later rent
        changes do not affect it.

        Raises:
            MemberNotFoundError: If the member ID is unknown
        """
        result = safe_parse(MemberForm, data)
        if not result.success:
            return SaveResponse.failed(result.errors)
        form = result.output

        member = self.get_member(form.id)

        try:
            ensure_move_in_edit_allowed(member.move_in_date, form.move_in_date)
        except ValidationError as e:
            return SaveResponse.failed(e.to_errors())

        duplicate = self._duplicate_errors(form.name, form.phone, exclude_id=member.id)
        if duplicate:
            return SaveResponse.failed(duplicate)

        self.settings_service.get_rate_table().rent_for(form.floor, form.bed_type)

        try:
            member.name = form.name
            member.phone = form.phone
            member.floor = form.floor
            member.bed_type = form.bed_type
            member.move_in_date = form.move_in_date
            member.current_rent = form.rent_amount
            member.security_deposit = form.security_deposit
            member.advance_deposit = form.advance_deposit
            member.opted_for_wifi = form.is_opted_for_wifi
            member.note = form.note or None
            member.total_agreed_deposit = (
                form.security_deposit + Decimal(member.rent_at_joining) + form.advance_deposit
            )

            if form.should_forward_outstanding and form.outstanding_amount > 0:
                self._forward_outstanding(member, form.outstanding_amount)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Updated member: id=%d, forwarded=%s, balance=%s",
            member.id,
            form.outstanding_amount if form.should_forward_outstanding else 0,
            member.outstanding_balance,
        )
        return SaveResponse.ok(member)

    def reactivate_member(self, data) -> SaveResponse:
        """Bring an inactive member back with a new move-in date and rent.

        Raises:
            MemberNotFoundError: If the member ID is unknown
        """
        result = safe_parse(MemberForm, data)
        if not result.success:
            return SaveResponse.failed(result.errors)
        form = result.output

        member = self.get_member(form.id)
        if member.is_active:
            return SaveResponse.failed({"nested": {"id": ["Member is already active"]}})

        duplicate = self._duplicate_errors(form.name, form.phone, exclude_id=member.id)
        if duplicate:
            return SaveResponse.failed(duplicate)

        self.settings_service.get_rate_table().rent_for(form.floor, form.bed_type)

        try:
            member.is_active = True
            member.leave_date = None
            member.ttl_expiry = None
            member.floor = form.floor
            member.bed_type = form.bed_type
            member.move_in_date = form.move_in_date
            member.current_rent = form.rent_amount
            member.opted_for_wifi = form.is_opted_for_wifi
            member.note = form.note or None
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Reactivated member: id=%d, move_in_date=%s", member.id, member.move_in_date)
        return SaveResponse.ok(member)

    def settlement_preview(self, member_id: int, leave_date: date) -> Settlement:
        """Settlement a member would get when leaving on leave_date. No writes."""
        return compute_settlement(self.get_member(member_id), leave_date)

    def deactivate_member(self, member_id: int, leave_date: date) -> Settlement:
        """Mark a member as left and compute their settlement.

        The record is scheduled for purge record_retention_months after the
        leave date (ttl_expiry).

        Raises:
            MemberNotFoundError: If the member ID is unknown
            ValidationError: If the member is already inactive or leave_date precedes move-in
        """
        member = self.get_member(member_id)
        if not member.is_active:
            raise ValidationError("Member is already inactive", field="id")

        settlement = compute_settlement(member, leave_date)
        leave = to_date(leave_date, "leave_date")

        try:
            member.is_active = False
            member.leave_date = leave
            member.ttl_expiry = datetime.combine(
                add_months(leave, self.record_retention_months), time.min, tzinfo=timezone.utc
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Deactivated member: id=%d, leave_date=%s, settlement=%s (%s)",
            member.id,
            leave,
            settlement.settlement_amount,
            settlement.direction.value,
        )
        return settlement

    # Helpers

    def _duplicate_errors(self, name: str, phone: str, exclude_id: int | None = None) -> dict | None:
        """Field errors for name/phone clashes with other members, or None."""
        query = self.db.query(Member)
        if exclude_id is not None:
            query = query.filter(Member.id != exclude_id)

        same_name = query.filter(Member.name == name).first()
        same_phone = query.filter(Member.phone == phone).first()

        if same_name and same_phone and same_name.id == same_phone.id:
            return {
                "nested": {
                    "name": ["Member with same name already exists"],
                    "phone": ["Member with same phone already exists"],
                }
            }
        if same_phone:
            return {"nested": {"phone": [f"{same_phone.name} has same phone number"]}}
        if same_name:
            return {"nested": {"name": ["Member with same name already exists"]}}
        return None

    def _joining_bill(self, member: Member, form: MemberForm, forwarded: Decimal) -> RentHistory:
        total = Decimal(member.total_agreed_deposit) + forwarded
        return RentHistory(
            billing_month=billing_month_key(form.move_in_date),
            rent=form.rent_amount,
            electricity=Decimal(0),
            wifi=Decimal(0),
            previous_outstanding=forwarded,
            expenses=[],
            total_charges=total,
            amount_paid=form.amount_paid,
            current_outstanding=total - form.amount_paid,
            status=derive_payment_status(total, form.amount_paid),
        )

    def _forward_outstanding(self, member: Member, amount: Decimal) -> None:
        record = self.get_latest_rent(member.id)
        if record is None:
            raise ValidationError("Member has no billing record to forward onto", field="outstanding_amount")

        old_outstanding = Decimal(record.current_outstanding)
        forwarded = apply_forwarded_outstanding(
            Decimal(record.total_charges),
            Decimal(record.amount_paid),
            record.status,
            amount,
        )
        record.total_charges = forwarded.total_charges
        record.current_outstanding = forwarded.current_outstanding
        record.previous_outstanding = Decimal(record.previous_outstanding) + amount
        record.status = forwarded.status
        member.outstanding_balance = (
            Decimal(member.outstanding_balance) + forwarded.current_outstanding - old_outstanding
        )


__all__ = ["MemberService"]
