"""Payment recording and billing summary tests."""

from datetime import date
from decimal import Decimal

import pytest

from rentbook.models import PaymentStatus
from rentbook.services.billing_service import BillingService
from rentbook.services.config import reset_settings
from rentbook.services.errors import MemberNotFoundError, ValidationError


@pytest.fixture
def service(db_session):
    return BillingService(db_session, payment_due_day=5)


@pytest.fixture
def january(service, members):
    """January bills: Ravi 2100, Anil 2200, Sunil 2500."""
    response = service.generate_bills(
        {
            "selected_billing_month": "2024-01-01",
            "active_member_counts": {"2nd": 2, "3rd": 1},
            "second_floor_electricity_bill": "1000",
            "third_floor_electricity_bill": "900",
        }
    )
    assert response.success, response.errors
    return members


def pay(service, member, amount, month="2024-01", **extra):
    return service.record_payment({"member_id": member.id, "month": month, "amount_paid": amount, **extra})


class TestRecordPayment:
    """Recording payments against a month's bill."""

    def test_full_payment(self, service, january):
        ravi = january["ravi"]

        response = pay(service, ravi, "2100", note="UPI")

        assert response.success
        record = response.data
        assert record.current_outstanding == Decimal(0)
        assert record.status == PaymentStatus.PAID
        assert record.note == "UPI"
        assert ravi.outstanding_balance == Decimal(0)

    def test_partial_payment(self, service, january):
        response = pay(service, january["ravi"], "600")

        assert response.data.status == PaymentStatus.PARTIAL
        assert response.data.current_outstanding == Decimal(1500)
        assert january["ravi"].outstanding_balance == Decimal(1500)

    def test_overpayment(self, service, january):
        response = pay(service, january["ravi"], "2500")

        assert response.data.status == PaymentStatus.OVERPAID
        assert january["ravi"].outstanding_balance == Decimal(-400)

    def test_correcting_a_payment_moves_balance_by_delta(self, service, january):
        ravi = january["ravi"]
        pay(service, ravi, "2100")

        response = pay(service, ravi, "0")

        assert response.data.status == PaymentStatus.DUE
        assert ravi.outstanding_balance == Decimal(2100)

    def test_balance_includes_other_months(self, service, january):
        sunil = january["sunil"]

        pay(service, sunil, "4000", month="2023-12")

        assert service.get_rent_record(sunil.id, "2023-12").status == PaymentStatus.PARTIAL
        assert sunil.outstanding_balance == Decimal(2700)

    def test_negative_amount(self, service, january):
        response = pay(service, january["ravi"], "-10")

        assert not response.success
        assert "amount_paid" in response.errors["nested"]
        assert january["ravi"].outstanding_balance == Decimal(2100)

    def test_missing_record(self, service, january):
        with pytest.raises(ValidationError, match="Rent history not found"):
            pay(service, january["ravi"], "100", month="2024-05")

    def test_unknown_member(self, service, january):
        with pytest.raises(MemberNotFoundError):
            service.record_payment({"member_id": 999, "month": "2024-01", "amount_paid": "100"})


class TestBillingSummary:
    """Monthly collection summary."""

    def test_totals_and_rate(self, service, january):
        pay(service, january["ravi"], "2100")
        pay(service, january["anil"], "1000")

        summary = service.get_billing_summary("2024-01", as_of=date(2024, 1, 15))

        assert summary.total_generated == Decimal(6800)
        assert summary.total_collected == Decimal(3100)
        assert summary.total_outstanding == Decimal(3700)
        assert summary.payment_rate == Decimal("45.59")

    def test_dues_and_recent_payments(self, service, january):
        pay(service, january["anil"], "1000")

        summary = service.get_billing_summary("2024-01", as_of=date(2024, 1, 15))

        assert [d.member_name for d in summary.dues] == ["Sunil Das", "Ravi Kumar", "Anil Sharma"]
        assert all(d.days_overdue == 10 for d in summary.dues)
        assert [p.member_name for p in summary.recent_payments] == ["Anil Sharma"]
        assert summary.recent_payments[0].amount == Decimal(1000)

    def test_not_overdue_before_due_day(self, service, january):
        summary = service.get_billing_summary("2024-01", as_of=date(2024, 1, 3))

        assert all(d.days_overdue == 0 for d in summary.dues)

    def test_empty_month(self, service, january):
        summary = service.get_billing_summary("2023-06")

        assert summary.total_generated == Decimal(0)
        assert summary.payment_rate == Decimal(0)
        assert summary.dues == []


class TestConfiguredDueDay:
    """PAYMENT_DUE_DAY moves the overdue cut-off."""

    def test_due_day_from_environment(self, monkeypatch, db_session, january):
        monkeypatch.setenv("PAYMENT_DUE_DAY", "10")
        reset_settings()
        service = BillingService(db_session)

        summary = service.get_billing_summary("2024-01", as_of=date(2024, 1, 15))

        assert service.payment_due_day == 10
        assert all(d.days_overdue == 5 for d in summary.dues)
