"""Integration tests for global settings and the admin list."""

from datetime import date
from decimal import Decimal

import pytest

from rentbook.models import AdminRole, BedType, Floor, GlobalSettings
from rentbook.services.errors import ConfigurationError, ValidationError
from rentbook.services.settings_service import SettingsService


@pytest.fixture
def service(db_session):
    return SettingsService(db_session, max_admins=3)


class TestGlobalSettings:
    """Default values lifecycle."""

    def test_missing_settings_raise(self, service):
        with pytest.raises(ConfigurationError, match="Default values not found"):
            service.get_global_settings()

    def test_initialize_defaults(self, service):
        settings = service.initialize_defaults(date(2024, 1, 17))

        assert settings.next_billing_month == date(2024, 1, 1)
        assert settings.current_billing_month == date(2023, 12, 1)
        assert settings.security_deposit == Decimal(1000)
        assert settings.wifi_monthly_charge == Decimal(500)

        rates = service.get_rate_table()
        assert rates.rent_for(Floor.SECOND, BedType.SPECIAL) == Decimal(1700)
        assert rates.rent_for(Floor.THIRD, BedType.ROOM) == Decimal(3200)
        assert not rates.has_rate(Floor.THIRD, BedType.SPECIAL)

    def test_initialize_defaults_is_idempotent(self, service, db_session):
        first = service.initialize_defaults(date(2024, 1, 1))
        second = service.initialize_defaults(date(2025, 6, 1))

        assert second.id == first.id
        assert second.next_billing_month == date(2024, 1, 1)
        assert db_session.query(GlobalSettings).count() == 1

    def test_save_default_rents(self, service, global_settings):
        response = service.save_default_rents(
            {
                "second_bed": 2000,
                "second_room": 4000,
                "second_special": 2200,
                "third_bed": 1800,
                "third_room": 3600,
                "security_deposit": 1500,
                "wifi_monthly_charge": 600,
                "upi_vpa": "hostel@okbank",
            }
        )

        assert response.success
        assert service.get_rate_table().rent_for(Floor.SECOND, BedType.SPECIAL) == Decimal(2200)
        assert service.get_global_settings().upi_vpa == "hostel@okbank"
        assert service.get_global_settings().security_deposit == Decimal(1500)

    def test_save_default_rents_rejects_invalid(self, service, global_settings):
        response = service.save_default_rents({"second_bed": 100})

        assert not response.success
        assert "second_room" in response.errors["nested"]
        assert service.get_rate_table().rent_for(Floor.SECOND, BedType.BED) == Decimal(1600)

    def test_advance_billing_month(self, service, global_settings, db_session):
        service.advance_billing_month(date(2024, 1, 20))
        db_session.commit()

        settings = service.get_global_settings()
        assert settings.current_billing_month == date(2024, 1, 1)
        assert settings.next_billing_month == date(2024, 2, 1)


class TestAdminList:
    """Administrator add/remove rules."""

    def test_add_and_list(self, service):
        service.add_admin("uid-1", "Owner@Example.com", AdminRole.PRIMARY)
        service.add_admin("uid-2", "helper@example.com", added_by="uid-1")

        admins = {a.uid: a for a in service.list_admins()}
        assert set(admins) == {"uid-1", "uid-2"}
        assert admins["uid-1"].email == "owner@example.com"
        assert admins["uid-2"].role == AdminRole.SECONDARY
        assert service.is_admin("uid-2")
        assert not service.is_admin("uid-3")

    def test_duplicate_uid_rejected(self, service):
        service.add_admin("uid-1", "owner@example.com", AdminRole.PRIMARY)

        with pytest.raises(ValidationError, match="already an admin"):
            service.add_admin("uid-1", "owner@example.com")

    def test_single_primary(self, service):
        service.add_admin("uid-1", "owner@example.com", AdminRole.PRIMARY)

        with pytest.raises(ValidationError) as exc_info:
            service.add_admin("uid-2", "other@example.com", AdminRole.PRIMARY)

        assert exc_info.value.field == "role"

    def test_max_admins(self, service):
        for n in range(3):
            service.add_admin(f"uid-{n}", f"admin{n}@example.com")

        with pytest.raises(ValidationError, match="Maximum of 3 admins"):
            service.add_admin("uid-9", "late@example.com")

    def test_remove_admin(self, service):
        service.add_admin("uid-1", "owner@example.com", AdminRole.PRIMARY)
        service.add_admin("uid-2", "helper@example.com")

        assert service.remove_admin("uid-2")
        assert not service.remove_admin("uid-2")
        with pytest.raises(ValidationError, match="Primary admin cannot be removed"):
            service.remove_admin("uid-1")
