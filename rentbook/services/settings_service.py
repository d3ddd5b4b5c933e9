"""Global settings service: default values, rate table and admin list."""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from rentbook.models.administrator import Administrator, AdminRole
from rentbook.models.global_settings import GlobalSettings
from rentbook.models.member import BedType, Floor
from rentbook.schemas import DefaultRentsForm, SaveResponse, safe_parse
from rentbook.services.billing_engine import RateTable, add_months
from rentbook.services.config import get_settings
from rentbook.services.errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

# Base configuration written by initialize_defaults()
DEFAULT_BED_RENTS = {
    Floor.SECOND: {
        BedType.BED: Decimal(1600),
        BedType.SPECIAL: Decimal(1700),
        BedType.ROOM: Decimal(3200),
    },
    Floor.THIRD: {
        BedType.BED: Decimal(1600),
        BedType.ROOM: Decimal(3200),
    },
}
DEFAULT_SECURITY_DEPOSIT = Decimal(1000)
DEFAULT_WIFI_MONTHLY_CHARGE = Decimal(500)


def first_of_month(value: date) -> date:
    return value.replace(day=1)


class SettingsService:
    """Service for global settings database operations.

    Encapsulates the single GlobalSettings row and the Administrator list.
    """

    def __init__(self, db_session: Session, max_admins: int | None = None):
        """Initialize with database session."""
        self.db = db_session
        self.max_admins = max_admins if max_admins is not None else get_settings().max_admins

    def find_global_settings(self) -> GlobalSettings | None:
        return self.db.query(GlobalSettings).order_by(GlobalSettings.id).first()

    def get_global_settings(self) -> GlobalSettings:
        """Get the global settings row.

        Raises:
            ConfigurationError: If default values were never initialized
        """
        settings = self.find_global_settings()
        if settings is None:
            raise ConfigurationError("Default values not found")
        return settings

    def get_rate_table(self) -> RateTable:
        """Rate table from the stored default values."""
        return RateTable.from_dict(self.get_global_settings().bed_rents)

    def initialize_defaults(self, billing_month: date) -> GlobalSettings:
        """Create base configuration if it does not exist yet.

        Args:
            billing_month: Any date in the first month bills will be generated for

        Returns:
            Existing or newly created GlobalSettings
        """
        existing = self.find_global_settings()
        if existing is not None:
            logger.info("Base configuration already exists: id=%d", existing.id)
            return existing

        next_month = first_of_month(billing_month)
        settings = GlobalSettings(
            bed_rents=RateTable(DEFAULT_BED_RENTS).to_dict(),
            security_deposit=DEFAULT_SECURITY_DEPOSIT,
            wifi_monthly_charge=DEFAULT_WIFI_MONTHLY_CHARGE,
            upi_vpa=None,
            current_billing_month=add_months(next_month, -1),
            next_billing_month=next_month,
        )
        self.db.add(settings)
        self.db.commit()

        logger.info(
            "Created base configuration: next_billing_month=%s, rents=%s",
            settings.next_billing_month,
            settings.bed_rents,
        )
        return settings

    def save_default_rents(self, data) -> SaveResponse:
        """Validate and store default rents, deposit, WiFi charge and UPI VPA.

        Args:
            data: Mapping matching DefaultRentsForm

        Returns:
            SaveResponse with the updated GlobalSettings on success
        """
        result = safe_parse(DefaultRentsForm, data)
        if not result.success:
            return SaveResponse.failed(result.errors)

        form = result.output
        settings = self.get_global_settings()
        settings.bed_rents = RateTable(form.bed_rents()).to_dict()
        settings.security_deposit = Decimal(form.security_deposit)
        settings.wifi_monthly_charge = Decimal(form.wifi_monthly_charge)
        settings.upi_vpa = form.upi_vpa or None
        self.db.commit()

        logger.info("Updated default rents: %s", settings.bed_rents)
        return SaveResponse.ok(settings)

    def advance_billing_month(self, billing_month: date) -> GlobalSettings:
        """Mark billing_month as current and the month after it as next."""
        settings = self.get_global_settings()
        current = first_of_month(billing_month)
        settings.current_billing_month = current
        settings.next_billing_month = add_months(current, 1)

        logger.info(
            "Advanced billing month: current=%s, next=%s",
            settings.current_billing_month,
            settings.next_billing_month,
        )
        return settings

    # Admin list

    def list_admins(self) -> list[Administrator]:
        return self.db.query(Administrator).order_by(Administrator.added_at).all()

    def is_admin(self, uid: str) -> bool:
        return self.db.get(Administrator, uid) is not None

    def add_admin(
        self,
        uid: str,
        email: str,
        role: AdminRole = AdminRole.SECONDARY,
        added_by: str | None = None,
    ) -> Administrator:
        """Add an administrator.

        Raises:
            ValidationError: If the uid is already an admin, the admin list is full,
                or a second primary admin is requested
        """
        if self.is_admin(uid):
            raise ValidationError(f"{email} is already an admin", field="uid")

        admins = self.list_admins()
        if len(admins) >= self.max_admins:
            raise ValidationError(f"Maximum of {self.max_admins} admins reached", field="uid")
        if role == AdminRole.PRIMARY and any(a.role == AdminRole.PRIMARY for a in admins):
            raise ValidationError("A primary admin already exists", field="role")

        admin = Administrator(uid=uid, email=email.strip().lower(), role=role, added_by=added_by)
        self.db.add(admin)
        self.db.commit()

        logger.info("Added admin: uid=%s, role=%s, added_by=%s", uid, role.value, added_by)
        return admin

    def remove_admin(self, uid: str) -> bool:
        """Remove a secondary admin.

        Returns:
            True if removed, False if uid is not an admin

        Raises:
            ValidationError: If uid is the primary admin
        """
        admin = self.db.get(Administrator, uid)
        if admin is None:
            return False
        if admin.role == AdminRole.PRIMARY:
            raise ValidationError("Primary admin cannot be removed", field="uid")

        self.db.delete(admin)
        self.db.commit()

        logger.info("Removed admin: uid=%s", uid)
        return True


__all__ = ["SettingsService", "DEFAULT_BED_RENTS", "first_of_month"]
