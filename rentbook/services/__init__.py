"""Billing engine, record services and ambient setup (config, logging, database)."""

from rentbook.services.billing_service import BillGenerationResult, BillingService, BillingSummary
from rentbook.services.db import create_db_engine, create_session_factory, session_scope
from rentbook.services.errors import (
    BillingError,
    ConfigurationError,
    MemberNotFoundError,
    ValidationError,
)
from rentbook.services.member_service import MemberService
from rentbook.services.settings_service import SettingsService

__all__ = [
    "BillGenerationResult",
    "BillingError",
    "BillingService",
    "BillingSummary",
    "ConfigurationError",
    "MemberNotFoundError",
    "MemberService",
    "SettingsService",
    "ValidationError",
    "create_db_engine",
    "create_session_factory",
    "session_scope",
]
