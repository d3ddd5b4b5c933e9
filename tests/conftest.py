"""Shared pytest fixtures: in-memory database and seeded members."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rentbook.models import Base
from rentbook.services.config import reset_settings
from rentbook.services.member_service import MemberService
from rentbook.services.settings_service import SettingsService


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings around every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def db_session():
    """Create test database session."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def global_settings(db_session):
    """Base configuration with January 2024 as the next billing month."""
    return SettingsService(db_session).initialize_defaults(date(2024, 1, 1))


def build_member_form(**overrides) -> dict:
    data = {
        "name": "Ravi Kumar",
        "phone": "9876543210",
        "floor": "2nd",
        "bed_type": "Bed",
        "move_in_date": "2023-12-10",
        "security_deposit": "1000",
        "advance_deposit": "1600",
        "rent_amount": "1600",
        "amount_paid": "4200",
    }
    data.update(overrides)
    return data


@pytest.fixture
def members(db_session, global_settings):
    """Three active members: two on the 2nd floor, one on the 3rd."""
    service = MemberService(db_session)
    created = {}
    for key, overrides in {
        "ravi": {},
        "anil": {"name": "Anil Sharma", "phone": "9876500001", "bed_type": "Special", "rent_amount": "1700", "amount_paid": "4300"},
        "sunil": {"name": "Sunil Das", "phone": "9876500002", "floor": "3rd"},
    }.items():
        response = service.add_member(build_member_form(**overrides))
        assert response.success, response.errors
        created[key] = response.data
    return created


@pytest.fixture
def member_form():
    """Factory for valid add-member form data; keyword overrides replace fields."""
    return build_member_form

