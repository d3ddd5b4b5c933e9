"""Pydantic schema for the member add/edit/reactivate form."""

import re
from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from rentbook.models.member import BedType, Floor
from rentbook.schemas import FieldError

NAME_PATTERN = re.compile(r"^[a-zA-Z]{2,}(?: [a-zA-Z]{2,}){0,2}$")
PHONE_PATTERN = re.compile(r"^\+91\d{10}$")


class MemberAction(str, Enum):
    ADD = "add"
    EDIT = "edit"
    REACTIVATE = "reactivate"


def normalize_name(value: str) -> str:
    """Trim, collapse whitespace and capitalize each word."""
    collapsed = re.sub(r"\s+", " ", value.strip().lower())
    return re.sub(r"\b\w", lambda m: m.group().upper(), collapsed)


def normalize_phone(value: str) -> str:
    """Strip whitespace and prefix the +91 country code."""
    digits = re.sub(r"\s+", "", value)
    if digits.startswith("+91") and len(digits) == 13:
        digits = digits[3:]
    return "+91" + digits


class MemberForm(BaseModel):
    """Member details submitted by an admin."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: int | None = Field(None, ge=1, description="Member ID (required for edit/reactivate)")
    name: str
    phone: str
    floor: Floor
    bed_type: BedType
    move_in_date: date
    security_deposit: Decimal = Field(..., ge=0)
    advance_deposit: Decimal = Field(Decimal(0), ge=0)
    rent_amount: Decimal = Field(..., ge=0)
    rent_at_joining: Decimal | None = Field(None, ge=0)
    amount_paid: Decimal = Field(Decimal(0), ge=0)
    outstanding_amount: Decimal = Field(Decimal(0), ge=0)
    is_opted_for_wifi: bool = False
    should_forward_outstanding: bool = False
    note: str = ""
    action: MemberAction = MemberAction.ADD

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        name = normalize_name(value)
        if not NAME_PATTERN.match(name):
            raise ValueError(
                "Name must contain no more than 3 words, "
                "and each word must be at least 2 letters long."
            )
        return name

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        phone = normalize_phone(value)
        if not PHONE_PATTERN.match(phone):
            raise ValueError("Phone must be a valid 10-digit number.")
        return phone

    @model_validator(mode="after")
    def check_accommodation(self) -> "MemberForm":
        if self.bed_type == BedType.SPECIAL and self.floor != Floor.SECOND:
            raise FieldError("bed_type", "Special is only available on the 2nd floor")
        if self.action != MemberAction.ADD and self.id is None:
            raise FieldError("id", "Member ID is required")
        return self

    @property
    def total_agreed_deposit(self) -> Decimal:
        return self.security_deposit + self.rent_amount + self.advance_deposit


__all__ = ["MemberForm", "MemberAction", "normalize_name", "normalize_phone"]
