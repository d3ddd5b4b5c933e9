"""Pydantic schema for the default rents / settings form."""

import re
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from rentbook.models.member import BedType, Floor
from rentbook.schemas import FieldError

UPI_VPA_PATTERN = re.compile(r"^[a-z0-9_-]{3,20}@[a-z0-9]{3,10}$")


class DefaultRentsForm(BaseModel):
    """Rent per floor/bed type plus house-wide defaults."""

    second_bed: int = Field(..., ge=1600, le=9999)
    second_room: int = Field(..., ge=3200, le=19998)
    second_special: int = Field(..., ge=1600, le=9999)
    third_bed: int = Field(..., ge=1600, le=9999)
    third_room: int = Field(..., ge=3200, le=19998)
    security_deposit: int = Field(..., ge=1000, le=9999)
    wifi_monthly_charge: int = Field(..., ge=100, le=9999)
    upi_vpa: str = ""

    @field_validator("upi_vpa")
    @classmethod
    def check_upi_vpa(cls, value: str) -> str:
        vpa = value.strip().lower()
        if vpa and not UPI_VPA_PATTERN.match(vpa):
            raise ValueError("Must be UPI VPA format (e.g. name@bank)")
        return vpa

    @model_validator(mode="after")
    def check_rent_ladder(self) -> "DefaultRentsForm":
        if self.second_room < self.second_bed * 2:
            raise FieldError("second_room", "Must be at least double the Bed rent.")
        if self.second_special < self.second_bed + 100:
            raise FieldError("second_special", "Must be ₹100 greater than Bed rent.")
        if self.third_room < self.third_bed * 2:
            raise FieldError("third_room", "Must be at least double the Bed rent.")
        return self

    def bed_rents(self) -> dict[Floor, dict[BedType, Decimal]]:
        """Rate table shape for RateTable()."""
        return {
            Floor.SECOND: {
                BedType.BED: Decimal(self.second_bed),
                BedType.ROOM: Decimal(self.second_room),
                BedType.SPECIAL: Decimal(self.second_special),
            },
            Floor.THIRD: {
                BedType.BED: Decimal(self.third_bed),
                BedType.ROOM: Decimal(self.third_room),
            },
        }


__all__ = ["DefaultRentsForm"]
