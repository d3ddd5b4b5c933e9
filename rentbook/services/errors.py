"""Custom exception classes for billing and member operations.

Provides domain-specific exceptions for clear error handling and reporting.
"""


class BillingError(Exception):
    """Base exception for billing errors."""

    pass


class ConfigurationError(BillingError):
    """Default values or rate table entry missing or invalid."""

    pass


class ValidationError(BillingError):
    """Input rejected before any computation or write took place.

    Attributes:
        field: Name of the offending input field (optional)
    """

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)

    def to_errors(self) -> dict:
        """Flattened error mapping in the shape used by SaveResponse."""
        if self.field:
            return {"nested": {self.field: [self.message]}}
        return {"root": [self.message]}


class MemberNotFoundError(ValidationError):
    """Member ID does not refer to an existing member."""

    def __init__(self, member_id):
        super().__init__(f"Member not found: {member_id}", field="id")
        self.member_id = member_id
