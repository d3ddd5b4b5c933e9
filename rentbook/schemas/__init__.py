"""Pydantic input schemas and tagged validation results.

Forms are validated at construction time. safe_parse() wraps construction and
returns a SafeParseResult instead of raising, so callers can hand field errors
back to the admin unchanged.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

T = TypeVar("T", bound=BaseModel)


class FieldError(ValueError):
    """Model-level check failure attributed to a single field."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        super().__init__(message)


@dataclass
class SafeParseResult(Generic[T]):
    """Outcome of safe_parse: either output or flattened errors."""

    success: bool
    output: T | None = None
    errors: dict = field(default_factory=dict)


@dataclass
class SaveResponse:
    """Outcome of a write operation.

    errors uses the flattened shape {"root": [...], "nested": {field: [...]}}.
    """

    success: bool
    errors: dict | None = None
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> "SaveResponse":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, errors: dict) -> "SaveResponse":
        return cls(success=False, errors=errors)


def flatten_errors(error: PydanticValidationError) -> dict:
    """Flatten pydantic errors into {"root": [...], "nested": {"a.b": [...]}}."""
    flat: dict = {}
    for item in error.errors():
        message = item["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]

        cause = (item.get("ctx") or {}).get("error")
        path = ".".join(str(part) for part in item["loc"])
        if isinstance(cause, FieldError):
            path = ".".join(filter(None, [path, cause.field_name]))

        if path:
            flat.setdefault("nested", {}).setdefault(path, []).append(message)
        else:
            flat.setdefault("root", []).append(message)
    return flat


def safe_parse(schema: type[T], data: Any) -> SafeParseResult[T]:
    """Validate data against schema without raising.

    Args:
        schema: Pydantic model class
        data: Mapping or model instance

    Returns:
        SafeParseResult with output on success, flattened errors otherwise
    """
    if isinstance(data, schema):
        return SafeParseResult(success=True, output=data)
    if not isinstance(data, dict):
        return SafeParseResult(success=False, errors={"root": ["Request data must be an object"]})
    try:
        return SafeParseResult(success=True, output=schema.model_validate(data))
    except PydanticValidationError as e:
        return SafeParseResult(success=False, errors=flatten_errors(e))


from rentbook.schemas.bills import AdditionalExpenses, BillsForm, WifiCharges  # noqa: E402
from rentbook.schemas.config import DefaultRentsForm  # noqa: E402
from rentbook.schemas.member import MemberAction, MemberForm  # noqa: E402
from rentbook.schemas.payment import PaymentForm  # noqa: E402

__all__ = [
    "AdditionalExpenses",
    "BillsForm",
    "DefaultRentsForm",
    "FieldError",
    "MemberAction",
    "MemberForm",
    "PaymentForm",
    "SafeParseResult",
    "SaveResponse",
    "WifiCharges",
    "flatten_errors",
    "safe_parse",
]
