"""
Result values for record decoding and validation.

Decoders and validators return Ok or Err instead of raising, so batch
loops can branch on the outcome of each record.

Example:
    >>> result = validate_enhanced(record)
    >>> if result.ok:
    ...     persist(result.value)
    ... else:
    ...     report(result.messages())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

T = TypeVar("T")

IssueSeverity = Literal["error", "warning"]


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single problem found while decoding or validating a record.

    Attributes:
        message: Human-readable description.
        code: Machine-readable code such as "required_entryPrice".
        field: Wire name of the offending field, if any.
        severity: "error" blocks the record, "warning" does not.
    """

    message: str
    code: str
    field: str | None = None
    severity: IssueSeverity = "error"

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "field": self.field,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying one or more issues."""

    errors: tuple[ValidationIssue, ...]
    warnings: tuple[ValidationIssue, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.errors:
            raise ValueError("Err requires at least one issue")

    @property
    def ok(self) -> bool:
        return False

    @property
    def first_field(self) -> str | None:
        return self.errors[0].field

    def messages(self) -> list[str]:
        return [issue.message for issue in self.errors]


Result = Ok[T] | Err


__all__ = [
    "IssueSeverity",
    "ValidationIssue",
    "Ok",
    "Err",
    "Result",
]
