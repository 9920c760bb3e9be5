"""
Enhanced trade record models.

These pydantic models describe the post-migration record shape. Python
attributes are snake_case while the persisted JSON keeps the journal's
camelCase keys through field aliases, so records written by this library
remain readable by the existing application.

Example:
    >>> record = EnhancedRecord.model_validate(
    ...     {"id": "t1", "currencyPair": "EUR/USD", "entryPrice": 1.1}
    ... )
    >>> record.entry_price
    1.1
    >>> record.to_wire()["currencyPair"]
    'EUR/USD'
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_ACCOUNT_ID = "default_account"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class JournalModel(BaseModel):
    """Base model mapping snake_case attributes to camelCase wire keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ReviewStage(JournalModel):
    """One stage of a trade review."""

    id: str = Field(..., description="Stable stage identifier")
    name: str = Field(default="", description="Display name")
    description: str = Field(default="", description="What the stage covers")
    required: bool = Field(default=True, description="Whether review completion needs this stage")
    completed: bool = Field(default=False)
    notes: str = Field(default="", description="Free-text note for the stage")
    completed_at: datetime | None = Field(default=None)


class ReviewWorkflow(JournalModel):
    """
    Ordered review stages for a single trade.

    overall_progress is the percentage of completed stages, counting
    required and optional stages alike.
    """

    trade_id: str = Field(..., description="ID of the reviewed trade")
    stages: list[ReviewStage] = Field(default_factory=list)
    overall_progress: float = Field(default=0.0, ge=0.0, le=100.0)
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = Field(default=None)


class TradeNotes(JournalModel):
    """Structured notes attached to a trade review."""

    model_config = ConfigDict(extra="allow")

    general_notes: str = Field(default="")
    last_modified: datetime = Field(default_factory=_utcnow)
    version: int = Field(default=1, ge=1)


class ReviewData(JournalModel):
    model_config = ConfigDict(extra="allow")

    review_workflow: ReviewWorkflow
    notes: TradeNotes = Field(default_factory=TradeNotes)
    charts: list[dict[str, Any]] = Field(default_factory=list)
    last_reviewed_at: datetime | None = Field(default=None)
    review_completion_score: float = Field(default=0.0)


class EnhancedRecord(JournalModel):
    """
    A trade record in the enhanced schema.

    Carries every legacy field plus the derived account reference, unit
    count, normalized tags and review data. Unknown legacy fields are kept
    as pydantic extras and written back unchanged.

    The model itself is permissive: required-field and cross-field rules
    are enforced by journalmigrate.records.validation.validate_enhanced so
    that a failing record can still be reported field by field.

    Attributes:
        id: Trade identifier
        account_id: Owning account (defaults to "default_account")
        currency_pair: Instrument in "BASE/QUOTE" form
        side: "long" or "short"
        status: "open" or "closed"
        entry_price: Entry price (must be positive)
        exit_price: Exit price (required once closed)
        lot_size: Position size in lots (must be positive)
        lot_type: "standard", "mini" or "micro"
        units: lot_size scaled by the lot type
        pips: Signed pip distance between entry and exit
        r_multiple: pnl divided by risk_amount
        tags: Trimmed, deduplicated tag list
        review_data: Review workflow, notes and charts
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    account_id: str = Field(default=DEFAULT_ACCOUNT_ID)
    currency_pair: str | None = None
    date: str | None = None
    time_in: str | None = None
    time_out: str | None = None
    side: str | None = None
    status: str | None = None
    entry_price: float | None = None
    exit_price: float | None = None
    lot_size: float | None = None
    lot_type: str | None = None
    units: float | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    pips: float | None = None
    pnl: float | None = None
    commission: float | None = None
    risk_amount: float | None = None
    r_multiple: float | None = None
    account_currency: str | None = None
    strategy: str | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    review_data: ReviewData | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_never_null(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_closed(self) -> bool:
        return self.status == "closed"

    def __str__(self) -> str:
        return f"EnhancedRecord(id={self.id}, pair={self.currency_pair}, status={self.status})"


__all__ = [
    "DEFAULT_ACCOUNT_ID",
    "JournalModel",
    "ReviewStage",
    "ReviewWorkflow",
    "TradeNotes",
    "ReviewData",
    "EnhancedRecord",
]
