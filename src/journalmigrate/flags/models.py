"""
Feature flag models.

FeatureFlag and FlagCondition are persisted under the feature.flags key
using camelCase wire names. FeatureFlagContext is supplied per call and
never persisted.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ConditionType(Enum):
    """Context attribute a condition reads."""

    USER_ID = "user_id"
    ACCOUNT_TYPE = "account_type"
    TRADE_COUNT = "trade_count"
    ACCOUNT_AGE = "account_age"
    CUSTOM = "custom"


class ConditionOperator(Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"


def clamp_percentage(value: float) -> int:
    """Clamp a rollout percentage into [0, 100], rounding halves up."""
    return math.floor(max(0, min(100, value)) + 0.5)


class FlagCondition(BaseModel):
    """
    A targeting rule attached to a flag.

    type and operator are kept as plain strings so that a persisted
    condition with an unrecognised type or operator still loads; such a
    condition simply never holds.

    For type "custom", value is {"key": <attribute name>, "value": <expected>}.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    operator: str
    value: Any = None


class FeatureFlag(BaseModel):
    """
    A named feature flag with percentage rollout.

    Attributes:
        key: Unique flag key
        name: Display name
        description: What the flag gates
        enabled: Global on/off switch
        rollout_percentage: Share of identities included, clamped to [0, 100]
        conditions: Targeting rules, all of which must hold
        metadata: Free-form metadata
        created_at: When the flag was created
        updated_at: When the flag was last changed
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    key: str = Field(..., min_length=1)
    name: str = Field(default="")
    description: str = Field(default="")
    enabled: bool = Field(default=False)
    rollout_percentage: int = Field(default=0)
    conditions: list[FlagCondition] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("rollout_percentage", mode="before")
    @classmethod
    def _clamp_rollout(cls, value: Any) -> Any:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return clamp_percentage(value)
        return value

    @field_validator("conditions", mode="before")
    @classmethod
    def _conditions_never_null(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FeatureFlagContext(BaseModel):
    """
    Caller-supplied attributes used to evaluate a flag.

    Attributes:
        user_id: Identity used for rollout bucketing ("anonymous" if unset)
        account_type: "live" or "demo"
        trade_count: Number of trades recorded by the user
        account_age: Account age in days
        custom_attributes: Attributes read by "custom" conditions
    """

    model_config = ConfigDict(frozen=True)

    user_id: str | None = None
    account_type: str | None = None
    trade_count: int | None = None
    account_age: float | None = None
    custom_attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def identity(self) -> str:
        return self.user_id or "anonymous"


__all__ = [
    "ConditionType",
    "ConditionOperator",
    "clamp_percentage",
    "FlagCondition",
    "FeatureFlag",
    "FeatureFlagContext",
]
