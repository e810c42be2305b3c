"""Data models (Pydantic) for gym billing.

Defines the core data structures used throughout the system:
- RegularMember: 通常会員
- PTMember: パーソナルトレーニング会員 (trainer_fee 付き)
- Member: kind で判別するタグ付きユニオン
- BillingPolicy: 通知・割引キャンペーンの閾値設定
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

REGULAR_TAG = "REGULAR"
PT_TAG = "PT"

AGE_MIN, AGE_MAX = 16, 100
RATING_MIN, RATING_MAX = 0, 100


class _MemberBase(BaseModel):
    """Fields shared by every member variant.

    All invariants are re-checked on attribute assignment, so
    ``member.age = 10`` raises ``ValidationError`` and leaves the member as it was.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        str_strip_whitespace=True,
        extra="forbid",
    )

    id: str = Field(frozen=True)
    name: str
    age: int
    base_fee: Decimal
    performance_rating: int = 0
    achieved_goal: bool = False

    @field_validator("id", "name")
    @classmethod
    def _not_blank(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError(f"{info.field_name} must not be empty")
        return v

    @field_validator("age")
    @classmethod
    def _age_in_range(cls, v: int) -> int:
        if not AGE_MIN <= v <= AGE_MAX:
            raise ValueError(f"age must be between {AGE_MIN} and {AGE_MAX}")
        return v

    @field_validator("base_fee")
    @classmethod
    def _base_fee_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("base_fee must be >= 0")
        return v

    @field_validator("performance_rating")
    @classmethod
    def _rating_in_range(cls, v: int) -> int:
        if not RATING_MIN <= v <= RATING_MAX:
            raise ValueError(
                f"performance_rating must be between {RATING_MIN} and {RATING_MAX}"
            )
        return v


class RegularMember(_MemberBase):
    """通常会員 (Regular)."""

    kind: Literal["REGULAR"] = Field(default=REGULAR_TAG, frozen=True)


class PTMember(_MemberBase):
    """パーソナルトレーニング会員. base_fee に trainer_fee が加算される."""

    kind: Literal["PT"] = Field(default=PT_TAG, frozen=True)
    trainer_fee: Decimal

    @field_validator("trainer_fee")
    @classmethod
    def _trainer_fee_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("trainer_fee must be >= 0")
        return v


Member = Annotated[Union[RegularMember, PTMember], Field(discriminator="kind")]


# --- Billing Policy ---

class BillingPolicy(BaseModel):
    """通知レター・割引キャンペーンの閾値 (policy.yaml)."""

    reminder_max_rating: int = Field(default=50, ge=RATING_MIN, le=RATING_MAX)
    appreciation_min_rating: int = Field(default=80, ge=RATING_MIN, le=RATING_MAX)
    discount_min_rating: int = Field(default=90, ge=RATING_MIN, le=RATING_MAX)
    discount_percent: float = Field(default=10.0, gt=0, le=100)
