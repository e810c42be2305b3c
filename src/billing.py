"""Monthly fee calculation for gym members.

Fees are computed with full Decimal precision and rounded to cents only
when shown or persisted (``round_money``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Callable, Iterable

from models import PT_TAG, REGULAR_TAG, Member, PTMember, RegularMember

CENT = Decimal("0.01")

REGULAR_GOAL_FACTOR = Decimal("0.90")

PT_TOP_TIER_RATING = 90
PT_TOP_TIER_FACTOR = Decimal("0.85")
PT_MID_TIER_RATING = 75
PT_MID_TIER_FACTOR = Decimal("0.92")
PT_GOAL_FACTOR = Decimal("0.95")


def _regular_fee(member: RegularMember) -> Decimal:
    fee = member.base_fee
    if member.achieved_goal:
        fee *= REGULAR_GOAL_FACTOR
    return fee


def _pt_fee(member: PTMember) -> Decimal:
    fee = member.base_fee + member.trainer_fee
    # tiers are exclusive, the higher one wins
    if member.performance_rating >= PT_TOP_TIER_RATING:
        fee *= PT_TOP_TIER_FACTOR
    elif member.performance_rating >= PT_MID_TIER_RATING:
        fee *= PT_MID_TIER_FACTOR
    if member.achieved_goal:
        fee *= PT_GOAL_FACTOR
    return fee


_FEE_RULES: dict[str, Callable[..., Decimal]] = {
    REGULAR_TAG: _regular_fee,
    PT_TAG: _pt_fee,
}


def calculate_fee(member: Member) -> Decimal:
    """会員種別ごとの月額料金を返す (丸めなし)."""
    return _FEE_RULES[member.kind](member)


def apply_discount_percent(member: Member, percent: float | Decimal) -> bool:
    """Permanently reduce ``base_fee`` by ``percent``.

    Percent outside (0, 100] is ignored. Repeated calls compound.
    Returns True when the fee was changed.
    """
    pct = Decimal(str(percent))
    if not pct.is_finite() or pct <= 0 or pct > 100:
        return False
    member.base_fee = member.base_fee * (1 - pct / 100)
    return True


def round_money(value: Decimal) -> Decimal:
    """Quantize to cents, widening precision to keep every integer digit."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    """Decimal を小数点以下2桁の文字列にする (例: "121.13")."""
    return str(round_money(value))


@dataclass
class FeeLine:
    member_id: str
    name: str
    kind: str
    fee: Decimal


@dataclass
class BillingStatement:
    """全会員の月額料金一覧."""

    lines: list[FeeLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((line.fee for line in self.lines), Decimal("0"))


def billing_statement(members: Iterable[Member]) -> BillingStatement:
    """Build per-member fee lines (rounded to cents) in the given order."""
    statement = BillingStatement()
    for m in members:
        statement.lines.append(
            FeeLine(
                member_id=m.id,
                name=m.name,
                kind=m.kind,
                fee=round_money(calculate_fee(m)),
            )
        )
    return statement
