"""Rating-threshold policy operations over a MemberStore.

Reminder / appreciation targeting and discount campaigns. These helpers
only use the store's public iteration contract and keep no state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from billing import apply_discount_percent
from member_store import MemberStore
from models import Member

logger = logging.getLogger(__name__)


@dataclass
class RatingFilter:
    """閾値で抽出した会員 (登録順)."""

    threshold: int
    members: list[Member] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.members)


def filter_at_or_below(store: MemberStore, rating_ceiling: int) -> RatingFilter:
    """Members with performance_rating <= rating_ceiling (reminder letters)."""
    return RatingFilter(
        threshold=rating_ceiling,
        members=[m for m in store if m.performance_rating <= rating_ceiling],
    )


def filter_at_or_above(store: MemberStore, rating_floor: int) -> RatingFilter:
    """Members with performance_rating >= rating_floor (appreciation letters)."""
    return RatingFilter(
        threshold=rating_floor,
        members=[m for m in store if m.performance_rating >= rating_floor],
    )


def award_discounts(store: MemberStore, rating_floor: int, percent: float | Decimal) -> int:
    """Permanently discount base_fee of every member rated >= rating_floor.

    Returns the number of members discounted. Running it again compounds.
    """
    count = 0
    for m in filter_at_or_above(store, rating_floor).members:
        if not apply_discount_percent(m, percent):
            logger.warning("award_discounts: percent %s is outside (0, 100], nothing applied", percent)
            return 0
        logger.info("%s%% discount awarded to %s (%s)", percent, m.id, m.name)
        count += 1
    return count
