"""In-memory member repository.

MemberStore exclusively owns the ordered member list. Ids are unique
after trimming and case folding. Lookups that find nothing return
None / an empty list rather than raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator

from models import RATING_MAX, RATING_MIN, Member

logger = logging.getLogger(__name__)


class DuplicateIdError(ValueError):
    """A member with the same id is already in the store."""

    def __init__(self, member_id: str) -> None:
        super().__init__(f"Member with ID {member_id} already exists")
        self.member_id = member_id


class RangeError(ValueError):
    """Performance search bounds are reversed or outside 0..100."""


@dataclass
class PerformanceSearch:
    """Result of ``MemberStore.search_by_performance``."""

    members: list[Member] = field(default_factory=list)
    error: RangeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _normalize_id(member_id: str | None) -> str:
    return (member_id or "").strip().casefold()


class MemberStore:
    """会員一覧の管理を担当する (挿入順を保持)."""

    def __init__(self) -> None:
        self._members: list[Member] = []

    def add(self, member: Member) -> Member:
        """Append a member. Raises DuplicateIdError if the id is taken."""
        if self.get_by_id(member.id) is not None:
            raise DuplicateIdError(member.id)
        self._members.append(member)
        logger.info("member added: %s (%s)", member.id, member.name)
        return member

    def get_by_id(self, member_id: str) -> Member | None:
        key = _normalize_id(member_id)
        if not key:
            return None
        for m in self._members:
            if _normalize_id(m.id) == key:
                return m
        return None

    def delete_by_id(self, member_id: str) -> bool:
        key = _normalize_id(member_id)
        if not key:
            return False
        before = len(self._members)
        self._members = [m for m in self._members if _normalize_id(m.id) != key]
        removed = len(self._members) < before
        if removed:
            logger.info("member deleted: %s", member_id.strip())
        return removed

    def search_by_name(self, query: str) -> list[Member]:
        needle = (query or "").strip().casefold()
        if not needle:
            return []
        return [m for m in self._members if needle in m.name.casefold()]

    def search_by_performance(self, min_rating: int, max_rating: int) -> PerformanceSearch:
        """Members with min_rating <= performance_rating <= max_rating.

        Invalid bounds give an empty result carrying a RangeError.
        """
        if min_rating < RATING_MIN or max_rating > RATING_MAX or min_rating > max_rating:
            err = RangeError(
                f"Invalid performance range {min_rating}-{max_rating}: "
                f"bounds must be within {RATING_MIN}-{RATING_MAX} and min <= max"
            )
            logger.warning("search_by_performance: %s", err)
            return PerformanceSearch(error=err)
        return PerformanceSearch(
            members=[
                m for m in self._members
                if min_rating <= m.performance_rating <= max_rating
            ]
        )

    def count(self) -> int:
        return len(self._members)

    def list_all(self) -> list[Member]:
        return list(self._members)

    def clear(self) -> None:
        self._members.clear()

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[Member]:
        return iter(list(self._members))
