"""Ranking and truncation of candidate test cases.

Two rankings are available and selected explicitly:

- ``NUMERIC_PRIORITY``: ascending ``priority`` (1 = most urgent), then
  descending ``complexity``.
- ``CATEGORY_TABLE``: a fixed table over value categories
  (security > boundary > invalid range/length > happy path > rest).

Both are stable, so ties keep discovery order.
"""

from collections.abc import Sequence
from enum import StrEnum
from types import MappingProxyType
from typing import TypeVar

from api_test_planner.model.tiers import ValueCategory

T = TypeVar("T")


class RankingStrategy(StrEnum):
    NUMERIC_PRIORITY = "numeric_priority"
    CATEGORY_TABLE = "category_table"


CATEGORY_RANKS = MappingProxyType({
    ValueCategory.SECURITY: 1,
    ValueCategory.SQL_INJECTION: 1,
    ValueCategory.XSS: 1,
    ValueCategory.PATH_TRAVERSAL: 1,
    ValueCategory.BOUNDARY: 2,
    ValueCategory.INVALID_RANGE: 3,
    ValueCategory.INVALID_LENGTH: 3,
    ValueCategory.HAPPY_PATH: 4,
})
DEFAULT_CATEGORY_RANK = 5


def category_rank(category: ValueCategory | None) -> int:
    if category is None:
        return DEFAULT_CATEGORY_RANK
    return CATEGORY_RANKS.get(category, DEFAULT_CATEGORY_RANK)


def _numeric_key(candidate) -> tuple[int, int]:
    return candidate.priority, -candidate.complexity


def _category_key(candidate) -> int:
    return category_rank(getattr(candidate, "value_category", None))


def rank(candidates: Sequence[T], ranking: RankingStrategy = RankingStrategy.NUMERIC_PRIORITY) -> list[T]:
    """Return candidates ordered by the chosen ranking."""
    key = _category_key if RankingStrategy(ranking) is RankingStrategy.CATEGORY_TABLE else _numeric_key
    return sorted(candidates, key=key)


def limit(
    candidates: Sequence[T],
    cap: int,
    ranking: RankingStrategy = RankingStrategy.NUMERIC_PRIORITY,
) -> list[T]:
    """Rank candidates and keep the first ``cap``.

    A non-positive cap means "no limit": the ranked list is returned whole.
    """
    ranked = rank(candidates, ranking)
    if cap <= 0:
        return ranked
    return ranked[:cap]
