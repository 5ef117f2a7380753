from enum import Enum
from functools import total_ordering
from typing import List, Tuple

import pandas as pd

from .schema import QUALITY_COLUMN, require_complete
from hospital_quality.utils.logger import get_logger

log = get_logger("rating")


# =====================================================
# PERFORMANCE CATEGORY (ORDERED)
# =====================================================

@total_ordering
class PerformanceCategory(Enum):
    """
    Ordered performance label.

    Value is (rank, display label); comparisons use the rank only.
    """
    POOR = (1, "Poor")
    BELOW_AVERAGE = (2, "Below Average")
    AVERAGE = (3, "Average")
    ABOVE_AVERAGE = (4, "Above Average")
    EXCELLENT = (5, "Excellent")

    @property
    def rank(self) -> int:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]

    def __lt__(self, other):
        if not isinstance(other, PerformanceCategory):
            return NotImplemented
        return self.rank < other.rank

    def __str__(self) -> str:
        return self.label

    @classmethod
    def from_label(cls, label: str) -> "PerformanceCategory":
        for member in cls:
            if member.label == label:
                return member
        raise ValueError(f"Unknown performance category: {label!r}")

    @classmethod
    def ordered_labels(cls) -> List[str]:
        return [m.label for m in sorted(cls)]


# Inclusive lower bounds, highest first
RATING_BREAKPOINTS: List[Tuple[float, int, PerformanceCategory]] = [
    (80.0, 5, PerformanceCategory.EXCELLENT),
    (65.0, 4, PerformanceCategory.ABOVE_AVERAGE),
    (50.0, 3, PerformanceCategory.AVERAGE),
    (35.0, 2, PerformanceCategory.BELOW_AVERAGE),
]


def classify(quality_score: float) -> Tuple[int, PerformanceCategory]:
    """Map a quality score to (star_rating, category)."""
    for lower_bound, stars, category in RATING_BREAKPOINTS:
        if quality_score >= lower_bound:
            return stars, category
    return 1, PerformanceCategory.POOR


def create_rating_categories(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add ``star_rating`` (1-5) and ``performance_category``.

    ``performance_category`` is an ordered pandas Categorical, so
    sorting and comparisons follow Poor < ... < Excellent.
    """
    log.info("Creating hospital rating categories...")
    require_complete(df, [QUALITY_COLUMN], stage="rating")

    rated = df.copy()
    pairs = [classify(s) for s in rated[QUALITY_COLUMN]]

    rated["star_rating"] = pd.Series(
        [stars for stars, _ in pairs], index=rated.index, dtype="int64"
    )
    rated["performance_category"] = pd.Categorical(
        [category.label for _, category in pairs],
        categories=PerformanceCategory.ordered_labels(),
        ordered=True,
    )

    log.info(
        "Rating categories created: %s",
        rated["star_rating"].value_counts().sort_index().to_dict(),
    )
    return rated
