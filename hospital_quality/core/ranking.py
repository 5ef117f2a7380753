import pandas as pd

from .schema import QUALITY_COLUMN, STATE_COLUMN, require_complete
from hospital_quality.utils.logger import get_logger

log = get_logger("ranking")


def rank_within(scores: pd.Series) -> pd.Series:
    """
    Rank 1 = highest score. Ties share the minimum rank (90, 90, 70 -> 1, 1, 3).
    """
    return scores.rank(method="min", ascending=False).astype("int64")


def percentile_within(scores: pd.Series) -> pd.Series:
    """
    Percentage of the scope scoring at or below each record (0-100].

    The top score is always 100, including a single-record scope.
    """
    return scores.rank(method="max", ascending=True, pct=True) * 100


def create_rankings(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add state and national rank / percentile columns.

    Always recomputed over the full frame; never updated incrementally.
    """
    log.info("Creating state and national rankings...")
    require_complete(df, [QUALITY_COLUMN, STATE_COLUMN], stage="ranking")

    ranked = df.copy()
    by_state = ranked.groupby(STATE_COLUMN, sort=False)[QUALITY_COLUMN]

    ranked["state_rank"] = by_state.transform(rank_within).astype("int64")
    ranked["state_percentile"] = by_state.transform(percentile_within)
    ranked["national_rank"] = rank_within(ranked[QUALITY_COLUMN])
    ranked["national_percentile"] = percentile_within(ranked[QUALITY_COLUMN])

    log.info(
        "Rankings created for %d hospitals across %d states",
        len(ranked),
        ranked[STATE_COLUMN].nunique(),
    )
    return ranked
