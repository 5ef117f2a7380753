"""
State-level summaries, top / bottom extracts and the run summary.

Nothing here rounds: display precision is applied by the output
writer only.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from .rating import PerformanceCategory
from .schema import QUALITY_COLUMN, STATE_COLUMN, require_columns
from hospital_quality.utils.logger import get_logger

log = get_logger("aggregator")


@dataclass
class TopWorstHospitals:
    top: pd.DataFrame
    worst: pd.DataFrame
    top_by_state: pd.DataFrame
    worst_by_state: pd.DataFrame


# -------------------------------------------------
# STABLE ORDERING HELPERS
# -------------------------------------------------
def _sort_by_quality(df: pd.DataFrame, descending: bool) -> pd.DataFrame:
    # mergesort is stable: ties keep input order
    return df.sort_values(QUALITY_COLUMN, ascending=not descending, kind="mergesort")


def top_n(df: pd.DataFrame, n: int = 10) -> pd.DataFrame:
    return _sort_by_quality(df, descending=True).head(n)


def bottom_n(df: pd.DataFrame, n: int = 10) -> pd.DataFrame:
    return _sort_by_quality(df, descending=False).head(n)


def identify_top_worst_hospitals(df: pd.DataFrame, n: int = 10) -> TopWorstHospitals:
    """
    National top-n / bottom-n and the best / worst hospital of each state.
    """
    log.info("Identifying top and worst performing hospitals (n=%d)...", n)
    require_columns(df, [QUALITY_COLUMN, STATE_COLUMN], stage="aggregation")

    top = top_n(df, n).assign(category="Top Overall")
    worst = bottom_n(df, n).assign(category="Worst Overall")

    top_by_state = (
        _sort_by_quality(df, descending=True)
        .groupby(STATE_COLUMN, sort=True)
        .head(1)
        .sort_values(STATE_COLUMN, kind="mergesort")
        .assign(category="Top in State")
    )
    worst_by_state = (
        _sort_by_quality(df, descending=False)
        .groupby(STATE_COLUMN, sort=True)
        .head(1)
        .sort_values(STATE_COLUMN, kind="mergesort")
        .assign(category="Worst in State")
    )

    return TopWorstHospitals(
        top=top.reset_index(drop=True),
        worst=worst.reset_index(drop=True),
        top_by_state=top_by_state.reset_index(drop=True),
        worst_by_state=worst_by_state.reset_index(drop=True),
    )


# -------------------------------------------------
# STATE SUMMARY
# -------------------------------------------------
def create_state_summary(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-state counts, quality score mean / median, raw metric means and
    the share of Excellent / Poor hospitals (percent, unrounded).
    """
    log.info("Creating state-level summary statistics...")
    require_columns(
        df,
        [
            STATE_COLUMN,
            QUALITY_COLUMN,
            "performance_category",
            "mortality_rate",
            "readmission_rate",
            "infection_rate",
            "patient_experience_score",
        ],
        stage="aggregation",
    )

    category = df["performance_category"].astype(str)
    frame = df.assign(
        _excellent=(category == PerformanceCategory.EXCELLENT.label).astype(float),
        _poor=(category == PerformanceCategory.POOR.label).astype(float),
    )

    summary = (
        frame.groupby(STATE_COLUMN, sort=False)
        .agg(
            n_hospitals=(QUALITY_COLUMN, "size"),
            avg_quality_score=(QUALITY_COLUMN, "mean"),
            median_quality_score=(QUALITY_COLUMN, "median"),
            avg_mortality=("mortality_rate", "mean"),
            avg_readmission=("readmission_rate", "mean"),
            avg_infection=("infection_rate", "mean"),
            avg_patient_exp=("patient_experience_score", "mean"),
            pct_excellent=("_excellent", "mean"),
            pct_poor=("_poor", "mean"),
        )
        .reset_index()
    )
    summary["pct_excellent"] *= 100
    summary["pct_poor"] *= 100

    return summary.sort_values(
        "avg_quality_score", ascending=False, kind="mergesort"
    ).reset_index(drop=True)


# -------------------------------------------------
# RUN SUMMARY
# -------------------------------------------------
def _distribution(series: pd.Series) -> Dict[str, int]:
    counts = series.value_counts(sort=False)
    return {str(k): int(v) for k, v in counts.sort_index().items()}


def build_summary_report(
    df: pd.DataFrame,
    state_summary: pd.DataFrame,
    clustering: Optional[Dict[str, Any]] = None,
    top_states: int = 10,
) -> Dict[str, Any]:
    """
    Run-level summary: cohort size, quality score statistics, rating
    distributions, best states and (optionally) clustering figures.
    """
    scores = df[QUALITY_COLUMN]

    report: Dict[str, Any] = {
        "n_hospitals": int(len(df)),
        "n_states": int(df[STATE_COLUMN].nunique()),
        "quality_stats": {
            "mean": float(scores.mean()) if len(scores) else None,
            "median": float(scores.median()) if len(scores) else None,
            "sd": float(scores.std()) if len(scores) > 1 else None,
            "min": float(scores.min()) if len(scores) else None,
            "max": float(scores.max()) if len(scores) else None,
        },
        "star_distribution": _distribution(df["star_rating"]),
        "category_distribution": _distribution(df["performance_category"]),
        "best_states": state_summary.head(top_states)[STATE_COLUMN].tolist(),
        "clustering": clustering,
    }

    return _json_safe(report)


def _json_safe(value):
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, (np.integer,)):
        return int(value)
    if isinstance(value, (np.floating, float)):
        return None if np.isnan(value) else float(value)
    return value
