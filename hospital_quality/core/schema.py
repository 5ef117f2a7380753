"""
Column contract shared by every pipeline stage.

Purpose:
- Name the raw metric columns the loader must deliver
- Pair each raw metric with its normalized score column and direction
- Refuse to score records with missing required values
"""

from typing import Iterable, List, NamedTuple

import pandas as pd

from .errors import MissingRequiredFieldError

# -------------------------------------------------
# Identity
# -------------------------------------------------
ID_COLUMN = "hospital_id"
STATE_COLUMN = "state"


# -------------------------------------------------
# Raw metric -> normalized score
# -------------------------------------------------
class MetricSpec(NamedTuple):
    raw: str
    score: str
    weight_key: str
    lower_is_better: bool


METRICS: List[MetricSpec] = [
    MetricSpec("mortality_rate", "mortality_score", "mortality", True),
    MetricSpec("readmission_rate", "readmission_score", "readmission", True),
    MetricSpec("infection_rate", "infection_score", "infection", True),
    MetricSpec("patient_experience_score", "patient_exp_score", "patient_exp", False),
]

RAW_METRIC_COLUMNS: List[str] = [m.raw for m in METRICS]
SCORE_COLUMNS: List[str] = [m.score for m in METRICS]
QUALITY_COLUMN = "quality_score"

# Features used for clustering (order matters for the scaled matrix)
CLUSTER_FEATURES: List[str] = SCORE_COLUMNS + [QUALITY_COLUMN]

REQUIRED_INPUT_COLUMNS: List[str] = [ID_COLUMN, STATE_COLUMN] + RAW_METRIC_COLUMNS


# -------------------------------------------------
# Validation
# -------------------------------------------------
def require_columns(df: pd.DataFrame, columns: Iterable[str], stage: str) -> None:
    for col in columns:
        if col not in df.columns:
            raise MissingRequiredFieldError(col, stage=stage)


def require_complete(df: pd.DataFrame, columns: Iterable[str], stage: str) -> None:
    """
    Raise MissingRequiredFieldError for the first column holding a missing value.

    The error lists every hospital_id missing that field so the caller
    can see exactly which records were refused.
    """
    columns = list(columns)
    require_columns(df, columns, stage)

    for col in columns:
        missing = df[col].isna()
        if missing.any():
            if ID_COLUMN in df.columns:
                ids = df.loc[missing, ID_COLUMN].astype(str).tolist()
            else:
                ids = [str(i) for i in df.index[missing]]
            raise MissingRequiredFieldError(col, hospital_ids=ids, stage=stage)


__all__ = [
    "ID_COLUMN",
    "STATE_COLUMN",
    "MetricSpec",
    "METRICS",
    "RAW_METRIC_COLUMNS",
    "SCORE_COLUMNS",
    "QUALITY_COLUMN",
    "CLUSTER_FEATURES",
    "REQUIRED_INPUT_COLUMNS",
    "require_columns",
    "require_complete",
]
