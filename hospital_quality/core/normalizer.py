import warnings
from typing import Iterable, Optional, Union

import numpy as np
import pandas as pd

from .errors import DegenerateMetricWarning
from .schema import METRICS, require_columns
from hospital_quality.utils.logger import get_logger

log = get_logger("normalizer")

MIDPOINT_SCORE = 50.0


def normalize(
    values: Union[pd.Series, Iterable[Optional[float]]],
    invert: bool = False,
    name: Optional[str] = None,
) -> pd.Series:
    """
    Min-max scale values onto 0-100.

    Args:
        values: Raw metric values; NaN/None entries are treated as missing
        invert: True for "lower is better" metrics (score = 100 - scaled)
        name: Metric name, used only for logging

    Returns:
        Float series aligned with the input. Missing inputs stay missing,
        except when the metric is constant: then every entry is 50.0.
    """
    series = pd.Series(values, dtype="float64") if not isinstance(values, pd.Series) \
        else values.astype("float64")
    label = name or series.name or "metric"

    present = series.dropna()
    if present.empty:
        log.warning("No values present for %s; scores left missing", label)
        return pd.Series(np.nan, index=series.index, dtype="float64", name=series.name)

    min_val = present.min()
    max_val = present.max()

    if max_val == min_val:
        message = (
            f"'{label}' is constant ({min_val}) across the cohort; "
            f"using midpoint score {MIDPOINT_SCORE}"
        )
        log.warning(message)
        warnings.warn(message, DegenerateMetricWarning, stacklevel=2)
        return pd.Series(MIDPOINT_SCORE, index=series.index, dtype="float64", name=series.name)

    normalized = (series - min_val) / (max_val - min_val) * 100

    if invert:
        normalized = 100 - normalized

    return normalized


def create_performance_scores(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add mortality/readmission/infection/patient-experience scores.

    Mortality, readmission and infection are inverted (lower is better).
    Returns a new frame; the input is not modified.
    """
    log.info("Creating normalized performance scores for %d hospitals", len(df))
    require_columns(df, [m.raw for m in METRICS], stage="normalization")

    scored = df.copy()
    for metric in METRICS:
        scored[metric.score] = normalize(
            scored[metric.raw],
            invert=metric.lower_is_better,
            name=metric.raw,
        )

    return scored
