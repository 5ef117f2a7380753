import math
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from .errors import ConfigurationError, ConfigurationWarning, MissingRequiredFieldError
from .schema import METRICS, QUALITY_COLUMN, RAW_METRIC_COLUMNS, SCORE_COLUMNS, require_complete
from hospital_quality.utils.logger import get_logger

log = get_logger("scoring")

WEIGHT_TOLERANCE = 0.01


# -------------------------------------------------
# WEIGHTS
# -------------------------------------------------
@dataclass(frozen=True)
class ScoreWeights:
    """
    Weights of the four normalized scores in the composite quality score.

    Defaults: mortality 30%, readmission 25%, infection 25%,
    patient experience 20%.
    """
    mortality: float = 0.30
    readmission: float = 0.25
    infection: float = 0.25
    patient_exp: float = 0.20

    def __post_init__(self):
        for name, value in self.as_dict().items():
            if not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
                raise ConfigurationError(
                    f"weight '{name}' must be a non-negative number, got {value!r}",
                    stage="config",
                )
        if self.total == 0:
            raise ConfigurationError("weights must not all be zero", stage="config")

    @property
    def total(self) -> float:
        return float(sum(self.as_dict().values()))

    def as_dict(self) -> Dict[str, float]:
        return {
            "mortality": self.mortality,
            "readmission": self.readmission,
            "infection": self.infection,
            "patient_exp": self.patient_exp,
        }

    def validated(self) -> "ScoreWeights":
        """
        Return weights summing to 1.0.

        Weights off by more than WEIGHT_TOLERANCE are rescaled
        proportionally and a ConfigurationWarning is emitted.
        """
        total = self.total
        if abs(total - 1.0) <= WEIGHT_TOLERANCE:
            return self

        message = f"Weights sum to {total:.4f}, not 1.0. Normalizing..."
        log.warning(message)
        warnings.warn(message, ConfigurationWarning, stacklevel=2)

        return ScoreWeights(**{k: v / total for k, v in self.as_dict().items()})

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "ScoreWeights":
        unknown = set(values) - set(cls().as_dict())
        if unknown:
            raise ConfigurationError(
                f"unknown weight(s): {', '.join(sorted(unknown))}", stage="config"
            )
        parsed = {}
        for name, value in values.items():
            try:
                parsed[name] = float(value)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"weight '{name}' must be a number, got {value!r}", stage="config"
                ) from None
        return cls(**parsed)


# -------------------------------------------------
# SINGLE RECORD
# -------------------------------------------------
def score(normalized: Mapping[str, float], weights: Optional[ScoreWeights] = None) -> float:
    """
    Weighted sum of one hospital's normalized scores.

    ``normalized`` is keyed by weight name (mortality, readmission,
    infection, patient_exp) or by score column (mortality_score, ...).
    """
    weights = (weights or ScoreWeights()).validated()

    total = 0.0
    for metric in METRICS:
        value = normalized.get(metric.weight_key, normalized.get(metric.score))
        if value is None or pd.isna(value):
            raise MissingRequiredFieldError(metric.score, stage="scoring")
        total += float(value) * getattr(weights, metric.weight_key)

    return total


# -------------------------------------------------
# WHOLE COHORT
# -------------------------------------------------
def calculate_quality_score(
    df: pd.DataFrame,
    weights: Optional[ScoreWeights] = None,
) -> pd.DataFrame:
    """
    Add the composite ``quality_score`` column.

    Records missing a raw metric or a normalized score are refused with
    MissingRequiredFieldError rather than scored from a default.
    """
    log.info("Calculating composite healthcare quality score...")
    weights = (weights or ScoreWeights()).validated()

    require_complete(df, RAW_METRIC_COLUMNS + SCORE_COLUMNS, stage="scoring")

    scored = df.copy()
    scored[QUALITY_COLUMN] = sum(
        scored[m.score] * getattr(weights, m.weight_key) for m in METRICS
    )

    log.info("Quality score calculation complete (mean %.2f)", scored[QUALITY_COLUMN].mean())
    return scored
