"""
Error taxonomy for the scoring and clustering pipeline.

Non-fatal conditions with a safe numeric fallback are WARNINGS
(the stage continues). Conditions with no safe fallback are
EXCEPTIONS that name the stage and the offending field / parameter.
"""

from typing import Iterable, List, Optional


# -------------------------------------------------
# WARNINGS (NON-FATAL)
# -------------------------------------------------
class ConfigurationWarning(UserWarning):
    """Quality-score weights did not sum to 1.0 and were rescaled."""


class DegenerateMetricWarning(UserWarning):
    """A metric is constant across the cohort; midpoint scores were used."""


# -------------------------------------------------
# ERRORS
# -------------------------------------------------
class HospitalQualityError(Exception):
    def __init__(self, message: str, stage: Optional[str] = None):
        self.stage = stage
        prefix = f"[{stage}] " if stage else ""
        super().__init__(f"{prefix}{message}")


class ConfigurationError(HospitalQualityError, ValueError):
    """A configuration value is invalid and cannot be repaired."""


class InsufficientDataError(HospitalQualityError):
    """The cohort is too small for the requested computation."""

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        parameter: Optional[str] = None,
    ):
        self.parameter = parameter
        super().__init__(message, stage=stage)


class MissingRequiredFieldError(HospitalQualityError):
    """A record lacks a value (or the table lacks a column) required for scoring."""

    def __init__(
        self,
        field: str,
        hospital_ids: Iterable[str] = (),
        stage: Optional[str] = None,
    ):
        self.field = field
        self.hospital_ids: List[str] = [str(h) for h in hospital_ids]

        if self.hospital_ids:
            shown = ", ".join(self.hospital_ids[:10])
            more = len(self.hospital_ids) - 10
            if more > 0:
                shown += f" (+{more} more)"
            message = f"missing required field '{field}' for hospital(s): {shown}"
        else:
            message = f"missing required column '{field}'"

        super().__init__(message, stage=stage)


__all__ = [
    "ConfigurationWarning",
    "DegenerateMetricWarning",
    "HospitalQualityError",
    "ConfigurationError",
    "InsufficientDataError",
    "MissingRequiredFieldError",
]
