"""Core Engine Module - cleaning, normalization, scoring, rating, ranking and aggregation."""

from .cleaner import clean_hospital_data
from .normalizer import create_performance_scores, normalize
from .scoring import ScoreWeights, calculate_quality_score, score
from .rating import PerformanceCategory, classify, create_rating_categories
from .ranking import create_rankings
from .aggregator import (
    TopWorstHospitals,
    build_summary_report,
    create_state_summary,
    identify_top_worst_hospitals,
)

__all__ = [
    "clean_hospital_data",
    "create_performance_scores",
    "normalize",
    "ScoreWeights",
    "calculate_quality_score",
    "score",
    "PerformanceCategory",
    "classify",
    "create_rating_categories",
    "create_rankings",
    "TopWorstHospitals",
    "build_summary_report",
    "create_state_summary",
    "identify_top_worst_hospitals",
]
