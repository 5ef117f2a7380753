"""
Hospital Quality Framework

Composite hospital quality scoring, rating, ranking and
performance clustering over CMS Hospital Compare metrics.
"""

from .__version__ import __version__

# Keep package init lightweight: plotting and CMS loading
# are imported explicitly by the callers that need them.

from .config import PipelineConfig, load_config
from .core import (
    PerformanceCategory,
    ScoreWeights,
    calculate_quality_score,
    classify,
    create_performance_scores,
    create_rankings,
    create_rating_categories,
    normalize,
)
from .clustering import perform_clustering_analysis
from .pipeline import PipelineResult, run_pipeline

__all__ = [
    "__version__",
    "PipelineConfig",
    "load_config",
    "PerformanceCategory",
    "ScoreWeights",
    "calculate_quality_score",
    "classify",
    "create_performance_scores",
    "create_rankings",
    "create_rating_categories",
    "normalize",
    "perform_clustering_analysis",
    "PipelineResult",
    "run_pipeline",
]
