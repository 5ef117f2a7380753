"""
End-to-end hospital quality pipeline.

cleaned records -> normalized scores -> quality score -> rating ->
ranks -> clusters -> aggregated summaries

Every stage receives an explicit PipelineConfig value and returns a new
DataFrame; no stage edits another stage's output.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pandas as pd

from hospital_quality.clustering import ClusteringAnalysis, perform_clustering_analysis
from hospital_quality.config import PipelineConfig
from hospital_quality.core import (
    TopWorstHospitals,
    build_summary_report,
    calculate_quality_score,
    clean_hospital_data,
    create_performance_scores,
    create_rankings,
    create_rating_categories,
    create_state_summary,
    identify_top_worst_hospitals,
)
from hospital_quality.core.errors import HospitalQualityError, InsufficientDataError
from hospital_quality.core.schema import (
    ID_COLUMN,
    REQUIRED_INPUT_COLUMNS,
    STATE_COLUMN,
    require_columns,
    require_complete,
)
from hospital_quality.monitoring.metrics import MetricsCollector
from hospital_quality.utils.logger import get_logger

log = get_logger("pipeline")


@dataclass
class PipelineResult:
    config: PipelineConfig
    ratings: pd.DataFrame
    top_worst: TopWorstHospitals
    state_summary: pd.DataFrame
    summary: Dict[str, Any]
    cleaning_summary: Dict[str, Any] = field(default_factory=dict)
    clustering: Optional[ClusteringAnalysis] = None
    clustering_error: Optional[str] = None
    metrics: Dict[str, Any] = field(default_factory=dict)


# =====================================================
# STAGES
# =====================================================

def engineer_features(df: pd.DataFrame, config: PipelineConfig) -> pd.DataFrame:
    """Normalize, score, rate and rank an already clean cohort."""
    log.info("=== Starting Feature Engineering Pipeline ===")
    data = create_performance_scores(df)
    data = calculate_quality_score(data, config.weights)
    data = create_rating_categories(data)
    data = create_rankings(data)
    log.info("=== Feature Engineering Complete ===")
    return data


def attach_clusters(ratings: pd.DataFrame, analysis: ClusteringAnalysis) -> pd.DataFrame:
    return ratings.merge(analysis.assignments(), on=ID_COLUMN, how="left", validate="one_to_one")


# =====================================================
# ENTRY POINT
# =====================================================

def run_pipeline(
    raw: pd.DataFrame,
    config: Optional[PipelineConfig] = None,
    clean: bool = True,
) -> PipelineResult:
    """
    Run every stage over one in-memory cohort.

    Args:
        raw: One row per hospital (hospital_id, state, four raw metrics)
        config: Run configuration; defaults to PipelineConfig()
        clean: Impute / drop outliers first. Pass False for a cohort that
               is already clean; a missing id or state then raises
               MissingRequiredFieldError at input, a missing metric
               in the scoring stage.

    A cohort too small for clustering does not stop the run: the error
    is logged and recorded in ``clustering_error`` and the summary.
    """
    config = config or PipelineConfig()
    metrics = MetricsCollector()
    require_columns(raw, REQUIRED_INPUT_COLUMNS, stage="input")

    # -------------------------------------------------
    # 1. CLEANING
    # -------------------------------------------------
    cleaning_summary: Dict[str, Any] = {}
    if clean:
        metrics.start_stage("cleaning")
        cleaned = clean_hospital_data(
            raw,
            outlier_multiplier=config.outlier_multiplier,
            impute_method=config.impute_method,
        )
        cohort, cleaning_summary = cleaned["df"], cleaned["summary"]
        metrics.end_stage()
    else:
        require_complete(raw, [ID_COLUMN, STATE_COLUMN], stage="input")
        cohort = raw.copy()
        cohort[ID_COLUMN] = cohort[ID_COLUMN].astype(str)

    if cohort.empty:
        raise InsufficientDataError("no hospitals left to score", stage="cleaning")
    if cohort[ID_COLUMN].duplicated().any():
        dupes = cohort.loc[cohort[ID_COLUMN].duplicated(), ID_COLUMN].tolist()
        raise HospitalQualityError(
            f"hospital_id must be unique; duplicated: {dupes[:10]}", stage="input"
        )

    # -------------------------------------------------
    # 2. SCORING / RATING / RANKING
    # -------------------------------------------------
    metrics.start_stage("scoring")
    ratings = engineer_features(cohort, config)
    metrics.end_stage()

    # -------------------------------------------------
    # 3. CLUSTERING (FAILURE IS STAGE-LOCAL)
    # -------------------------------------------------
    metrics.start_stage("clustering")
    analysis = None
    clustering_error = None
    try:
        analysis = perform_clustering_analysis(
            ratings,
            k=config.k,
            max_k=config.max_k,
            seed=config.seed,
            n_init=config.n_init,
            max_iter=config.max_iter,
        )
        ratings = attach_clusters(ratings, analysis)
    except InsufficientDataError as exc:
        clustering_error = str(exc)
        log.error("Clustering skipped: %s", exc)
    metrics.end_stage()

    # -------------------------------------------------
    # 4. AGGREGATION
    # -------------------------------------------------
    metrics.start_stage("aggregation")
    top_worst = identify_top_worst_hospitals(ratings, n=config.top_n)
    state_summary = create_state_summary(ratings)

    clustering_summary = analysis.summary() if analysis else {"error": clustering_error}
    summary = build_summary_report(ratings, state_summary, clustering=clustering_summary)
    metrics.end_stage()

    log.info(
        "Pipeline complete: %d hospitals, mean quality %.2f",
        summary["n_hospitals"],
        summary["quality_stats"]["mean"],
    )

    return PipelineResult(
        config=config,
        ratings=ratings,
        top_worst=top_worst,
        state_summary=state_summary,
        summary=summary,
        cleaning_summary=cleaning_summary,
        clustering=analysis,
        clustering_error=clustering_error,
        metrics=metrics.collect(),
    )
