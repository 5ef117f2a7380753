"""
Cluster characterization shared by every clustering algorithm.

Both k-means and Ward results go through ``characterize_clusters`` so
that labelling can never differ between methods.
"""

from typing import Sequence

import numpy as np
import pandas as pd

from hospital_quality.core.schema import CLUSTER_FEATURES, QUALITY_COLUMN
from hospital_quality.utils.logger import get_logger

log = get_logger("clustering.characterize")

# Best to worst, by quartile of the clusters' mean quality score
CLUSTER_LABELS = [
    "High Performers",
    "Above Average",
    "Below Average",
    "Needs Improvement",
]

SUMMARY_COLUMNS = (
    ["cluster_id", "n_hospitals"]
    + [f"avg_{name}" for name in CLUSTER_FEATURES]
    + ["cluster_label"]
)


def label_clusters(avg_quality: pd.Series) -> pd.Series:
    """
    Quartile label for each cluster mean.

    Uses linearly interpolated quantiles of the cluster means; with four
    distinct clusters every label is used exactly once.
    """
    if avg_quality.empty:
        return pd.Series([], dtype=object, index=avg_quality.index)

    q75, q50, q25 = avg_quality.quantile([0.75, 0.50, 0.25])
    labels = np.select(
        [avg_quality >= q75, avg_quality >= q50, avg_quality >= q25],
        CLUSTER_LABELS[:3],
        default=CLUSTER_LABELS[3],
    )
    return pd.Series(labels, index=avg_quality.index, dtype=object)


def characterize_clusters(
    features: pd.DataFrame,
    labels: Sequence[int],
    method: str = "kmeans",
) -> pd.DataFrame:
    """
    Summarize clusters by their mean scores.

    Args:
        features: Unscaled score columns (one row per hospital)
        labels: Cluster id per row, aligned with ``features``
        method: Algorithm name, used only for logging

    Returns:
        One row per cluster with n_hospitals, avg_<score> columns and
        cluster_label, ordered by avg_quality_score descending.
    """
    labels = np.asarray(labels)
    if len(labels) != len(features):
        raise ValueError(
            f"{len(labels)} cluster labels for {len(features)} hospitals"
        )

    frame = features[CLUSTER_FEATURES].reset_index(drop=True).assign(cluster_id=labels)

    summary = (
        frame.groupby("cluster_id")
        .agg(
            n_hospitals=(QUALITY_COLUMN, "size"),
            **{f"avg_{name}": (name, "mean") for name in CLUSTER_FEATURES},
        )
        .reset_index()
        .sort_values(f"avg_{QUALITY_COLUMN}", ascending=False, kind="mergesort")
        .reset_index(drop=True)
    )
    summary["cluster_label"] = label_clusters(summary[f"avg_{QUALITY_COLUMN}"])

    log.info(
        "Characterized %d %s clusters: %s",
        len(summary),
        method,
        dict(zip(summary["cluster_id"].tolist(), summary["cluster_label"].tolist())),
    )
    return summary[SUMMARY_COLUMNS]
