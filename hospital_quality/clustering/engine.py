"""
Hospital clustering: k-means and Ward hierarchical clustering over the
standardized score matrix, silhouette-based k selection and method
comparison.

Cluster ids are 1-based and local to one algorithm run; k-means
cluster 2 has nothing to do with hierarchical cluster 2.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import cut_tree, linkage
from sklearn.cluster import KMeans
from sklearn.metrics import silhouette_samples
from sklearn.utils import check_random_state

from hospital_quality.core.errors import ConfigurationError, InsufficientDataError
from hospital_quality.core.schema import ID_COLUMN
from hospital_quality.utils.logger import get_logger

from .characterize import characterize_clusters
from .features import ClusteringData, prepare_clustering_data

log = get_logger("clustering.engine")

DEFAULT_K = 4
DEFAULT_MAX_K = 10
DEFAULT_N_INIT = 25
DEFAULT_MAX_ITER = 100
MIN_N_INIT = 10

# Integer seed or a numpy RandomState; anything sklearn's
# check_random_state accepts except None.
RandomSource = Union[int, np.random.RandomState]


# =====================================================
# RESULT TYPES
# =====================================================

@dataclass
class ClusteringResult:
    method: str
    k: int
    labels: np.ndarray
    avg_silhouette: float
    total_ss: float
    within_ss: float
    model: Any = None

    @property
    def between_ss(self) -> float:
        return self.total_ss - self.within_ss

    @property
    def variance_explained(self) -> float:
        """Between-cluster share of total sum of squares, in percent."""
        if self.total_ss == 0:
            return float("nan")
        return self.between_ss / self.total_ss * 100

    def sizes(self) -> Dict[int, int]:
        ids, counts = np.unique(self.labels, return_counts=True)
        return {int(i): int(c) for i, c in zip(ids, counts)}


@dataclass
class KSelection:
    """
    Per-k elbow and silhouette figures.

    ``recommended_k`` maximizes the mean silhouette; the WSS column is
    informational only.
    """
    table: pd.DataFrame
    recommended_k: Optional[int]


@dataclass
class ClusteringComparison:
    table: pd.DataFrame
    winner: str  # "kmeans" | "hierarchical" | "tie"


@dataclass
class ClusteringAnalysis:
    data: ClusteringData
    k: int
    recommended_k: Optional[int]
    k_selection: KSelection
    kmeans: ClusteringResult
    hierarchical: ClusteringResult
    kmeans_summary: pd.DataFrame
    hierarchical_summary: pd.DataFrame
    comparison: ClusteringComparison
    seed: Any = None
    notes: List[str] = field(default_factory=list)

    def assignments(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                ID_COLUMN: self.data.hospital_ids,
                "cluster_kmeans": self.kmeans.labels,
                "cluster_hierarchical": self.hierarchical.labels,
            }
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "n_clusters": self.k,
            "recommended_k": self.recommended_k,
            "kmeans_silhouette": self.kmeans.avg_silhouette,
            "hierarchical_silhouette": self.hierarchical.avg_silhouette,
            "better_separation": self.comparison.winner,
            "variance_explained": self.kmeans.variance_explained,
            "kmeans_sizes": {str(k): v for k, v in self.kmeans.sizes().items()},
            "hierarchical_sizes": {str(k): v for k, v in self.hierarchical.sizes().items()},
        }


# =====================================================
# HELPERS
# =====================================================

def _as_matrix(scaled) -> np.ndarray:
    if isinstance(scaled, ClusteringData):
        return scaled.scaled
    return np.asarray(scaled, dtype=float)


def _check_k(X: np.ndarray, k: int, method: str) -> None:
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k < 2:
        raise ConfigurationError(f"k must be an integer >= 2, got {k!r}", stage=method)
    if X.shape[0] < k:
        raise InsufficientDataError(
            f"cannot form k={k} clusters from {X.shape[0]} hospitals",
            stage=method,
            parameter="k",
        )


def _random_state(seed: RandomSource) -> np.random.RandomState:
    if seed is None:
        raise ConfigurationError("an explicit random seed is required", stage="kmeans")
    return check_random_state(seed)


def sum_of_squares(X: np.ndarray, labels: np.ndarray) -> Dict[str, float]:
    """Total and within-cluster sum of squared distances to the centroids."""
    X = np.asarray(X, dtype=float)
    total = float(((X - X.mean(axis=0)) ** 2).sum())
    within = 0.0
    for cluster in np.unique(labels):
        members = X[labels == cluster]
        within += float(((members - members.mean(axis=0)) ** 2).sum())
    return {"total_ss": total, "within_ss": within}


def mean_silhouette(X, labels) -> float:
    """
    Mean of (b - a) / max(a, b) over all points, Euclidean distance.

    Singleton clusters score 0. Returns NaN (never raises) when the
    coefficient is undefined: fewer than 2 points, a single cluster, or
    as many clusters as points.
    """
    X = _as_matrix(X)
    labels = np.asarray(labels)
    n = len(labels)
    n_labels = len(np.unique(labels))

    if n < 2 or n_labels < 2 or n_labels > n - 1:
        log.debug("Silhouette undefined for %d points in %d clusters", n, n_labels)
        return float("nan")

    values = silhouette_samples(X, labels, metric="euclidean")
    return float(np.clip(values.mean(), -1.0, 1.0))


# =====================================================
# ALGORITHMS
# =====================================================

def perform_kmeans_clustering(
    scaled,
    k: int = DEFAULT_K,
    seed: RandomSource = 123,
    n_init: int = DEFAULT_N_INIT,
    max_iter: int = DEFAULT_MAX_ITER,
) -> ClusteringResult:
    """
    K-means with ``n_init`` random restarts; the restart with the lowest
    within-cluster sum of squares is kept. Deterministic for an integer
    seed.
    """
    X = _as_matrix(scaled)
    _check_k(X, k, "kmeans")
    if n_init < MIN_N_INIT:
        raise ConfigurationError(
            f"n_init must be >= {MIN_N_INIT}, got {n_init}", stage="kmeans"
        )

    log.info("Performing k-means clustering with k = %d", k)
    model = KMeans(
        n_clusters=k,
        init="k-means++",
        n_init=n_init,
        max_iter=max_iter,
        random_state=_random_state(seed),
    )
    labels = model.fit_predict(X) + 1

    if len(np.unique(labels)) < k:
        log.warning("k-means produced %d distinct clusters for k=%d", len(np.unique(labels)), k)

    ss = sum_of_squares(X, labels)
    result = ClusteringResult(
        method="kmeans",
        k=k,
        labels=labels,
        avg_silhouette=mean_silhouette(X, labels),
        total_ss=ss["total_ss"],
        within_ss=ss["within_ss"],
        model=model,
    )

    log.info(
        "K-means: within SS %.2f, variance explained %.2f%%, silhouette %.3f",
        result.within_ss,
        result.variance_explained,
        result.avg_silhouette,
    )
    return result


def perform_hierarchical_clustering(scaled, k: int = DEFAULT_K) -> ClusteringResult:
    """
    Agglomerative clustering with Ward's minimum-variance linkage.

    The full merge tree is kept on ``result.model``; the flat partition
    is the cut that yields exactly k groups.
    """
    X = _as_matrix(scaled)
    _check_k(X, k, "hierarchical")

    log.info("Performing hierarchical clustering (ward) with k = %d", k)
    tree = linkage(X, method="ward", metric="euclidean")
    labels = cut_tree(tree, n_clusters=k).ravel().astype(int) + 1

    ss = sum_of_squares(X, labels)
    result = ClusteringResult(
        method="hierarchical",
        k=k,
        labels=labels,
        avg_silhouette=mean_silhouette(X, labels),
        total_ss=ss["total_ss"],
        within_ss=ss["within_ss"],
        model=tree,
    )

    log.info("Hierarchical: silhouette %.3f, sizes %s", result.avg_silhouette, result.sizes())
    return result


# =====================================================
# K SELECTION
# =====================================================

def find_optimal_clusters(
    scaled,
    max_k: int = DEFAULT_MAX_K,
    seed: RandomSource = 123,
    n_init: int = DEFAULT_N_INIT,
    max_iter: int = DEFAULT_MAX_ITER,
) -> KSelection:
    """
    Elbow (within SS) and mean silhouette of k-means for k = 2..max_k.

    k values larger than the cohort are reported as NaN rather than
    raising.
    """
    X = _as_matrix(scaled)
    if max_k < 2:
        raise ConfigurationError(f"max_k must be >= 2, got {max_k}", stage="k_selection")

    log.info("Determining optimal number of clusters (k = 2..%d)...", max_k)
    rows = []
    for k in range(2, max_k + 1):
        if X.shape[0] < k:
            rows.append({"k": k, "wss": float("nan"), "silhouette": float("nan")})
            continue

        result = perform_kmeans_clustering(X, k=k, seed=seed, n_init=n_init, max_iter=max_iter)
        rows.append({"k": k, "wss": result.within_ss, "silhouette": result.avg_silhouette})

    table = pd.DataFrame(rows, columns=["k", "wss", "silhouette"])

    defined = table.dropna(subset=["silhouette"])
    recommended = None
    if not defined.empty:
        recommended = int(defined.loc[defined["silhouette"].idxmax(), "k"])
        log.info("Optimal number of clusters (by silhouette): %d", recommended)
    else:
        log.warning("Silhouette undefined for every k; no recommended k")

    return KSelection(table=table, recommended_k=recommended)


# =====================================================
# COMPARISON
# =====================================================

def compare_clustering_methods(
    kmeans: ClusteringResult,
    hierarchical: ClusteringResult,
) -> ClusteringComparison:
    """Strictly higher mean silhouette wins; equal or undefined is a tie."""
    table = pd.DataFrame(
        {
            "method": ["K-means", "Hierarchical"],
            "avg_silhouette": [kmeans.avg_silhouette, hierarchical.avg_silhouette],
        }
    )

    a, b = kmeans.avg_silhouette, hierarchical.avg_silhouette
    if math.isnan(a) or math.isnan(b) or a == b:
        winner = "tie"
    elif a > b:
        winner = "kmeans"
    else:
        winner = "hierarchical"

    log.info("Better separation: %s (k-means %.3f vs hierarchical %.3f)", winner, a, b)
    return ClusteringComparison(table=table, winner=winner)


# =====================================================
# FULL ANALYSIS
# =====================================================

def perform_clustering_analysis(
    df: pd.DataFrame,
    k: Union[int, str] = DEFAULT_K,
    max_k: int = DEFAULT_MAX_K,
    seed: RandomSource = 123,
    n_init: int = DEFAULT_N_INIT,
    max_iter: int = DEFAULT_MAX_ITER,
) -> ClusteringAnalysis:
    """
    Standardize, select k, run both algorithms, characterize and compare.

    Args:
        df: Scored cohort (needs the four *_score columns and quality_score)
        k: Operational number of clusters, or "auto" for the silhouette
           recommendation
        max_k: Upper bound of the k search
        seed: Seed (or RandomState) for every k-means run

    Raises:
        InsufficientDataError: cohort smaller than k, or no k can be
            recommended when k="auto"
    """
    log.info("=== Starting Clustering Analysis ===")
    data = prepare_clustering_data(df)

    if k != "auto":
        _check_k(data.scaled, k, "clustering")

    selection = find_optimal_clusters(
        data.scaled, max_k=max_k, seed=seed, n_init=n_init, max_iter=max_iter
    )

    if k == "auto":
        if selection.recommended_k is None:
            raise InsufficientDataError(
                f"no k in 2..{max_k} has a defined silhouette for {data.n_samples} hospitals",
                stage="clustering",
                parameter="k",
            )
        final_k = selection.recommended_k
    else:
        final_k = int(k)

    notes = []
    if selection.recommended_k is not None and selection.recommended_k != final_k:
        notes.append(
            f"operational k={final_k} differs from silhouette-recommended k={selection.recommended_k}"
        )
    log.info("Using k = %d for clustering (recommended: %s)", final_k, selection.recommended_k)

    kmeans = perform_kmeans_clustering(
        data.scaled, k=final_k, seed=seed, n_init=n_init, max_iter=max_iter
    )
    hierarchical = perform_hierarchical_clustering(data.scaled, k=final_k)

    analysis = ClusteringAnalysis(
        data=data,
        k=final_k,
        recommended_k=selection.recommended_k,
        k_selection=selection,
        kmeans=kmeans,
        hierarchical=hierarchical,
        kmeans_summary=characterize_clusters(data.features, kmeans.labels, "kmeans"),
        hierarchical_summary=characterize_clusters(data.features, hierarchical.labels, "hierarchical"),
        comparison=compare_clustering_methods(kmeans, hierarchical),
        seed=seed if isinstance(seed, (int, np.integer)) else None,
        notes=notes,
    )

    log.info("=== Clustering Analysis Complete ===")
    return analysis
