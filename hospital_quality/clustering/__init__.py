"""Clustering Module - standardized k-means / Ward clustering and characterization."""

from .features import ClusteringData, prepare_clustering_data, standardize
from .characterize import CLUSTER_LABELS, characterize_clusters, label_clusters
from .engine import (
    ClusteringAnalysis,
    ClusteringComparison,
    ClusteringResult,
    KSelection,
    compare_clustering_methods,
    find_optimal_clusters,
    mean_silhouette,
    perform_clustering_analysis,
    perform_hierarchical_clustering,
    perform_kmeans_clustering,
)

__all__ = [
    "ClusteringData",
    "prepare_clustering_data",
    "standardize",
    "CLUSTER_LABELS",
    "characterize_clusters",
    "label_clusters",
    "ClusteringAnalysis",
    "ClusteringComparison",
    "ClusteringResult",
    "KSelection",
    "compare_clustering_methods",
    "find_optimal_clusters",
    "mean_silhouette",
    "perform_clustering_analysis",
    "perform_hierarchical_clustering",
    "perform_kmeans_clustering",
]
