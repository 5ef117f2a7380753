import math

import numpy as np
import pandas as pd
import pytest
from sklearn.metrics import adjusted_rand_score

from hospital_quality.clustering import (
    CLUSTER_LABELS,
    ClusteringResult,
    characterize_clusters,
    compare_clustering_methods,
    find_optimal_clusters,
    mean_silhouette,
    perform_clustering_analysis,
    perform_hierarchical_clustering,
    perform_kmeans_clustering,
    prepare_clustering_data,
)
from hospital_quality.core.errors import ConfigurationError, InsufficientDataError
from hospital_quality.core.schema import CLUSTER_FEATURES


def _result(method, silhouette):
    return ClusteringResult(
        method=method,
        k=2,
        labels=np.array([1, 2]),
        avg_silhouette=silhouette,
        total_ss=1.0,
        within_ss=0.5,
    )


# -------------------------------------------------
# Feature preparation
# -------------------------------------------------

def test_prepared_features_are_standardized(blob_df):
    data = prepare_clustering_data(blob_df)

    assert data.scaled.shape == (60, len(CLUSTER_FEATURES))
    assert data.feature_names == CLUSTER_FEATURES
    assert data.hospital_ids[0] == "B000"
    np.testing.assert_allclose(data.scaled.mean(axis=0), 0.0, atol=1e-9)
    np.testing.assert_allclose(data.scaled.std(axis=0), 1.0, atol=1e-9)


def test_constant_feature_scales_to_zero(blob_df):
    df = blob_df.assign(readmission_score=50.0)
    data = prepare_clustering_data(df)

    column = CLUSTER_FEATURES.index("readmission_score")
    assert not np.isnan(data.scaled).any()
    assert (data.scaled[:, column] == 0).all()


# -------------------------------------------------
# Algorithms
# -------------------------------------------------

def test_kmeans_is_deterministic_for_a_seed(blob_df):
    data = prepare_clustering_data(blob_df)

    first = perform_kmeans_clustering(data.scaled, k=3, seed=123)
    second = perform_kmeans_clustering(data.scaled, k=3, seed=123)

    np.testing.assert_array_equal(first.labels, second.labels)
    assert first.within_ss == pytest.approx(second.within_ss)


def test_kmeans_recovers_separated_groups(blob_df):
    result = perform_kmeans_clustering(prepare_clustering_data(blob_df), k=3, seed=1)

    assert set(result.labels) == {1, 2, 3}
    assert adjusted_rand_score(blob_df["true_group"], result.labels) == pytest.approx(1.0)
    assert result.avg_silhouette > 0.9
    assert 0 < result.variance_explained <= 100


def test_hierarchical_cut_has_exactly_k_groups(blob_df):
    data = prepare_clustering_data(blob_df)

    for k in (2, 3, 5):
        result = perform_hierarchical_clustering(data.scaled, k=k)
        assert len(np.unique(result.labels)) == k
        assert result.labels.min() == 1
        assert sum(result.sizes().values()) == data.n_samples

    tree = perform_hierarchical_clustering(data.scaled, k=3)
    assert tree.model.shape == (data.n_samples - 1, 4)
    assert adjusted_rand_score(blob_df["true_group"], tree.labels) == pytest.approx(1.0)


def test_cohort_smaller_than_k_fails_before_clustering():
    X = np.random.default_rng(0).normal(size=(4, 5))

    with pytest.raises(InsufficientDataError) as exc:
        perform_kmeans_clustering(X, k=5)
    assert exc.value.parameter == "k"

    with pytest.raises(InsufficientDataError):
        perform_hierarchical_clustering(X, k=5)


def test_invalid_k_and_n_init_are_configuration_errors():
    X = np.random.default_rng(0).normal(size=(10, 5))

    with pytest.raises(ConfigurationError):
        perform_kmeans_clustering(X, k=1)
    with pytest.raises(ConfigurationError):
        perform_kmeans_clustering(X, k=3, n_init=5)
    with pytest.raises(ConfigurationError):
        perform_kmeans_clustering(X, k=3, seed=None)


# -------------------------------------------------
# Silhouette
# -------------------------------------------------

def test_silhouette_is_bounded():
    rng = np.random.default_rng(2)
    X = rng.normal(size=(40, 5))
    labels = rng.integers(1, 4, 40)

    value = mean_silhouette(X, labels)
    assert -1.0 <= value <= 1.0


@pytest.mark.parametrize(
    "labels",
    [
        [1],            # single point
        [1, 1, 1, 1],   # single cluster
        [1, 2, 3, 4],   # one cluster per point
    ],
)
def test_silhouette_undefined_is_nan(labels):
    X = np.arange(len(labels) * 2, dtype=float).reshape(len(labels), 2)
    assert math.isnan(mean_silhouette(X, labels))


# -------------------------------------------------
# k selection
# -------------------------------------------------

def test_k_selection_recommends_true_group_count(blob_df):
    selection = find_optimal_clusters(prepare_clustering_data(blob_df), max_k=6, seed=123)

    assert selection.table["k"].tolist() == [2, 3, 4, 5, 6]
    assert selection.recommended_k == 3
    assert selection.table["wss"].is_monotonic_decreasing


def test_k_selection_marks_impossible_k_as_nan():
    X = np.random.default_rng(4).normal(size=(5, 5))
    selection = find_optimal_clusters(X, max_k=10, seed=123)

    table = selection.table.set_index("k")
    assert table.loc[6:, "wss"].isna().all()
    assert table.loc[6:, "silhouette"].isna().all()
    assert math.isnan(table.loc[5, "silhouette"])
    assert not math.isnan(table.loc[2, "silhouette"])
    assert selection.recommended_k in (2, 3, 4)


# -------------------------------------------------
# Characterization and comparison
# -------------------------------------------------

def test_four_clusters_use_every_label_once():
    features = pd.DataFrame(
        {name: np.repeat([90.0, 70.0, 40.0, 10.0], 5) for name in CLUSTER_FEATURES}
    )
    labels = np.repeat([3, 1, 4, 2], 5)

    summary = characterize_clusters(features, labels)

    assert summary["cluster_label"].tolist() == CLUSTER_LABELS
    assert summary["cluster_id"].tolist() == [3, 1, 4, 2]
    assert summary["avg_quality_score"].is_monotonic_decreasing
    assert summary["n_hospitals"].sum() == len(features)


def test_two_clusters_get_top_and_bottom_labels():
    features = pd.DataFrame({name: [80.0, 82.0, 20.0, 22.0] for name in CLUSTER_FEATURES})
    summary = characterize_clusters(features, [1, 1, 2, 2])

    assert summary["cluster_label"].tolist() == ["High Performers", "Needs Improvement"]


def test_characterize_rejects_misaligned_labels():
    features = pd.DataFrame({name: [1.0, 2.0] for name in CLUSTER_FEATURES})
    with pytest.raises(ValueError):
        characterize_clusters(features, [1, 2, 3])


@pytest.mark.parametrize(
    "kmeans, hierarchical, winner",
    [
        (0.52, 0.41, "kmeans"),
        (0.30, 0.45, "hierarchical"),
        (0.40, 0.40, "tie"),
        (float("nan"), 0.40, "tie"),
    ],
)
def test_compare_methods(kmeans, hierarchical, winner):
    comparison = compare_clustering_methods(_result("kmeans", kmeans), _result("hierarchical", hierarchical))

    assert comparison.winner == winner
    assert comparison.table["method"].tolist() == ["K-means", "Hierarchical"]


# -------------------------------------------------
# Full analysis
# -------------------------------------------------

def test_analysis_with_auto_k(blob_df):
    analysis = perform_clustering_analysis(blob_df, k="auto", max_k=6, seed=123)

    assert analysis.k == 3
    assert analysis.recommended_k == 3
    assert analysis.notes == []
    assert list(analysis.kmeans_summary.columns) == list(analysis.hierarchical_summary.columns)
    assert analysis.kmeans_summary["n_hospitals"].sum() == len(blob_df)
    assert analysis.hierarchical_summary["n_hospitals"].sum() == len(blob_df)


def test_analysis_notes_when_k_differs_from_recommendation(blob_df):
    analysis = perform_clustering_analysis(blob_df, k=4, max_k=6, seed=123)

    assert analysis.k == 4
    assert analysis.recommended_k == 3
    assert len(analysis.notes) == 1

    assignments = analysis.assignments()
    assert assignments["hospital_id"].tolist() == blob_df["hospital_id"].tolist()
    assert set(assignments["cluster_kmeans"]) == {1, 2, 3, 4}


def test_analysis_on_four_hospitals_with_five_clusters(blob_df):
    with pytest.raises(InsufficientDataError) as exc:
        perform_clustering_analysis(blob_df.head(4), k=5, seed=123)

    assert exc.value.parameter == "k"
    assert exc.value.stage == "clustering"


def test_analysis_is_reproducible(sample_cohort):
    from hospital_quality.config import PipelineConfig
    from hospital_quality.pipeline import engineer_features

    scored = engineer_features(sample_cohort, PipelineConfig())
    first = perform_clustering_analysis(scored, k=4, max_k=5, seed=123)
    second = perform_clustering_analysis(scored, k=4, max_k=5, seed=123)

    np.testing.assert_array_equal(first.kmeans.labels, second.kmeans.labels)
    np.testing.assert_array_equal(first.hierarchical.labels, second.hierarchical.labels)
    pd.testing.assert_frame_equal(first.k_selection.table, second.k_selection.table)
