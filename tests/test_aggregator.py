import math

import pandas as pd
import pytest

from hospital_quality.core.aggregator import (
    bottom_n,
    build_summary_report,
    create_state_summary,
    identify_top_worst_hospitals,
    top_n,
)
from hospital_quality.core.rating import create_rating_categories


@pytest.fixture
def rated_df():
    df = pd.DataFrame({
        "hospital_id": ["A", "B", "C", "D", "E", "F"],
        "state": ["NY", "CA", "CA", "NY", "TX", "CA"],
        "quality_score": [50.0, 85.0, 85.0, 20.0, 66.0, 30.0],
        "mortality_rate": [12.0, 10.0, 11.0, 20.0, 14.0, 18.0],
        "readmission_rate": [15.0, 14.0, 14.5, 19.0, 15.5, 17.0],
        "infection_rate": [1.0, 0.8, 0.9, 1.8, 1.1, 1.5],
        "patient_experience_score": [70.0, 85.0, 84.0, 55.0, 75.0, 60.0],
    })
    return create_rating_categories(df)


def test_top_n_keeps_input_order_for_ties(rated_df):
    assert top_n(rated_df, 2)["hospital_id"].tolist() == ["B", "C"]
    assert top_n(rated_df, 3)["hospital_id"].tolist() == ["B", "C", "E"]


def test_bottom_n(rated_df):
    assert bottom_n(rated_df, 2)["hospital_id"].tolist() == ["D", "F"]


def test_n_larger_than_cohort_returns_everything(rated_df):
    assert len(top_n(rated_df, 50)) == len(rated_df)


def test_top_worst_extracts(rated_df):
    extracts = identify_top_worst_hospitals(rated_df, n=2)

    assert extracts.top["hospital_id"].tolist() == ["B", "C"]
    assert set(extracts.top["category"]) == {"Top Overall"}
    assert extracts.worst["hospital_id"].tolist() == ["D", "F"]

    assert extracts.top_by_state["state"].tolist() == ["CA", "NY", "TX"]
    assert extracts.top_by_state["hospital_id"].tolist() == ["B", "A", "E"]
    assert extracts.worst_by_state["hospital_id"].tolist() == ["F", "D", "E"]
    assert set(extracts.worst_by_state["category"]) == {"Worst in State"}


def test_state_summary_figures(rated_df):
    summary = create_state_summary(rated_df).set_index("state")

    assert summary["n_hospitals"].sum() == len(rated_df)
    assert summary.loc["CA", "n_hospitals"] == 3
    assert summary.loc["CA", "avg_quality_score"] == pytest.approx(200.0 / 3)
    assert summary.loc["CA", "median_quality_score"] == pytest.approx(85.0)
    assert summary.loc["CA", "pct_excellent"] == pytest.approx(200.0 / 3)
    assert summary.loc["CA", "pct_poor"] == pytest.approx(100.0 / 3)
    assert summary.loc["NY", "avg_mortality"] == pytest.approx(16.0)
    assert summary.loc["TX", "pct_excellent"] == 0.0


def test_state_summary_sorted_by_average_quality(rated_df):
    summary = create_state_summary(rated_df)
    assert summary["state"].tolist() == ["CA", "TX", "NY"]
    assert summary["avg_quality_score"].is_monotonic_decreasing


def test_summary_report(rated_df):
    state_summary = create_state_summary(rated_df)
    report = build_summary_report(
        rated_df,
        state_summary,
        clustering={"n_clusters": 4, "kmeans_silhouette": float("nan")},
    )

    assert report["n_hospitals"] == 6
    assert report["n_states"] == 3
    assert report["quality_stats"]["max"] == 85.0
    assert report["quality_stats"]["min"] == 20.0
    assert report["star_distribution"] == {"1": 2, "3": 1, "4": 1, "5": 2}
    assert sum(report["category_distribution"].values()) == 6
    assert report["best_states"] == ["CA", "TX", "NY"]
    assert report["clustering"]["kmeans_silhouette"] is None


def test_summary_report_single_hospital(rated_df):
    one = rated_df.head(1)
    report = build_summary_report(one, create_state_summary(one))

    assert report["quality_stats"]["sd"] is None
    assert not math.isnan(report["quality_stats"]["mean"])
