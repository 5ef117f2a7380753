import warnings

import numpy as np
import pandas as pd
import pytest

from hospital_quality.core.errors import (
    ConfigurationError,
    ConfigurationWarning,
    DegenerateMetricWarning,
    MissingRequiredFieldError,
)
from hospital_quality.core.normalizer import create_performance_scores
from hospital_quality.core.rating import create_rating_categories
from hospital_quality.core.scoring import ScoreWeights, calculate_quality_score, score


# -------------------------------------------------
# Weights
# -------------------------------------------------

def test_default_weights_sum_to_one():
    weights = ScoreWeights()
    assert weights.total == pytest.approx(1.0)
    assert weights.validated() is weights


def test_weights_within_tolerance_are_kept_silently():
    weights = ScoreWeights(mortality=0.305, readmission=0.25, infection=0.25, patient_exp=0.20)

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert weights.validated() is weights


def test_weights_off_by_more_than_tolerance_are_rescaled():
    weights = ScoreWeights(mortality=0.6, readmission=0.5, infection=0.5, patient_exp=0.4)

    with pytest.warns(ConfigurationWarning):
        fixed = weights.validated()

    assert fixed.total == pytest.approx(1.0)
    assert fixed.mortality == pytest.approx(0.30)
    assert fixed.readmission == pytest.approx(0.25)
    assert fixed.infection == pytest.approx(0.25)
    assert fixed.patient_exp == pytest.approx(0.20)


def test_negative_weight_is_rejected():
    with pytest.raises(ConfigurationError):
        ScoreWeights(mortality=-0.1)


def test_all_zero_weights_are_rejected():
    with pytest.raises(ConfigurationError):
        ScoreWeights(mortality=0, readmission=0, infection=0, patient_exp=0)


def test_unknown_weight_key_is_rejected():
    with pytest.raises(ConfigurationError):
        ScoreWeights.from_dict({"mortality": 0.5, "safety": 0.5})


def test_non_numeric_weight_names_the_weight():
    with pytest.raises(ConfigurationError) as exc:
        ScoreWeights.from_dict({"mortality": "high", "readmission": 0.25})

    assert "mortality" in str(exc.value)
    assert exc.value.stage == "config"


# -------------------------------------------------
# Single record
# -------------------------------------------------

def test_score_accepts_weight_names_or_score_columns():
    by_weight = {"mortality": 100, "readmission": 50, "infection": 100, "patient_exp": 100}
    by_column = {
        "mortality_score": 100,
        "readmission_score": 50,
        "infection_score": 100,
        "patient_exp_score": 100,
    }
    assert score(by_weight) == pytest.approx(87.5)
    assert score(by_column) == pytest.approx(87.5)


def test_score_is_monotone_in_each_component():
    base = {"mortality": 40.0, "readmission": 40.0, "infection": 40.0, "patient_exp": 40.0}
    reference = score(base)

    for key in base:
        improved = dict(base, **{key: 60.0})
        assert score(improved) > reference


def test_score_refuses_missing_component():
    with pytest.raises(MissingRequiredFieldError) as exc:
        score({"mortality": 80.0, "readmission": 70.0, "infection": None, "patient_exp": 60.0})

    assert exc.value.field == "infection_score"


def test_score_stays_in_range():
    rng = np.random.default_rng(3)
    for _ in range(50):
        values = dict(zip(["mortality", "readmission", "infection", "patient_exp"], rng.uniform(0, 100, 4)))
        assert 0.0 <= score(values) <= 100.0


# -------------------------------------------------
# Whole cohort
# -------------------------------------------------

def test_scenario_a_scores_and_stars(scenario_a_df):
    with pytest.warns(DegenerateMetricWarning):
        scored = create_performance_scores(scenario_a_df)

    scored = calculate_quality_score(scored)
    rated = create_rating_categories(scored)

    # 0.30*100 + 0.25*50 + 0.25*100 + 0.20*100
    assert scored["quality_score"].tolist() == pytest.approx([87.5, 50.0, 12.5])
    assert rated["star_rating"].tolist() == [5, 3, 1]


def test_quality_score_refuses_records_with_missing_metric(scenario_a_df):
    df = scenario_a_df.copy()
    df.loc[1, "mortality_rate"] = np.nan

    with pytest.warns(DegenerateMetricWarning):
        scored = create_performance_scores(df)

    with pytest.raises(MissingRequiredFieldError) as exc:
        calculate_quality_score(scored)

    assert exc.value.field == "mortality_rate"
    assert exc.value.hospital_ids == ["H2"]
    assert exc.value.stage == "scoring"
    assert "H2" in str(exc.value)


def test_quality_score_requires_score_columns(scenario_a_df):
    with pytest.raises(MissingRequiredFieldError) as exc:
        calculate_quality_score(scenario_a_df)

    assert exc.value.field == "mortality_score"
    assert exc.value.hospital_ids == []


def test_quality_score_uses_rescaled_weights(scenario_a_df):
    with pytest.warns(DegenerateMetricWarning):
        scored = create_performance_scores(scenario_a_df)

    doubled = ScoreWeights(mortality=0.6, readmission=0.5, infection=0.5, patient_exp=0.4)
    with pytest.warns(ConfigurationWarning):
        result = calculate_quality_score(scored, doubled)

    pd.testing.assert_series_equal(
        result["quality_score"],
        calculate_quality_score(scored)["quality_score"],
    )
