import numpy as np
import pandas as pd
import pytest

from hospital_quality.core.cleaner import clean_hospital_data, handle_missing_values, remove_outliers
from hospital_quality.core.errors import MissingRequiredFieldError


def test_median_imputation():
    df = pd.DataFrame({"x": [1.0, np.nan, 3.0, 10.0], "label": ["a", "b", None, "d"]})
    filled = handle_missing_values(df)

    assert filled["x"].tolist() == [1.0, 3.0, 3.0, 10.0]
    assert filled["label"].isna().sum() == 1
    assert df["x"].isna().sum() == 1


def test_mean_imputation():
    df = pd.DataFrame({"x": [1.0, np.nan, 3.0, 8.0]})
    assert handle_missing_values(df, method="mean")["x"].tolist() == [1.0, 4.0, 3.0, 8.0]


def test_unknown_imputation_method():
    with pytest.raises(ValueError):
        handle_missing_values(pd.DataFrame({"x": [1.0]}), method="mode")


def test_iqr_outlier_removal():
    df = pd.DataFrame({"x": [1.0, 2.0, 3.0, 4.0, 5.0, 100.0]})
    kept = remove_outliers(df, ["x"], multiplier=1.5)

    assert kept["x"].tolist() == [1.0, 2.0, 3.0, 4.0, 5.0]


def test_outlier_removal_ignores_unknown_columns():
    df = pd.DataFrame({"x": [1.0, 2.0, 3.0]})
    assert len(remove_outliers(df, ["missing"])) == 3


def test_clean_hospital_data_summary():
    df = pd.DataFrame({
        "hospital_id": ["1", "2", "2", "3", "4", "5", "6"],
        "state": [" CA", "CA", "CA", "NY ", "NY", "TX", "TX"],
        "mortality_rate": [10.0, 11.0, 11.0, np.nan, 12.0, 13.0, 500.0],
        "readmission_rate": [15.0, 15.5, 15.5, 16.0, 14.0, 15.0, 15.2],
        "infection_rate": [1.0, 1.1, 1.1, 0.9, 1.2, 1.0, 1.05],
        "patient_experience_score": [70.0, 72.0, 72.0, 68.0, 71.0, 69.0, 70.5],
    })

    result = clean_hospital_data(df, outlier_multiplier=3.0)
    cleaned, summary = result["df"], result["summary"]

    assert summary["rows_original"] == 7
    assert summary["duplicate_ids_removed"] == 1
    assert summary["missing_metric_values_imputed"] == 1
    assert summary["outliers_removed"] == 1
    assert summary["rows_after_cleaning"] == len(cleaned) == 5

    assert cleaned["hospital_id"].is_unique
    assert "6" not in cleaned["hospital_id"].tolist()
    assert set(cleaned["state"]) == {"CA", "NY", "TX"}
    assert cleaned.index.tolist() == list(range(5))


def test_clean_hospital_data_needs_identity_columns():
    with pytest.raises(MissingRequiredFieldError):
        clean_hospital_data(pd.DataFrame({"mortality_rate": [1.0]}))


def test_rows_without_identity_are_dropped_not_stringified():
    df = pd.DataFrame({
        "hospital_id": ["1", None, np.nan, " 4 ", "5", "   ", "7", "8"],
        "state": ["CA", "CA", "NY", None, np.nan, "TX", " NY", "TX"],
        "mortality_rate": [12.0] * 8,
        "readmission_rate": [15.0] * 8,
        "infection_rate": [1.0] * 8,
        "patient_experience_score": [70.0] * 8,
    })

    result = clean_hospital_data(df)
    cleaned, summary = result["df"], result["summary"]

    assert cleaned["hospital_id"].tolist() == ["1", "7", "8"]
    assert cleaned["state"].tolist() == ["CA", "NY", "TX"]
    assert summary["missing_identity_removed"] == 5
    assert summary["duplicate_ids_removed"] == 0
    assert summary["rows_after_cleaning"] == 3

    for col in ["hospital_id", "state"]:
        assert not cleaned[col].isin(["nan", "None", ""]).any()
