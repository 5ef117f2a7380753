from typing import Any, Dict, Iterable, List

import numpy as np
import pandas as pd

from .schema import ID_COLUMN, RAW_METRIC_COLUMNS, STATE_COLUMN, require_columns
from hospital_quality.utils.logger import get_logger

log = get_logger("cleaner")


# -----------------------------
# Missing values
# -----------------------------
def handle_missing_values(df: pd.DataFrame, method: str = "median") -> pd.DataFrame:
    """
    Impute missing numeric values with the column median (or mean).

    Columns that are entirely missing stay missing.
    """
    if method not in ("median", "mean"):
        raise ValueError(f"Unsupported imputation method: {method}")

    df = df.copy()
    missing_before = int(df.isna().sum().sum())

    numeric_cols = df.select_dtypes(include=[np.number]).columns
    for col in numeric_cols:
        fill = df[col].median() if method == "median" else df[col].mean()
        if pd.notna(fill):
            df[col] = df[col].fillna(fill)

    missing_after = int(df.isna().sum().sum())
    log.info("Imputed %d missing values (%s)", missing_before - missing_after, method)
    return df


# -----------------------------
# Outliers (IQR)
# -----------------------------
def remove_outliers(
    df: pd.DataFrame,
    columns: Iterable[str],
    multiplier: float = 1.5,
) -> pd.DataFrame:
    """
    Drop rows outside [Q1 - m*IQR, Q3 + m*IQR], one column at a time.

    Quartiles for each column are computed on the rows that survived
    the previous columns. Rows with a missing value in a checked
    column are dropped as well.
    """
    n_before = len(df)

    for col in columns:
        if col not in df.columns or not pd.api.types.is_numeric_dtype(df[col]):
            continue

        q1 = df[col].quantile(0.25)
        q3 = df[col].quantile(0.75)
        iqr = q3 - q1

        lower = q1 - multiplier * iqr
        upper = q3 + multiplier * iqr

        df = df[(df[col] >= lower) & (df[col] <= upper)]

    log.info("Removed %d outlier records", n_before - len(df))
    return df.copy()


# -----------------------------
# Identity columns
# -----------------------------
def _strip_identity(values: pd.Series) -> pd.Series:
    """
    Strip whitespace from present values; missing and blank stay missing.

    Missing entries are never stringified, so no "nan" or "None" ids.
    """
    stripped = values.where(values.isna(), values.astype(str).str.strip())
    return stripped.mask(stripped.eq(""))


# -----------------------------
# Full cleaning step
# -----------------------------
def clean_hospital_data(
    df: pd.DataFrame,
    outlier_multiplier: float = 3.0,
    impute_method: str = "median",
    metric_columns: List[str] = None,
) -> Dict[str, Any]:
    """
    Prepare the merged hospital table for scoring.

    Steps: drop rows without a hospital_id or state, de-duplicate on
    hospital_id, impute numeric gaps, drop IQR outliers on the metric
    columns, keep complete cases only.

    Returns:
        dict with:
            - 'df': cleaned dataframe (fresh index)
            - 'summary': audit counts for the run report
    """
    log.info("=== Starting Data Cleaning Process ===")
    metric_columns = metric_columns or RAW_METRIC_COLUMNS
    require_columns(df, [ID_COLUMN, STATE_COLUMN], stage="cleaning")

    df = df.copy()
    rows_original = len(df)

    df[ID_COLUMN] = _strip_identity(df[ID_COLUMN])
    df[STATE_COLUMN] = _strip_identity(df[STATE_COLUMN])

    no_identity = df[ID_COLUMN].isna() | df[STATE_COLUMN].isna()
    missing_identity = int(no_identity.sum())
    if missing_identity:
        log.warning(
            "Dropping %d row(s) without hospital_id or state (rows %s)",
            missing_identity,
            df.index[no_identity.to_numpy()].tolist()[:10],
        )
        df = df[~no_identity]

    duplicates = int(df.duplicated(subset=[ID_COLUMN]).sum())
    df = df.drop_duplicates(subset=[ID_COLUMN], keep="first")

    present = [c for c in metric_columns if c in df.columns]
    missing_before = int(df[present].isna().sum().sum())
    df = handle_missing_values(df, method=impute_method)
    imputed = missing_before - int(df[present].isna().sum().sum())

    rows_before_outliers = len(df)
    df = remove_outliers(df, metric_columns, multiplier=outlier_multiplier)
    outliers_removed = rows_before_outliers - len(df)

    complete = df[present].notna().all(axis=1)
    incomplete = int((~complete).sum())
    df = df[complete].reset_index(drop=True)

    summary = {
        "rows_original": rows_original,
        "rows_after_cleaning": len(df),
        "missing_identity_removed": missing_identity,
        "duplicate_ids_removed": duplicates,
        "missing_metric_values_imputed": imputed,
        "outliers_removed": outliers_removed,
        "incomplete_rows_removed": incomplete,
        "outlier_multiplier": outlier_multiplier,
        "impute_method": impute_method,
    }

    log.info("=== Data Cleaning Complete: %d hospitals ===", len(df))
    return {"df": df, "summary": summary}
