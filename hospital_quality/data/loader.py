from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from hospital_quality.core.schema import ID_COLUMN, STATE_COLUMN
from hospital_quality.utils.logger import get_logger

log = get_logger("loader")

# CMS Hospital Compare column -> pipeline column
HOSPITAL_INFO_COLUMNS: Dict[str, str] = {
    "Facility ID": ID_COLUMN,
    "Facility Name": "hospital_name",
    "Address": "address",
    "City": "city",
    "State": STATE_COLUMN,
    "ZIP Code": "zip_code",
    "Hospital Type": "hospital_type",
    "Hospital Ownership": "hospital_ownership",
}

FACILITY_ID = "Facility ID"
MORTALITY_PATTERN = r"death|mortality|MORT"

STANDARD_FILES = {
    "hospital_info": "hospital_general_info.csv",
    "complications": "complications_deaths.csv",
    "readmissions": "readmissions.csv",
    "infections": "healthcare_infections.csv",
    "patient_experience": "patient_experience.csv",
}


# =====================================================
# SAFE TABULAR LOADER
# =====================================================

def _read_csv_safe(path: Path) -> pd.DataFrame:
    for enc in ("utf-8", "cp1252", "latin-1"):
        try:
            return pd.read_csv(path, encoding=enc, dtype={FACILITY_ID: str})
        except UnicodeDecodeError:
            continue
    raise ValueError(f"Unreadable file: {path}")


# =====================================================
# RAW FILES
# =====================================================

def load_hospital_info(file_path) -> Optional[pd.DataFrame]:
    """Hospital General Information, mapped to snake_case identity columns."""
    path = Path(file_path)
    if not path.exists():
        log.warning("File not found: %s", path)
        return None

    raw = _read_csv_safe(path)
    present = {src: dst for src, dst in HOSPITAL_INFO_COLUMNS.items() if src in raw.columns}
    info = raw[list(present)].rename(columns=present)

    info[ID_COLUMN] = info[ID_COLUMN].astype(str).str.strip()
    info[STATE_COLUMN] = info[STATE_COLUMN].astype(str).str.strip()

    log.info("Loaded %d hospitals", len(info))
    return info


def load_measure_file(file_path, score_column: str = "Score") -> Optional[pd.DataFrame]:
    """
    One measure file (complications, readmissions, HAI, HCAHPS).

    Scores are coerced to numbers ("Not Available" and similar become
    missing, "%" is stripped) and rows without a score are dropped.
    """
    path = Path(file_path)
    if not path.exists():
        log.warning("File not found: %s", path)
        return None

    measures = _read_csv_safe(path)
    if score_column not in measures.columns:
        raise ValueError(f"{path.name}: missing score column '{score_column}'")

    measures[FACILITY_ID] = measures[FACILITY_ID].astype(str).str.strip()
    measures["Score"] = pd.to_numeric(
        measures[score_column].astype(str).str.replace("%", "", regex=False),
        errors="coerce",
    )
    measures = measures[measures["Score"].notna()]

    log.info("Loaded %d records from %s", len(measures), path.name)
    return measures


def summarise_measures(
    measures: Optional[pd.DataFrame],
    metric: str,
    name_filter: Optional[str] = None,
) -> Optional[pd.DataFrame]:
    """
    Average all of a facility's measure scores into one metric column.

    Adds ``<metric>`` (mean score) and ``<metric>_measures`` (count).
    """
    if measures is None:
        return None

    if name_filter and "Measure Name" in measures.columns:
        measures = measures[
            measures["Measure Name"].astype(str).str.contains(name_filter, case=False, regex=True)
        ]

    summary = (
        measures.groupby(FACILITY_ID)["Score"]
        .agg(["mean", "size"])
        .reset_index()
        .rename(columns={FACILITY_ID: ID_COLUMN, "mean": metric, "size": f"{metric}_measures"})
    )

    log.info("Summarised %s for %d hospitals", metric, len(summary))
    return summary


def merge_hospital_data(hospital_info: pd.DataFrame, *metric_tables) -> pd.DataFrame:
    """Left-join every available metric table onto the hospital list."""
    merged = hospital_info.copy()
    for table in metric_tables:
        if table is not None:
            merged = merged.merge(table, on=ID_COLUMN, how="left")

    log.info("Merged data contains %d hospitals with %d columns", len(merged), merged.shape[1])
    return merged


# =====================================================
# ENTRY POINTS
# =====================================================

def load_all_data(data_dir="data/raw") -> pd.DataFrame:
    """
    Load the five standard CMS files from ``data_dir`` and merge them
    into one row per hospital with the four raw metric columns.
    """
    data_dir = Path(data_dir)
    log.info("=== Loading All Hospital Data from %s ===", data_dir)

    info = load_hospital_info(data_dir / STANDARD_FILES["hospital_info"])
    if info is None:
        raise FileNotFoundError(
            f"Hospital information file is required: {data_dir / STANDARD_FILES['hospital_info']}"
        )

    mortality = summarise_measures(
        load_measure_file(data_dir / STANDARD_FILES["complications"]),
        "mortality_rate",
        name_filter=MORTALITY_PATTERN,
    )
    readmissions = summarise_measures(
        load_measure_file(data_dir / STANDARD_FILES["readmissions"]),
        "readmission_rate",
    )
    infections = summarise_measures(
        load_measure_file(data_dir / STANDARD_FILES["infections"]),
        "infection_rate",
    )
    patient_exp = summarise_measures(
        load_measure_file(
            data_dir / STANDARD_FILES["patient_experience"],
            score_column="Patient Survey Star Rating",
        ),
        "patient_experience_score",
    )

    return merge_hospital_data(info, mortality, readmissions, infections, patient_exp)


def read_cohort(file_path) -> pd.DataFrame:
    """Read an already merged one-row-per-hospital CSV."""
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    df = pd.read_csv(path, dtype={ID_COLUMN: str, STATE_COLUMN: str})
    if df.empty:
        log.warning("Input file is empty: %s", path)
    return df
