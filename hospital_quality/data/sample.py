"""
Synthetic CMS Hospital Compare data for demos and tests.

Everything is drawn from one ``numpy.random.Generator`` seeded by the
caller, so a (n_hospitals, seed) pair always yields the same data.
"""

from pathlib import Path
from typing import Dict, Sequence

import numpy as np
import pandas as pd

from hospital_quality.utils.logger import get_logger

from .loader import STANDARD_FILES

log = get_logger("sample-data")

STATES = [
    "CA", "TX", "FL", "NY", "PA", "IL", "OH", "GA", "NC", "MI",
    "NJ", "VA", "WA", "AZ", "MA", "TN", "IN", "MO", "MD", "WI",
    "CO", "MN", "SC", "AL", "LA", "KY", "OR", "OK", "CT", "UT",
]

HOSPITAL_TYPES = [
    "Acute Care Hospitals",
    "Critical Access Hospitals",
    "Children's Hospitals",
    "Acute Care - Department of Defense",
]
HOSPITAL_TYPE_P = [0.7, 0.15, 0.1, 0.05]

OWNERSHIP_TYPES = [
    "Government - Federal",
    "Government - State",
    "Government - Local",
    "Voluntary non-profit - Private",
    "Voluntary non-profit - Church",
    "Proprietary",
    "Voluntary non-profit - Other",
]
OWNERSHIP_P = [0.05, 0.05, 0.1, 0.35, 0.15, 0.2, 0.1]

NAME_PREFIXES = [
    "St.", "Mount", "County", "Memorial", "General", "Regional",
    "University", "Community", "Sacred Heart", "Good Samaritan",
    "Mercy", "Presbyterian", "Methodist",
]
NAME_SUFFIXES = [
    "Medical Center", "Hospital", "Healthcare System",
    "Medical Hospital", "Regional Hospital",
]
STREETS = ["Main St", "Oak Ave", "Park Blvd", "Elm St", "Maple Dr", "Washington Ave"]

MEASURES = {
    "mortality": [
        "Death rate for heart attack patients",
        "Death rate for heart failure patients",
        "Death rate for pneumonia patients",
        "Death rate for COPD patients",
        "Death rate for stroke patients",
        "Death rate for coronary artery bypass graft (CABG) patients",
    ],
    "readmission": [
        "Readmission rate for heart attack patients",
        "Readmission rate for heart failure patients",
        "Readmission rate for pneumonia patients",
        "Readmission rate for COPD patients",
        "Readmission rate for stroke patients",
        "Readmission rate for hip/knee replacement patients",
    ],
    "infection": [
        "Central line-associated bloodstream infections (CLABSI)",
        "Catheter-associated urinary tract infections (CAUTI)",
        "Surgical site infections (SSI) - Colon surgery",
        "Surgical site infections (SSI) - Abdominal hysterectomy",
        "Methicillin-resistant Staphylococcus aureus (MRSA)",
        "Clostridium difficile (C.diff) infections",
    ],
}

# metric -> (mean, sd, low clamp, high clamp)
BASE_RATES = {
    "mortality_rate": (15.0, 3.0, 5.0, 30.0),
    "readmission_rate": (15.5, 2.0, 8.0, 25.0),
    "infection_rate": (1.0, 0.3, 0.1, 2.5),
    "patient_experience_score": (72.0, 8.0, 40.0, 95.0),
}


def _hospital_info(n: int, rng: np.random.Generator, states: Sequence[str]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "hospital_id": [f"{i:06d}" for i in range(1, n + 1)],
            "hospital_name": [
                f"{p} {s}"
                for p, s in zip(rng.choice(NAME_PREFIXES, n), rng.choice(NAME_SUFFIXES, n))
            ],
            "address": [
                f"{num} {street}"
                for num, street in zip(rng.integers(100, 10000, n), rng.choice(STREETS, n))
            ],
            "city": [f"City {c}" for c in rng.integers(1, 201, n)],
            "state": rng.choice(list(states), n),
            "zip_code": [f"{z:05d}" for z in rng.integers(10000, 100000, n)],
            "hospital_type": rng.choice(HOSPITAL_TYPES, n, p=HOSPITAL_TYPE_P),
            "hospital_ownership": rng.choice(OWNERSHIP_TYPES, n, p=OWNERSHIP_P),
        }
    )


def _base_rates(n: int, rng: np.random.Generator) -> Dict[str, np.ndarray]:
    return {
        metric: np.clip(rng.normal(mean, sd, n), low, high)
        for metric, (mean, sd, low, high) in BASE_RATES.items()
    }


def generate_sample_cohort(
    n_hospitals: int = 500,
    seed: int = 42,
    states: Sequence[str] = STATES,
    missing_fraction: float = 0.02,
) -> pd.DataFrame:
    """
    Merged one-row-per-hospital table with the four raw metrics.

    A ``missing_fraction`` of metric values is blanked so the cleaning
    stage has something to impute.
    """
    if n_hospitals < 1:
        raise ValueError("n_hospitals must be >= 1")

    rng = np.random.default_rng(seed)
    log.info("Generating %d synthetic hospitals (seed=%s)...", n_hospitals, seed)

    cohort = _hospital_info(n_hospitals, rng, states)
    for metric, values in _base_rates(n_hospitals, rng).items():
        values = np.round(values, 2)
        if missing_fraction > 0:
            values = np.where(rng.random(n_hospitals) < missing_fraction, np.nan, values)
        cohort[metric] = values

    return cohort


def generate_raw_files(n_hospitals: int = 500, seed: int = 42) -> Dict[str, pd.DataFrame]:
    """
    CMS-shaped raw tables (hospital info plus four measure files).

    Every hospital gets 3-6 measures per metric scattered around its
    own base rate.
    """
    rng = np.random.default_rng(seed)
    info = _hospital_info(n_hospitals, rng, STATES)
    base = _base_rates(n_hospitals, rng)

    raw = {
        "hospital_info": info.rename(
            columns={
                "hospital_id": "Facility ID",
                "hospital_name": "Facility Name",
                "address": "Address",
                "city": "City",
                "state": "State",
                "zip_code": "ZIP Code",
                "hospital_type": "Hospital Type",
                "hospital_ownership": "Hospital Ownership",
            }
        )
    }

    measure_files = {
        "complications": ("mortality", "mortality_rate", 2.0, (3.0, 35.0)),
        "readmissions": ("readmission", "readmission_rate", 1.5, (5.0, 30.0)),
        "infections": ("infection", "infection_rate", 0.2, (0.0, 3.0)),
    }
    for key, (family, metric, sd, (low, high)) in measure_files.items():
        rows = []
        for facility, rate in zip(info["hospital_id"], base[metric]):
            n_measures = int(rng.integers(3, 7))
            for measure in rng.choice(MEASURES[family], n_measures, replace=False):
                rows.append(
                    {
                        "Facility ID": facility,
                        "Measure Name": measure,
                        "Score": round(float(np.clip(rate + rng.normal(0, sd), low, high)), 2),
                    }
                )
        raw[key] = pd.DataFrame(rows)

    raw["patient_experience"] = pd.DataFrame(
        {
            "Facility ID": info["hospital_id"],
            "Patient Survey Star Rating": [f"{v:.0f}%" for v in base["patient_experience_score"]],
        }
    )
    return raw


def write_raw_files(data_dir, n_hospitals: int = 500, seed: int = 42) -> Path:
    """Write ``generate_raw_files`` output using the standard CMS file names."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    for key, frame in generate_raw_files(n_hospitals, seed).items():
        frame.to_csv(data_dir / STANDARD_FILES[key], index=False)

    log.info("Sample CMS files written to %s", data_dir)
    return data_dir
