import numpy as np
import pandas as pd
import pytest

from hospital_quality.core.schema import CLUSTER_FEATURES
from hospital_quality.data.sample import generate_sample_cohort


@pytest.fixture
def scenario_a_df():
    """
    Three hospitals: readmission constant, the other metrics spread
    evenly so normalized scores are exactly 100 / 50 / 0.
    """
    return pd.DataFrame({
        "hospital_id": ["H1", "H2", "H3"],
        "state": ["CA", "CA", "NY"],
        "mortality_rate": [10.0, 20.0, 30.0],
        "readmission_rate": [15.0, 15.0, 15.0],
        "infection_rate": [1.0, 2.0, 3.0],
        "patient_experience_score": [90.0, 60.0, 30.0],
    })


@pytest.fixture
def sample_cohort():
    """Deterministic synthetic cohort without missing values."""
    return generate_sample_cohort(n_hospitals=150, seed=11, missing_fraction=0.0)


@pytest.fixture
def blob_df():
    """
    Three tight, far-apart groups of 20 hospitals in the clustering
    feature space. Any sane clustering recovers them exactly.
    """
    rng = np.random.default_rng(0)
    centers = np.array([
        [10.0, 10.0, 10.0, 10.0, 10.0],
        [50.0, 50.0, 50.0, 50.0, 50.0],
        [90.0, 90.0, 90.0, 90.0, 90.0],
    ])
    points = np.vstack([c + rng.normal(0, 0.5, size=(20, 5)) for c in centers])

    df = pd.DataFrame(points, columns=CLUSTER_FEATURES)
    df.insert(0, "hospital_id", [f"B{i:03d}" for i in range(len(df))])
    df.insert(1, "state", "CA")
    df["true_group"] = np.repeat([0, 1, 2], 20)
    return df


@pytest.fixture
def make_cohort():
    """Factory for random clean cohorts with the four raw metrics."""

    def _make(n, seed=0, states=("CA", "NY", "TX")):
        rng = np.random.default_rng(seed)
        return pd.DataFrame({
            "hospital_id": [f"X{i:04d}" for i in range(n)],
            "state": rng.choice(list(states), n),
            "mortality_rate": rng.uniform(5, 30, n),
            "readmission_rate": rng.uniform(8, 25, n),
            "infection_rate": rng.uniform(0.1, 2.5, n),
            "patient_experience_score": rng.uniform(40, 95, n),
        })

    return _make
