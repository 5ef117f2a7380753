from dataclasses import dataclass
from typing import List

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from hospital_quality.core.schema import CLUSTER_FEATURES, ID_COLUMN, require_complete
from hospital_quality.utils.logger import get_logger

log = get_logger("clustering.features")


@dataclass
class ClusteringData:
    """
    Standardized feature matrix plus the unscaled features it came from.

    Row i of ``scaled`` is hospital ``hospital_ids[i]``.
    """
    scaled: np.ndarray
    features: pd.DataFrame
    hospital_ids: List[str]
    feature_names: List[str]

    @property
    def n_samples(self) -> int:
        return int(self.scaled.shape[0])


def standardize(matrix: np.ndarray) -> np.ndarray:
    """
    Z-score each column (zero mean, unit variance).

    Constant columns become all zeros instead of NaN.
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.shape[0] == 0:
        return matrix.copy()
    return StandardScaler().fit_transform(matrix)


def prepare_clustering_data(df: pd.DataFrame) -> ClusteringData:
    log.info("Preparing data for clustering...")
    require_complete(df, CLUSTER_FEATURES, stage="clustering")

    features = df[CLUSTER_FEATURES].astype(float).reset_index(drop=True)
    if ID_COLUMN in df.columns:
        ids = df[ID_COLUMN].astype(str).tolist()
    else:
        ids = [str(i) for i in df.index]

    scaled = standardize(features.to_numpy())

    log.info("Prepared %d hospitals for clustering using %d features", len(ids), len(CLUSTER_FEATURES))
    return ClusteringData(
        scaled=scaled,
        features=features,
        hospital_ids=ids,
        feature_names=list(CLUSTER_FEATURES),
    )
