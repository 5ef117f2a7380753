import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from hospital_quality.utils.logger import get_logger

log = get_logger("writer")


def _round_frame(df: pd.DataFrame, precision: int) -> pd.DataFrame:
    floats = df.select_dtypes(include=[np.floating]).columns
    return df.assign(**{c: df[c].round(precision) for c in floats})


def _round_values(value: Any, precision: int) -> Any:
    if isinstance(value, dict):
        return {k: _round_values(v, precision) for k, v in value.items()}
    if isinstance(value, list):
        return [_round_values(v, precision) for v in value]
    if isinstance(value, float):
        return round(value, precision)
    return value


def _write_csv(df: pd.DataFrame, path: Path, precision: int) -> str:
    _round_frame(df, precision).to_csv(path, index=False)
    return str(path)


# -------------------------------------------------
# OUTPUT TABLES
# -------------------------------------------------
def write_outputs(result, run_dir, precision: int = 2) -> Dict[str, str]:
    """
    Write every output table of a PipelineResult into ``run_dir``.

    Floats are rounded to ``precision`` here and nowhere else. Existing
    files of the same name are overwritten.

    Returns:
        Mapping of output name -> file path
    """
    run_dir = Path(run_dir)
    run_dir.mkdir(parents=True, exist_ok=True)

    paths: Dict[str, str] = {}
    tables = {
        "hospital_ratings": result.ratings,
        "top_hospitals_national": result.top_worst.top,
        "worst_hospitals_national": result.top_worst.worst,
        "top_hospitals_by_state": result.top_worst.top_by_state,
        "worst_hospitals_by_state": result.top_worst.worst_by_state,
        "state_summary": result.state_summary,
    }

    if result.clustering is not None:
        tables["cluster_summary_kmeans"] = result.clustering.kmeans_summary
        tables["cluster_summary_hierarchical"] = result.clustering.hierarchical_summary
        tables["k_selection"] = result.clustering.k_selection.table
        tables["clustering_comparison"] = result.clustering.comparison.table

    for name, frame in tables.items():
        paths[name] = _write_csv(frame, run_dir / f"{name}.csv", precision)

    report_path = run_dir / "summary_report.json"
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(_round_values(result.summary, precision), f, indent=2)
    paths["summary_report"] = str(report_path)

    log.info("Wrote %d output files to %s", len(paths), run_dir)
    return paths


# -------------------------------------------------
# RUN METADATA
# -------------------------------------------------
def create_run_metadata(
    input_source: str,
    config: Dict[str, Any],
    output_dir: Path,
    status: str = "completed",
    errors: List[str] | None = None,
    metrics: Dict[str, Any] | None = None,
    cleaning: Dict[str, Any] | None = None,
):
    """
    Create a run.json metadata file describing one pipeline run.
    """

    metadata = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status,
        "input": input_source,
        "errors": errors or [],
        "config": config,
        "cleaning": cleaning or {},
        "metrics": metrics or {},
    }

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    metadata_path = output_dir / "run.json"

    with open(metadata_path, "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2, default=str)

    return metadata_path
