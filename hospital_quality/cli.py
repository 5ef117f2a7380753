"""
Hospital Quality Framework CLI
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from hospital_quality.__version__ import __version__
from hospital_quality.config import PipelineConfig, load_config
from hospital_quality.core.errors import HospitalQualityError
from hospital_quality.utils.logger import get_logger, set_level

logger = get_logger("cli")


def _parse_k(value: str):
    if value.strip().lower() == "auto":
        return "auto"
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"k must be an integer or 'auto', got {value!r}")


# -------------------------------------------------
# PROGRAMMATIC ENTRY
# -------------------------------------------------
def run_analysis(
    input_path: Optional[str] = None,
    data_dir: Optional[str] = None,
    sample_size: Optional[int] = None,
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    plots: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Load a cohort, run the pipeline and write every output.

    Exactly one of ``input_path`` (merged CSV), ``data_dir`` (raw CMS
    files) or ``sample_size`` (synthetic cohort) must be given.

    Returns:
        {
            "run_dir": <path>,
            "outputs": {name: path},
            "plots": {name: path},
            "summary": <summary report dict>
        }
    """
    from hospital_quality.data.loader import load_all_data, read_cohort
    from hospital_quality.data.sample import generate_sample_cohort
    from hospital_quality.pipeline import run_pipeline
    from hospital_quality.reporting.writer import create_run_metadata, write_outputs

    sources = [s for s in (input_path, data_dir, sample_size) if s is not None]
    if len(sources) != 1:
        raise ValueError("Provide exactly one of: input file, --data-dir, --sample")

    config = PipelineConfig.from_dict(load_config(config_path))
    config = config.with_overrides(**(overrides or {}))
    if plots is not None:
        config = config.with_overrides(plots=plots)

    run_dir = Path(config.output_dir) / datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")
    run_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Run directory: %s", run_dir)

    # -------------------------------------------------
    # LOAD
    # -------------------------------------------------
    if input_path is not None:
        raw = read_cohort(input_path)
        source = str(input_path)
    elif data_dir is not None:
        raw = load_all_data(data_dir)
        source = str(data_dir)
    else:
        raw = generate_sample_cohort(n_hospitals=sample_size, seed=config.seed)
        source = f"sample:{sample_size}"

    # -------------------------------------------------
    # RUN
    # -------------------------------------------------
    try:
        result = run_pipeline(raw, config)
    except HospitalQualityError as exc:
        create_run_metadata(
            source, config.summary(), run_dir, status="failed", errors=[str(exc)]
        )
        raise

    outputs = write_outputs(result, run_dir, precision=config.precision)

    plot_paths: Dict[str, str] = {}
    if config.plots:
        try:
            from hospital_quality.reporting.visuals import create_visualizations

            plot_paths = create_visualizations(result, run_dir / "plots")
        except Exception:
            logger.exception("Plot generation failed")

    errors = [result.clustering_error] if result.clustering_error else []
    create_run_metadata(
        source,
        config.summary(),
        run_dir,
        status="completed_with_errors" if errors else "completed",
        errors=errors,
        metrics=result.metrics,
        cleaning=result.cleaning_summary,
    )

    return {
        "run_dir": str(run_dir),
        "outputs": outputs,
        "plots": plot_paths,
        "summary": result.summary,
    }


# -------------------------------------------------
# CLI ENTRY
# -------------------------------------------------
def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description=f"Hospital Quality Framework v{__version__}"
    )

    parser.add_argument("input", nargs="?", help="Merged hospital CSV (one row per hospital)")
    parser.add_argument("--data-dir", help="Directory with raw CMS Hospital Compare files")
    parser.add_argument("--sample", type=int, help="Generate a synthetic cohort of N hospitals")
    parser.add_argument("--config", required=False, help="Path to config YAML")

    parser.add_argument("--k", type=_parse_k, help="Number of clusters or 'auto'")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--output-dir", help="Root folder for run directories")
    parser.add_argument("--plots", action="store_true", help="Render PNG plots")

    parser.add_argument("--version", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args(argv)

    # ---- VERSION ----
    if args.version:
        print(f"Hospital Quality Framework v{__version__}")
        return 0

    # ---- LOGGING ----
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    set_level(logging.DEBUG if args.verbose else logging.INFO)

    # ---- SOURCE VALIDATION ----
    sources = [s for s in (args.input, args.data_dir, args.sample) if s is not None]
    if len(sources) != 1:
        parser.error("provide exactly one of: input file, --data-dir, --sample")

    if args.input and not Path(args.input).exists():
        parser.error(f"input file not found: {args.input}")

    try:
        result = run_analysis(
            input_path=args.input,
            data_dir=args.data_dir,
            sample_size=args.sample,
            config_path=args.config,
            overrides={"k": args.k, "seed": args.seed, "output_dir": args.output_dir},
            plots=True if args.plots else None,
        )
    except HospitalQualityError as exc:
        print(f"\nRun failed: {exc}", file=sys.stderr)
        return 1

    summary = result["summary"]
    stats = summary["quality_stats"]
    clustering = summary.get("clustering") or {}

    print("\nAnalysis complete")
    print(f"Hospitals analyzed: {summary['n_hospitals']} across {summary['n_states']} states")
    print(f"Mean quality score: {stats['mean']:.2f} (median {stats['median']:.2f})")

    if clustering.get("error"):
        print(f"Clustering skipped: {clustering['error']}")
    else:
        print(
            f"Clusters: k={clustering['n_clusters']} "
            f"(silhouette-recommended k={clustering['recommended_k']}), "
            f"better separation: {clustering['better_separation']}"
        )

    print(f"Run folder: {result['run_dir']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
