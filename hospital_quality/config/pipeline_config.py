from dataclasses import dataclass, field, replace
from typing import Any, Dict, Union

from hospital_quality.core.errors import ConfigurationError
from hospital_quality.core.scoring import ScoreWeights

IMPUTE_METHODS = ("median", "mean")


# -------------------------------------------------
# PIPELINE CONFIG (PASSED EXPLICITLY TO EVERY STAGE)
# -------------------------------------------------
@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable run configuration.

    Built from the merged YAML dict via ``from_dict``; nothing in the
    pipeline reads module-level settings.
    """
    weights: ScoreWeights = field(default_factory=ScoreWeights)
    k: Union[int, str] = 4
    max_k: int = 10
    n_init: int = 25
    max_iter: int = 100
    seed: int = 123
    outlier_multiplier: float = 3.0
    impute_method: str = "median"
    top_n: int = 10
    precision: int = 2
    plots: bool = False
    output_dir: str = "runs"

    def __post_init__(self):
        if isinstance(self.k, str):
            if self.k.strip().lower() != "auto":
                raise ConfigurationError(
                    f"k must be an integer >= 2 or 'auto', got {self.k!r}",
                    stage="config",
                )
            object.__setattr__(self, "k", "auto")
        elif isinstance(self.k, bool) or not isinstance(self.k, int) or self.k < 2:
            raise ConfigurationError(
                f"k must be an integer >= 2 or 'auto', got {self.k!r}",
                stage="config",
            )

        if self.max_k < 2:
            raise ConfigurationError(f"max_k must be >= 2, got {self.max_k}", stage="config")
        if self.n_init < 10:
            raise ConfigurationError(
                f"n_init must be >= 10 random restarts, got {self.n_init}",
                stage="config",
            )
        if self.max_iter < 1:
            raise ConfigurationError(f"max_iter must be >= 1, got {self.max_iter}", stage="config")
        if self.outlier_multiplier <= 0:
            raise ConfigurationError(
                f"outlier_multiplier must be positive, got {self.outlier_multiplier}",
                stage="config",
            )
        if self.impute_method not in IMPUTE_METHODS:
            raise ConfigurationError(
                f"impute_method must be one of {IMPUTE_METHODS}, got {self.impute_method!r}",
                stage="config",
            )
        if self.top_n < 1:
            raise ConfigurationError(f"top_n must be >= 1, got {self.top_n}", stage="config")
        if self.precision < 0:
            raise ConfigurationError(f"precision must be >= 0, got {self.precision}", stage="config")

    def with_overrides(self, **changes) -> "PipelineConfig":
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "PipelineConfig":
        clustering = cfg.get("clustering", {}) or {}
        cleaning = cfg.get("cleaning", {}) or {}
        aggregation = cfg.get("aggregation", {}) or {}
        report = cfg.get("report", {}) or {}

        k = clustering.get("k", 4)
        if k is None:
            k = "auto"

        return cls(
            weights=ScoreWeights.from_dict(cfg.get("weights", {}) or {}),
            k=k,
            max_k=int(clustering.get("max_k", 10)),
            n_init=int(clustering.get("n_init", 25)),
            max_iter=int(clustering.get("max_iter", 100)),
            seed=int(cfg.get("seed", 123)),
            outlier_multiplier=float(cleaning.get("outlier_multiplier", 3.0)),
            impute_method=str(cleaning.get("impute_method", "median")),
            top_n=int(aggregation.get("top_n", 10)),
            precision=int(report.get("precision", 2)),
            plots=bool(report.get("plots", False)),
            output_dir=str(cfg.get("output_dir", "runs")),
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "weights": self.weights.as_dict(),
            "k": self.k,
            "max_k": self.max_k,
            "n_init": self.n_init,
            "max_iter": self.max_iter,
            "seed": self.seed,
            "outlier_multiplier": self.outlier_multiplier,
            "impute_method": self.impute_method,
            "top_n": self.top_n,
            "precision": self.precision,
        }
