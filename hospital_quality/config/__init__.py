from .loader import load_config
from .defaults import DEFAULT_CONFIG
from .pipeline_config import PipelineConfig, ScoreWeights

__all__ = [
    "load_config",
    "DEFAULT_CONFIG",
    "PipelineConfig",
    "ScoreWeights",
]
