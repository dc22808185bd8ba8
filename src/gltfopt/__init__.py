"""gltfopt: validation and staged in-place optimization of glTF 2.0 assets."""

from .api import optimize_asset, optimize_batch, validate_assets
from .format import ValidationOutcome, validate_asset
from .pipeline import PipelineOrchestrator, PipelineOutcome, StageConfig

__version__ = "0.1.0"

__all__ = [
    "optimize_asset",
    "optimize_batch",
    "validate_assets",
    "validate_asset",
    "ValidationOutcome",
    "PipelineOrchestrator",
    "PipelineOutcome",
    "StageConfig",
]
