from .models import PipelineOutcome, Stage, StageConfig, StageResult
from .orchestrator import STAGES, PipelineOrchestrator, stage_params
from .port import SubprocessTransformPort, TransformPort
from .runner import RunResult, StageRunner

__all__ = [
    "PipelineOutcome",
    "Stage",
    "StageConfig",
    "StageResult",
    "STAGES",
    "PipelineOrchestrator",
    "stage_params",
    "SubprocessTransformPort",
    "TransformPort",
    "RunResult",
    "StageRunner",
]
