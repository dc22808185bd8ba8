"""Pipeline value types."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import OptimizerError


@dataclass(frozen=True, slots=True)
class StageConfig:
    """Per-invocation stage switches. No defaults: the caller decides."""

    compress_mesh: bool
    resize_textures: bool
    max_texture_size: int
    backup_original: bool

    def __post_init__(self) -> None:
        for name in ("compress_mesh", "resize_textures", "backup_original"):
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"{name} must be a bool")
        size = self.max_texture_size
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise ValueError(
                f"max_texture_size must be a positive integer, got {size!r}"
            )


@dataclass(frozen=True, slots=True)
class Stage:
    name: str
    mandatory: bool = False
    description: str = ""


@dataclass(slots=True)
class StageResult:
    stage_name: str
    applied: bool
    cause: Optional[OptimizerError] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage_name,
            "applied": self.applied,
            "cause": self.cause.to_dict() if self.cause else None,
        }


@dataclass(slots=True)
class PipelineOutcome:
    asset_path: Path
    original_size_bytes: int = 0
    final_size_bytes: int = 0
    stages: List[StageResult] = field(default_factory=list)
    committed: bool = False

    @property
    def reduction_percent(self) -> float:
        if not self.committed or self.original_size_bytes <= 0:
            return 0.0
        saved = self.original_size_bytes - self.final_size_bytes
        return saved * 100.0 / self.original_size_bytes

    def stage(self, name: str) -> Optional[StageResult]:
        for result in self.stages:
            if result.stage_name == name:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": str(self.asset_path),
            "original_size_bytes": self.original_size_bytes,
            "final_size_bytes": self.final_size_bytes,
            "reduction_percent": round(self.reduction_percent, 1),
            "committed": self.committed,
            "stages": [s.to_dict() for s in self.stages],
        }


__all__ = ["StageConfig", "Stage", "StageResult", "PipelineOutcome"]
