"""High-level API for gltfopt."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .errors import OptimizerError, unexpected_error
from .format import ValidationOutcome, inspect_glb, validate_asset
from .logging import get_logger, section
from .pipeline import (
    PipelineOrchestrator,
    PipelineOutcome,
    StageConfig,
    SubprocessTransformPort,
    TransformPort,
)
from .reporting import TaskStatus, get_reporter

__all__ = [
    "BatchEntry",
    "BatchReport",
    "validate_assets",
    "inspect_asset",
    "optimize_asset",
    "optimize_batch",
    "write_report",
]


@dataclass(slots=True)
class BatchEntry:
    asset_path: Path
    outcome: Optional[PipelineOutcome] = None
    error: Optional[OptimizerError] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is not None and self.outcome.committed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": str(self.asset_path),
            "succeeded": self.succeeded,
            "outcome": self.outcome.to_dict() if self.outcome else None,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass(slots=True)
class BatchReport:
    entries: List[BatchEntry] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for e in self.entries if e.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.entries) - self.success_count

    @property
    def total_original_bytes(self) -> int:
        return sum(e.outcome.original_size_bytes for e in self.entries if e.succeeded)

    @property
    def total_final_bytes(self) -> int:
        return sum(e.outcome.final_size_bytes for e in self.entries if e.succeeded)

    @property
    def reduction_percent(self) -> float:
        if self.total_original_bytes <= 0:
            return 0.0
        saved = self.total_original_bytes - self.total_final_bytes
        return saved * 100.0 / self.total_original_bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "assets": len(self.entries),
                "succeeded": self.success_count,
                "failed": self.failure_count,
                "total_original_bytes": self.total_original_bytes,
                "total_final_bytes": self.total_final_bytes,
                "reduction_percent": round(self.reduction_percent, 1),
            },
            "assets": [e.to_dict() for e in self.entries],
        }


def validate_assets(paths: Iterable[str | Path]) -> Dict[Path, ValidationOutcome]:
    rep = get_reporter()
    results: Dict[Path, ValidationOutcome] = {}
    with section("Validate"):
        for p in paths:
            path = Path(p)
            outcome = validate_asset(path)
            results[path] = outcome
            if outcome.valid:
                rep.status(f"{path}: valid")
            else:
                rep.error(f"{path}: {outcome.reason}")
    invalid = sum(1 for o in results.values() if not o.valid)
    rep.status(
        f"Validation summary: checked={len(results)} invalid={invalid}"
    )
    return results


def inspect_asset(path: str | Path) -> Dict[str, Any]:
    return inspect_glb(path)


def optimize_asset(
    path: str | Path,
    config: StageConfig,
    *,
    port: Optional[TransformPort] = None,
    atomic_swap: bool = False,
) -> PipelineOutcome:
    """Optimize one asset in place (see PipelineOrchestrator.optimize)."""
    orchestrator = PipelineOrchestrator(
        port or SubprocessTransformPort(), atomic_swap=atomic_swap
    )
    return orchestrator.optimize(path, config)


def optimize_batch(
    paths: Iterable[str | Path],
    config: StageConfig,
    *,
    port: Optional[TransformPort] = None,
    max_concurrency: int = 1,
    atomic_swap: bool = False,
) -> BatchReport:
    """Optimize many distinct assets; one failure never stops the batch.

    Paths are de-duplicated since the same asset must not be processed
    twice at the same time.
    """
    logger = get_logger("batch")
    rep = get_reporter()
    unique = list(dict.fromkeys(Path(p).resolve() for p in paths))
    orchestrator = PipelineOrchestrator(
        port or SubprocessTransformPort(), atomic_swap=atomic_swap
    )

    def _one(path: Path) -> BatchEntry:
        try:
            return BatchEntry(path, outcome=orchestrator.optimize(path, config))
        except OptimizerError as e:
            logger.error("optimization failed: %s - %s", path.name, e.message)
            return BatchEntry(path, error=e)
        except Exception as e:
            logger.exception("unexpected failure on %s", path.name)
            return BatchEntry(path, error=unexpected_error(e, path))

    report = BatchReport()
    rep.start_task("batch", "Optimize assets", total=len(unique))
    if max_concurrency > 1 and len(unique) > 1:
        with ThreadPoolExecutor(max_workers=max_concurrency) as pool:
            for entry in pool.map(_one, unique):
                report.entries.append(entry)
                rep.advance("batch", current_item=entry.asset_path.name)
    else:
        for path in unique:
            report.entries.append(_one(path))
            rep.advance("batch", current_item=path.name)
    rep.end_task(
        "batch",
        TaskStatus.SUCCESS if report.failure_count == 0 else TaskStatus.FAILED,
        assets=len(unique),
        failed=report.failure_count,
    )
    rep.status(
        "Batch summary: "
        + f"succeeded={report.success_count} failed={report.failure_count} "
        + f"original={report.total_original_bytes} final={report.total_final_bytes} "
        + f"reduction={report.reduction_percent:.1f}%"
    )
    return report


def write_report(report: BatchReport, path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(
        json.dumps(report.to_dict(), indent=2, sort_keys=True), encoding="utf-8"
    )
    get_logger().info("Report written: %s", out)
    return out
