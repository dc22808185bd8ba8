"""Staged optimization of a single asset with backup and final swap.

Sequence for one asset::

    validate -> optimize (mandatory) -> resize (optional, if enabled)
             -> webp (optional) -> backup + swap

Each stage writes a fresh temp file derived from the asset name and stage
index. A successful stage output becomes the working copy; a failed
optional stage leaves the previous working copy in place. The original
file is only touched during the final swap.

Default swap is delete-then-rename. A crash between the two steps leaves
the optimized result at its temp path (and the backup, if requested) but
nothing at the original path. ``atomic_swap=True`` renames over the
original instead, which closes that window where the filesystem supports
replace-on-rename.

A committed .gltf whose buffer still carries a temp name is relinked to
``<stem>.optimized.bin``. Cleanup never removes the buffer the asset on
disk currently references.
"""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ..errors import (
    ReplaceError,
    mandatory_stage_failure,
    optional_stage_failure,
    replace_error,
    validation_error,
)
from ..format import AssetKind, validate_asset
from ..logging import get_logger
from ..reporting import TaskStatus, get_reporter
from .models import PipelineOutcome, Stage, StageConfig, StageResult
from .paths import (
    TEMP_MARKER,
    backup_path,
    model_size,
    optimized_buffer_path,
    referenced_buffer,
    remove_if_exists,
    remove_temp,
    sibling_buffer_path,
    temp_path,
)
from .port import TransformPort
from .runner import StageRunner

__all__ = ["STAGES", "PipelineOrchestrator", "stage_params"]

STAGES = (
    Stage("optimize", mandatory=True, description="General optimization"),
    Stage("resize", description="Texture resize"),
    Stage("webp", description="WebP texture re-encode"),
)


def stage_params(stage: Stage, config: StageConfig) -> Optional[Dict[str, Any]]:
    """Port parameters for ``stage``; ``None`` means the stage is disabled."""
    if stage.name == "optimize":
        return {"compress_mesh": config.compress_mesh}
    if stage.name == "resize":
        if not config.resize_textures:
            return None
        return {"max_texture_size": config.max_texture_size}
    return {}


class PipelineOrchestrator:
    def __init__(self, port: TransformPort, *, atomic_swap: bool = False):
        self.runner = StageRunner(port)
        self.atomic_swap = atomic_swap
        self._log = get_logger("pipeline")

    def optimize(
        self, asset_path: str | Path, config: StageConfig
    ) -> PipelineOutcome:
        """Optimize one asset in place.

        Raises ValidationError before touching anything if the asset is
        rejected, and ReplaceError if the backup or the final swap fails.
        """
        asset = Path(asset_path)
        rep = get_reporter()
        rep.section(f"Optimize {asset.name}")

        verdict = validate_asset(asset)
        if not verdict.valid:
            self._log.error("invalid model %s: %s", asset.name, verdict.reason)
            raise validation_error(verdict.reason or "invalid", asset)
        self._log.debug("model is valid: %s", asset.name)

        outcome = PipelineOutcome(asset_path=asset)
        outcome.original_size_bytes = model_size(asset)
        outcome.final_size_bytes = outcome.original_size_bytes

        # one per stage plus the relinked .gltf written during commit
        temps = [temp_path(asset, i) for i in range(len(STAGES) + 1)]
        in_use = referenced_buffer(asset)
        for stale in temps:
            if remove_temp(stale, keep_buffer=in_use):
                self._log.warning("removed stale temp file %s", stale.name)

        # stranded working copy that must survive cleanup
        keep: Optional[Path] = None
        try:
            working = self._run_stages(asset, config, temps, outcome)
            if working is None:
                return outcome
            try:
                self._commit(asset, working, temps[-1], config, outcome)
            except ReplaceError as e:
                stranded = (e.context or {}).get("working_copy")
                keep = Path(stranded) if stranded else None
                raise
        finally:
            in_use = referenced_buffer(asset)
            for t in temps:
                if t != keep:
                    remove_temp(t, keep_buffer=in_use)

        rep.status(
            "Optimize summary: "
            + f"asset={asset.name} original={outcome.original_size_bytes} "
            + f"final={outcome.final_size_bytes} "
            + f"reduction={outcome.reduction_percent:.1f}% "
            + "applied="
            + (",".join(s.stage_name for s in outcome.stages if s.applied) or "-")
        )
        return outcome

    def _run_stages(
        self,
        asset: Path,
        config: StageConfig,
        temps: List[Path],
        outcome: PipelineOutcome,
    ) -> Optional[Path]:
        """Run every enabled stage; returns the final working copy.

        Returns ``None`` when the mandatory stage failed.
        """
        rep = get_reporter()
        working = asset
        for index, stage in enumerate(STAGES):
            params = stage_params(stage, config)
            if params is None:
                rep.verbose(f"{stage.name}: disabled")
                continue
            # unique per asset so concurrent batches don't collide
            task_id = f"stage.{stage.name}:{asset}"
            rep.start_task(task_id, stage.description or stage.name)
            input_bytes = working.stat().st_size
            result = self.runner.run(stage, working, temps[index], params)

            if not result.ok:
                if stage.mandatory:
                    cause = mandatory_stage_failure(stage.name, result.error)
                    rep.end_task(task_id, TaskStatus.FAILED)
                    self._log.error("%s: %s", asset.name, cause.message)
                    outcome.stages = [StageResult(stage.name, False, cause)]
                    return None
                cause = optional_stage_failure(stage.name, result.error)
                rep.end_task(task_id, TaskStatus.SKIPPED)
                self._log.warning("%s, continuing without it", cause.message)
                outcome.stages.append(StageResult(stage.name, False, cause))
                continue

            if working != asset:
                remove_temp(working)
            working = result.output_path
            rep.end_task(
                task_id,
                TaskStatus.SUCCESS,
                input_bytes=input_bytes,
                output_bytes=working.stat().st_size,
            )
            outcome.stages.append(StageResult(stage.name, True))
        return working

    def _commit(
        self,
        asset: Path,
        working: Path,
        relinked: Path,
        config: StageConfig,
        outcome: PipelineOutcome,
    ) -> None:
        outcome.final_size_bytes = model_size(working)

        if config.backup_original:
            self._backup_once(asset, backup_path(asset), required=True)

        if self.atomic_swap:
            try:
                os.replace(working, asset)
            except OSError as e:
                raise replace_error(
                    f"cannot replace {asset.name}: {e}",
                    context={"asset": str(asset)},
                ) from e
        else:
            try:
                asset.unlink()
            except OSError as e:
                raise replace_error(
                    f"cannot remove original {asset.name}: {e}",
                    context={"asset": str(asset)},
                ) from e
            try:
                os.replace(working, asset)
            except OSError as e:
                raise replace_error(
                    f"original removed but rename failed: {e}",
                    context={"asset": str(asset), "working_copy": str(working)},
                ) from e
        outcome.committed = True
        self._log.info("replaced %s", asset.name)

        if AssetKind.from_path(asset) is not AssetKind.JSON_CONTAINER:
            return
        self._relink_buffer(asset, relinked)
        if config.backup_original:
            buffer = sibling_buffer_path(asset)
            if buffer.exists():
                self._backup_once(buffer, backup_path(buffer), required=False)

    def _relink_buffer(self, asset: Path, staged: Path) -> None:
        """Move a buffer still named after a stage temp to a stable name.

        The tool writes ``<output-stem>.bin`` beside a .gltf output, so the
        committed document points into the temp namespace until relinked.
        """
        buffer = referenced_buffer(asset)
        if buffer is None or TEMP_MARKER not in buffer.name or not buffer.is_file():
            return
        target = optimized_buffer_path(asset)
        try:
            doc = json.loads(asset.read_text(encoding="utf-8"))
            doc["buffers"][0]["uri"] = quote(target.name)
            staged.write_text(json.dumps(doc, indent=2), encoding="utf-8")
            os.replace(buffer, target)
        except (OSError, ValueError) as e:
            remove_if_exists(staged)
            raise replace_error(
                f"cannot relink buffer of {asset.name}: {e}",
                context={"asset": str(asset), "buffer": str(buffer)},
            ) from e
        try:
            os.replace(staged, asset)
        except OSError as e:
            raise replace_error(
                f"buffer moved to {target.name} but relink failed: {e}",
                context={"asset": str(asset), "working_copy": str(staged)},
            ) from e
        self._log.debug("buffer of %s now %s", asset.name, target.name)

    def _backup_once(self, source: Path, target: Path, *, required: bool) -> None:
        """Copy ``source`` to ``target`` unless a backup is already there."""
        if target.exists():
            self._log.debug("backup exists, keeping %s", target.name)
            return
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            remove_if_exists(target)
            if required:
                raise replace_error(
                    f"backup of {source.name} failed: {e}",
                    context={"source": str(source), "backup": str(target)},
                ) from e
            self._log.warning("backup of %s failed: %s", source.name, e)
            return
        self._log.info("original backup saved as %s", target.name)
