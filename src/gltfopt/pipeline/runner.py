"""Single-stage execution against a transform port."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from ..errors import TransformError, transform_error
from ..logging import get_logger
from .models import Stage
from .paths import remove_temp
from .port import TransformPort

__all__ = ["RunResult", "StageRunner"]


@dataclass(frozen=True, slots=True)
class RunResult:
    output_path: Optional[Path] = None
    error: Optional[TransformError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StageRunner:
    """Runs one stage; on failure nothing is left at the output path."""

    def __init__(self, port: TransformPort):
        self.port = port
        self._log = get_logger("runner")

    def run(
        self,
        stage: Stage,
        input_path: Path,
        output_path: Path,
        params: Mapping[str, Any],
    ) -> RunResult:
        if Path(input_path) == Path(output_path):
            raise ValueError("stage output must differ from its input")
        try:
            self.port.invoke(input_path, output_path, stage.name, params)
            if not output_path.is_file():
                raise transform_error(
                    f"{stage.name} reported success but wrote no output",
                    context={"stage": stage.name, "output": str(output_path)},
                )
        except TransformError as e:
            return self._fail(output_path, e)
        except OSError as e:
            return self._fail(
                output_path,
                transform_error(
                    f"{stage.name} I/O failure: {e}",
                    context={"stage": stage.name},
                ),
            )
        return RunResult(output_path=output_path)

    def _fail(self, output_path: Path, error: TransformError) -> RunResult:
        if remove_temp(output_path):
            self._log.debug("removed partial output %s", output_path.name)
        return RunResult(error=error)
