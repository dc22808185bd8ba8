"""Transform port: the boundary to the external transformation tool.

A port turns ``input_path`` into ``output_path`` for one named stage. It
returns ``None`` on success and raises :class:`TransformError` on failure,
including when its time budget runs out. It may leave a partial output
behind on failure; the stage runner removes it.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Protocol, Sequence, runtime_checkable

from ..errors import E_TRANSFORM_TIMEOUT, E_TRANSFORM_TOOL, transform_error
from ..logging import get_logger

__all__ = [
    "TransformPort",
    "SubprocessTransformPort",
    "DEFAULT_TOOL_COMMAND",
    "DEFAULT_TIMEOUT_SECONDS",
]

DEFAULT_TOOL_COMMAND = ("npx", "gltf-transform")
DEFAULT_TIMEOUT_SECONDS = 600.0

_STDERR_TAIL = 2000


@runtime_checkable
class TransformPort(Protocol):
    def invoke(
        self,
        input_path: Path,
        output_path: Path,
        stage_name: str,
        params: Mapping[str, Any],
    ) -> None: ...


def _optimize_flags(params: Mapping[str, Any]) -> List[str]:
    return ["--compress", "draco"] if params.get("compress_mesh") else []


def _resize_flags(params: Mapping[str, Any]) -> List[str]:
    size = str(int(params["max_texture_size"]))
    return ["--width", size, "--height", size]


def _no_flags(params: Mapping[str, Any]) -> List[str]:
    return []


# stage name -> (tool subcommand, flag builder)
_STAGE_COMMANDS = {
    "optimize": ("optimize", _optimize_flags),
    "resize": ("resize", _resize_flags),
    "webp": ("webp", _no_flags),
}


@dataclass(slots=True)
class SubprocessTransformPort:
    """Runs ``gltf-transform <command> <in> <out> [flags]`` as a child process."""

    command: Sequence[str] = DEFAULT_TOOL_COMMAND
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS

    def build_args(
        self,
        input_path: Path,
        output_path: Path,
        stage_name: str,
        params: Mapping[str, Any],
    ) -> List[str]:
        try:
            subcommand, flags = _STAGE_COMMANDS[stage_name]
        except KeyError:
            raise transform_error(
                f"no tool command for stage '{stage_name}'",
                code=E_TRANSFORM_TOOL,
                context={"stage": stage_name},
            ) from None
        return [
            *self.command,
            subcommand,
            str(input_path),
            str(output_path),
            *flags(params),
        ]

    def invoke(
        self,
        input_path: Path,
        output_path: Path,
        stage_name: str,
        params: Mapping[str, Any],
    ) -> None:
        args = self.build_args(input_path, output_path, stage_name, params)
        ctx = {"stage": stage_name, "args": args}
        get_logger("port").debug("exec: %s", " ".join(args))
        try:
            subprocess.run(
                args,
                check=True,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise transform_error(
                f"{stage_name} timed out after {self.timeout}s",
                code=E_TRANSFORM_TIMEOUT,
                context=ctx,
            ) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()[-_STDERR_TAIL:]
            raise transform_error(
                f"{stage_name} exited with status {e.returncode}",
                context={**ctx, "returncode": e.returncode, "stderr": stderr},
            ) from e
        except OSError as e:
            raise transform_error(
                f"cannot launch transform tool: {e}",
                code=E_TRANSFORM_TOOL,
                context=ctx,
            ) from e
