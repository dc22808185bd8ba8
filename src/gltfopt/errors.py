"""Error definitions for gltfopt."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_VALIDATION = "E_VALIDATION"
E_MANDATORY_STAGE = "E_MANDATORY_STAGE"
E_OPTIONAL_STAGE = "E_OPTIONAL_STAGE"
E_REPLACE = "E_REPLACE"
E_TRANSFORM = "E_TRANSFORM"
E_TRANSFORM_TIMEOUT = "E_TRANSFORM_TIMEOUT"
E_TRANSFORM_TOOL = "E_TRANSFORM_TOOL"
E_CONFIG = "E_CONFIG"
E_UNEXPECTED = "E_UNEXPECTED"


@dataclass
class OptimizerError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class ValidationError(OptimizerError):
    """Pre-flight rejection of an asset; nothing on disk was touched."""

    @property
    def reason(self) -> str:
        return self.message


class TransformError(OptimizerError):
    """Raw failure reported by a transform port."""


class MandatoryStageFailure(OptimizerError):
    pass


class OptionalStageFailure(OptimizerError):
    @property
    def stage(self) -> str:
        return (self.context or {}).get("stage", "")


class ReplaceError(OptimizerError):
    """Backup or final swap failed.

    When the original was already deleted, ``context["working_copy"]`` names
    the file holding the optimized result.
    """


class ConfigError(OptimizerError):
    pass


def validation_error(reason: str, path: Any = None) -> ValidationError:
    ctx = {"path": str(path)} if path is not None else None
    return ValidationError(code=E_VALIDATION, message=reason, context=ctx)


def transform_error(
    message: str,
    *,
    code: str = E_TRANSFORM,
    context: Optional[Dict[str, Any]] = None,
) -> TransformError:
    return TransformError(code=code, message=message, context=context)


def mandatory_stage_failure(
    stage: str, cause: OptimizerError
) -> MandatoryStageFailure:
    return MandatoryStageFailure(
        code=E_MANDATORY_STAGE,
        message=f"mandatory stage '{stage}' failed: {cause.message}",
        context={"stage": stage, "cause": cause.to_dict()},
    )


def optional_stage_failure(
    stage: str, cause: OptimizerError
) -> OptionalStageFailure:
    return OptionalStageFailure(
        code=E_OPTIONAL_STAGE,
        message=f"optional stage '{stage}' skipped: {cause.message}",
        context={"stage": stage, "cause": cause.to_dict()},
    )


def replace_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> ReplaceError:
    return ReplaceError(code=E_REPLACE, message=message, context=context)


def config_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> ConfigError:
    return ConfigError(code=E_CONFIG, message=message, context=context)


def unexpected_error(exc: BaseException, path: Any = None) -> OptimizerError:
    """Wrap an exception outside the taxonomy so a batch can record it."""
    ctx: Dict[str, Any] = {"type": type(exc).__name__}
    if path is not None:
        ctx["path"] = str(path)
    return OptimizerError(code=E_UNEXPECTED, message=str(exc), context=ctx)


__all__ = [
    "OptimizerError",
    "ValidationError",
    "TransformError",
    "MandatoryStageFailure",
    "OptionalStageFailure",
    "ReplaceError",
    "ConfigError",
    "validation_error",
    "transform_error",
    "mandatory_stage_failure",
    "optional_stage_failure",
    "replace_error",
    "config_error",
    "unexpected_error",
    "E_VALIDATION",
    "E_MANDATORY_STAGE",
    "E_OPTIONAL_STAGE",
    "E_REPLACE",
    "E_TRANSFORM",
    "E_TRANSFORM_TIMEOUT",
    "E_TRANSFORM_TOOL",
    "E_CONFIG",
    "E_UNEXPECTED",
]
