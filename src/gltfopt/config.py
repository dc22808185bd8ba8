"""Configuration loading (JSON/YAML/package.json) for gltfopt."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import config_error
from .pipeline.models import StageConfig
from .pipeline.port import DEFAULT_TIMEOUT_SECONDS

__all__ = [
    "OptimizerConfig",
    "CONFIG_FILE_NAMES",
    "PACKAGE_JSON_SECTION",
    "default_config",
    "find_config_file",
    "load_config",
]

CONFIG_FILE_NAMES = (
    "gltf-optimizer.config.json",
    ".gltf-optimizer.json",
    "gltf-optimizer.config.yaml",
    "package.json",
)
PACKAGE_JSON_SECTION = "gltf-optimizer"

_DEFAULT_OPTIONS: Dict[str, Any] = {
    "compress_mesh": True,
    "resize_textures": True,
    "max_texture_size": 1024,
    "backup_original": True,
}

# camelCase keys found in existing config files -> field names
_ALIASES = {
    "modelsDir": "models_dir",
    "excludePatterns": "exclude_patterns",
    "includePatterns": "include_patterns",
    "parallelProcessing": "parallel_processing",
    "maxConcurrency": "max_concurrency",
    "logLevel": "log_level",
    "generateReport": "generate_report",
    "reportFormat": "report_format",
    "transformTimeout": "transform_timeout",
    "compressDraco": "compress_mesh",
    "compressMesh": "compress_mesh",
    "resizeTextures": "resize_textures",
    "maxTextureSize": "max_texture_size",
    "backupOriginal": "backup_original",
}


@dataclass(slots=True)
class OptimizerConfig:
    models_dir: Path = Path("./models")
    options: StageConfig = field(
        default_factory=lambda: StageConfig(**_DEFAULT_OPTIONS)
    )
    exclude_patterns: List[str] = field(
        default_factory=lambda: [
            "**/node_modules/**",
            "**/*.backup.*",
            "**/*-original.*",
            "**/*.gltfopt-stage*",
        ]
    )
    include_patterns: List[str] = field(
        default_factory=lambda: ["**/*.gltf", "**/*.glb"]
    )
    parallel_processing: bool = False
    max_concurrency: int = 4
    log_level: str = "info"
    generate_report: bool = False
    report_format: str = "json"
    transform_timeout: float = DEFAULT_TIMEOUT_SECONDS
    source: Optional[Path] = None


def default_config() -> OptimizerConfig:
    return OptimizerConfig()


def _normalize(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_ALIASES.get(k, k): v for k, v in data.items()}


def find_config_file(search_dir: Path) -> Optional[Path]:
    for name in CONFIG_FILE_NAMES:
        candidate = search_dir / name
        if not candidate.is_file():
            continue
        if name == "package.json" and not _has_package_section(candidate):
            continue
        return candidate
    return None


def _has_package_section(path: Path) -> bool:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    return isinstance(data, dict) and PACKAGE_JSON_SECTION in data


def _read_user_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in {".yaml", ".yml"}:
            data: Any = yaml.safe_load(text)
            if data is None:
                data = {}
        else:
            data = json.loads(text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise config_error(
            f"cannot read configuration {path}: {e}", {"path": str(path)}
        ) from e
    if path.name == "package.json" and isinstance(data, dict):
        data = data.get(PACKAGE_JSON_SECTION, {})
    if not isinstance(data, dict):
        raise config_error(
            "root of configuration must be an object", {"path": str(path)}
        )
    return data


def _merge(user: Dict[str, Any], source: Optional[Path]) -> OptimizerConfig:
    base = default_config()
    data = _normalize(user)
    raw_options = data.pop("options", None)
    if raw_options is None:
        raw_options = {}
    if not isinstance(raw_options, dict):
        raise config_error("'options' must be an object")
    options = {**_DEFAULT_OPTIONS, **_normalize(raw_options)}
    unknown = set(options) - set(_DEFAULT_OPTIONS)
    if unknown:
        raise config_error(f"unknown options: {sorted(unknown)}")
    try:
        base.options = StageConfig(**options)
    except (TypeError, ValueError) as e:
        raise config_error(f"invalid options: {e}") from e

    for key, value in data.items():
        if key not in OptimizerConfig.__dataclass_fields__ or key == "source":
            continue
        try:
            if key == "models_dir" and value is not None:
                value = Path(value)
            elif key == "max_concurrency":
                value = int(value)
            elif key == "transform_timeout":
                value = float(value)
        except (TypeError, ValueError) as e:
            raise config_error(f"invalid value for {key}: {e}") from e
        setattr(base, key, value)
    if base.max_concurrency < 1:
        raise config_error("max_concurrency must be >= 1")
    if base.report_format != "json":
        raise config_error(
            f"unsupported report format: {base.report_format}"
        )
    base.source = source
    return base


def load_config(
    path: str | Path | None = None, *, search_dir: str | Path | None = None
) -> OptimizerConfig:
    """Load a configuration file merged over the defaults.

    With no ``path`` the well-known file names are searched in
    ``search_dir`` (default: cwd); defaults are returned when none exist.
    """
    if path is not None:
        p = Path(path)
        if not p.is_file():
            raise config_error(f"configuration not found: {p}")
    else:
        p = find_config_file(Path(search_dir) if search_dir else Path.cwd())
        if p is None:
            return default_config()
    return _merge(_read_user_config(p), p)
