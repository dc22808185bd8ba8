"""On-disk naming conventions for working copies and backups."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from ..format.constants import GLTF_SUFFIX

__all__ = [
    "TEMP_MARKER",
    "BACKUP_SUFFIX",
    "SIBLING_BUFFER_NAME",
    "OPTIMIZED_BUFFER_SUFFIX",
    "temp_path",
    "backup_path",
    "sibling_buffer_path",
    "optimized_buffer_path",
    "referenced_buffer",
    "model_size",
    "remove_if_exists",
    "remove_temp",
]

TEMP_MARKER = ".gltfopt-stage"
BACKUP_SUFFIX = "-original"
SIBLING_BUFFER_NAME = "scene.bin"
OPTIMIZED_BUFFER_SUFFIX = ".optimized.bin"


def temp_path(asset: Path, stage_index: int) -> Path:
    """``dir/model.glb`` -> ``dir/model.gltfopt-stage<N>.glb``."""
    return asset.with_name(f"{asset.stem}{TEMP_MARKER}{stage_index}{asset.suffix}")


def backup_path(asset: Path) -> Path:
    return asset.with_name(f"{asset.stem}{BACKUP_SUFFIX}{asset.suffix}")


def sibling_buffer_path(asset: Path) -> Path:
    return asset.parent / SIBLING_BUFFER_NAME


def optimized_buffer_path(asset: Path) -> Path:
    """Stable name for the buffer of a committed .gltf result."""
    return asset.with_name(f"{asset.stem}{OPTIMIZED_BUFFER_SUFFIX}")


def referenced_buffer(asset: Path) -> Optional[Path]:
    """File named by ``buffers[0].uri`` of a .gltf; None if embedded or absent."""
    if asset.suffix.lower() != GLTF_SUFFIX or not asset.is_file():
        return None
    try:
        doc = json.loads(asset.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    buffers = doc.get("buffers") if isinstance(doc, dict) else None
    if not (isinstance(buffers, list) and buffers and isinstance(buffers[0], dict)):
        return None
    uri = buffers[0].get("uri")
    if not isinstance(uri, str) or not uri or uri.startswith("data:"):
        return None
    return asset.parent / unquote(uri)


def model_size(asset: Path) -> int:
    """Main file size plus, for .gltf, its external buffer.

    The buffer named by the document wins; otherwise the first of
    ``<stem>.bin`` and ``scene.bin`` that exists is counted.
    """
    total = asset.stat().st_size if asset.exists() else 0
    if asset.suffix.lower() == GLTF_SUFFIX:
        for candidate in (
            referenced_buffer(asset),
            asset.with_suffix(".bin"),
            sibling_buffer_path(asset),
        ):
            if candidate is not None and candidate.is_file():
                total += candidate.stat().st_size
                break
    return total


def remove_if_exists(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def remove_temp(temp: Path, keep_buffer: Optional[Path] = None) -> bool:
    """Remove a stage temp file and, for .gltf, the buffer written beside it.

    ``keep_buffer`` is left alone when it is that buffer.
    """
    removed = remove_if_exists(temp)
    if temp.suffix.lower() == GLTF_SUFFIX:
        buffer = temp.with_suffix(".bin")
        if buffer != keep_buffer:
            removed = remove_if_exists(buffer) or removed
    return removed
