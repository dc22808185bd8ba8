"""Recursive lookup of candidate assets under a models directory."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List


def _matches(rel: str, patterns: Iterable[str]) -> bool:
    # rel starts with "/" so "**/x" patterns also match top-level entries.
    return any(fnmatch(rel, p) for p in patterns)


def find_assets(
    root: str | Path,
    include: Iterable[str] = ("**/*.gltf", "**/*.glb"),
    exclude: Iterable[str] = (),
) -> List[Path]:
    base = Path(root)
    if not base.is_dir():
        raise FileNotFoundError(base)
    include = list(include)
    exclude = list(exclude)
    found: List[Path] = []
    for p in base.rglob("*"):
        if not p.is_file():
            continue
        rel = "/" + p.relative_to(base).as_posix()
        if _matches(rel, include) and not _matches(rel, exclude):
            found.append(p)
    return sorted(found)


__all__ = ["find_assets"]
