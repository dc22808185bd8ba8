"""Value types produced by the format validator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from .constants import GLB_SUFFIX, GLTF_SUFFIX


class AssetKind(Enum):
    JSON_CONTAINER = GLTF_SUFFIX
    BINARY_CONTAINER = GLB_SUFFIX

    @classmethod
    def from_path(cls, path: str | Path) -> Optional["AssetKind"]:
        suffix = Path(path).suffix.lower()
        for kind in cls:
            if kind.value == suffix:
                return kind
        return None


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    valid: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


def Valid() -> ValidationOutcome:  # noqa: N802
    return ValidationOutcome(True)


def Invalid(reason: str) -> ValidationOutcome:  # noqa: N802
    return ValidationOutcome(False, reason)


@dataclass(frozen=True, slots=True)
class BinaryChunk:
    length: int
    type_tag: bytes
    payload_offset: int

    @property
    def type_name(self) -> str:
        return self.type_tag.rstrip(b"\x00").decode("ascii", "replace")


__all__ = [
    "AssetKind",
    "ValidationOutcome",
    "Valid",
    "Invalid",
    "BinaryChunk",
]
