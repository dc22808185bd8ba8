"""Builders for glTF test assets and a scriptable transform port.

Usage:
    from glb_helper import build_glb, write_glb_of_size, StubPort
"""

from __future__ import annotations

import json
import struct
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from gltfopt.errors import transform_error

MIN_DOC = {"asset": {"version": "2.0"}}


def pad4(data: bytes, fill: bytes = b" ") -> bytes:
    return data + fill * ((-len(data)) % 4)


def chunk(tag: bytes, payload: bytes) -> bytes:
    return struct.pack("<I", len(payload)) + tag + payload


def json_chunk(doc: Any = None) -> bytes:
    text = json.dumps(MIN_DOC if doc is None else doc).encode("utf-8")
    return chunk(b"JSON", pad4(text))


def bin_chunk(payload: bytes = b"\x00" * 8) -> bytes:
    return chunk(b"BIN\x00", pad4(payload, b"\x00"))


def build_glb(
    *chunks: bytes,
    magic: bytes = b"glTF",
    version: int = 2,
    declared_length: Optional[int] = None,
) -> bytes:
    body = b"".join(chunks)
    total = 12 + len(body)
    length = total if declared_length is None else declared_length
    return struct.pack("<4sII", magic, version, length) + body


def glb_of_size(total: int, fill: bytes = b"\x00") -> bytes:
    """Valid GLB of exactly ``total`` bytes (JSON chunk + padding BIN chunk)."""
    head = json_chunk()
    bin_len = total - 12 - len(head) - 8
    assert bin_len >= 0 and bin_len % 4 == 0
    data = build_glb(head, chunk(b"BIN\x00", fill * bin_len))
    assert len(data) == total
    return data


def write_glb_of_size(path: Path, total: int) -> bytes:
    data = glb_of_size(total)
    path.write_bytes(data)
    return data


def write_gltf(
    path: Path, doc: Optional[Dict[str, Any]] = None, buffer_uri: str | None = None
) -> Path:
    doc = dict(MIN_DOC if doc is None else doc)
    if buffer_uri is not None:
        doc["buffers"] = [{"uri": buffer_uri, "byteLength": 4}]
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


Action = Callable[[Path, Path], None]


def scale(factor_num: int, factor_den: int, fill: bytes) -> Action:
    """Stage that writes ``len(input) * num // den`` bytes of ``fill``."""

    def _act(src: Path, dst: Path) -> None:
        size = src.stat().st_size * factor_num // factor_den
        dst.write_bytes(fill * size)

    return _act


def emit_glb(total: int, fill: bytes = b"\x01") -> Action:
    """Stage that writes a valid GLB of ``total`` bytes."""

    def _act(src: Path, dst: Path) -> None:
        dst.write_bytes(glb_of_size(total, fill))

    return _act


def emit_gltf(payload: bytes) -> Action:
    """Stage that writes a .gltf plus the ``<output-stem>.bin`` it references."""

    def _act(src: Path, dst: Path) -> None:
        buffer = dst.with_suffix(".bin")
        buffer.write_bytes(payload)
        doc = dict(MIN_DOC, buffers=[{"uri": buffer.name, "byteLength": len(payload)}])
        dst.write_text(json.dumps(doc), encoding="utf-8")

    return _act


def copy_through(src: Path, dst: Path) -> None:
    dst.write_bytes(src.read_bytes())


def fail(src: Path, dst: Path) -> None:
    dst.write_bytes(b"partial")
    raise transform_error("stub failure", context={"input": str(src)})


class StubPort:
    """Transform port driven by per-stage actions (default: copy input)."""

    def __init__(self, **actions: Action):
        self.actions = actions
        self.calls: List[Tuple[str, Path, Path, Dict[str, Any]]] = []

    def invoke(self, input_path, output_path, stage_name, params) -> None:
        self.calls.append(
            (stage_name, Path(input_path), Path(output_path), dict(params))
        )
        self.actions.get(stage_name, copy_through)(
            Path(input_path), Path(output_path)
        )

    @property
    def stage_names(self) -> List[str]:
        return [c[0] for c in self.calls]
