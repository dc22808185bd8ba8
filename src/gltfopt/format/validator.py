"""glTF asset validation for both containers.

Public functions:
- validate_asset(path) -> ValidationOutcome  (never raises)
- iter_chunks(data) -> Iterator[BinaryChunk]
- parse_glb_header(data) -> dict
- inspect_glb(path) -> dict

Binary (.glb) layout: a 12 byte header ``magic | version | length`` (u32 LE
each) followed by back-to-back chunks ``length | type | payload``. Checks
run in a fixed order and the first failure decides the reason.
"""

from __future__ import annotations

import json
import struct
from pathlib import Path
from typing import Any, Dict, Iterator, List
from urllib.parse import unquote

from .constants import (
    CHUNK_BIN,
    CHUNK_JSON,
    GLB_CHUNK_HEADER_SIZE,
    GLB_HEADER_SIZE,
    GLB_MAGIC,
    GLB_VERSION,
    R_BAD_CONTAINER_VERSION,
    R_BAD_MAGIC,
    R_EMPTY,
    R_LENGTH_MISMATCH,
    R_MISSING_VERSION,
    R_NO_JSON_CHUNK,
    R_NOT_FOUND,
    R_TOO_SMALL,
    R_TRUNCATED_HEADER,
    R_TRUNCATED_PAYLOAD,
    SUPPORTED_GLTF_VERSIONS,
)
from .models import AssetKind, BinaryChunk, Invalid, Valid, ValidationOutcome

__all__ = [
    "FormatError",
    "validate_asset",
    "validate_glb_bytes",
    "validate_gltf_document",
    "iter_chunks",
    "parse_glb_header",
    "inspect_glb",
]


class FormatError(ValueError):
    """Raised by the low-level parsers; carries the user-facing reason."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def _u32(data: bytes, offset: int) -> int:
    return struct.unpack_from("<I", data, offset)[0]


def parse_glb_header(data: bytes) -> Dict[str, Any]:
    if len(data) < GLB_HEADER_SIZE:
        raise FormatError(R_TOO_SMALL)
    magic, version, length = struct.unpack_from("<4sII", data, 0)
    return {"magic": magic, "version": version, "length": length}


def _check_glb_header(data: bytes) -> None:
    header = parse_glb_header(data)
    if header["magic"] != GLB_MAGIC:
        raise FormatError(R_BAD_MAGIC)
    if header["version"] != GLB_VERSION:
        raise FormatError(R_BAD_CONTAINER_VERSION)
    if header["length"] != len(data):
        raise FormatError(R_LENGTH_MISMATCH)


def iter_chunks(data: bytes) -> Iterator[BinaryChunk]:
    """Yield chunks after the header; truncation raises FormatError."""
    total = len(data)
    offset = GLB_HEADER_SIZE
    while offset < total:
        if total - offset < GLB_CHUNK_HEADER_SIZE:
            raise FormatError(R_TRUNCATED_HEADER)
        length = _u32(data, offset)
        type_tag = bytes(data[offset + 4 : offset + 8])
        payload_offset = offset + GLB_CHUNK_HEADER_SIZE
        if total - payload_offset < length:
            raise FormatError(R_TRUNCATED_PAYLOAD)
        yield BinaryChunk(length, type_tag, payload_offset)
        offset = payload_offset + length


def _check_asset_version(doc: Any) -> None:
    asset = doc.get("asset") if isinstance(doc, dict) else None
    version = asset.get("version") if isinstance(asset, dict) else None
    if version is None:
        raise FormatError(R_MISSING_VERSION)
    if version not in SUPPORTED_GLTF_VERSIONS:
        raise FormatError(f"unsupported glTF version: {version}")


def _check_json_chunk(data: bytes, chunk: BinaryChunk) -> None:
    raw = data[chunk.payload_offset : chunk.payload_offset + chunk.length]
    try:
        doc = json.loads(bytes(raw).decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise FormatError(f"invalid JSON chunk: {e}") from e
    _check_asset_version(doc)


def validate_glb_bytes(data: bytes) -> ValidationOutcome:
    try:
        _check_glb_header(data)
        has_json = False
        for chunk in iter_chunks(data):
            if chunk.type_tag == CHUNK_JSON:
                _check_json_chunk(data, chunk)
                has_json = True
            # BIN chunks are accepted as-is; unknown tags are skipped.
        if not has_json:
            raise FormatError(R_NO_JSON_CHUNK)
    except FormatError as e:
        return Invalid(e.reason)
    return Valid()


def validate_gltf_document(text: str, base_dir: Path) -> ValidationOutcome:
    try:
        doc = json.loads(text)
    except (ValueError, RecursionError) as e:
        return Invalid(f"invalid JSON: {e}")
    try:
        _check_asset_version(doc)
    except FormatError as e:
        return Invalid(e.reason)
    buffers = doc.get("buffers")
    if isinstance(buffers, list) and buffers and isinstance(buffers[0], dict):
        uri = buffers[0].get("uri")
        # data: URIs embed the buffer and reference no file.
        if isinstance(uri, str) and uri and not uri.startswith("data:"):
            if not (base_dir / unquote(uri)).exists():
                return Invalid(f"missing binary file: {uri}")
    return Valid()


def _read_asset(path: Path) -> bytes:
    if not path.exists():
        raise FormatError(R_NOT_FOUND)
    data = path.read_bytes()
    if not data:
        raise FormatError(R_EMPTY)
    return data


def validate_asset(path: str | Path) -> ValidationOutcome:
    """Validate a .gltf or .glb file without modifying anything on disk."""
    p = Path(path)
    kind = AssetKind.from_path(p)
    if kind is None:
        return Invalid(f"unsupported file extension: {p.suffix or '<none>'}")
    try:
        data = _read_asset(p)
        if kind is AssetKind.BINARY_CONTAINER:
            return validate_glb_bytes(data)
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            return Invalid(f"invalid JSON: {e}")
        return validate_gltf_document(text, p.parent)
    except FormatError as e:
        return Invalid(e.reason)
    except OSError as e:
        return Invalid(f"read error: {e}")


def inspect_glb(path: str | Path) -> Dict[str, Any]:
    """Describe the header and chunk table of a .glb file."""
    p = Path(path)
    data = p.read_bytes()
    info: Dict[str, Any] = {"file": str(p), "file_size": len(data)}
    chunks: List[Dict[str, Any]] = []
    issues: List[str] = []
    try:
        header = parse_glb_header(data)
        info["header"] = {
            "magic_ok": header["magic"] == GLB_MAGIC,
            "version": header["version"],
            "declared_length": header["length"],
        }
        for chunk in iter_chunks(data):
            chunks.append(
                {
                    "type": chunk.type_name,
                    "length": chunk.length,
                    "payload_offset": chunk.payload_offset,
                    "known": chunk.type_tag in (CHUNK_JSON, CHUNK_BIN),
                }
            )
    except FormatError as e:
        issues.append(e.reason)
    outcome = validate_glb_bytes(data)
    if not outcome.valid and outcome.reason not in issues:
        issues.append(outcome.reason)
    info["chunks"] = chunks
    info["issues"] = issues
    info["valid"] = outcome.valid
    return info
