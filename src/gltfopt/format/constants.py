"""glTF container constants."""

from __future__ import annotations

GLB_MAGIC = b"glTF"
GLB_VERSION = 2
GLB_HEADER_SIZE = 12
GLB_CHUNK_HEADER_SIZE = 8

CHUNK_JSON = b"JSON"
CHUNK_BIN = b"BIN\x00"

SUPPORTED_GLTF_VERSIONS = ("2.0",)

GLTF_SUFFIX = ".gltf"
GLB_SUFFIX = ".glb"

# Reason strings surfaced through ValidationOutcome.reason.
R_NOT_FOUND = "file not found"
R_EMPTY = "empty file"
R_TOO_SMALL = "too small"
R_BAD_MAGIC = "bad magic"
R_BAD_CONTAINER_VERSION = "unsupported container version"
R_LENGTH_MISMATCH = "declared length mismatch"
R_TRUNCATED_HEADER = "truncated chunk header"
R_TRUNCATED_PAYLOAD = "truncated chunk payload"
R_NO_JSON_CHUNK = "no JSON chunk"
R_MISSING_VERSION = "missing asset.version"
