from .models import AssetKind, BinaryChunk, Invalid, Valid, ValidationOutcome
from .validator import FormatError, inspect_glb, iter_chunks, validate_asset

__all__ = [
    "AssetKind",
    "BinaryChunk",
    "Invalid",
    "Valid",
    "ValidationOutcome",
    "FormatError",
    "inspect_glb",
    "iter_chunks",
    "validate_asset",
]
