from pathlib import Path

import pytest

from glb_helper import write_gltf
from gltfopt.format import validate_asset


def test_valid_without_buffers(tmp_path: Path):
    assert validate_asset(write_gltf(tmp_path / "scene.gltf")).valid


def test_valid_with_existing_buffer(tmp_path: Path):
    (tmp_path / "scene.bin").write_bytes(b"\x00" * 4)
    p = write_gltf(tmp_path / "scene.gltf", buffer_uri="scene.bin")
    assert validate_asset(p).valid


def test_buffer_in_subdirectory(tmp_path: Path):
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "my mesh.bin").write_bytes(b"\x00" * 4)
    p = write_gltf(tmp_path / "scene.gltf", buffer_uri="data/my%20mesh.bin")
    assert validate_asset(p).valid


def test_missing_buffer_names_uri(tmp_path: Path):
    p = write_gltf(tmp_path / "scene.gltf", buffer_uri="gone.bin")
    out = validate_asset(p)
    assert not out.valid
    assert out.reason == "missing binary file: gone.bin"


def test_embedded_data_uri_is_accepted(tmp_path: Path):
    uri = "data:application/octet-stream;base64,AAAAAA=="
    assert validate_asset(write_gltf(tmp_path / "s.gltf", buffer_uri=uri)).valid


def test_buffer_without_uri_is_accepted(tmp_path: Path):
    doc = {"asset": {"version": "2.0"}, "buffers": [{"byteLength": 4}]}
    assert validate_asset(write_gltf(tmp_path / "s.gltf", doc)).valid


@pytest.mark.parametrize(
    "doc",
    [
        {},
        {"asset": {}},
        {"asset": "2.0"},
        {"scenes": [], "nodes": [{"name": "n" * 10000}]},
    ],
)
def test_missing_version_is_invalid_regardless_of_size(tmp_path: Path, doc):
    out = validate_asset(write_gltf(tmp_path / "s.gltf", doc))
    assert out.reason == "missing asset.version"


def test_top_level_array_is_invalid(tmp_path: Path):
    p = tmp_path / "s.gltf"
    p.write_text("[1, 2, 3]", encoding="utf-8")
    assert validate_asset(p).reason == "missing asset.version"


def test_wrong_version(tmp_path: Path):
    p = write_gltf(tmp_path / "s.gltf", {"asset": {"version": "1.0"}})
    assert validate_asset(p).reason == "unsupported glTF version: 1.0"


def test_invalid_json(tmp_path: Path):
    p = tmp_path / "s.gltf"
    p.write_text("{ asset: ", encoding="utf-8")
    out = validate_asset(p)
    assert not out.valid
    assert out.reason.startswith("invalid JSON")


def test_empty_and_missing(tmp_path: Path):
    empty = tmp_path / "e.gltf"
    empty.write_bytes(b"")
    assert validate_asset(empty).reason == "empty file"
    assert validate_asset(tmp_path / "m.gltf").reason == "file not found"


def test_directory_instead_of_file_is_invalid(tmp_path: Path):
    d = tmp_path / "dir.gltf"
    d.mkdir()
    out = validate_asset(d)
    assert not out.valid
    assert out.reason.startswith("read error")
