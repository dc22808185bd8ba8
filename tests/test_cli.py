import json
from pathlib import Path

import pytest

from glb_helper import StubPort, emit_glb, write_glb_of_size
from gltfopt import cli


def test_validate_exit_codes(tmp_path: Path):
    good = tmp_path / "good.glb"
    write_glb_of_size(good, 1024)
    bad = tmp_path / "bad.glb"
    bad.write_bytes(b"GLTF" + b"\x00" * 20)
    assert cli.main(["-r", "silent", "validate", str(good)]) == 0
    assert cli.main(["-r", "silent", "validate", str(good), str(bad)]) == 1


def test_inspect_prints_json(tmp_path: Path, capsys):
    p = tmp_path / "m.glb"
    write_glb_of_size(p, 1024)
    assert cli.main(["-r", "silent", "inspect", str(p)]) == 0
    info = json.loads(capsys.readouterr().out)
    assert [c["type"] for c in info["chunks"]] == ["JSON", "BIN"]
    assert info["valid"] is True


def test_list_uses_models_dir(tmp_path: Path, capsys):
    write_glb_of_size(tmp_path / "a.glb", 1024)
    write_glb_of_size(tmp_path / "a-original.glb", 1024)
    rc = cli.main(
        ["-r", "silent", "list", "--models-dir", str(tmp_path), "--config",
         str(_config(tmp_path, {}))]
    )
    assert rc == 0
    assert capsys.readouterr().out.splitlines() == [str(tmp_path / "a.glb")]


def test_list_missing_models_dir_is_usage_error(tmp_path: Path):
    rc = cli.main(["-r", "silent", "list", "--models-dir", str(tmp_path / "none")])
    assert rc == 2


def test_bad_explicit_config_is_usage_error(tmp_path: Path):
    cfg = tmp_path / "bad.json"
    cfg.write_text("{", encoding="utf-8")
    rc = cli.main(["-r", "silent", "list", "--config", str(cfg)])
    assert rc == 2


def _config(tmp: Path, data: dict) -> Path:
    p = tmp / "gltf-optimizer.config.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


@pytest.fixture
def stub_port(monkeypatch):
    port = StubPort(optimize=emit_glb(1024))
    monkeypatch.setattr(cli, "SubprocessTransformPort", lambda **kw: port)
    return port


def test_optimize_with_flags_and_report(tmp_path: Path, stub_port):
    asset = tmp_path / "m.glb"
    write_glb_of_size(asset, 4096)
    report = tmp_path / "report.json"
    rc = cli.main(
        [
            "-r",
            "silent",
            "optimize",
            str(asset),
            "--config",
            str(_config(tmp_path, {})),
            "--no-compress",
            "--max-texture-size",
            "512",
            "--no-backup",
            "--report",
            str(report),
        ]
    )
    assert rc == 0
    assert stub_port.calls[0][3] == {"compress_mesh": False}
    assert stub_port.calls[1][3] == {"max_texture_size": 512}
    assert not (tmp_path / "m-original.glb").exists()
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["summary"]["succeeded"] == 1


def test_optimize_scans_models_dir(tmp_path: Path, stub_port):
    models = tmp_path / "models"
    models.mkdir()
    write_glb_of_size(models / "a.glb", 4096)
    write_glb_of_size(models / "b.glb", 4096)
    cfg = _config(tmp_path, {"modelsDir": str(models), "options": {"resizeTextures": False}})
    rc = cli.main(["-r", "silent", "optimize", "--config", str(cfg)])
    assert rc == 0
    assert stub_port.stage_names == ["optimize", "webp"] * 2
    assert (models / "a-original.glb").stat().st_size == 4096


def test_optimize_reports_failures(tmp_path: Path, stub_port):
    bad = tmp_path / "bad.glb"
    bad.write_bytes(b"\x00" * 64)
    rc = cli.main(
        ["-r", "silent", "optimize", str(bad), "--config", str(_config(tmp_path, {}))]
    )
    assert rc == 1
    assert stub_port.calls == []


def test_optimize_nothing_found(tmp_path: Path, stub_port):
    empty = tmp_path / "empty"
    empty.mkdir()
    rc = cli.main(
        ["-r", "silent", "optimize", "--models-dir", str(empty), "--config",
         str(_config(tmp_path, {}))]
    )
    assert rc == 0


def test_json_reporter_output(tmp_path: Path, capsys):
    p = tmp_path / "m.glb"
    write_glb_of_size(p, 1024)
    assert cli.main(["-r", "json", "validate", str(p)]) == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert lines[-1]["message"].startswith("Validation summary")
