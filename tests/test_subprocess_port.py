"""SubprocessTransformPort against a small stand-in tool script."""
import json
import sys
import textwrap
from pathlib import Path

import pytest

from gltfopt.errors import (
    E_TRANSFORM,
    E_TRANSFORM_TIMEOUT,
    E_TRANSFORM_TOOL,
    TransformError,
)
from gltfopt.pipeline import (
    Stage,
    StageRunner,
    SubprocessTransformPort,
    TransformPort,
)

IN = Path("in.glb")
OUT = Path("out.glb")


def _tool(tmp: Path, body: str) -> tuple[str, ...]:
    script = tmp / "fake_tool.py"
    script.write_text(
        "import sys, time\n"
        "sub, src, dst, *flags = sys.argv[1:]\n" + textwrap.dedent(body),
        encoding="utf-8",
    )
    return (sys.executable, str(script))


def test_is_a_transform_port():
    assert isinstance(SubprocessTransformPort(), TransformPort)


def test_default_command_is_gltf_transform():
    args = SubprocessTransformPort().build_args(IN, OUT, "webp", {})
    assert args == ["npx", "gltf-transform", "webp", "in.glb", "out.glb"]


@pytest.mark.parametrize(
    "stage,params,flags",
    [
        ("optimize", {"compress_mesh": True}, ["--compress", "draco"]),
        ("optimize", {"compress_mesh": False}, []),
        ("resize", {"max_texture_size": 512}, ["--width", "512", "--height", "512"]),
        ("webp", {}, []),
    ],
)
def test_stage_flags(stage, params, flags):
    port = SubprocessTransformPort(command=("tool",))
    assert port.build_args(IN, OUT, stage, params) == [
        "tool",
        stage,
        "in.glb",
        "out.glb",
        *flags,
    ]


def test_unknown_stage_is_a_tool_error():
    with pytest.raises(TransformError) as ei:
        SubprocessTransformPort().build_args(IN, OUT, "draco", {})
    assert ei.value.code == E_TRANSFORM_TOOL


def test_success_writes_output(tmp_path: Path):
    cmd = _tool(
        tmp_path,
        """
        import json
        with open(dst, "w") as f:
            json.dump({"sub": sub, "src": src, "flags": flags}, f)
        """,
    )
    src = tmp_path / "a.glb"
    src.write_bytes(b"x")
    dst = tmp_path / "b.glb"
    SubprocessTransformPort(command=cmd).invoke(
        src, dst, "resize", {"max_texture_size": 64}
    )
    seen = json.loads(dst.read_text())
    assert seen == {
        "sub": "resize",
        "src": str(src),
        "flags": ["--width", "64", "--height", "64"],
    }


def test_nonzero_exit_carries_stderr(tmp_path: Path):
    cmd = _tool(
        tmp_path,
        """
        sys.stderr.write("draco encoder crashed")
        sys.exit(3)
        """,
    )
    with pytest.raises(TransformError) as ei:
        SubprocessTransformPort(command=cmd).invoke(
            tmp_path / "a.glb", tmp_path / "b.glb", "optimize", {}
        )
    err = ei.value
    assert err.code == E_TRANSFORM
    assert err.context["returncode"] == 3
    assert "draco encoder crashed" in err.context["stderr"]


def test_timeout(tmp_path: Path):
    cmd = _tool(tmp_path, "time.sleep(30)\n")
    port = SubprocessTransformPort(command=cmd, timeout=0.5)
    with pytest.raises(TransformError) as ei:
        port.invoke(tmp_path / "a.glb", tmp_path / "b.glb", "webp", {})
    assert ei.value.code == E_TRANSFORM_TIMEOUT


def test_missing_tool(tmp_path: Path):
    port = SubprocessTransformPort(command=(str(tmp_path / "no-such-tool"),))
    with pytest.raises(TransformError) as ei:
        port.invoke(tmp_path / "a.glb", tmp_path / "b.glb", "webp", {})
    assert ei.value.code == E_TRANSFORM_TOOL


def test_undecodable_stderr_is_still_a_transform_error(tmp_path: Path):
    cmd = _tool(
        tmp_path,
        """
        sys.stderr.buffer.write(b"\\xff\\xfe bad bytes")
        sys.exit(1)
        """,
    )
    with pytest.raises(TransformError) as ei:
        SubprocessTransformPort(command=cmd).invoke(
            tmp_path / "a.glb", tmp_path / "b.glb", "webp", {}
        )
    assert ei.value.code == E_TRANSFORM
    assert "bad bytes" in ei.value.context["stderr"]


def test_runner_reports_failed_optional_stage_with_binary_output(tmp_path: Path):
    cmd = _tool(
        tmp_path,
        """
        open(dst, "wb").write(b"half")
        sys.stdout.buffer.write(b"\\x80\\x81")
        sys.exit(2)
        """,
    )
    src = tmp_path / "a.glb"
    src.write_bytes(b"x")
    dst = tmp_path / "b.glb"
    res = StageRunner(SubprocessTransformPort(command=cmd)).run(
        Stage("resize"), src, dst, {"max_texture_size": 64}
    )
    assert not res.ok
    assert res.error.context["returncode"] == 2
    assert not dst.exists()
