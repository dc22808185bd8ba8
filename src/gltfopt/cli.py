"""Command line interface for gltfopt."""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path

from .api import inspect_asset, optimize_batch, validate_assets, write_report
from .config import OptimizerConfig, default_config, load_config
from .discover import find_assets
from .errors import ConfigError
from .logging import configure_logging, get_logger, step
from .pipeline import SubprocessTransformPort
from .reporting import get_reporter, make_reporter, set_reporter, set_verbosity


def _load_cli_config(args: argparse.Namespace) -> OptimizerConfig:
    explicit = getattr(args, "config", None)
    try:
        return load_config(explicit)
    except ConfigError as e:
        if explicit is not None:
            raise
        get_logger().warning("%s; using default configuration", e.message)
        return default_config()


def _validate_cmd(args: argparse.Namespace) -> int:
    results = validate_assets(args.paths)
    return 0 if all(o.valid for o in results.values()) else 1


def _inspect_cmd(args: argparse.Namespace) -> int:
    info = inspect_asset(args.path)
    get_reporter().flush()
    print(json.dumps(info, indent=2, sort_keys=True))
    return 0 if info["valid"] else 1


def _candidate_assets(args: argparse.Namespace, cfg: OptimizerConfig) -> list[Path]:
    if getattr(args, "paths", None):
        return [Path(p) for p in args.paths]
    models_dir = args.models_dir or cfg.models_dir
    step(f"scanning {models_dir}")
    return find_assets(models_dir, cfg.include_patterns, cfg.exclude_patterns)


def _list_cmd(args: argparse.Namespace) -> int:
    cfg = _load_cli_config(args)
    for p in _candidate_assets(args, cfg):
        print(p)
    return 0


def _optimize_cmd(args: argparse.Namespace) -> int:
    cfg = _load_cli_config(args)
    configure_logging(args.verbose, level=cfg.log_level)
    overrides = {}
    if args.no_compress:
        overrides["compress_mesh"] = False
    if args.no_resize:
        overrides["resize_textures"] = False
    if args.max_texture_size is not None:
        overrides["max_texture_size"] = args.max_texture_size
    if args.no_backup:
        overrides["backup_original"] = False
    stage_config = dataclasses.replace(cfg.options, **overrides)

    assets = _candidate_assets(args, cfg)
    if not assets:
        get_logger().warning("no glTF/GLB files found")
        return 0
    step(f"{len(assets)} file(s) selected")

    port = SubprocessTransformPort(
        timeout=args.timeout if args.timeout is not None else cfg.transform_timeout
    )
    concurrency = cfg.max_concurrency if cfg.parallel_processing else 1
    report = optimize_batch(
        assets, stage_config, port=port, max_concurrency=concurrency
    )
    report_path = args.report
    if report_path is None and cfg.generate_report:
        report_path = Path("gltf-optimizer-report.json")
    if report_path is not None:
        write_report(report, report_path)
    return 0 if report.failure_count == 0 else 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gltfopt", description="glTF/GLB validation and optimization"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    v = sub.add_parser("validate", help="Validate .gltf/.glb files")
    v.add_argument("paths", nargs="+", type=Path)
    v.set_defaults(func=_validate_cmd)

    i = sub.add_parser("inspect", help="Dump the chunk table of a .glb file")
    i.add_argument("path", type=Path)
    i.set_defaults(func=_inspect_cmd)

    ls = sub.add_parser("list", help="List assets found under the models dir")
    ls.add_argument("--models-dir", dest="models_dir", type=Path)
    ls.add_argument("--config", type=Path, help="Configuration file")
    ls.set_defaults(func=_list_cmd)

    o = sub.add_parser("optimize", help="Optimize assets in place")
    o.add_argument(
        "paths", nargs="*", type=Path, help="Assets (default: scan models dir)"
    )
    o.add_argument("--models-dir", dest="models_dir", type=Path)
    o.add_argument("--config", type=Path, help="Configuration file")
    o.add_argument(
        "--no-compress",
        dest="no_compress",
        action="store_true",
        help="Skip Draco mesh compression",
    )
    o.add_argument(
        "--no-resize",
        dest="no_resize",
        action="store_true",
        help="Skip texture resizing",
    )
    o.add_argument(
        "--max-texture-size",
        dest="max_texture_size",
        type=int,
        help="Texture size limit in pixels",
    )
    o.add_argument(
        "--no-backup",
        dest="no_backup",
        action="store_true",
        help="Do not keep a -original copy",
    )
    o.add_argument(
        "--timeout",
        type=float,
        help="Per-stage time limit for the transform tool (seconds)",
    )
    o.add_argument("--report", type=Path, help="Write a JSON report here")
    o.set_defaults(func=_optimize_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    set_reporter(make_reporter(args.reporter))
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except (ConfigError, FileNotFoundError, ValueError) as e:
        get_reporter().error(str(getattr(e, "message", e)))
        return 2
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
