"""CLI entrypoint for the regionmap renderer."""

from __future__ import annotations

import argparse
import logging
from typing import Sequence

from .config import AppConfig, load_config
from .models import RenderManifest
from .overlay import load_solar_times
from .render import format_render_lines, run_render_map, validate_layouts
from .util import (
    MapArtifacts,
    detect_git_commit,
    ensure_directories,
    setup_logging,
    sha256_file,
    write_json,
)

LOGGER = logging.getLogger("regionmap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="regionmap",
        description="Interactive région/département selection map renderer.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    render_p = subparsers.add_parser("render", help="Render one map frame to SVG.")
    add_common(render_p)
    render_p.add_argument(
        "--width",
        type=int,
        default=None,
        help="Host viewport width in px (< 768 selects the mobile layout).",
    )
    render_p.add_argument(
        "--time",
        type=int,
        default=None,
        help="Time of day in minutes since midnight.",
    )
    render_p.add_argument("--month", default=None, help="Month key for the solar time table.")
    render_p.add_argument("--selected", default=None, help="Selected region display name.")
    render_p.add_argument(
        "--zoom",
        type=float,
        default=None,
        help="Zoom factor about the canvas center (clamped to 1-8).",
    )
    render_p.add_argument(
        "--png",
        action="store_true",
        help="Also write a PNG snapshot next to the SVG.",
    )

    validate_p = subparsers.add_parser("validate", help="Validate config, solar table and layouts.")
    add_common(validate_p)

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    log_path = cfg.paths.logs_dir / "regionmap.log"
    setup_logging(log_path, verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _run_render(cfg: AppConfig, args: argparse.Namespace) -> int:
    report = run_render_map(
        cfg,
        viewport_width_px=args.width,
        time_minute=args.time,
        month=args.month,
        selected=args.selected,
        zoom=args.zoom,
        write_png=True if args.png else None,
    )
    for line in format_render_lines(report):
        LOGGER.info(line)
    if not report.ok:
        LOGGER.error("Render aborted due to errors.")
        return 1

    if cfg.render.write_manifest and report.device_class is not None:
        manifest = RenderManifest.create(
            config_hash_sha256=sha256_file(cfg.source_path),
            git_commit=detect_git_commit(cfg.source_path.parent),
            device_class=report.device_class,
            render_inputs={
                "viewport_width_px": args.width or cfg.render.viewport_width_px,
                "time_minute": args.time if args.time is not None else cfg.render.time_minute,
                "month": args.month or cfg.render.month,
                "selected": args.selected,
                "zoom": args.zoom,
            },
            summary=report.summary,
            artifacts={
                "svg": str(report.svg_path) if report.svg_path else "",
                "png": str(report.png_path) if report.png_path else "",
            },
        )
        manifest_path = MapArtifacts.for_device(cfg.paths.output_dir, report.device_class).manifest
        write_json(manifest_path, manifest.to_dict())
        LOGGER.info("Render manifest written to %s", manifest_path)
    return 0


def _run_validate(cfg: AppConfig) -> int:
    ok = True
    try:
        table = load_solar_times(cfg.paths.solar_times)
    except Exception as exc:
        LOGGER.error("[ERROR] Failed parsing solar times '%s': %s", cfg.paths.solar_times, exc)
        ok = False
    else:
        LOGGER.info("[INFO] Solar times: %d months from %s", len(table), cfg.paths.solar_times)
    for problem in validate_layouts():
        LOGGER.error("[ERROR] %s", problem)
        ok = False
    if cfg.source.path is not None and not cfg.source.path.exists():
        LOGGER.warning("[WARN] Boundary file not found: %s", cfg.source.path)
    if ok:
        LOGGER.info("[OK] Validation passed.")
    return 0 if ok else 1


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "render":
        return _run_render(cfg, args)
    if command == "validate":
        return _run_validate(cfg)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
