"""Render pipeline: boundaries + viewport + overlay -> SVG (and optional PNG)."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .config import AppConfig
from .io_geo import BoundarySource
from .layout import find_overlaps, layout
from .models import DeviceClass
from .overlay import load_solar_times
from .scene import MapScene
from .session import MapSession
from .snapshot import save_png
from .svg import render_svg
from .util import MapArtifacts
from .viewport import ZoomBy


_LOGGER = logging.getLogger("regionmap.render")


@dataclass(slots=True)
class RenderMapReport:
    output_dir: Path | None = None
    device_class: DeviceClass | None = None
    svg_path: Path | None = None
    png_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


def run_render_map(
    cfg: AppConfig,
    *,
    viewport_width_px: int | None = None,
    time_minute: int | None = None,
    month: str | None = None,
    selected: str | None = None,
    zoom: float | None = None,
    write_png: bool | None = None,
    source: BoundarySource | None = None,
) -> RenderMapReport:
    """Render one map frame to the configured output directory."""
    t0 = time.perf_counter()
    report = RenderMapReport(output_dir=cfg.paths.output_dir)
    width_px = viewport_width_px if viewport_width_px is not None else cfg.render.viewport_width_px
    minute = time_minute if time_minute is not None else cfg.render.time_minute
    month_key = month if month is not None else cfg.render.month
    png = write_png if write_png is not None else cfg.render.write_png

    try:
        solar_table = load_solar_times(cfg.paths.solar_times)
    except Exception as exc:
        report.add_error(f"Failed loading solar times '{cfg.paths.solar_times}': {exc}")
        return report
    if not solar_table:
        report.add_warning(
            f"No solar times found at {cfg.paths.solar_times}; using 06:00-18:00 for every month."
        )
    report.add_info(f"Loaded {len(solar_table)} solar time entries")

    session = MapSession(solar_table=solar_table, viewport_width_px=width_px)
    report.device_class = session.device_class
    report.add_info(f"Device class: {session.device_class.value} (viewport {width_px}px)")
    partition = session.load_from(source if source is not None else BoundarySource(cfg.source))
    if partition.is_empty:
        report.add_warning("Boundary collection is empty; rendering inset boxes only.")

    if zoom is not None:
        end = session.viewport.apply(ZoomBy(zoom))
        report.add_info(f"Viewport zoom requested x{zoom:g}; applied scale {end.k:g}")

    scene = session.render(selected=selected, time_minute=minute, month=month_key)
    report.summary = _scene_summary(scene)
    fallback = [inset.name for inset in scene.insets if not inset.has_path]
    if fallback:
        report.add_warning("Insets drawn with initials fallback: " + ", ".join(fallback))
    if selected is not None and selected not in scene.region_names():
        report.add_warning(f"Selected region '{selected}' is not on the map.")

    artifacts = MapArtifacts.for_device(cfg.paths.output_dir, session.device_class)
    svg_path = artifacts.svg
    try:
        svg_path.parent.mkdir(parents=True, exist_ok=True)
        svg_path.write_text(render_svg(scene), encoding="utf-8")
        report.svg_path = svg_path
    except OSError as exc:
        report.add_error(f"Failed writing SVG '{svg_path}': {exc}")
        return report

    if png:
        png_path = artifacts.png
        try:
            report.png_path = save_png(scene, png_path, dpi=cfg.render.png_dpi)
        except Exception as exc:
            report.add_error(f"Failed writing PNG snapshot '{png_path}': {exc}")

    elapsed = time.perf_counter() - t0
    _LOGGER.info("[render] built %s in %.2fs", svg_path.stem, elapsed)
    report.add_info(
        "Render summary: "
        + ", ".join(f"{key}={value}" for key, value in sorted(report.summary.items()))
    )
    if report.ok:
        report.add_info(f"Map written to {svg_path}")
    return report


def validate_layouts() -> list[str]:
    """Problems found in the inset box tables (empty when both variants are valid)."""
    problems: list[str] = []
    for device_class in DeviceClass:
        table = layout(device_class)
        for left, right in find_overlaps(table):
            problems.append(f"{device_class.value}: inset boxes {left} and {right} overlap")
    return problems


def format_render_lines(report: RenderMapReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Map rendering completed with no errors.")
    return lines


def _scene_summary(scene: MapScene) -> dict[str, int]:
    return {
        "mainland_regions": len(scene.regions),
        "mainland_without_path": sum(1 for region in scene.regions if region.path is None),
        "insets_with_path": sum(1 for inset in scene.insets if inset.has_path),
        "insets_fallback": sum(1 for inset in scene.insets if not inset.has_path),
    }
