"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


def _optional_path(value: Any, field_name: str, root_dir: Path) -> Path | None:
    if value is None:
        return None
    return _path_from_cfg(value, field_name, root_dir)


@dataclass(frozen=True, slots=True)
class SourceConfig:
    url: str
    path: Path | None
    request_timeout_s: int
    user_agent: str
    max_retries: int
    retry_backoff_s: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> SourceConfig:
        max_retries = _int(raw.get("max_retries", 2), "source.max_retries")
        retry_backoff_s = _float(raw.get("retry_backoff_s", 1.0), "source.retry_backoff_s")
        if max_retries < 0:
            raise ValueError("source.max_retries must be >= 0")
        if retry_backoff_s <= 0:
            raise ValueError("source.retry_backoff_s must be > 0")
        return cls(
            url=_str(raw.get("url"), "source.url"),
            path=_optional_path(raw.get("path"), "source.path", root_dir),
            request_timeout_s=_int(raw.get("request_timeout_s"), "source.request_timeout_s"),
            user_agent=_str(raw.get("user_agent"), "source.user_agent"),
            max_retries=max_retries,
            retry_backoff_s=retry_backoff_s,
        )


@dataclass(frozen=True, slots=True)
class PathsConfig:
    solar_times: Path
    output_dir: Path
    logs_dir: Path

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.output_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            solar_times=_path_from_cfg(raw.get("solar_times"), "paths.solar_times", root_dir),
            output_dir=_path_from_cfg(raw.get("output_dir"), "paths.output_dir", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir"), "paths.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class RenderConfig:
    viewport_width_px: int
    time_minute: int
    month: str
    write_png: bool
    png_dpi: int
    write_manifest: bool

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RenderConfig:
        viewport_width_px = _int(raw.get("viewport_width_px"), "render.viewport_width_px")
        time_minute = _int(raw.get("time_minute"), "render.time_minute")
        png_dpi = _int(raw.get("png_dpi", 100), "render.png_dpi")
        if viewport_width_px <= 0:
            raise ValueError("render.viewport_width_px must be > 0")
        if time_minute < 0 or time_minute >= 24 * 60:
            raise ValueError("render.time_minute must be in [0, 1440)")
        if png_dpi <= 0:
            raise ValueError("render.png_dpi must be > 0")
        month_raw = raw.get("month")
        month = f"{month_raw:02d}" if isinstance(month_raw, int) else _str(month_raw, "render.month")
        return cls(
            viewport_width_px=viewport_width_px,
            time_minute=time_minute,
            month=month,
            write_png=_bool(raw.get("write_png", False), "render.write_png"),
            png_dpi=png_dpi,
            write_manifest=_bool(raw.get("write_manifest", True), "render.write_manifest"),
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    source: SourceConfig
    paths: PathsConfig
    render: RenderConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            source=SourceConfig.from_mapping(_mapping(raw.get("source"), "source"), root_dir),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            render=RenderConfig.from_mapping(_mapping(raw.get("render"), "render")),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
