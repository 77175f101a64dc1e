"""Run plumbing for the CLI: log setup, artifact naming and manifest output."""

from __future__ import annotations

import hashlib
import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .models import DeviceClass


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers that flood DEBUG output with fetch and font details.
_QUIET_LOGGERS = ("urllib3", "matplotlib", "PIL")
_HASH_CHUNK_BYTES = 1 << 20


@dataclass(frozen=True, slots=True)
class MapArtifacts:
    """Output files of one rendered frame, named after the device class."""

    svg: Path
    png: Path
    manifest: Path

    @classmethod
    def for_device(cls, output_dir: Path, device_class: DeviceClass) -> MapArtifacts:
        stem = f"map_{device_class.value}"
        return cls(
            svg=output_dir / f"{stem}.svg",
            png=output_dir / f"{stem}.png",
            manifest=output_dir / f"{stem}.json",
        )


def setup_logging(log_file: Path | None = None, verbose: bool = False) -> None:
    """Console at INFO (DEBUG with ``verbose``); the run log always keeps DEBUG."""
    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    handlers: list[logging.Handler] = [console]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        run_log = logging.FileHandler(log_file, encoding="utf-8")
        run_log.setLevel(logging.DEBUG)
        handlers.append(run_log)
    logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT, handlers=handlers, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def ensure_directories(paths: Iterable[Path]) -> None:
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, payload: Any) -> None:
    """Replace ``path`` atomically with ``payload`` as sorted, indented JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.with_name(path.name + ".tmp")
    text = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False)
    staging.write_text(text + "\n", encoding="utf-8")
    staging.replace(path)


def sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_HASH_CHUNK_BYTES), b""):
            digest.update(chunk)
    return digest.hexdigest()


def detect_git_commit(cwd: Path) -> str | None:
    """Commit of the checkout holding the config, suffixed ``-dirty`` on local edits."""
    try:
        proc = subprocess.run(
            ["git", "describe", "--always", "--dirty", "--abbrev=40"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=True,
        )
    except (FileNotFoundError, NotADirectoryError, subprocess.CalledProcessError):
        return None
    return proc.stdout.strip() or None
