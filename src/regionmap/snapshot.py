"""Static PNG snapshot of a map scene via matplotlib."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Sequence

from .models import ViewportTransform
from .scene import InsetShape, MapScene, ShapeStyle, TextMark


_LOGGER = logging.getLogger("regionmap.snapshot")

_FIGURE_BACKGROUND = "#111827"
_RGBA_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$")
_PATH_TOKEN_RE = re.compile(r"([MLZ])([^MLZ]*)")

_Ring = list[tuple[float, float]]


def save_png(scene: MapScene, output_path: Path, *, dpi: int = 100) -> Path:
    """Rasterize the scene at its canvas size; the viewport transform is applied."""
    plt, patches, mpath = _require_matplotlib()
    width, height = scene.canvas
    fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
    fig.subplots_adjust(left=0.0, right=1.0, bottom=0.0, top=1.0)
    try:
        fig.patch.set_facecolor(_FIGURE_BACKGROUND)
        ax.set_facecolor(_FIGURE_BACKGROUND)
        ax.set_xlim(0.0, width)
        ax.set_ylim(height, 0.0)
        ax.set_aspect("equal", adjustable="box")
        ax.axis("off")

        if scene.loading:
            ax.text(width / 2.0, height / 2.0, "…", ha="center", va="center", color="#9ca3af")
        else:
            for region in scene.regions:
                if region.path is None:
                    continue
                _draw_path(ax, patches, mpath, region.path, region.style, scene.transform, zorder=2)
            for inset in scene.insets:
                _draw_inset(ax, patches, mpath, inset, scene.transform)
            if scene.overlay.is_night:
                ax.add_patch(
                    patches.Rectangle(
                        (0.0, 0.0),
                        width,
                        height,
                        facecolor=_to_mpl_color(scene.overlay.night_fill),
                        edgecolor="none",
                        zorder=10,
                    )
                )

        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, format="png", facecolor=fig.get_facecolor())
        _LOGGER.debug("PNG snapshot written to %s", output_path)
        return output_path
    finally:
        plt.close(fig)


def parse_path_data(data: str) -> list[_Ring]:
    """Split ``M x,y L x,y ... Z`` path data back into point rings."""
    rings: list[_Ring] = []
    current: _Ring = []
    for command, args in _PATH_TOKEN_RE.findall(data):
        if command == "Z":
            if current:
                rings.append(current)
            current = []
            continue
        if command == "M" and current:
            rings.append(current)
            current = []
        x_raw, _, y_raw = args.partition(",")
        current.append((float(x_raw), float(y_raw)))
    if current:
        rings.append(current)
    return rings


def _draw_inset(
    ax: Any,
    patches: Any,
    mpath: Any,
    inset: InsetShape,
    transform: ViewportTransform,
) -> None:
    box = inset.box
    x0, y0 = transform.apply((box.x0, box.y0))
    ax.add_patch(
        patches.FancyBboxPatch(
            (x0, y0),
            box.width * transform.k,
            box.height * transform.k,
            boxstyle=f"round,pad=0,rounding_size={inset.corner_radius * transform.k:g}",
            facecolor=_to_mpl_color(inset.box_style.fill),
            edgecolor=_to_mpl_color(inset.box_style.stroke),
            linewidth=inset.box_style.stroke_width,
            zorder=3,
        )
    )
    if inset.path is not None:
        _draw_path(ax, patches, mpath, inset.path, inset.shape_style, transform, zorder=4)
    else:
        _draw_text(ax, inset.initials, transform, weight="black", zorder=4)
    _draw_text(ax, inset.label, transform, weight="bold", zorder=5)


def _draw_path(
    ax: Any,
    patches: Any,
    mpath: Any,
    data: str,
    style: ShapeStyle,
    transform: ViewportTransform,
    *,
    zorder: int,
) -> None:
    vertices: list[tuple[float, float]] = []
    codes: list[int] = []
    for ring in parse_path_data(data):
        screen = [transform.apply(point) for point in ring]
        vertices.extend(screen)
        vertices.append(screen[0])
        codes.append(mpath.Path.MOVETO)
        codes.extend([mpath.Path.LINETO] * (len(screen) - 1))
        codes.append(mpath.Path.CLOSEPOLY)
    if not vertices:
        return
    ax.add_patch(
        patches.PathPatch(
            mpath.Path(vertices, codes),
            facecolor=_to_mpl_color(style.fill),
            edgecolor=_to_mpl_color(style.stroke),
            # Line width is in points, so it stays constant under zoom.
            linewidth=style.stroke_width,
            joinstyle="round",
            zorder=zorder,
        )
    )


def _draw_text(
    ax: Any,
    mark: TextMark,
    transform: ViewportTransform,
    *,
    weight: str,
    zorder: int,
) -> None:
    x, y = transform.apply((mark.x, mark.y))
    ax.text(
        x,
        y,
        mark.text,
        color=_to_mpl_color(mark.fill),
        alpha=mark.opacity,
        fontsize=mark.font_size * transform.k * 0.75,
        fontweight=weight,
        ha="center",
        va="baseline",
        zorder=zorder,
        clip_on=True,
    )


def _to_mpl_color(value: str) -> str | tuple[float, float, float, float]:
    """Convert CSS ``rgb()``/``rgba()`` strings to matplotlib RGBA tuples."""
    match = _RGBA_RE.match(value.strip())
    if match is None:
        return value
    channels: Sequence[str] = [part.strip() for part in match.group(1).split(",")]
    if len(channels) not in (3, 4):
        raise ValueError(f"Unsupported color value: {value}")
    red, green, blue = (float(channel) / 255.0 for channel in channels[:3])
    alpha = float(channels[3]) if len(channels) == 4 else 1.0
    return (red, green, blue, alpha)


def _require_matplotlib() -> tuple[Any, Any, Any]:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.patches as patches
        import matplotlib.path as mpath
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for PNG snapshots") from exc
    return (plt, patches, mpath)
