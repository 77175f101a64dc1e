"""SVG serialization of a map scene.

The document has one outer ``<g id="content">`` carrying the viewport
transform; every shape below it uses ``vector-effect="non-scaling-stroke"``
so stroke widths stay constant on screen while zooming. Region groups carry
``data-region`` / ``data-code`` so a host can route pointer events back to
the session.
"""

from __future__ import annotations

from html import escape

from .scene import InsetShape, MapScene, RegionShape, ShapeStyle, TextMark

_BACKGROUND = "rgba(31, 41, 55, 0.5)"
_TOOLTIP_CAPTION = "Département"
_LOADING_TEXT = "Chargement de la carte..."
_LOADING_COLOR = "#9ca3af"


def render_svg(scene: MapScene) -> str:
    """Return a standalone SVG document for the scene."""
    width, height = scene.canvas
    header = (
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width:g} {height:g}"'
        f' width="{width:g}" height="{height:g}"'
        f' data-device="{scene.device_class.value}" style="touch-action: none">'
    )
    if scene.loading:
        return "\n".join(
            [
                header,
                f'  <rect x="0" y="0" width="{width:g}" height="{height:g}" fill="{_BACKGROUND}"/>',
                f'  <text x="{width / 2:g}" y="{height / 2:g}" text-anchor="middle"'
                f' fill="{_LOADING_COLOR}" font-size="14">{escape(_LOADING_TEXT)}</text>',
                "</svg>",
            ]
        )

    parts: list[str] = [
        header,
        f'  <rect x="0" y="0" width="{width:g}" height="{height:g}" fill="{_BACKGROUND}"/>',
        f'  <g id="content" transform="{scene.transform.svg_attribute()}">',
    ]
    for region in scene.regions:
        parts.extend(_region_lines(region))
    for inset in scene.insets:
        parts.extend(_inset_lines(inset))
    parts.append("  </g>")
    parts.append(
        f'  <rect id="night-overlay" x="0" y="0" width="{width:g}" height="{height:g}"'
        f' fill="{scene.overlay.night_fill}" opacity="{scene.overlay.night_opacity:g}"'
        ' pointer-events="none"/>'
    )
    if scene.hovered is not None:
        parts.extend(_tooltip_lines(scene))
    parts.append("</svg>")
    return "\n".join(parts)


def _region_lines(region: RegionShape) -> list[str]:
    lines = [
        f'    <g class="region" data-region="{escape(region.name)}"'
        f' data-code="{escape(region.code)}" cursor="pointer">'
    ]
    if region.path is not None:
        lines.append(f"      <path d=\"{region.path}\"{_style_attrs(region.style)}/>")
    lines.append("    </g>")
    return lines


def _inset_lines(inset: InsetShape) -> list[str]:
    box = inset.box
    lines = [
        f'    <g class="inset" data-region="{escape(inset.name)}"'
        f' data-code="{escape(inset.code)}" cursor="pointer">',
        f'      <rect x="{box.x0:g}" y="{box.y0:g}" width="{box.width:g}"'
        f' height="{box.height:g}" rx="{inset.corner_radius:g}"'
        f"{_style_attrs(inset.box_style)}/>",
    ]
    if inset.path is not None:
        lines.append(f"      <path d=\"{inset.path}\"{_style_attrs(inset.shape_style)}/>")
    else:
        lines.append("      " + _text_element(inset.initials, weight="900"))
    lines.append("      " + _text_element(inset.label, weight="bold", pointer_events=False))
    lines.append("    </g>")
    return lines


def _tooltip_lines(scene: MapScene) -> list[str]:
    width, height = scene.canvas
    x = width - 16.0
    y = height - 16.0
    name = scene.hovered or "..."
    return [
        '  <g id="tooltip" pointer-events="none">',
        f'    <text x="{x:g}" y="{y - 20:g}" text-anchor="end" fill="{_LOADING_COLOR}"'
        f' font-size="10">{escape(_TOOLTIP_CAPTION.upper())}</text>',
        f'    <text x="{x:g}" y="{y:g}" text-anchor="end" fill="{scene.overlay.highlight_color}"'
        f' font-size="18" font-weight="bold">{escape(name)}</text>',
        "  </g>",
    ]


def _style_attrs(style: ShapeStyle) -> str:
    attrs = (
        f' fill="{style.fill}" stroke="{style.stroke}" stroke-width="{style.stroke_width:g}"'
        ' vector-effect="non-scaling-stroke"'
    )
    if style.glow_color is not None and style.glow_radius > 0:
        attrs += f' style="filter: drop-shadow(0 0 {style.glow_radius:g}px {style.glow_color})"'
    return attrs


def _text_element(mark: TextMark, *, weight: str, pointer_events: bool = True) -> str:
    attrs = (
        f'x="{mark.x:g}" y="{mark.y:g}" text-anchor="middle" fill="{mark.fill}"'
        f' font-size="{mark.font_size:g}" font-weight="{weight}"'
    )
    if mark.opacity < 1.0:
        attrs += f' opacity="{mark.opacity:g}"'
    if not pointer_events:
        attrs += ' pointer-events="none"'
    return f"<text {attrs}>{escape(mark.text)}</text>"
