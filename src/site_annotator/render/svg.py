"""SVG overlay markup for the editor and the read-only viewers."""

from collections.abc import Sequence
from html import escape

from site_annotator.config import OVERLAY_SIZE
from site_annotator.editor.viewport import ViewportTransform
from site_annotator.render.layout import (
    CircleShape,
    LabelShape,
    Layer,
    LineShape,
    PathShape,
    Shape,
)

TEXT_SHADOW = "text-shadow: 0px 0px 4px black"
SELECTED_FILTER = "filter: drop-shadow(0 0 4px white)"


def pct(units: float) -> str:
    """Overlay units as a percentage of the overlay box."""
    return f"{units * 100 / OVERLAY_SIZE:g}%"


def _attr(value) -> str:
    return escape(str(value), quote=True)


def path_data(points: Sequence[tuple[float, float]]) -> str:
    return " ".join(
        f"{'M' if i == 0 else 'L'} {x:g} {y:g}" for i, (x, y) in enumerate(points)
    )


def _shape_svg(shape: Shape, cursor: str) -> str:
    if isinstance(shape, LineShape):
        events = ' pointer-events="stroke"' if shape.role == "hit" else ' pointer-events="none"'
        return (
            f'<line x1="{pct(shape.x1)}" y1="{pct(shape.y1)}" x2="{pct(shape.x2)}" '
            f'y2="{pct(shape.y2)}" stroke="{_attr(shape.stroke)}" stroke-width="{shape.width:g}"'
            f'{events} style="cursor: {cursor}"/>'
        )
    if isinstance(shape, CircleShape):
        stroke = ""
        if shape.stroke:
            stroke = f' stroke="{_attr(shape.stroke)}" stroke-width="{shape.stroke_width:g}"'
        handle = ""
        if shape.handle:
            handle = f' data-handle="{shape.handle}" style="cursor: nwse-resize"'
        return (
            f'<circle cx="{pct(shape.cx)}" cy="{pct(shape.cy)}" r="{shape.r:g}" '
            f'fill="{_attr(shape.fill)}"{stroke}{handle}/>'
        )
    if isinstance(shape, LabelShape):
        anchor = ' text-anchor="middle"' if shape.anchor == "middle" else ""
        dy = f' dy="{shape.dy:g}"' if shape.dy else ""
        return (
            f'<text x="{pct(shape.x)}" y="{pct(shape.y)}" fill="{_attr(shape.fill)}" '
            f'font-size="{shape.font_size:g}" font-weight="bold"{anchor}{dy} '
            f'style="{TEXT_SHADOW}; user-select: none; cursor: {cursor}">'
            f"{escape(shape.text)}</text>"
        )
    if isinstance(shape, PathShape):
        effect = ' vector-effect="non-scaling-stroke"' if shape.non_scaling else ""
        events = ' pointer-events="stroke"' if shape.role == "hit" else ' pointer-events="none"'
        return (
            f'<path d="{path_data(shape.points)}" stroke="{_attr(shape.stroke)}" '
            f'stroke-width="{shape.width:g}" fill="none"{effect}{events} '
            f'style="cursor: {cursor}"/>'
        )
    raise TypeError(f"Unknown shape: {shape!r}")


def render_overlay_svg(layers: Sequence[Layer], tool: str | None = None) -> str:
    """The ``<svg>`` element laid over the photo (100% x 100% of its box)."""
    cursor = "move" if tool == "select" else "default"
    parts = [
        f'<svg class="annotation-overlay" viewBox="0 0 {OVERLAY_SIZE} {OVERLAY_SIZE}" '
        'preserveAspectRatio="none" xmlns="http://www.w3.org/2000/svg" '
        'style="position:absolute;top:0;left:0;width:100%;height:100%;pointer-events:none">'
    ]
    for layer in layers:
        style = f' style="{SELECTED_FILTER}"' if layer.selected else ""
        draft = ' data-draft="true"' if layer.draft else ""
        parts.append(
            f'<g data-annotation-id="{_attr(layer.annotation_id)}" '
            f'data-kind="{layer.kind}"{draft}{style}>'
        )
        parts.extend(_shape_svg(shape, cursor) for shape in layer.shapes)
        parts.append("</g>")
    parts.append("</svg>")
    return "".join(parts)


def render_stage_html(
    image_url: str | None,
    layers: Sequence[Layer],
    *,
    viewport: ViewportTransform | None = None,
    tool: str | None = None,
    show_overlay: bool = True,
    stage_id: str = "annotation-stage",
    max_height: str = "80vh",
) -> str:
    """Image plus overlay, wrapped so the viewport transform moves both as one unit."""
    if not image_url:
        return f'<div id="{_attr(stage_id)}" class="annotation-stage empty">No photo loaded</div>'
    transform = (viewport or ViewportTransform()).css_transform()
    overlay = render_overlay_svg(layers, tool=tool) if show_overlay and layers else ""
    return (
        f'<div id="{_attr(stage_id)}" class="annotation-stage" '
        'style="position:relative;overflow:hidden;display:flex;align-items:center;'
        'justify-content:center;touch-action:none;background:#111">'
        f'<div class="annotation-wrapper" style="position:relative;display:inline-block;'
        f'max-width:100%;transform:{transform};transform-origin:center">'
        f'<img class="annotation-photo" src="{_attr(image_url)}" alt="Annotated photo" '
        f'draggable="false" style="display:block;max-width:100%;max-height:{max_height};'
        'pointer-events:none;user-select:none"/>'
        f"{overlay}</div></div>"
    )
