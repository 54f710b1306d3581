"""Flattened "annotated image" export with Pillow."""

import logging
from collections.abc import Sequence
from pathlib import Path

from PIL import Image, ImageDraw

from site_annotator.config import OVERLAY_SIZE
from site_annotator.models import Annotation
from site_annotator.render.fonts import load_font
from site_annotator.render.layout import (
    CircleShape,
    LabelShape,
    LineShape,
    PathShape,
    layout_annotations,
)

logger = logging.getLogger(__name__)


def _rgba(color: str) -> tuple[int, int, int, int] | None:
    if color == "transparent":
        return None
    return Image.new("RGBA", (1, 1), color).getpixel((0, 0))


def render_annotated_image(image: Image.Image, annotations: Sequence[Annotation]) -> Image.Image:
    """Composite the annotation set onto ``image`` at its intrinsic resolution.

    Overlay units scale per axis (the overlay stretches non-uniformly like the SVG); stroke
    widths and font sizes scale with the image height. Freehand strokes keep their width in
    pixels, matching their non-scaling stroke on screen.
    """
    base = image.convert("RGBA")
    width, height = base.size
    sx = width / OVERLAY_SIZE
    sy = height / OVERLAY_SIZE
    s = sy

    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)

    for layer in layout_annotations(annotations):
        for shape in layer.shapes:
            if isinstance(shape, LineShape):
                fill = _rgba(shape.stroke)
                if fill is None:
                    continue
                draw.line(
                    [(shape.x1 * sx, shape.y1 * sy), (shape.x2 * sx, shape.y2 * sy)],
                    fill=fill,
                    width=max(1, round(shape.width * s)),
                )
            elif isinstance(shape, CircleShape):
                rx, ry = shape.r * sx, shape.r * sy
                cx, cy = shape.cx * sx, shape.cy * sy
                draw.ellipse([cx - rx, cy - ry, cx + rx, cy + ry], fill=_rgba(shape.fill))
            elif isinstance(shape, PathShape):
                fill = _rgba(shape.stroke)
                if fill is None:
                    continue
                points = [(x * sx, y * sy) for x, y in shape.points]
                line_width = shape.width if shape.non_scaling else max(1, round(shape.width * s))
                if len(points) == 1:
                    (x, y), r = points[0], line_width / 2
                    draw.ellipse([x - r, y - r, x + r, y + r], fill=fill)
                else:
                    draw.line(points, fill=fill, width=int(line_width), joint="curve")
            elif isinstance(shape, LabelShape):
                font = load_font(max(1, round(shape.font_size * s)))
                anchor = "ms" if shape.anchor == "middle" else "ls"
                draw.text(
                    (shape.x * sx, (shape.y + shape.dy) * sy),
                    shape.text,
                    fill=_rgba(shape.fill),
                    font=font,
                    anchor=anchor,
                    stroke_width=max(1, round(2 * s)),
                    stroke_fill=(0, 0, 0, 255),
                )

    return Image.alpha_composite(base, overlay).convert("RGB")


def export_annotated_image(
    image_path: Path, annotations: Sequence[Annotation], output_path: Path
) -> Path:
    """Render ``image_path`` with its annotations and write the result to ``output_path``."""
    with Image.open(image_path) as image:
        rendered = render_annotated_image(image, annotations)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    rendered.save(output_path)
    logger.info("Wrote annotated image %s (%d annotations)", output_path, len(annotations))
    return output_path
