"""Hit-testing of pointer positions against annotation hit regions.

All geometry is evaluated in overlay units (normalized * OVERLAY_SIZE), the same space the
overlay SVG draws in, so results do not depend on the on-screen size of the photo.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

import numpy as np

from site_annotator.config import (
    DEFAULT_FONT_SIZE,
    HANDLE_RADIUS,
    HIT_STROKE_WIDTH,
    OVERLAY_SIZE,
    TEXT_HIT_MARGIN,
)
from site_annotator.models import (
    Annotation,
    DimensionAnnotation,
    FreehandAnnotation,
    Point,
    TextAnnotation,
)
from site_annotator.render.fonts import text_extent

DragMode = Literal["move", "resize_start", "resize_end"]


@dataclass(frozen=True)
class Hit:
    """The annotation under the pointer and the drag it starts."""

    annotation_id: str
    mode: DragMode


def to_units(point: Point) -> np.ndarray:
    return np.array([point.x, point.y], dtype=float) * OVERLAY_SIZE


def distance_to_polyline(point: np.ndarray, vertices: np.ndarray) -> float:
    """Shortest distance from ``point`` to the polyline through ``vertices`` (shape (N, 2))."""
    if len(vertices) == 1:
        return float(np.linalg.norm(point - vertices[0]))
    a = vertices[:-1]
    ab = vertices[1:] - a
    ap = point - a
    seg_len_sq = np.einsum("ij,ij->i", ab, ab)
    safe_len_sq = np.where(seg_len_sq > 0, seg_len_sq, 1.0)
    t = np.where(seg_len_sq > 0, np.einsum("ij,ij->i", ap, ab) / safe_len_sq, 0.0)
    closest = a + ab * np.clip(t, 0.0, 1.0)[:, None]
    return float(np.min(np.linalg.norm(point - closest, axis=1)))


def text_bounds(annotation: TextAnnotation) -> tuple[float, float, float, float]:
    """Glyph box (x0, y0, x1, y1) in overlay units, padded by TEXT_HIT_MARGIN."""
    size = annotation.font_size or DEFAULT_FONT_SIZE
    width, ascent, descent = text_extent(annotation.text, size)
    x, y = to_units(annotation.position)
    return (
        x - TEXT_HIT_MARGIN,
        y - ascent - TEXT_HIT_MARGIN,
        x + width + TEXT_HIT_MARGIN,
        y + descent + TEXT_HIT_MARGIN,
    )


def hits_body(annotation: Annotation, point: np.ndarray) -> bool:
    """True if ``point`` (overlay units) lies in the annotation's hit region."""
    if isinstance(annotation, TextAnnotation):
        x0, y0, x1, y1 = text_bounds(annotation)
        return bool(x0 <= point[0] <= x1 and y0 <= point[1] <= y1)
    if isinstance(annotation, DimensionAnnotation):
        vertices = np.stack([to_units(annotation.start), to_units(annotation.end)])
    elif isinstance(annotation, FreehandAnnotation):
        vertices = np.array([[p.x, p.y] for p in annotation.points], dtype=float) * OVERLAY_SIZE
    else:
        return False
    return distance_to_polyline(point, vertices) <= HIT_STROKE_WIDTH / 2


def handle_at(annotation: DimensionAnnotation, point: np.ndarray) -> DragMode | None:
    """Resize handle under ``point``. The end handle is painted last, so it wins overlaps."""
    if np.linalg.norm(point - to_units(annotation.end)) <= HANDLE_RADIUS:
        return "resize_end"
    if np.linalg.norm(point - to_units(annotation.start)) <= HANDLE_RADIUS:
        return "resize_start"
    return None


def hit_test(
    annotations: Sequence[Annotation],
    point: Point,
    selected_id: str | None = None,
) -> Hit | None:
    """Find what a select-tool press at ``point`` grabs.

    Resize handles of the selected dimension take precedence; otherwise the most recently
    created annotation whose hit region contains the point wins.
    """
    p = to_units(point)

    if selected_id is not None:
        for annotation in annotations:
            if annotation.id == selected_id and isinstance(annotation, DimensionAnnotation):
                mode = handle_at(annotation, p)
                if mode is not None:
                    return Hit(annotation.id, mode)
                break

    for annotation in reversed(annotations):
        if hits_body(annotation, p):
            return Hit(annotation.id, "move")
    return None
