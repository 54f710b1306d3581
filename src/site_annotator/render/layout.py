"""Turns an annotation set into drawing primitives in overlay units.

The overlay is a 1000 x 1000 user space stretched over the photo, so a normalized coordinate
``v`` maps to ``v * 1000`` units, i.e. ``v * 100`` percent of the overlay box on either axis.
This is the only place normalized coordinates become drawable geometry; the SVG overlay and the
raster exporter both draw from these shapes.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from site_annotator.config import (
    DEFAULT_FONT_SIZE,
    DEFAULT_LINE_WIDTH,
    DIMENSION_LABEL_SCALE,
    HANDLE_RADIUS,
    HIT_STROKE_WIDTH,
    LABEL_OFFSET,
    OVERLAY_SIZE,
)
from site_annotator.models import (
    Annotation,
    DimensionAnnotation,
    FreehandAnnotation,
    Point,
    TextAnnotation,
)

Role = Literal["body", "hit", "handle"]

HANDLE_FILL = "rgba(255,255,255,0.5)"


@dataclass(frozen=True)
class LineShape:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str
    width: float
    role: Role = "body"


@dataclass(frozen=True)
class CircleShape:
    cx: float
    cy: float
    r: float
    fill: str
    stroke: str | None = None
    stroke_width: float = 0
    role: Role = "body"
    handle: Literal["resize_start", "resize_end"] | None = None


@dataclass(frozen=True)
class LabelShape:
    x: float
    y: float
    text: str
    fill: str
    font_size: float
    anchor: Literal["start", "middle"] = "start"
    dy: float = 0
    role: Role = "body"


@dataclass(frozen=True)
class PathShape:
    points: tuple[tuple[float, float], ...]
    stroke: str
    width: float
    non_scaling: bool = True
    role: Role = "body"


Shape = LineShape | CircleShape | LabelShape | PathShape


@dataclass
class Layer:
    """All shapes of one annotation, in paint order."""

    annotation_id: str
    kind: str
    selected: bool = False
    draft: bool = False
    shapes: list[Shape] = field(default_factory=list)


def to_units(point: Point) -> tuple[float, float]:
    return point.x * OVERLAY_SIZE, point.y * OVERLAY_SIZE


def _dimension_shapes(ann: DimensionAnnotation, interactive: bool, handles: bool) -> list[Shape]:
    x1, y1 = to_units(ann.start)
    x2, y2 = to_units(ann.end)
    line_width = ann.line_width or DEFAULT_LINE_WIDTH
    font_size = ann.font_size or DEFAULT_FONT_SIZE

    shapes: list[Shape] = []
    if interactive:
        shapes.append(LineShape(x1, y1, x2, y2, "transparent", HIT_STROKE_WIDTH, role="hit"))
    shapes.append(LineShape(x1, y1, x2, y2, ann.color, line_width))
    if handles:
        for (cx, cy), name in (((x1, y1), "resize_start"), ((x2, y2), "resize_end")):
            shapes.append(
                CircleShape(
                    cx, cy, HANDLE_RADIUS, HANDLE_FILL,
                    stroke=ann.color, stroke_width=2, role="handle", handle=name,
                )
            )
    shapes.append(CircleShape(x1, y1, line_width + 2, ann.color))
    shapes.append(CircleShape(x2, y2, line_width + 2, ann.color))
    if ann.label:
        shapes.append(
            LabelShape(
                (x1 + x2) / 2,
                (y1 + y2) / 2,
                ann.label,
                ann.color,
                font_size * DIMENSION_LABEL_SCALE,
                anchor="middle",
                dy=-LABEL_OFFSET,
            )
        )
    return shapes


def _text_shapes(ann: TextAnnotation) -> list[Shape]:
    x, y = to_units(ann.position)
    return [LabelShape(x, y, ann.text, ann.color, ann.font_size or DEFAULT_FONT_SIZE)]


def _freehand_shapes(ann: FreehandAnnotation, interactive: bool) -> list[Shape]:
    points = tuple(to_units(p) for p in ann.points)
    shapes: list[Shape] = []
    if interactive:
        shapes.append(PathShape(points, "transparent", HIT_STROKE_WIDTH, role="hit"))
    shapes.append(PathShape(points, ann.color, ann.line_width or DEFAULT_LINE_WIDTH))
    return shapes


def layout_annotation(
    annotation: Annotation,
    *,
    interactive: bool = False,
    selected: bool = False,
    handles: bool = False,
) -> Layer:
    if isinstance(annotation, DimensionAnnotation):
        shapes = _dimension_shapes(annotation, interactive, handles)
    elif isinstance(annotation, TextAnnotation):
        shapes = _text_shapes(annotation)
    else:
        shapes = _freehand_shapes(annotation, interactive)
    return Layer(annotation.id, annotation.type, selected=selected, shapes=shapes)


def layout_annotations(
    annotations: Sequence[Annotation],
    *,
    interactive: bool = False,
    selected_id: str | None = None,
    tool: str | None = None,
    draft: Annotation | None = None,
) -> list[Layer]:
    """Lay out a whole set.

    Read-only viewers pass only ``annotations``. The editor passes ``interactive=True`` with its
    selection, tool and in-progress draft, which adds hit regions, resize handles and selection
    feedback on top of exactly the same visible geometry.
    """
    layers = []
    for annotation in annotations:
        is_selected = interactive and annotation.id == selected_id
        layers.append(
            layout_annotation(
                annotation,
                interactive=interactive,
                selected=is_selected,
                handles=is_selected and tool == "select",
            )
        )
    if interactive and draft is not None:
        layer = layout_annotation(draft, interactive=False)
        layer.draft = True
        layers.append(layer)
    return layers
