"""In-memory annotation set, selection, and the editor session context."""

import dataclasses
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal

from site_annotator.config import (
    COLOR_PALETTE,
    DEFAULT_COLOR,
    DEFAULT_FONT_SIZE,
    DEFAULT_LINE_WIDTH,
    FONT_SIZE_RANGE,
    LINE_WIDTH_RANGE,
)
from site_annotator.editor.viewport import ViewportTransform
from site_annotator.models import (
    Annotation,
    DimensionAnnotation,
    FreehandAnnotation,
    TextAnnotation,
)

logger = logging.getLogger(__name__)

Tool = Literal["select", "dimension", "text", "freehand"]
TOOLS: tuple[Tool, ...] = ("select", "dimension", "text", "freehand")


class AnnotationModel:
    """Ordered annotation set plus the (at most one) selected annotation id.

    List order is paint order: later entries draw on top and win hit-test ties.
    """

    def __init__(self, annotations: list[Annotation] | None = None) -> None:
        self._annotations: list[Annotation] = []
        self._selected_id: str | None = None
        for annotation in annotations or []:
            self.create(annotation)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self._annotations)

    def __len__(self) -> int:
        return len(self._annotations)

    @property
    def annotations(self) -> list[Annotation]:
        return list(self._annotations)

    def get(self, annotation_id: str) -> Annotation | None:
        for annotation in self._annotations:
            if annotation.id == annotation_id:
                return annotation
        return None

    def _index(self, annotation_id: str) -> int | None:
        for i, annotation in enumerate(self._annotations):
            if annotation.id == annotation_id:
                return i
        return None

    def create(self, annotation: Annotation) -> None:
        if self._index(annotation.id) is not None:
            raise ValueError(f"Duplicate annotation id: {annotation.id}")
        self._annotations.append(annotation)

    def replace(self, annotation: Annotation) -> bool:
        """Swap in a new version of an existing annotation, keeping its position."""
        i = self._index(annotation.id)
        if i is None:
            return False
        if type(self._annotations[i]) is not type(annotation):
            raise TypeError(f"Cannot change the kind of annotation {annotation.id}")
        self._annotations[i] = annotation
        return True

    def update(self, annotation_id: str, **fields) -> bool:
        """Apply partial field changes. Returns False when the id is unknown.

        Raises TypeError for fields the annotation's kind does not have.
        """
        if "id" in fields or "type" in fields:
            raise ValueError("Annotation id and type are immutable")
        i = self._index(annotation_id)
        if i is None:
            return False
        self._annotations[i] = dataclasses.replace(self._annotations[i], **fields)
        return True

    def delete(self, annotation_id: str) -> bool:
        i = self._index(annotation_id)
        if i is None:
            return False
        del self._annotations[i]
        if self._selected_id == annotation_id:
            self._selected_id = None
        return True

    def undo_last(self) -> Annotation | None:
        """Remove the most recently appended annotation, if any."""
        if not self._annotations:
            return None
        removed = self._annotations.pop()
        logger.debug("Undo removed %s annotation %s", removed.type, removed.id)
        if self._selected_id == removed.id:
            self._selected_id = None
        return removed

    def select(self, annotation_id: str | None) -> None:
        self._selected_id = annotation_id

    def clear_selection(self) -> None:
        self._selected_id = None

    @property
    def selected_id(self) -> str | None:
        """Selected id, or None if nothing is selected or the id no longer exists."""
        if self._selected_id is not None and self._index(self._selected_id) is None:
            return None
        return self._selected_id

    @property
    def selected(self) -> Annotation | None:
        return self.get(self._selected_id) if self._selected_id is not None else None


@dataclass
class ToolStyle:
    """Style applied to newly created annotations."""

    color: str = DEFAULT_COLOR
    font_size: int = DEFAULT_FONT_SIZE
    line_width: int = DEFAULT_LINE_WIDTH


@dataclass
class EditorSession:
    """Everything one open editor holds: the working set, tool state, and viewport."""

    photo_id: str
    image_url: str | None = None
    model: AnnotationModel = field(default_factory=AnnotationModel)
    tool: Tool = "select"
    style: ToolStyle = field(default_factory=ToolStyle)
    viewport: ViewportTransform = field(default_factory=ViewportTransform)
    draft: Annotation | None = None

    def set_tool(self, tool: Tool) -> None:
        if tool not in TOOLS:
            raise ValueError(f"Unknown tool: {tool}")
        self.tool = tool
        if tool != "select":
            self.model.clear_selection()

    def set_color(self, color: str) -> None:
        self.style.color = _check_color(color)

    # -- Property panel: edits to the selected annotation ------------------------

    def recolor_selected(self, color: str) -> bool:
        selected = self.model.selected
        if selected is None:
            return False
        return self.model.update(selected.id, color=_check_color(color))

    def resize_text_selected(self, font_size: int) -> bool:
        selected = self.model.selected
        if not isinstance(selected, (TextAnnotation, DimensionAnnotation)):
            return False
        size = _check_range(font_size, FONT_SIZE_RANGE, "font size")
        return self.model.update(selected.id, font_size=size)

    def restyle_line_selected(self, line_width: int) -> bool:
        selected = self.model.selected
        if not isinstance(selected, (FreehandAnnotation, DimensionAnnotation)):
            return False
        width = _check_range(line_width, LINE_WIDTH_RANGE, "line width")
        return self.model.update(selected.id, line_width=width)

    def edit_selected_text(self, text: str | None) -> bool:
        """Replace the selected text annotation's string; empty input keeps the old text."""
        selected = self.model.selected
        if not isinstance(selected, TextAnnotation) or not text:
            return False
        return self.model.update(selected.id, text=text)

    def delete_selected(self) -> bool:
        selected_id = self.model.selected_id
        if selected_id is None:
            return False
        return self.model.delete(selected_id)


def _check_color(color: str) -> str:
    if color not in COLOR_PALETTE:
        raise ValueError(f"Color {color!r} is not in the palette")
    return color


def _check_range(value: int, bounds: tuple[int, int], name: str) -> int:
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")
    return int(value)
