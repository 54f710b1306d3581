"""Gesture recognizer: turns raw pointer/touch/wheel streams into editor actions.

One interaction mode is active at a time:

- ``idle``: waiting for a press.
- ``panning``: two touch points down; the midpoint movement pans the viewport.
- ``dragging``: select tool pressed on an annotation or a resize handle.
- ``drawing``: dimension/freehand tool pressed on empty canvas; a draft grows on each move.
- ``awaiting_input``: a text or label prompt is open; pointer input is ignored.
"""

import logging
from dataclasses import dataclass, replace
from typing import Literal

from site_annotator.config import DIMENSION_PROMPT, TEXT_PROMPT
from site_annotator.editor.hittest import DragMode, hit_test
from site_annotator.editor.prompts import PromptRequest, Prompter
from site_annotator.editor.session import EditorSession
from site_annotator.editor.viewport import Box, midpoint, to_normalized
from site_annotator.models import (
    Annotation,
    DimensionAnnotation,
    FreehandAnnotation,
    Point,
    TextAnnotation,
    new_annotation_id,
)

logger = logging.getLogger(__name__)

Mode = Literal["idle", "panning", "dragging", "drawing", "awaiting_input"]
PointerKind = Literal["down", "move", "up", "leave"]


@dataclass(frozen=True)
class PointerEvent:
    """A mouse or touch event: all active contact points in client pixels."""

    kind: PointerKind
    points: tuple[tuple[float, float], ...] = ()
    box: Box | None = None


@dataclass(frozen=True)
class WheelEvent:
    """A wheel or trackpad event; ``modifier`` is Ctrl/Meta held (or a pinch)."""

    delta_x: float
    delta_y: float
    modifier: bool = False


@dataclass(frozen=True)
class _DragState:
    mode: DragMode
    start: Point
    original: Annotation


def dragged(annotation: Annotation, mode: DragMode, start: Point, point: Point) -> Annotation:
    """Geometry of ``annotation`` after dragging from ``start`` to ``point``."""
    if mode == "resize_start" and isinstance(annotation, DimensionAnnotation):
        return replace(annotation, start=point)
    if mode == "resize_end" and isinstance(annotation, DimensionAnnotation):
        return replace(annotation, end=point)

    dx = point.x - start.x
    dy = point.y - start.y
    if isinstance(annotation, TextAnnotation):
        return replace(annotation, position=annotation.position.offset(dx, dy))
    if isinstance(annotation, DimensionAnnotation):
        return replace(
            annotation,
            start=annotation.start.offset(dx, dy),
            end=annotation.end.offset(dx, dy),
        )
    return replace(annotation, points=tuple(p.offset(dx, dy) for p in annotation.points))


class GestureRecognizer:
    """Routes input events for one editor session."""

    def __init__(self, session: EditorSession, prompter: Prompter) -> None:
        self.session = session
        self.prompter = prompter
        self.mode: Mode = "idle"
        self._drag: _DragState | None = None
        self._pan_anchor: tuple[float, float] | None = None

    def handle(self, event: PointerEvent | WheelEvent) -> None:
        if isinstance(event, WheelEvent):
            self.wheel(event.delta_x, event.delta_y, event.modifier)
        elif event.kind == "down":
            self.pointer_down(event.points, event.box)
        elif event.kind == "move":
            self.pointer_move(event.points, event.box)
        else:
            self.pointer_up()

    # -- Press ------------------------------------------------------------------

    def pointer_down(self, points, box: Box | None) -> None:
        if self.mode == "awaiting_input" or not points:
            return
        if len(points) >= 2:
            self._start_pan(points)
            return
        if self.mode != "idle" or box is None:
            return

        session = self.session
        point = to_normalized(points[0][0], points[0][1], box)

        if session.tool == "select":
            hit = hit_test(session.model.annotations, point, session.model.selected_id)
            if hit is None:
                session.model.clear_selection()
                return
            session.model.select(hit.annotation_id)
            self._drag = _DragState(hit.mode, point, session.model.get(hit.annotation_id))
            self.mode = "dragging"
            return

        if session.tool == "text":
            self._prompt(TEXT_PROMPT, lambda value: self._commit_text(point, value))
            return

        style = session.style
        if session.tool == "dimension":
            session.draft = DimensionAnnotation(
                id=new_annotation_id(),
                color=style.color,
                start=point,
                end=point,
                label="...",
                font_size=style.font_size,
                line_width=style.line_width,
            )
        else:
            session.draft = FreehandAnnotation(
                id=new_annotation_id(),
                color=style.color,
                points=(point,),
                line_width=style.line_width,
            )
        self.mode = "drawing"

    def _start_pan(self, points) -> None:
        if self.mode == "drawing" and self.session.draft is not None:
            logger.debug("Second touch point: discarding draft %s", self.session.draft.id)
            self.session.draft = None
        self._drag = None
        self._pan_anchor = midpoint(list(points))
        self.mode = "panning"

    # -- Move -------------------------------------------------------------------

    def pointer_move(self, points, box: Box | None) -> None:
        if not points:
            return
        if self.mode == "panning":
            if len(points) < 2 or self._pan_anchor is None:
                return
            mx, my = midpoint(list(points))
            ax, ay = self._pan_anchor
            self.session.viewport = self.session.viewport.pan_by(mx - ax, my - ay)
            self._pan_anchor = (mx, my)
            return

        if box is None or self.mode not in ("dragging", "drawing"):
            return
        point = to_normalized(points[0][0], points[0][1], box)

        if self.mode == "dragging" and self._drag is not None:
            drag = self._drag
            self.session.model.replace(dragged(drag.original, drag.mode, drag.start, point))
            return

        draft = self.session.draft
        if isinstance(draft, DimensionAnnotation):
            self.session.draft = replace(draft, end=point)
        elif isinstance(draft, FreehandAnnotation):
            self.session.draft = replace(draft, points=draft.points + (point,))

    # -- Release ----------------------------------------------------------------

    def pointer_up(self) -> None:
        if self.mode == "panning":
            self._pan_anchor = None
            self.mode = "idle"
        elif self.mode == "dragging":
            self._drag = None
            self.mode = "idle"
        elif self.mode == "drawing":
            draft = self.session.draft
            if isinstance(draft, DimensionAnnotation):
                self._prompt(DIMENSION_PROMPT, lambda value: self._commit_dimension(draft, value))
            else:
                self.mode = "idle"
                self.session.draft = None
                if draft is not None:
                    self.session.model.create(draft)

    def wheel(self, delta_x: float, delta_y: float, modifier: bool) -> None:
        if self.mode == "awaiting_input":
            return
        self.session.viewport = self.session.viewport.apply_wheel(delta_x, delta_y, modifier)

    # -- Prompts ----------------------------------------------------------------

    def _prompt(self, prompt_text: tuple[str, str], on_answer) -> None:
        message, default = prompt_text
        self.mode = "awaiting_input"
        future = self.prompter(PromptRequest(message, default))
        future.add_done_callback(lambda f: self._resolve(f, on_answer))

    def _resolve(self, future, on_answer) -> None:
        self.mode = "idle"
        value = None
        if not future.cancelled() and future.exception() is None:
            value = future.result()
        on_answer(value)

    def _commit_text(self, point: Point, value: str | None) -> None:
        if not value:
            return
        style = self.session.style
        self.session.model.create(
            TextAnnotation(
                id=new_annotation_id(),
                color=style.color,
                position=point,
                text=value,
                font_size=style.font_size,
            )
        )

    def _commit_dimension(self, draft: DimensionAnnotation, value: str | None) -> None:
        self.session.draft = None
        if not value:
            logger.debug("Dimension label cancelled; discarding %s", draft.id)
            return
        self.session.model.create(replace(draft, label=value))
