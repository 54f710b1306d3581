"""Drives one editor from UI event batches.

The browser side batches raw input as JSON::

    {"box": [left, top, width, height],
     "events": [{"type": "down", "points": [[x, y], ...]},
                {"type": "move", "points": [[x, y]]},
                {"type": "up"},
                {"type": "wheel", "dx": 0, "dy": -120, "modifier": true}]}

``box`` is the on-screen rect of the photo at the time of the gesture; an event may carry its own
``box`` to override it.
"""

import json
import logging

from site_annotator.config import ZOOM_STEP
from site_annotator.editor.gestures import GestureRecognizer, PointerEvent, WheelEvent
from site_annotator.editor.persistence import (
    Notification,
    PersistenceAdapter,
    SaveController,
)
from site_annotator.editor.prompts import FuturePrompter, PromptRequest
from site_annotator.editor.session import AnnotationModel, EditorSession, Tool
from site_annotator.editor.viewport import Box
from site_annotator.render.layout import Layer, layout_annotations
from site_annotator.render.svg import render_stage_html
from site_annotator.store.errors import StoreError

logger = logging.getLogger(__name__)

POINTER_KINDS = ("down", "move", "up", "leave")


def _box(raw) -> Box | None:
    if raw is None:
        return None
    left, top, width, height = (float(v) for v in raw)
    return Box(left, top, width, height)


def decode_events(raw: str) -> list[PointerEvent | WheelEvent]:
    """Decode a JSON event batch. Raises ValueError on malformed input."""
    try:
        batch = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Event batch is not valid JSON: {exc.msg}") from exc
    if not isinstance(batch, dict) or not isinstance(batch.get("events"), list):
        raise ValueError("Event batch must be an object with an 'events' list")

    try:
        default_box = _box(batch.get("box"))
        events: list[PointerEvent | WheelEvent] = []
        for entry in batch["events"]:
            kind = entry.get("type")
            if kind == "wheel":
                events.append(
                    WheelEvent(
                        float(entry.get("dx", 0)),
                        float(entry.get("dy", 0)),
                        bool(entry.get("modifier", False)),
                    )
                )
            elif kind in POINTER_KINDS:
                points = tuple((float(x), float(y)) for x, y in entry.get("points", []))
                box = _box(entry["box"]) if "box" in entry else default_box
                events.append(PointerEvent(kind, points, box))
            else:
                raise ValueError(f"Unknown event type: {kind!r}")
    except (TypeError, AttributeError) as exc:
        raise ValueError(f"Malformed event batch: {exc}") from exc
    return events


class EditorController:
    """One editor instance: session, recognizer, prompts and saving."""

    def __init__(self, adapter: PersistenceAdapter | None = None) -> None:
        self.adapter = adapter
        self.prompter = FuturePrompter()
        self.saver = SaveController(adapter) if adapter is not None else None
        self.session: EditorSession | None = None
        self.recognizer: GestureRecognizer | None = None

    def open(self, photo_id: str) -> list[Notification]:
        """Load a photo into a fresh session. Failures leave an empty, image-less editor."""
        self.prompter.cancel()
        notices: list[Notification] = []
        session = EditorSession(photo_id=photo_id)
        if self.adapter is None:
            notices.append(Notification("error", "No record store configured"))
        else:
            try:
                loaded = self.adapter.load(photo_id)
            except StoreError as exc:
                logger.warning("Could not load photo %s: %s", photo_id, exc)
                notices.append(Notification("error", f"Could not load photo: {exc}"))
            else:
                session.image_url = loaded.image_url
                session.model = AnnotationModel(loaded.annotations)
                if loaded.parse_error:
                    notices.append(Notification("error", "Annotations could not be loaded"))
        self.attach(session)
        return notices

    def attach(self, session: EditorSession) -> None:
        self.session = session
        self.recognizer = GestureRecognizer(session, self.prompter)

    @property
    def loaded(self) -> bool:
        return self.session is not None and self.session.image_url is not None

    # -- Input -------------------------------------------------------------------

    def dispatch(self, raw: str) -> bool:
        """Replay a JSON event batch through the recognizer. Returns False if it was rejected."""
        if self.recognizer is None or not raw:
            return False
        try:
            events = decode_events(raw)
        except ValueError as exc:
            logger.warning("Dropping event batch: %s", exc)
            return False
        for event in events:
            try:
                self.recognizer.handle(event)
            except ValueError as exc:
                # e.g. a collapsed image box while the page is re-laying out
                logger.debug("Ignoring %s: %s", event, exc)
        return True

    @property
    def prompt(self) -> PromptRequest | None:
        return self.prompter.request if self.prompter.pending else None

    def answer_prompt(self, value: str | None) -> None:
        self.prompter.answer(value)

    def cancel_prompt(self) -> None:
        self.prompter.cancel()

    # -- Toolbar -----------------------------------------------------------------

    def set_tool(self, tool: Tool) -> None:
        if self.session is not None:
            self.session.set_tool(tool)

    def set_color(self, color: str) -> None:
        """Set the drawing color, and recolor the selection if there is one."""
        if self.session is None:
            return
        self.session.set_color(color)
        self.session.recolor_selected(color)

    def set_font_size(self, font_size: int) -> None:
        if self.session is None:
            return
        self.session.style.font_size = int(font_size)
        self.session.resize_text_selected(int(font_size))

    def set_line_width(self, line_width: int) -> None:
        if self.session is None:
            return
        self.session.style.line_width = int(line_width)
        self.session.restyle_line_selected(int(line_width))

    def edit_text(self, text: str | None) -> bool:
        return self.session is not None and self.session.edit_selected_text(text)

    def delete_selected(self) -> bool:
        return self.session is not None and self.session.delete_selected()

    def undo(self) -> bool:
        return self.session is not None and self.session.model.undo_last() is not None

    def zoom_in(self) -> None:
        if self.session is not None:
            self.session.viewport = self.session.viewport.zoom_by(ZOOM_STEP)

    def zoom_out(self) -> None:
        if self.session is not None:
            self.session.viewport = self.session.viewport.zoom_by(-ZOOM_STEP)

    def reset_zoom(self) -> None:
        if self.session is not None:
            self.session.viewport = self.session.viewport.reset()

    def save(self) -> Notification:
        if self.session is None or self.saver is None or not self.loaded:
            return Notification("info", "No photo loaded")
        return self.saver.save(self.session)

    @property
    def saving(self) -> bool:
        return self.saver is not None and self.saver.in_flight

    # -- Rendering ---------------------------------------------------------------

    def layers(self) -> list[Layer]:
        session = self.session
        if session is None:
            return []
        return layout_annotations(
            session.model.annotations,
            interactive=True,
            selected_id=session.model.selected_id,
            tool=session.tool,
            draft=session.draft,
        )

    def render_html(self) -> str:
        session = self.session
        if session is None:
            return render_stage_html(None, [])
        return render_stage_html(
            session.image_url,
            self.layers(),
            viewport=session.viewport,
            tool=session.tool,
        )

    def status(self) -> str:
        """One-line status: zoom level, annotation count, current selection."""
        session = self.session
        if session is None:
            return "No photo loaded"
        selected = session.model.selected
        parts = [f"Zoom {session.viewport.zoom_percent}%", f"{len(session.model)} annotations"]
        if selected is not None:
            parts.append(f"selected: {selected.type}")
        return " | ".join(parts)
