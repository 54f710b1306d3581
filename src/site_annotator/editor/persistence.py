"""Serialization of annotation sets and load/save against the record store.

Wire format: a JSON array of annotation objects with camelCase keys. Optional style fields
(``fontSize``, ``lineWidth``) are omitted when unset so a parse/serialize round trip is exact.
"""

import json
import logging
import math
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

from site_annotator.editor.session import EditorSession
from site_annotator.models import (
    Annotation,
    DimensionAnnotation,
    FreehandAnnotation,
    Photo,
    Point,
    TextAnnotation,
)
from site_annotator.store.base import PhotoStore
from site_annotator.store.errors import StoreError

logger = logging.getLogger(__name__)


def _point_to_dict(point: Point) -> dict:
    return {"x": point.x, "y": point.y}


def _point_from_dict(data) -> Point:
    if not isinstance(data, dict):
        raise ValueError(f"Expected a point object, got {data!r}")
    return Point(float(data["x"]), float(data["y"]))


def _optional_number(data: dict, key: str) -> float | None:
    """Optional style size, kept as written (integral values come back as int)."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        raise ValueError(f"Field {key!r} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Field {key!r} must be finite, got {value!r}")
    return int(number) if number.is_integer() else number


def _string(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"Field {key!r} must be a string, got {value!r}")
    return value


def annotation_to_dict(annotation: Annotation) -> dict:
    data: dict = {"id": annotation.id, "type": annotation.type, "color": annotation.color}
    if isinstance(annotation, DimensionAnnotation):
        data["start"] = _point_to_dict(annotation.start)
        data["end"] = _point_to_dict(annotation.end)
        data["label"] = annotation.label
        if annotation.font_size is not None:
            data["fontSize"] = annotation.font_size
        if annotation.line_width is not None:
            data["lineWidth"] = annotation.line_width
    elif isinstance(annotation, TextAnnotation):
        data["position"] = _point_to_dict(annotation.position)
        data["text"] = annotation.text
        if annotation.font_size is not None:
            data["fontSize"] = annotation.font_size
    elif isinstance(annotation, FreehandAnnotation):
        data["points"] = [_point_to_dict(p) for p in annotation.points]
        if annotation.line_width is not None:
            data["lineWidth"] = annotation.line_width
    return data


def annotation_from_dict(data: dict) -> Annotation:
    """Build one annotation from its wire form. Raises ValueError on malformed input."""
    if not isinstance(data, dict):
        raise ValueError(f"Expected an annotation object, got {data!r}")
    kind = data.get("type")
    try:
        if kind == "dimension":
            return DimensionAnnotation(
                id=_string(data, "id"),
                color=_string(data, "color"),
                start=_point_from_dict(data["start"]),
                end=_point_from_dict(data["end"]),
                label=_string(data, "label"),
                font_size=_optional_number(data, "fontSize"),
                line_width=_optional_number(data, "lineWidth"),
            )
        if kind == "text":
            return TextAnnotation(
                id=_string(data, "id"),
                color=_string(data, "color"),
                position=_point_from_dict(data["position"]),
                text=_string(data, "text"),
                font_size=_optional_number(data, "fontSize"),
            )
        if kind == "freehand":
            points = data["points"]
            if not isinstance(points, list):
                raise ValueError("Field 'points' must be a list")
            return FreehandAnnotation(
                id=_string(data, "id"),
                color=_string(data, "color"),
                points=tuple(_point_from_dict(p) for p in points),
                line_width=_optional_number(data, "lineWidth"),
            )
    except KeyError as exc:
        raise ValueError(f"{kind} annotation is missing field {exc}") from exc
    except TypeError as exc:
        raise ValueError(f"Bad {kind} annotation: {exc}") from exc
    raise ValueError(f"Unknown annotation type: {kind!r}")


def dumps(annotations: Iterable[Annotation]) -> str:
    """Serialize an annotation set to the stored text blob."""
    return json.dumps([annotation_to_dict(a) for a in annotations])


@dataclass
class ParseResult:
    """Parsed annotations, plus an error message if the blob could not be read at all."""

    annotations: list[Annotation] = field(default_factory=list)
    error: str | None = None
    skipped: int = 0


def parse_annotation_set(raw: str | list | None) -> ParseResult:
    """Parse a stored annotation field without ever raising.

    Accepts nothing/empty (empty set), an already-decoded list, a JSON text blob, or a
    JSON-encoded string holding the blob (some producers encode twice). An unreadable blob
    gives an empty set with ``error`` set; individually invalid entries are skipped.
    """
    if raw is None or raw == "":
        return ParseResult()

    data = raw
    try:
        # At most two decode passes: text blob, then a double-encoded one.
        for _ in range(2):
            if not isinstance(data, str):
                break
            data = json.loads(data) if data.strip() else []
    except json.JSONDecodeError as exc:
        logger.warning("Could not decode annotation blob: %s", exc)
        return ParseResult(error=f"Annotation data is not valid JSON: {exc.msg}")

    if data is None:
        return ParseResult()

    if not isinstance(data, list):
        logger.warning("Annotation blob is not a list: %s", type(data).__name__)
        return ParseResult(error="Annotation data is not a list")

    result = ParseResult()
    seen: set[str] = set()
    for entry in data:
        try:
            annotation = annotation_from_dict(entry)
        except ValueError as exc:
            logger.warning("Skipping invalid annotation: %s", exc)
            result.skipped += 1
            continue
        if annotation.id in seen:
            logger.warning("Skipping duplicate annotation id %s", annotation.id)
            result.skipped += 1
            continue
        seen.add(annotation.id)
        result.annotations.append(annotation)
    return result


def loads(raw: str | list | None) -> list[Annotation]:
    return parse_annotation_set(raw).annotations


@dataclass
class LoadedPhoto:
    """A photo opened for viewing or editing."""

    photo: Photo
    image_url: str
    annotations: list[Annotation]
    parse_error: str | None = None


class PersistenceAdapter:
    """Loads and saves annotation sets through a record store."""

    def __init__(self, store: PhotoStore) -> None:
        self.store = store

    def load(self, photo_id: str) -> LoadedPhoto:
        """Fetch a photo and parse its annotations. Store failures propagate as StoreError."""
        photo = self.store.get_photo(photo_id)
        parsed = parse_annotation_set(photo.annotations)
        if parsed.error:
            logger.warning("Photo %s: %s", photo_id, parsed.error)
        return LoadedPhoto(
            photo=photo,
            image_url=self.store.image_url(photo),
            annotations=parsed.annotations,
            parse_error=parsed.error,
        )

    def save(
        self,
        photo_id: str,
        annotations: Iterable[Annotation],
        annotated_image_path: str | None = None,
    ) -> None:
        """Replace the stored annotation set wholesale."""
        blob = dumps(annotations)
        self.store.save_annotations(photo_id, blob, annotated_image_path)
        logger.info("Saved annotations for photo %s (%d bytes)", photo_id, len(blob))


@dataclass(frozen=True)
class Notification:
    """A transient message for the user (toast)."""

    kind: Literal["success", "error", "info"]
    message: str


class SaveController:
    """Runs saves for the editor, one at a time, reporting results as notifications."""

    def __init__(self, adapter: PersistenceAdapter) -> None:
        self.adapter = adapter
        self._lock = threading.Lock()

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    def save(self, session: EditorSession) -> Notification:
        if not self._lock.acquire(blocking=False):
            return Notification("info", "A save is already in progress")
        try:
            snapshot = session.model.annotations
            self.adapter.save(session.photo_id, snapshot)
        except StoreError as exc:
            logger.error("Failed to save annotations for photo %s: %s", session.photo_id, exc)
            return Notification("error", "Failed to save")
        finally:
            self._lock.release()
        session.model.clear_selection()
        return Notification("success", "Annotations saved")
