"""Data models for annotations and photo records."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Literal

AnnotationType = Literal["dimension", "text", "freehand"]


@dataclass(frozen=True)
class Point:
    """A position in normalized image space (fractions of the photo's width/height)."""

    x: float
    y: float

    def offset(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class DimensionAnnotation:
    """A measured line between two points with a free-text label."""

    type: ClassVar[AnnotationType] = "dimension"

    id: str
    color: str
    start: Point
    end: Point
    label: str
    font_size: float | None = None
    line_width: float | None = None


@dataclass(frozen=True)
class TextAnnotation:
    """A text label anchored at its baseline-left position."""

    type: ClassVar[AnnotationType] = "text"

    id: str
    color: str
    position: Point
    text: str
    font_size: float | None = None


@dataclass(frozen=True)
class FreehandAnnotation:
    """A free-hand stroke; points are kept in stroke order."""

    type: ClassVar[AnnotationType] = "freehand"

    id: str
    color: str
    points: tuple[Point, ...]
    line_width: float | None = None

    def __post_init__(self) -> None:
        if not self.points:
            raise ValueError("A freehand annotation needs at least one point")
        # Accept any sequence but store an immutable tuple.
        object.__setattr__(self, "points", tuple(self.points))


Annotation = DimensionAnnotation | TextAnnotation | FreehandAnnotation


def new_annotation_id() -> str:
    """Return a short opaque id for a newly created annotation."""
    return uuid.uuid4().hex[:12]


@dataclass
class Project:
    """A field-survey project that owns photos and notes."""

    id: str
    job_number: str
    client_name: str
    site_address: str | None
    status: str
    created_at: datetime | None


@dataclass
class Photo:
    """A stored site photo and its serialized annotation set."""

    id: str
    project_id: str
    image_file: str
    caption: str | None
    is_portfolio: bool
    status_at_capture: str | None
    annotations: str | list | None
    annotated_image_path: str | None
    width: int | None
    height: int | None
    created_at: datetime | None


@dataclass
class Note:
    """A free-text project note."""

    id: str
    project_id: str
    note_text: str
    created_at: datetime | None


@dataclass
class ShareLink:
    """A tokenized read-only link to a project."""

    token: str
    project_id: str
    expires_at: datetime | None
    created_at: datetime | None


@dataclass
class SharedProject:
    """Sanitized project view returned for a share token."""

    job_number: str
    client_name: str
    site_address: str | None
    status: str
    photos: list[Photo] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
