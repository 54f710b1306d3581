"""Shared test fixtures."""

from concurrent.futures import Future

import duckdb
import pytest

from site_annotator.editor.gestures import PointerEvent, WheelEvent
from site_annotator.editor.prompts import PromptRequest
from site_annotator.editor.viewport import Box
from site_annotator.models import (
    DimensionAnnotation,
    FreehandAnnotation,
    Photo,
    Point,
    Project,
    SharedProject,
    TextAnnotation,
)
from site_annotator.store.errors import PhotoNotFoundError, ShareLinkNotFoundError, StoreError
from site_annotator.store.repository import insert_photo, insert_project
from site_annotator.store.schema import ensure_schema

# Photo rendered at 1000 x 1000 client px from the origin: 1 px == 1 overlay unit.
BOX = Box(0, 0, 1000, 1000)


@pytest.fixture
def db_conn():
    """In-memory DuckDB connection with schema initialized."""
    conn = duckdb.connect(":memory:")
    ensure_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def sample_project(db_conn) -> Project:
    """A single project in the in-memory DB."""
    return insert_project(
        db_conn, "J-1001", "Acme Builders", site_address="12 Main St", status="In Progress"
    )


def make_photo(conn, project_id: str, image_file: str = "site.jpg", **kwargs) -> Photo:
    """Helper to register a photo row without an image file."""
    return insert_photo(conn, project_id, image_file, **kwargs)


def make_dimension(
    id: str = "d1",
    start: tuple[float, float] = (0.1, 0.1),
    end: tuple[float, float] = (0.5, 0.1),
    label: str = "10ft",
    color: str = "#FFFF00",
    **kwargs,
) -> DimensionAnnotation:
    return DimensionAnnotation(
        id=id, color=color, start=Point(*start), end=Point(*end), label=label, **kwargs
    )


def make_text(
    id: str = "t1",
    position: tuple[float, float] = (0.2, 0.2),
    text: str = "Label",
    color: str = "#FF0000",
    **kwargs,
) -> TextAnnotation:
    return TextAnnotation(id=id, color=color, position=Point(*position), text=text, **kwargs)


def make_freehand(
    id: str = "f1",
    points: tuple[tuple[float, float], ...] = ((0.1, 0.5), (0.3, 0.5), (0.3, 0.7)),
    color: str = "#00FF00",
    **kwargs,
) -> FreehandAnnotation:
    return FreehandAnnotation(
        id=id, color=color, points=tuple(Point(*p) for p in points), **kwargs
    )


def down(x: float, y: float, box: Box = BOX) -> PointerEvent:
    return PointerEvent("down", ((x, y),), box)


def move(x: float, y: float, box: Box = BOX) -> PointerEvent:
    return PointerEvent("move", ((x, y),), box)


def up() -> PointerEvent:
    return PointerEvent("up")


def touch(kind: str, *points: tuple[float, float], box: Box = BOX) -> PointerEvent:
    return PointerEvent(kind, tuple(points), box)


def wheel(dy: float, modifier: bool = False, dx: float = 0) -> WheelEvent:
    return WheelEvent(dx, dy, modifier)


def make_store_photo(photo_id: str = "p1", annotations="[]", **kwargs) -> Photo:
    """Photo record as a store would return it."""
    fields = dict(
        id=photo_id,
        project_id="proj1",
        image_file=f"{photo_id}.jpg",
        caption=None,
        is_portfolio=False,
        status_at_capture="In Progress",
        annotations=annotations,
        annotated_image_path=None,
        width=800,
        height=600,
        created_at=None,
    )
    fields.update(kwargs)
    return Photo(**fields)


class ScriptedPrompter:
    """Prompter that answers immediately from a fixed list; runs out to cancel."""

    def __init__(self, answers: list[str | None]) -> None:
        self.answers = list(answers)
        self.requests: list[PromptRequest] = []

    def __call__(self, request: PromptRequest) -> "Future[str | None]":
        self.requests.append(request)
        future: Future[str | None] = Future()
        future.set_result(self.answers.pop(0) if self.answers else None)
        return future


class MemoryStore:
    """In-memory photo store for editor and persistence tests."""

    def __init__(self, photos: list[Photo] | None = None) -> None:
        self.photos = {p.id: p for p in photos or []}
        self.shares: dict[str, SharedProject] = {}
        self.saves: list[tuple[str, str]] = []
        self.fail_saves = False

    def get_photo(self, photo_id: str) -> Photo:
        if photo_id not in self.photos:
            raise PhotoNotFoundError(photo_id)
        return self.photos[photo_id]

    def save_annotations(self, photo_id, annotations, annotated_image_path=None) -> None:
        if self.fail_saves:
            raise StoreError("connection refused")
        if photo_id not in self.photos:
            raise PhotoNotFoundError(photo_id)
        self.saves.append((photo_id, annotations))
        self.photos[photo_id].annotations = annotations

    def get_shared_project(self, token: str) -> SharedProject:
        if token not in self.shares:
            raise ShareLinkNotFoundError("Share link not found or expired")
        return self.shares[token]

    def image_url(self, photo: Photo) -> str:
        return f"https://img.example.com/{photo.image_file}"


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore([make_store_photo("p1")])
