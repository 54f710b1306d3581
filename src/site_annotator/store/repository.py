"""CRUD operations for projects, photos, notes and share links in DuckDB."""

import logging
import secrets
import uuid
from datetime import UTC, datetime
from pathlib import Path

import duckdb

from site_annotator.config import UPLOAD_DIR
from site_annotator.models import Note, Photo, Project, ShareLink, SharedProject
from site_annotator.store.errors import (
    PhotoNotFoundError,
    ProjectNotFoundError,
    ShareLinkNotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)

PHOTO_COLUMNS = (
    "id, project_id, image_file, caption, is_portfolio, status_at_capture, "
    "annotations, annotated_image_path, width, height, created_at"
)


def utcnow() -> datetime:
    """Current UTC time as a naive timestamp (DuckDB TIMESTAMP columns are zone-less)."""
    return datetime.now(UTC).replace(tzinfo=None)


def _new_id() -> str:
    return uuid.uuid4().hex


def insert_project(
    conn: duckdb.DuckDBPyConnection,
    job_number: str,
    client_name: str,
    site_address: str | None = None,
    status: str = "Lead",
) -> Project:
    """Insert a project and return it."""
    project_id = _new_id()
    conn.execute(
        """
        INSERT INTO projects (id, job_number, client_name, site_address, status, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        [project_id, job_number, client_name, site_address, status, utcnow()],
    )
    return get_project(conn, project_id)


def get_project(conn: duckdb.DuckDBPyConnection, project_id: str) -> Project | None:
    """Look up a single project by id."""
    row = conn.execute(
        "SELECT id, job_number, client_name, site_address, status, created_at "
        "FROM projects WHERE id = ?",
        [project_id],
    ).fetchone()
    if row is None:
        return None
    return Project(*row)


def list_projects(conn: duckdb.DuckDBPyConnection) -> list[Project]:
    rows = conn.execute(
        "SELECT id, job_number, client_name, site_address, status, created_at "
        "FROM projects ORDER BY created_at DESC, rowid DESC"
    ).fetchall()
    return [Project(*row) for row in rows]


def insert_photo(
    conn: duckdb.DuckDBPyConnection,
    project_id: str,
    image_file: str,
    caption: str | None = None,
    is_portfolio: bool = False,
    width: int | None = None,
    height: int | None = None,
) -> Photo:
    """Register a stored image file as a photo of ``project_id``.

    The photo starts with an empty annotation set and records the project's status at the time
    of capture.
    """
    project = get_project(conn, project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)

    photo_id = _new_id()
    conn.execute(
        f"""
        INSERT INTO photos ({PHOTO_COLUMNS})
        VALUES (?, ?, ?, ?, ?, ?, '[]', NULL, ?, ?, ?)
        """,
        [
            photo_id,
            project_id,
            image_file,
            caption,
            is_portfolio,
            project.status,
            width,
            height,
            utcnow(),
        ],
    )
    return get_photo(conn, photo_id)


def get_photo(conn: duckdb.DuckDBPyConnection, photo_id: str) -> Photo | None:
    """Look up a single photo by id."""
    row = conn.execute(
        f"SELECT {PHOTO_COLUMNS} FROM photos WHERE id = ?", [photo_id]
    ).fetchone()
    if row is None:
        return None
    return _row_to_photo(row)


def list_photos(
    conn: duckdb.DuckDBPyConnection,
    project_id: str | None = None,
    portfolio: bool | None = None,
) -> list[Photo]:
    """List photos newest first, with optional filters."""
    query = f"SELECT {PHOTO_COLUMNS} FROM photos WHERE 1=1"
    params: list = []
    if project_id is not None:
        query += " AND project_id = ?"
        params.append(project_id)
    if portfolio is not None:
        query += " AND is_portfolio = ?"
        params.append(portfolio)
    query += " ORDER BY created_at DESC, rowid DESC"
    rows = conn.execute(query, params).fetchall()
    return [_row_to_photo(row) for row in rows]


def update_annotations(
    conn: duckdb.DuckDBPyConnection,
    photo_id: str,
    annotations: str,
    annotated_image_path: str | None = None,
) -> None:
    """Overwrite a photo's annotation blob (and annotated image path, when given)."""
    if get_photo(conn, photo_id) is None:
        raise PhotoNotFoundError(photo_id)
    if annotated_image_path is None:
        conn.execute("UPDATE photos SET annotations = ? WHERE id = ?", [annotations, photo_id])
    else:
        conn.execute(
            "UPDATE photos SET annotations = ?, annotated_image_path = ? WHERE id = ?",
            [annotations, annotated_image_path, photo_id],
        )


def insert_note(conn: duckdb.DuckDBPyConnection, project_id: str, note_text: str) -> Note:
    if get_project(conn, project_id) is None:
        raise ProjectNotFoundError(project_id)
    note = Note(id=_new_id(), project_id=project_id, note_text=note_text, created_at=utcnow())
    conn.execute(
        "INSERT INTO notes (id, project_id, note_text, created_at) VALUES (?, ?, ?, ?)",
        [note.id, note.project_id, note.note_text, note.created_at],
    )
    return note


def list_notes(conn: duckdb.DuckDBPyConnection, project_id: str) -> list[Note]:
    """Notes of a project, newest first."""
    rows = conn.execute(
        "SELECT id, project_id, note_text, created_at FROM notes "
        "WHERE project_id = ? ORDER BY created_at DESC, rowid DESC",
        [project_id],
    ).fetchall()
    return [Note(*row) for row in rows]


def create_share_link(
    conn: duckdb.DuckDBPyConnection,
    project_id: str,
    expires_at: datetime | None = None,
) -> ShareLink:
    """Create a read-only share link with a url-safe random token."""
    if get_project(conn, project_id) is None:
        raise ProjectNotFoundError(project_id)
    link = ShareLink(
        token=secrets.token_urlsafe(24),
        project_id=project_id,
        expires_at=expires_at,
        created_at=utcnow(),
    )
    conn.execute(
        "INSERT INTO share_links (token, project_id, expires_at, created_at) VALUES (?, ?, ?, ?)",
        [link.token, link.project_id, link.expires_at, link.created_at],
    )
    return link


def get_shared_project(
    conn: duckdb.DuckDBPyConnection, token: str, now: datetime | None = None
) -> SharedProject:
    """Resolve a share token to the sanitized project view.

    Raises:
        ShareLinkNotFoundError: the token is unknown (or its project is gone), or it has expired.
    """
    row = conn.execute(
        "SELECT token, project_id, expires_at, created_at FROM share_links WHERE token = ?",
        [token],
    ).fetchone()
    if row is None:
        raise ShareLinkNotFoundError("Share link not found or expired")
    link = ShareLink(*row)
    if link.expires_at is not None and link.expires_at < (now or utcnow()):
        raise ShareLinkNotFoundError("Share link has expired")

    project = get_project(conn, link.project_id)
    if project is None:
        raise ShareLinkNotFoundError("Share link not found or expired")
    return SharedProject(
        job_number=project.job_number,
        client_name=project.client_name,
        site_address=project.site_address,
        status=project.status,
        photos=list_photos(conn, project_id=project.id),
        notes=list_notes(conn, project.id),
    )


def _row_to_photo(row: tuple) -> Photo:
    """Convert a DB row tuple to Photo.

    Column order matches PHOTO_COLUMNS:
    0:id, 1:project_id, 2:image_file, 3:caption, 4:is_portfolio,
    5:status_at_capture, 6:annotations, 7:annotated_image_path,
    8:width, 9:height, 10:created_at
    """
    return Photo(
        id=row[0],
        project_id=row[1],
        image_file=row[2],
        caption=row[3],
        is_portfolio=bool(row[4]),
        status_at_capture=row[5],
        annotations=row[6],
        annotated_image_path=row[7],
        width=row[8],
        height=row[9],
        created_at=row[10],
    )


class LocalRecordStore:
    """Photo store backed by the local DuckDB database and upload directory.

    ``url_prefix`` is prepended to the image file's absolute path; the web app serves the
    upload directory through Gradio's file route.
    """

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection,
        upload_dir: Path | None = None,
        url_prefix: str = "/gradio_api/file=",
    ) -> None:
        self.conn = conn
        self.upload_dir = Path(upload_dir or UPLOAD_DIR)
        self.url_prefix = url_prefix

    def get_photo(self, photo_id: str) -> Photo:
        try:
            photo = get_photo(self.conn, photo_id)
        except duckdb.Error as exc:
            raise StoreError(f"Could not load photo {photo_id}: {exc}") from exc
        if photo is None:
            raise PhotoNotFoundError(photo_id)
        return photo

    def save_annotations(
        self, photo_id: str, annotations: str, annotated_image_path: str | None = None
    ) -> None:
        try:
            update_annotations(self.conn, photo_id, annotations, annotated_image_path)
        except duckdb.Error as exc:
            raise StoreError(f"Could not save annotations for {photo_id}: {exc}") from exc

    def get_shared_project(self, token: str) -> SharedProject:
        try:
            return get_shared_project(self.conn, token)
        except duckdb.Error as exc:
            raise StoreError(f"Could not resolve share link: {exc}") from exc

    def image_path(self, photo: Photo) -> Path:
        return self.upload_dir / photo.image_file

    def image_url(self, photo: Photo) -> str:
        return f"{self.url_prefix}{self.image_path(photo).resolve()}"
