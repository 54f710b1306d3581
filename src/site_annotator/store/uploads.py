"""Register uploaded site photos."""

import logging
import shutil
import uuid
from pathlib import Path

import duckdb
from PIL import Image, UnidentifiedImageError
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from site_annotator.config import ALLOWED_IMAGE_EXTENSIONS, MAX_UPLOAD_BYTES, UPLOAD_DIR
from site_annotator.models import Photo
from site_annotator.store.errors import InvalidUploadError
from site_annotator.store.repository import insert_photo

logger = logging.getLogger(__name__)


def register_upload(
    conn: duckdb.DuckDBPyConnection,
    project_id: str,
    source: Path,
    caption: str | None = None,
    is_portfolio: bool = False,
    upload_dir: Path | None = None,
) -> Photo:
    """Copy an image into the upload directory and register it as a photo.

    Args:
        conn: DuckDB connection.
        project_id: Owning project; its current status is recorded on the photo.
        source: Image file to upload.
        caption: Optional caption.
        is_portfolio: Whether the photo is flagged for the portfolio.
        upload_dir: Destination directory (defaults to UPLOAD_DIR).

    Returns:
        The new Photo, with an empty annotation set.

    Raises:
        InvalidUploadError: unsupported file type or file larger than the upload limit.
        ProjectNotFoundError: unknown project.
    """
    source = Path(source)
    if not _is_allowed_image(source):
        raise InvalidUploadError(
            f"Only image files are allowed ({', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))})"
        )
    size = source.stat().st_size
    if size > MAX_UPLOAD_BYTES:
        raise InvalidUploadError(
            f"{source.name} is {size} bytes; the limit is {MAX_UPLOAD_BYTES} bytes"
        )

    try:
        with Image.open(source) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidUploadError(f"{source.name} is not a readable image") from exc

    dest_dir = Path(upload_dir or UPLOAD_DIR)
    dest_dir.mkdir(parents=True, exist_ok=True)
    filename = _unique_filename(source)
    shutil.copyfile(source, dest_dir / filename)

    photo = insert_photo(
        conn,
        project_id,
        filename,
        caption=caption,
        is_portfolio=is_portfolio,
        width=width,
        height=height,
    )
    logger.info("Registered %s as photo %s (%dx%d)", source.name, photo.id, width, height)
    return photo


def import_directory(
    conn: duckdb.DuckDBPyConnection,
    project_id: str,
    directory: Path,
    upload_dir: Path | None = None,
) -> list[Photo]:
    """Upload every allowed image in ``directory``; rejected files are logged and skipped."""
    files = sorted(p for p in Path(directory).iterdir() if p.is_file() and _is_allowed_image(p))
    if not files:
        return []

    photos: list[Photo] = []
    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("{task.completed}/{task.total}"),
    ) as progress:
        task = progress.add_task(f"Uploading {Path(directory).name}", total=len(files))
        for path in files:
            try:
                photos.append(register_upload(conn, project_id, path, upload_dir=upload_dir))
            except InvalidUploadError as exc:
                logger.warning("Skipped %s: %s", path.name, exc)
            progress.advance(task)
    return photos


def _is_allowed_image(path: Path) -> bool:
    return path.suffix.lower() in ALLOWED_IMAGE_EXTENSIONS


def _unique_filename(source: Path) -> str:
    """Stored name: random prefix plus the original extension."""
    return f"{uuid.uuid4().hex}{source.suffix.lower()}"
