"""DuckDB connection factory for the local record store."""

import logging
from pathlib import Path

import duckdb

from site_annotator.config import DB_PATH

logger = logging.getLogger(__name__)


def get_connection(db_path: str | Path | None = None) -> duckdb.DuckDBPyConnection:
    """Open the record store database (project-root file by default) with its schema applied."""
    from site_annotator.store.schema import ensure_schema

    path = Path(db_path or DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Opening record store %s", path)
    conn = duckdb.connect(str(path))
    ensure_schema(conn)
    return conn
