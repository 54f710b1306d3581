"""DuckDB schema definition."""

import duckdb


def ensure_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create tables and indexes if they do not exist."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS projects (
            id            VARCHAR PRIMARY KEY,
            job_number    VARCHAR NOT NULL UNIQUE,
            client_name   VARCHAR NOT NULL,
            site_address  VARCHAR,
            status        VARCHAR NOT NULL DEFAULT 'Lead',
            created_at    TIMESTAMP DEFAULT current_timestamp
        )
    """)

    # photos.annotations holds the serialized annotation set as JSON text
    conn.execute("""
        CREATE TABLE IF NOT EXISTS photos (
            id                   VARCHAR PRIMARY KEY,
            project_id           VARCHAR NOT NULL,
            image_file           VARCHAR NOT NULL,
            caption              VARCHAR,
            is_portfolio         BOOLEAN NOT NULL DEFAULT false,
            status_at_capture    VARCHAR,
            annotations          VARCHAR NOT NULL DEFAULT '[]',
            annotated_image_path VARCHAR,
            width                INTEGER,
            height               INTEGER,
            created_at           TIMESTAMP DEFAULT current_timestamp
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS notes (
            id          VARCHAR PRIMARY KEY,
            project_id  VARCHAR NOT NULL,
            note_text   VARCHAR NOT NULL,
            created_at  TIMESTAMP DEFAULT current_timestamp
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS share_links (
            token       VARCHAR PRIMARY KEY,
            project_id  VARCHAR NOT NULL,
            expires_at  TIMESTAMP,
            created_at  TIMESTAMP DEFAULT current_timestamp
        )
    """)

    conn.execute("CREATE INDEX IF NOT EXISTS idx_photos_project ON photos(project_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_notes_project ON notes(project_id)")

