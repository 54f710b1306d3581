"""Record store CLI: manage projects, photos and share links in DuckDB."""

import argparse


def main() -> None:
    """CLI entry point for record store management."""
    parser = argparse.ArgumentParser(description="Site annotator record store")
    parser.add_argument("--log-level", help="Logging level (default: SITE_ANNOTATOR_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command")

    # init-db
    subparsers.add_parser("init-db", help="Initialize the database schema")

    # create-project
    cp_parser = subparsers.add_parser("create-project", help="Create a project")
    cp_parser.add_argument("--job-number", required=True, help="Job number (unique)")
    cp_parser.add_argument("--client", required=True, help="Client name")
    cp_parser.add_argument("--address", help="Site address")
    cp_parser.add_argument("--status", default="Lead", help="Project status (default: Lead)")

    # upload
    up_parser = subparsers.add_parser("upload", help="Upload photos (files or directories)")
    up_parser.add_argument("--project-id", required=True, help="Owning project ID")
    up_parser.add_argument("paths", nargs="+", help="Image files or directories")
    up_parser.add_argument("--caption", help="Caption (single file uploads)")
    up_parser.add_argument("--portfolio", action="store_true", help="Flag as portfolio photo")

    # list
    list_parser = subparsers.add_parser("list", help="List photos in DB")
    list_parser.add_argument("--project-id", help="Filter by project ID")
    list_parser.add_argument("--portfolio", action="store_true", help="Only portfolio photos")

    # annotations
    an_parser = subparsers.add_parser("annotations", help="Show a photo's annotations")
    an_parser.add_argument("photo_id", help="Photo ID")
    an_parser.add_argument("--remote", action="store_true", help="Read from the REST API")

    # render
    rn_parser = subparsers.add_parser("render", help="Export a photo with its annotations")
    rn_parser.add_argument("photo_id", help="Photo ID")
    rn_parser.add_argument("--output", help="Output path (default: <upload dir>/annotated/)")

    # note
    note_parser = subparsers.add_parser("note", help="Add a project note")
    note_parser.add_argument("--project-id", required=True, help="Project ID")
    note_parser.add_argument("text", help="Note text")

    # share
    sh_parser = subparsers.add_parser("share", help="Create a read-only share link")
    sh_parser.add_argument("--project-id", required=True, help="Project ID")
    sh_parser.add_argument("--days", type=int, help="Expire after N days (default: never)")

    # show-share
    ss_parser = subparsers.add_parser("show-share", help="Resolve a share token")
    ss_parser.add_argument("token", help="Share token")
    ss_parser.add_argument("--remote", action="store_true", help="Read from the REST API")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    from site_annotator.log import setup_logging
    from site_annotator.store.errors import StoreError

    setup_logging(args.log_level)

    commands = {
        "init-db": _cmd_init_db,
        "create-project": _cmd_create_project,
        "upload": _cmd_upload,
        "list": _cmd_list,
        "annotations": _cmd_annotations,
        "render": _cmd_render,
        "note": _cmd_note,
        "share": _cmd_share,
        "show-share": _cmd_show_share,
    }
    try:
        commands[args.command](args)
    except StoreError as exc:
        print(f"Error: {exc}")
        raise SystemExit(1) from exc


def _cmd_init_db(args: argparse.Namespace) -> None:
    from site_annotator.db import get_connection

    conn = get_connection()
    conn.close()
    print("Database initialized successfully.")


def _cmd_create_project(args: argparse.Namespace) -> None:
    from site_annotator.db import get_connection
    from site_annotator.store.repository import insert_project

    conn = get_connection()
    project = insert_project(
        conn, args.job_number, args.client, site_address=args.address, status=args.status
    )
    conn.close()
    print(f"Created project {project.id}  [{project.job_number}] {project.client_name}")


def _cmd_upload(args: argparse.Namespace) -> None:
    """Upload image files and/or every image in the given directories."""
    from pathlib import Path

    from site_annotator.db import get_connection
    from site_annotator.store.uploads import import_directory, register_upload

    conn = get_connection()
    photos = []
    try:
        for raw in args.paths:
            path = Path(raw)
            if path.is_dir():
                photos.extend(import_directory(conn, args.project_id, path))
            else:
                photos.append(
                    register_upload(
                        conn,
                        args.project_id,
                        path,
                        caption=args.caption,
                        is_portfolio=args.portfolio,
                    )
                )
    finally:
        conn.close()
    print(f"Uploaded {len(photos)} photo(s) to project {args.project_id}.")


def _cmd_list(args: argparse.Namespace) -> None:
    from site_annotator.db import get_connection
    from site_annotator.editor.persistence import loads
    from site_annotator.store.repository import list_photos

    conn = get_connection()
    photos = list_photos(
        conn, project_id=args.project_id, portfolio=True if args.portfolio else None
    )
    conn.close()
    for photo in photos:
        count = len(loads(photo.annotations))
        flag = "*" if photo.is_portfolio else " "
        print(f"{flag} {photo.id}  {count:>3} annotations  {photo.caption or photo.image_file}")


def _open_store(remote: bool):
    if remote:
        from site_annotator.store.api_client import RecordStoreClient

        return RecordStoreClient(), None

    from site_annotator.db import get_connection
    from site_annotator.store.repository import LocalRecordStore

    conn = get_connection()
    return LocalRecordStore(conn), conn


def _cmd_annotations(args: argparse.Namespace) -> None:
    """Print a photo's parsed annotation set."""
    import json

    from site_annotator.editor.persistence import PersistenceAdapter, annotation_to_dict

    store, conn = _open_store(args.remote)
    try:
        loaded = PersistenceAdapter(store).load(args.photo_id)
    finally:
        if conn is not None:
            conn.close()
    if loaded.parse_error:
        print(f"Warning: annotations could not be loaded ({loaded.parse_error})")
    print(json.dumps([annotation_to_dict(a) for a in loaded.annotations], indent=2))


def _cmd_render(args: argparse.Namespace) -> None:
    """Export the annotated image and record its path on the photo."""
    from pathlib import Path

    from site_annotator.db import get_connection
    from site_annotator.editor.persistence import parse_annotation_set
    from site_annotator.render.raster import export_annotated_image
    from site_annotator.store.repository import LocalRecordStore, update_annotations

    conn = get_connection()
    try:
        store = LocalRecordStore(conn)
        photo = store.get_photo(args.photo_id)
        parsed = parse_annotation_set(photo.annotations)
        if parsed.error:
            print(f"Error: annotations could not be loaded ({parsed.error})")
            return
        output = Path(args.output) if args.output else (
            store.upload_dir / "annotated" / f"{Path(photo.image_file).stem}.png"
        )
        export_annotated_image(store.image_path(photo), parsed.annotations, output)
        update_annotations(conn, photo.id, photo.annotations, annotated_image_path=str(output))
    finally:
        conn.close()
    print(f"Wrote {output}")


def _cmd_note(args: argparse.Namespace) -> None:
    from site_annotator.db import get_connection
    from site_annotator.store.repository import insert_note

    conn = get_connection()
    try:
        note = insert_note(conn, args.project_id, args.text)
    finally:
        conn.close()
    print(f"Added note {note.id}")


def _cmd_share(args: argparse.Namespace) -> None:
    from datetime import timedelta

    from site_annotator.db import get_connection
    from site_annotator.store.repository import create_share_link, utcnow

    expires_at = utcnow() + timedelta(days=args.days) if args.days else None
    conn = get_connection()
    try:
        link = create_share_link(conn, args.project_id, expires_at=expires_at)
    finally:
        conn.close()
    expiry = f" (expires {link.expires_at:%Y-%m-%d %H:%M} UTC)" if link.expires_at else ""
    print(f"Share token: {link.token}{expiry}")


def _cmd_show_share(args: argparse.Namespace) -> None:
    from site_annotator.editor.persistence import loads

    store, conn = _open_store(args.remote)
    try:
        shared = store.get_shared_project(args.token)
    finally:
        if conn is not None:
            conn.close()
    print(f"[{shared.job_number}] {shared.client_name}  ({shared.status})")
    if shared.site_address:
        print(f"  {shared.site_address}")
    for photo in shared.photos:
        print(f"  photo {photo.id}  {len(loads(photo.annotations)):>3} annotations  {photo.caption or ''}")
    for note in shared.notes:
        print(f"  note: {note.note_text}")
