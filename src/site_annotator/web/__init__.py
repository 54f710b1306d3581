"""Annotation editor and photo viewers with Gradio."""

import argparse


def main() -> None:
    """CLI entry point for the Gradio app."""
    parser = argparse.ArgumentParser(description="Site annotator web app")
    parser.add_argument("--remote", action="store_true", help="Use the REST record store")
    parser.add_argument("--log-level", help="Logging level (default: SITE_ANNOTATOR_LOG_LEVEL)")
    args = parser.parse_args()

    from site_annotator.config import UPLOAD_DIR
    from site_annotator.log import setup_logging
    from site_annotator.web.app import create_app

    setup_logging(args.log_level)

    store = None
    if args.remote:
        from site_annotator.store.api_client import RecordStoreClient

        store = RecordStoreClient()

    app = create_app(store)
    app.launch(allowed_paths=[str(UPLOAD_DIR)])
