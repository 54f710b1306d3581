"""The record store operations the annotation editor and viewers depend on."""

from typing import Protocol

from site_annotator.models import Photo, SharedProject


class PhotoStore(Protocol):
    """Load a photo, overwrite its annotation blob, resolve a share token."""

    def get_photo(self, photo_id: str) -> Photo: ...

    def save_annotations(
        self, photo_id: str, annotations: str, annotated_image_path: str | None = None
    ) -> None: ...

    def get_shared_project(self, token: str) -> SharedProject: ...

    def image_url(self, photo: Photo) -> str: ...
