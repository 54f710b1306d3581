"""Errors raised by record store implementations."""


class StoreError(Exception):
    """A record store operation failed (network, database, or bad response)."""


class PhotoNotFoundError(StoreError):
    def __init__(self, photo_id: str) -> None:
        super().__init__(f"Photo not found: {photo_id}")
        self.photo_id = photo_id


class ProjectNotFoundError(StoreError):
    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class ShareLinkNotFoundError(StoreError):
    """Unknown or expired share token."""


class InvalidUploadError(StoreError):
    """An uploaded file was rejected (type or size)."""
