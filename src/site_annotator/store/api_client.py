"""REST client for a remote record store."""

import logging
from datetime import datetime
from urllib.parse import quote

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from site_annotator.config import API_BASE_URL, API_TOKEN, IMAGE_BASE_URL
from site_annotator.models import Note, Photo, SharedProject
from site_annotator.store.errors import PhotoNotFoundError, ShareLinkNotFoundError, StoreError

logger = logging.getLogger(__name__)


class RecordStoreClient:
    """Client for the record store REST API.

    Endpoints: ``GET /photos/{id}``, ``PUT /photos/{id}/annotations`` and ``GET /share/{token}``.
    Payloads use camelCase keys.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        image_base_url: str | None = None,
        timeout: int = 30,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.token = token if token is not None else API_TOKEN
        self.image_base_url = image_base_url or IMAGE_BASE_URL
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, max=10),
        retry=retry_if_exception_type(httpx.TimeoutException),
        reraise=True,
    )
    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        with self._client() as client:
            return client.request(method, path, **kwargs)

    def _call(self, method: str, path: str, not_found: StoreError, **kwargs) -> dict | None:
        """Make an API call and return the parsed JSON body (None for an empty body)."""
        try:
            resp = self._send(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise StoreError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code == 404:
            raise not_found
        if resp.is_error:
            raise StoreError(f"{method} {path} failed: HTTP {resp.status_code} {_error_message(resp)}")
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise StoreError(f"{method} {path} returned invalid JSON") from exc

    def get_photo(self, photo_id: str) -> Photo:
        data = self._call("GET", f"/photos/{photo_id}", PhotoNotFoundError(photo_id))
        if not isinstance(data, dict):
            raise StoreError(f"Unexpected response for photo {photo_id}")
        try:
            return photo_from_json(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Unexpected response for photo {photo_id}: {exc!r}") from exc

    def save_annotations(
        self, photo_id: str, annotations: str, annotated_image_path: str | None = None
    ) -> None:
        body: dict = {"annotations": annotations}
        if annotated_image_path is not None:
            body["updatedAnnotatedImage"] = annotated_image_path
        self._call(
            "PUT", f"/photos/{photo_id}/annotations", PhotoNotFoundError(photo_id), json=body
        )

    def get_shared_project(self, token: str) -> SharedProject:
        data = self._call(
            "GET", f"/share/{token}", ShareLinkNotFoundError("Share link not found or expired")
        )
        if not isinstance(data, dict):
            raise StoreError("Unexpected response for share link")
        try:
            return shared_project_from_json(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Unexpected response for share link: {exc!r}") from exc

    def image_url(self, photo: Photo) -> str:
        return build_image_url(self.image_base_url, photo.image_file)


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text
    if isinstance(data, dict) and "error" in data:
        return str(data["error"])
    return resp.text


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable timestamp %r", value)
        return None


def _optional_str(value) -> str | None:
    return None if value is None else str(value)


def _objects(data: dict, key: str) -> list[dict]:
    """List of JSON objects under ``key`` (missing means empty). Raises TypeError otherwise."""
    items = data.get(key) or []
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise TypeError(f"{key!r} must be a list of objects")
    return items


def photo_from_json(data: dict, project_id: str | None = None) -> Photo:
    """Convert a camelCase photo payload to Photo."""
    return Photo(
        id=str(data["id"]),
        project_id=_optional_str(data.get("projectId")) or project_id or "",
        image_file=data.get("imageFile") or "",
        caption=data.get("caption"),
        is_portfolio=bool(data.get("isPortfolio", False)),
        status_at_capture=data.get("statusAtCapture"),
        annotations=data.get("annotations"),
        annotated_image_path=data.get("annotatedImagePath"),
        width=data.get("width"),
        height=data.get("height"),
        created_at=_parse_datetime(data.get("createdAt")),
    )


def shared_project_from_json(data: dict) -> SharedProject:
    """Convert a camelCase share payload to SharedProject."""
    return SharedProject(
        job_number=data.get("jobNumber", ""),
        client_name=data.get("clientName", ""),
        site_address=data.get("siteAddress"),
        status=data.get("status", ""),
        photos=[photo_from_json(p) for p in _objects(data, "photos")],
        notes=[
            Note(
                id=str(n["id"]),
                project_id=_optional_str(n.get("projectId")) or "",
                note_text=n.get("noteText", ""),
                created_at=_parse_datetime(n.get("createdAt")),
            )
            for n in _objects(data, "notes")
        ],
    )


def build_image_url(base_url: str, image_file: str) -> str:
    """Build the public URL of a stored image file."""
    if image_file.startswith(("http://", "https://")):
        return image_file
    return f"{base_url.rstrip('/')}/{quote(image_file)}"
