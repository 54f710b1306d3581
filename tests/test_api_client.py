"""Tests for the remote record store client."""

import json

import httpx
import pytest
from tenacity import wait_none

from site_annotator.editor.controller import EditorController
from site_annotator.editor.persistence import PersistenceAdapter
from site_annotator.store.api_client import RecordStoreClient, build_image_url, photo_from_json
from site_annotator.store.errors import PhotoNotFoundError, ShareLinkNotFoundError, StoreError

PHOTO_JSON = {
    "id": 42,
    "projectId": 7,
    "imageFile": "1700000000-deck.jpg",
    "caption": "Deck framing",
    "isPortfolio": True,
    "statusAtCapture": "In Progress",
    "annotations": '[{"id": "a", "type": "text"}]',
    "createdAt": "2024-05-01T12:30:00",
}


def _client(handler) -> RecordStoreClient:
    return RecordStoreClient(
        base_url="https://records.example.com/api",
        token="secret",
        image_base_url="https://records.example.com/uploads",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(RecordStoreClient._send.retry, "wait", wait_none())


def test_get_photo_parses_camel_case():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=PHOTO_JSON)

    photo = _client(handler).get_photo("42")

    assert requests[0].url.path == "/api/photos/42"
    assert requests[0].headers["Authorization"] == "Bearer secret"
    assert photo.id == "42"
    assert photo.project_id == "7"
    assert photo.image_file == "1700000000-deck.jpg"
    assert photo.is_portfolio
    assert photo.status_at_capture == "In Progress"
    assert photo.annotations == PHOTO_JSON["annotations"]
    assert photo.created_at.year == 2024


def test_save_annotations_puts_blob():
    captured = {}

    def handler(request):
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(204)

    _client(handler).save_annotations("42", "[]")

    assert captured == {
        "method": "PUT",
        "path": "/api/photos/42/annotations",
        "body": {"annotations": "[]"},
    }


def test_save_annotations_with_annotated_image():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    _client(handler).save_annotations("42", "[]", annotated_image_path="annotated/42.png")
    assert bodies == [{"annotations": "[]", "updatedAnnotatedImage": "annotated/42.png"}]


def test_missing_photo():
    client = _client(lambda request: httpx.Response(404, json={"error": "Photo not found"}))
    with pytest.raises(PhotoNotFoundError):
        client.get_photo("9")
    with pytest.raises(PhotoNotFoundError):
        client.save_annotations("9", "[]")


def test_server_error_message():
    client = _client(lambda request: httpx.Response(500, json={"error": "Database locked"}))
    with pytest.raises(StoreError, match="Database locked"):
        client.get_photo("1")


def test_invalid_json_response():
    client = _client(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(StoreError, match="invalid JSON"):
        client.get_photo("1")


@pytest.mark.parametrize("payload", [{"imageFile": "a.jpg"}, {"id": 1, "createdAt": 5}])
def test_malformed_photo_payload(payload):
    client = _client(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(StoreError, match="Unexpected response"):
        client.get_photo("1")


def test_malformed_photo_payload_does_not_break_editor():
    client = _client(lambda request: httpx.Response(200, json={"imageFile": "a.jpg"}))
    ctrl = EditorController(PersistenceAdapter(client))
    notices = ctrl.open("p1")
    assert [n.kind for n in notices] == ["error"]
    assert not ctrl.loaded


@pytest.mark.parametrize(
    "payload",
    [
        {"jobNumber": "J-1", "photos": {"id": 1}},
        {"jobNumber": "J-1", "photos": [{"imageFile": "a.jpg"}]},
        {"jobNumber": "J-1", "notes": ["call client"]},
        {"jobNumber": "J-1", "notes": [{"noteText": "no id"}]},
    ],
)
def test_malformed_share_payload(payload):
    client = _client(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(StoreError, match="Unexpected response"):
        client.get_shared_project("tok")


def test_timeout_retried_then_raised(no_retry_wait):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(StoreError):
        _client(handler).get_photo("1")
    assert len(calls) == 3


def test_timeout_recovers(no_retry_wait):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json=PHOTO_JSON)

    assert _client(handler).get_photo("42").id == "42"
    assert len(calls) == 2


def test_get_shared_project():
    payload = {
        "jobNumber": "J-55",
        "clientName": "Lee Family",
        "siteAddress": "9 Oak Ave",
        "status": "Complete",
        "photos": [PHOTO_JSON],
        "notes": [{"id": 1, "noteText": "Final walkthrough done", "createdAt": None}],
    }
    shared = _client(lambda request: httpx.Response(200, json=payload)).get_shared_project("tok")
    assert shared.job_number == "J-55"
    assert shared.client_name == "Lee Family"
    assert [p.id for p in shared.photos] == ["42"]
    assert shared.notes[0].note_text == "Final walkthrough done"
    assert shared.notes[0].created_at is None


def test_shared_project_not_found():
    client = _client(lambda request: httpx.Response(404))
    with pytest.raises(ShareLinkNotFoundError):
        client.get_shared_project("gone")


def test_image_url():
    client = _client(lambda request: httpx.Response(200))
    photo = photo_from_json(PHOTO_JSON)
    assert client.image_url(photo) == "https://records.example.com/uploads/1700000000-deck.jpg"


def test_build_image_url():
    assert build_image_url("https://cdn.example.com/", "a b.jpg") == "https://cdn.example.com/a%20b.jpg"
    assert build_image_url("https://cdn.example.com", "https://other/x.jpg") == "https://other/x.jpg"
