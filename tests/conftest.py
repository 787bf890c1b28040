"""
Pytest configuration and shared fixtures for the thumbnail tests.

Provides settings pointing at a temporary data directory, fake Replicate
and UploadThing collaborators for the backend, and small helpers for the
httpx-based editor client.
"""

import json
from io import BytesIO

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from backend.main import create_app
from thumbnail_ai.config import Settings
from thumbnail_ai.errors import UpstreamGenerationError
from thumbnail_ai.images import encode_png, encode_png_data_url
from thumbnail_ai.store import ImageStore


class FakeResponse:
    """Just enough of ``requests.Response`` for the sync clients."""

    def __init__(self, status_code=200, payload=None, content=b"", text=None):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.text = text if text is not None else (json.dumps(payload) if payload is not None else "")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON")
        return self._payload


class FakeSession:
    """Replays queued responses and records every call."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.responses.pop(0)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)


class FakeReplicate:
    def __init__(self, output="https://replicate.delivery/out.png", error=None):
        self.output = output
        self.error = error
        self.runs = []
        self.validations = 0
        self.session = FakeSession()

    def validate_token(self):
        self.validations += 1

    def run(self, version, input, timeout=None):
        self.runs.append((version, input))
        if self.error:
            raise self.error
        return self.output


class FakeUploader:
    def __init__(self, hosted="https://utfs.io/f/hosted.png"):
        self.hosted = hosted
        self.uploads = []

    def host_or_fallback(self, source_url, name):
        self.uploads.append((source_url, name))
        return self.hosted or source_url

    def upload_bytes(self, name, data, content_type="image/png"):
        self.uploads.append((name, len(data)))
        if not self.hosted:
            raise UpstreamGenerationError("upload failed")
        return self.hosted


@pytest.fixture
def settings(tmp_path):
    return Settings(
        replicate_api_token="r8_testtoken",
        data_dir=tmp_path / "data",
        api_base_url="http://testserver",
        poll_interval=0.01,
    )


@pytest.fixture
def fake_replicate():
    return FakeReplicate()


@pytest.fixture
def fake_uploader():
    return FakeUploader()


@pytest.fixture
def store(settings):
    return ImageStore(settings.db_path)


@pytest.fixture
def client(settings, fake_replicate, fake_uploader, store):
    app = create_app(settings, replicate=fake_replicate, uploader=fake_uploader, store=store)
    return TestClient(app)


@pytest.fixture
def sample_image():
    """A 200x100 image: red left half, blue right half."""
    img = Image.new("RGB", (200, 100), (255, 0, 0))
    img.paste((0, 0, 255), (100, 0, 200, 100))
    return img


@pytest.fixture
def sample_png(sample_image):
    return encode_png(sample_image)


@pytest.fixture
def sample_data_url(sample_image):
    return encode_png_data_url(sample_image)


def png_bytes(size=(200, 100), color=(0, 255, 0)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def mock_http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
