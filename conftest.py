import io

import pytest
from PIL import Image

from thisorthat import create_app
from thisorthat.extensions import db
from thisorthat.models import Pair
from thisorthat.utils.storage import MemoryBlobStore

API_KEY = "test-key"


class FakeGenerator:
    """Scripted stand-in for the OpenAI client. Each entry is a dict or a callable(prompt)."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.prompts = []

    def complete(self, prompt, schema):
        self.prompts.append(prompt)
        if not self.responses:
            return {"pairs": []}
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return response(prompt) if callable(response) else response


class FakeResponse:
    """Enough of requests.Response for streamed downloads."""

    def __init__(self, content=b"", content_type="image/png", status=200, chunk=1024):
        self.content = content
        self.headers = {"Content-Type": content_type}
        self.status_code = status
        self.chunk = chunk

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests

            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size=1024):
        for i in range(0, len(self.content), self.chunk):
            yield self.content[i:i + self.chunk]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def png_bytes(size=(40, 20), color=(200, 30, 30, 255), mode="RGBA"):
    img = Image.new(mode, size, color)
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


@pytest.fixture
def app():
    app = create_app("testing")
    app.services.blob_store = MemoryBlobStore()
    app.services.generator = FakeGenerator()
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture
def ctx(app):
    return app.services


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_pair(app):
    def _make(kind="animal", source="unsplash", a="Cat", b="Dog", url_1=None, url_2=None):
        pair = Pair(type=kind, source=source, option_1_value=a, option_2_value=b, option_1_url=url_1, option_2_url=url_2)
        db.session.add(pair)
        db.session.commit()
        return pair

    return _make


@pytest.fixture
def stub_images(monkeypatch):
    """
    Replace provider lookup and normalization in the attachment pass.
    `missing` holds labels that resolve to nothing.
    """
    state = {"missing": set(), "lookups": []}

    def fake_lookup(ctx, source, label, hint=None):
        state["lookups"].append((source, label, hint))
        if label in state["missing"]:
            return None
        return f"https://images.example.com/{label.replace(' ', '_')}.jpg"

    def fake_normalize(ref, source=None, size=768, timeout=10):
        return png_bytes((size, size))

    monkeypatch.setattr("thisorthat.pairs.attach.get_url_for_source", fake_lookup)
    monkeypatch.setattr("thisorthat.pairs.attach.normalize_image", fake_normalize)
    return state
