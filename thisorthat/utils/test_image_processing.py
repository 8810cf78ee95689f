import base64
import io
import itertools

import requests
from PIL import Image

from conftest import FakeResponse, png_bytes
from thisorthat.utils import image_processing
from thisorthat.utils.image_processing import absolute_url, normalize_image


def _data_url(data, media="image/png"):
    return f"data:{media};base64," + base64.b64encode(data).decode()


def _open(data):
    return Image.open(io.BytesIO(data))


def test_data_url_becomes_square_png():
    out = normalize_image(_data_url(png_bytes((120, 40))), "unsplash", size=64)
    img = _open(out)
    assert img.format == "PNG"
    assert img.size == (64, 64)


def test_same_input_gives_same_shape_for_every_source():
    ref = _data_url(png_bytes((30, 90)))
    for source in ("logodev", "unsplash", "wikipedia", "spotify", "text", None):
        assert _open(normalize_image(ref, source, size=32)).size == (32, 32)


def test_svg_data_url_is_rejected():
    svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"></svg>'
    assert normalize_image(_data_url(svg, "image/svg+xml"), size=32) is None


def test_remote_svg_content_type_is_rejected(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse(b"<svg/>", "image/svg+xml"))
    assert normalize_image("https://example.com/logo", size=32) is None


def test_remote_xml_content_type_is_rejected(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse(png_bytes(), "application/xml"))
    assert normalize_image("https://example.com/logo", size=32) is None


def test_remote_fetch_and_protocol_relative_url(monkeypatch):
    seen = {}

    def fake_get(url, **kwargs):
        seen["url"] = url
        seen["stream"] = kwargs.get("stream")
        return FakeResponse(png_bytes((50, 50)), "image/png")

    monkeypatch.setattr(requests, "get", fake_get)
    out = normalize_image("//upload.wikimedia.org/a.png", "wikipedia", size=48)
    assert _open(out).size == (48, 48)
    assert seen["url"] == "https://upload.wikimedia.org/a.png"
    assert seen["stream"] is True


def test_download_past_deadline_is_abandoned(monkeypatch):
    clock = itertools.count(start=0, step=4)
    monkeypatch.setattr(image_processing.time, "monotonic", lambda: next(clock))
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse(png_bytes((64, 64)), chunk=8))
    assert normalize_image("https://example.com/slow.png", size=32, timeout=10) is None


def test_http_errors_and_garbage_return_none(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse(b"", status=404))
    assert normalize_image("https://example.com/missing.png", size=32) is None

    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse(b"not an image at all"))
    assert normalize_image("https://example.com/garbage.png", size=32) is None

    def boom(*a, **kw):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "get", boom)
    assert normalize_image("https://example.com/down.png", size=32) is None
    assert normalize_image(None) is None


def test_wikipedia_pads_on_white_and_others_fill_black():
    transparent = _data_url(png_bytes((40, 10), color=(0, 0, 0, 0)))

    padded = _open(normalize_image(_data_url(png_bytes((40, 10), color=(255, 0, 0, 255))), "wikipedia", size=40)).convert("RGB")
    assert padded.getpixel((0, 0)) == (255, 255, 255)
    assert padded.getpixel((20, 20)) == (255, 0, 0)

    covered = _open(normalize_image(transparent, "unsplash", size=40)).convert("RGB")
    assert covered.getpixel((20, 20)) == (0, 0, 0)


def test_absolute_url():
    assert absolute_url("//host/x.png") == "https://host/x.png"
    assert absolute_url("https://host/x.png") == "https://host/x.png"
