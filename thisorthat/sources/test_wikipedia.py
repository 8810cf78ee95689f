from thisorthat.sources import wikipedia
from thisorthat.sources.wikipedia import find_most_similar_image, score_title


def test_poster_bonus_beats_plain_match():
    images = [
        {"title": "File:The Matrix still.jpg"},
        {"title": "File:The Matrix Poster.jpg"},
    ]
    assert find_most_similar_image("The Matrix (movie)", images) == "File:The Matrix Poster.jpg"


def test_vector_titles_are_never_chosen():
    assert score_title("Jaws", "File:Jaws logo.svg") == -1
    assert find_most_similar_image("Jaws", [{"title": "File:Jaws logo.svg"}, {"title": "File:Commons-logo.xml"}]) is None
    assert find_most_similar_image("Jaws", []) is None


def test_word_matches_outweigh_noise():
    assert score_title("albert einstein", "File:Albert Einstein 1921.jpg") > score_title("albert einstein", "File:Building.jpg")


def test_thumbnail_is_upsized(ctx, monkeypatch):
    calls = []

    def fake_get(url, headers=None, params=None, timeout=15):
        calls.append((url, params))
        return {"pages": [{"id": 42, "thumbnail": {"url": "//upload.wikimedia.org/thumb/a/60px-Einstein.jpg"}}]}

    monkeypatch.setattr(wikipedia, "http_get_json", fake_get)
    result = wikipedia.resolve(ctx, "Albert Einstein", "person")
    assert result.image == "https://upload.wikimedia.org/thumb/a/1024px-Einstein.jpg"
    assert result.external_id == "42"
    assert calls[0][1]["q"] == "Albert Einstein (person)"


def test_falls_back_to_page_images(ctx, monkeypatch):
    def fake_get(url, headers=None, params=None, timeout=15):
        params = params or {}
        if url == wikipedia.SEARCH_URL:
            return {"pages": [{"id": 7, "thumbnail": None}]}
        if params.get("prop") == "images":
            return {"query": {"pages": {"7": {"images": [
                {"title": "File:Jaws logo.svg"},
                {"title": "File:Jaws movie poster.jpg"},
            ]}}}}
        assert params["titles"] == "File:Jaws movie poster.jpg"
        return {"query": {"pages": {"-1": {"imageinfo": [{"url": "//upload.wikimedia.org/jaws.jpg"}]}}}}

    monkeypatch.setattr(wikipedia, "http_get_json", fake_get)
    assert wikipedia.resolve(ctx, "Jaws", "movie").image == "https://upload.wikimedia.org/jaws.jpg"


def test_no_pages_or_errors_mean_not_found(ctx, monkeypatch):
    monkeypatch.setattr(wikipedia, "http_get_json", lambda *a, **kw: {"pages": []})
    assert wikipedia.resolve(ctx, "zzzz").image is None

    def boom(*a, **kw):
        raise ValueError("bad json")

    monkeypatch.setattr(wikipedia, "http_get_json", boom)
    assert wikipedia.resolve(ctx, "zzzz").found is False


def test_unexpected_page_shapes_mean_not_found(ctx, monkeypatch):
    for payload in (["pages"], {"pages": ["Jaws"]}, {"pages": [{"id": 1, "thumbnail": {"url": 60}}]}):
        monkeypatch.setattr(wikipedia, "http_get_json", lambda *a, payload=payload, **kw: payload)
        assert wikipedia.resolve(ctx, "Jaws", "movie").image is None
