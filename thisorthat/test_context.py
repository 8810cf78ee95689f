from thisorthat.context import RecentPairWindow, ServiceContext
from thisorthat.taxonomy import fits_value_length, source_for_type, valid_sources, word_count


def test_recent_window_is_bounded():
    window = RecentPairWindow(3)
    for pair_id in range(5):
        window.push(pair_id)
    assert window.snapshot() == [2, 3, 4]
    assert 1 not in window and 4 in window
    assert len(window) == 3


def test_context_defaults():
    ctx = ServiceContext({"RECENT_PAIRS_SIZE": 2, "IMAGE_SIZE": 128})
    assert ctx.image_size == 128
    assert ctx.fetch_timeout == 10.0
    assert ctx.spotify_token is None
    ctx.spotify_token = "abc"
    assert ctx.spotify_token == "abc"
    for pair_id in range(3):
        ctx.recent_pairs.push(pair_id)
    assert ctx.recent_pairs.snapshot() == [1, 2]


def test_taxonomy_lookups():
    assert source_for_type("Movie") == "wikipedia"
    assert source_for_type("vehicle") is None
    assert valid_sources() == ["logodev", "unsplash", "wikipedia", "spotify", "text"]
    assert word_count("Rock 'n' Roll") == 3
    assert fits_value_length("person", "Albert Einstein")
    assert not fits_value_length("person", "Madonna")
