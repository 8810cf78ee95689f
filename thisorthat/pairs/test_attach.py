from thisorthat.errors import BlobStoreError
from thisorthat.models import Pair, Vote
from thisorthat.extensions import db
from thisorthat.pairs.attach import attach_images, blob_extension, blob_name


def test_blob_names():
    assert blob_name(7, 1, "https://x/photo.JPEG?w=100") == "00007_1.jpg"
    assert blob_name(123, 2, "https://x/a.webp") == "00123_2.webp"
    assert blob_name(5, 2, "https://img.logo.dev/nike.com?token=t") == "00005_2.png"
    assert blob_extension("data:image/png;base64,AAA") == ".png"
    assert blob_extension("https://x/anim.gif") == ".gif"


def test_complete_pair_gets_both_urls(ctx, make_pair, stub_images):
    pair = make_pair("animal", "unsplash", "Otter", "Beaver")
    report = attach_images(ctx)

    assert (report.processed, report.updated, report.deleted) == (1, 1, 0)
    stored = db.session.get(Pair, pair.id)
    assert stored.option_1_url.endswith(f"{pair.id:05d}_1.jpg")
    assert stored.option_2_url.endswith(f"{pair.id:05d}_2.jpg")
    assert set(ctx.blob_store.content_types.values()) == {"image/png"}
    assert ("unsplash", "Otter", "animal") in stub_images["lookups"]


def test_one_missing_side_deletes_pair_votes_and_uploaded_blob(ctx, make_pair, stub_images):
    pair = make_pair("animal", "unsplash", "Otter", "Unicorn")
    db.session.add(Vote(pair_id=pair.id, option_1_value="Otter", option_2_value="Unicorn", option_1_count=2, option_2_count=0))
    db.session.commit()
    pair_id = pair.id
    stub_images["missing"].add("Unicorn")

    report = attach_images(ctx)

    assert (report.updated, report.deleted) == (0, 1)
    assert db.session.get(Pair, pair_id) is None
    assert Vote.query.count() == 0
    assert ctx.blob_store.objects == {}
    assert report.results == [{"id": pair_id, "status": "deleted", "missing": [2]}]


def test_failed_pair_never_partially_updated(ctx, make_pair, stub_images):
    pair = make_pair("animal", "unsplash", "Otter", "Unicorn")
    stub_images["missing"].add("Unicorn")

    report = attach_images(ctx, delete_missing=False)

    stored = db.session.get(Pair, pair.id)
    assert stored is not None
    assert stored.option_1_url is None and stored.option_2_url is None
    assert report.results[0]["status"] == "failed"
    assert ctx.blob_store.objects == {}


def test_previously_referenced_blob_is_cleaned_up(ctx, make_pair, stub_images):
    ctx.blob_store.objects["00001_1.jpg"] = b"old"
    pair = make_pair("animal", "unsplash", "Otter", "Unicorn", url_1="memory://images/00001_1.jpg")
    stub_images["missing"].add("Unicorn")

    attach_images(ctx, [pair])
    assert "00001_1.jpg" not in ctx.blob_store.objects


def test_upload_failure_fails_the_pair(ctx, make_pair, stub_images, monkeypatch):
    make_pair("food", "unsplash", "Tea", "Coffee")

    def broken_put(name, data, content_type):
        raise BlobStoreError("bucket unavailable")

    monkeypatch.setattr(ctx.blob_store, "put", broken_put)
    report = attach_images(ctx)
    assert report.deleted == 1
    assert Pair.query.count() == 0


def test_complete_pairs_are_left_alone(ctx, make_pair, stub_images):
    make_pair("food", "unsplash", "Tea", "Coffee", url_1="memory://images/a.png", url_2="memory://images/b.png")
    report = attach_images(ctx)
    assert report.processed == 0
    assert stub_images["lookups"] == []


def test_unexpected_lookup_error_fails_only_that_pair(ctx, make_pair, stub_images, monkeypatch):
    good = make_pair("food", "unsplash", "Tea", "Coffee")
    bad = make_pair("animal", "unsplash", "Otter", "Gremlin")
    bad_id = bad.id

    def flaky_lookup(ctx, source, label, hint=None):
        if label == "Gremlin":
            raise RuntimeError("unexpected payload")
        return f"https://images.example.com/{label}.jpg"

    monkeypatch.setattr("thisorthat.pairs.attach.get_url_for_source", flaky_lookup)
    report = attach_images(ctx)

    assert (report.processed, report.updated, report.deleted) == (2, 1, 1)
    assert db.session.get(Pair, bad_id) is None
    assert db.session.get(Pair, good.id).option_2_url.endswith(f"{good.id:05d}_2.jpg")
    assert sorted(ctx.blob_store.objects) == [f"{good.id:05d}_1.jpg", f"{good.id:05d}_2.jpg"]
    assert {"id": bad_id, "status": "deleted", "missing": [2]} in report.results
