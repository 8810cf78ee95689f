"""
Image attachment for stored pairs.

A pair ends up either with both option images or not at all: sides are
resolved, normalized and uploaded one by one, but rows are only written
once both sides are known. Pairs that cannot be completed are removed
together with their votes and any blobs they touched.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from thisorthat.errors import BlobStoreError, PersistenceFailure, ServiceError
from thisorthat.extensions import db
from thisorthat.models import Pair, Vote
from thisorthat.sources import get_url_for_source
from thisorthat.utils.image_processing import OUTPUT_CONTENT_TYPE, normalize_image
from thisorthat.utils.storage import filename_from_url, remove_blobs

logger = logging.getLogger(__name__)

_KNOWN_EXTENSIONS = {".jpg": ".jpg", ".jpeg": ".jpg", ".webp": ".webp", ".gif": ".gif", ".png": ".png"}


def blob_extension(ref: Optional[str]) -> str:
    if not ref or ref.startswith("data:"):
        return ".png"
    ext = posixpath.splitext(urlparse(ref).path)[1].lower()
    return _KNOWN_EXTENSIONS.get(ext, ".png")


def blob_name(pair_id: int, side: int, ref: Optional[str] = None) -> str:
    return f"{pair_id:05d}_{side}{blob_extension(ref)}"


@dataclass
class AttachReport:
    processed: int = 0
    updated: int = 0
    deleted: int = 0
    results: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": f"Processed {self.processed} pairs",
            "processed": self.processed,
            "updated": self.updated,
            "deleted": self.deleted,
            "results": self.results,
        }


@dataclass
class _PairOutcome:
    pair: Pair
    urls: Dict[int, Optional[str]]
    uploaded: List[str] = field(default_factory=list)
    missing: List[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing and all(self.urls.values())


def incomplete_pairs() -> List[Pair]:
    return Pair.query.filter(or_(Pair.option_1_url.is_(None), Pair.option_2_url.is_(None))).order_by(Pair.id).all()


def _attach_side(ctx, pair: Pair, side: int) -> Optional[tuple]:
    """(public_url, blob_name) for one side, or None if any step fails."""
    label = pair.option_value(side)
    ref = get_url_for_source(ctx, pair.source, label, hint=pair.type)
    if not ref:
        logger.info("[images] pair %s side %s: no image for %r on %s", pair.id, side, label, pair.source)
        return None

    data = normalize_image(ref, pair.source, size=ctx.image_size, timeout=ctx.fetch_timeout)
    if not data:
        logger.info("[images] pair %s side %s: could not normalize %s", pair.id, side, ref[:120])
        return None

    name = blob_name(pair.id, side, ref)
    try:
        url = ctx.blob_store.put(name, data, OUTPUT_CONTENT_TYPE)
    except BlobStoreError as exc:
        logger.warning("[images] pair %s side %s: %s", pair.id, side, exc)
        return None
    return url, name


def _process_pair(ctx, pair: Pair) -> _PairOutcome:
    outcome = _PairOutcome(pair=pair, urls={1: pair.option_1_url, 2: pair.option_2_url})
    for side in (1, 2):
        if outcome.urls[side]:
            continue
        try:
            attached = _attach_side(ctx, pair, side)
        except ServiceError:
            raise
        except Exception:
            logger.exception("[images] pair %s side %s: unexpected error", pair.id, side)
            attached = None
        if attached is None:
            outcome.missing.append(side)
            break
        outcome.urls[side], name = attached
        outcome.uploaded.append(name)
    return outcome


def _apply_updates(outcomes: List[_PairOutcome]) -> None:
    try:
        for oc in outcomes:
            oc.pair.option_1_url = oc.urls[1]
            oc.pair.option_2_url = oc.urls[2]
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceFailure("Could not store image URLs") from exc


def _delete_pairs(ids: List[int]) -> None:
    try:
        Vote.query.filter(Vote.pair_id.in_(ids)).delete(synchronize_session=False)
        Pair.query.filter(Pair.id.in_(ids)).delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceFailure("Could not delete pairs without images") from exc


def attach_images(ctx, pairs: Optional[Iterable[Pair]] = None, delete_missing: bool = True) -> AttachReport:
    if ctx.blob_store is None:
        raise ServiceError("Image storage is not configured")

    pairs = incomplete_pairs() if pairs is None else list(pairs)
    report = AttachReport(processed=len(pairs))

    to_update: List[_PairOutcome] = []
    failed: List[_PairOutcome] = []
    for pair in pairs:
        outcome = _process_pair(ctx, pair)
        if outcome.complete:
            if outcome.uploaded:
                to_update.append(outcome)
            report.results.append({
                "id": pair.id,
                "status": "updated" if outcome.uploaded else "complete",
                "option_1_url": outcome.urls[1],
                "option_2_url": outcome.urls[2],
            })
        else:
            failed.append(outcome)

    if to_update:
        _apply_updates(to_update)
        report.updated = len(to_update)

    if failed:
        orphans: List[str] = []
        for oc in failed:
            orphans.extend(oc.uploaded)
            if delete_missing:
                orphans.extend(filter(None, (filename_from_url(oc.pair.option_1_url), filename_from_url(oc.pair.option_2_url))))
            report.results.append({
                "id": oc.pair.id,
                "status": "deleted" if delete_missing else "failed",
                "missing": oc.missing,
            })

        if delete_missing:
            ids = [oc.pair.id for oc in failed]
            _delete_pairs(ids)
            report.deleted = len(ids)
            logger.info("[images] deleted %d pairs without images: %s", len(ids), ids)

        # dedupe while keeping order
        remove_blobs(ctx.blob_store, list(dict.fromkeys(orphans)))

    logger.info("[images] processed %d pairs: %d updated, %d deleted", report.processed, report.updated, report.deleted)
    return report
