from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from thisorthat.errors import NotFound, PersistenceFailure
from thisorthat.extensions import db
from thisorthat.models import Pair, Vote
from thisorthat.pairs.votes import votes_for_pairs
from thisorthat.taxonomy import valid_sources, valid_types
from thisorthat.utils.storage import filename_from_url, remove_blobs

logger = logging.getLogger(__name__)

RANDOM_PAIR_RETRIES = 10


def _filtered(kind: Optional[str] = None, source: Optional[str] = None):
    query = Pair.query
    if kind:
        query = query.filter(Pair.type == kind)
    if source:
        query = query.filter(Pair.source == source)
    return query


def random_pair(ctx, rng=None) -> Dict[str, Any]:
    """
    Uniformly random pair, avoiding the ones served most recently when
    there is enough choice to do so.
    """
    rng = rng or random
    query = Pair.query.order_by(Pair.id)
    total = query.count()
    if not total:
        raise NotFound("No pairs found")

    pair = None
    for _ in range(RANDOM_PAIR_RETRIES):
        pair = query.offset(rng.randrange(total)).first()
        if pair is not None and pair.id not in ctx.recent_pairs:
            break

    if pair is None:
        raise NotFound("No pairs found")
    ctx.recent_pairs.push(pair.id)
    return pair.to_payload()


def list_pairs(kind: Optional[str] = None, source: Optional[str] = None, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
    query = _filtered(kind, source)
    total = query.count()
    pairs = query.order_by(Pair.created_at.desc(), Pair.id.desc()).offset(offset).limit(limit).all()
    votes = votes_for_pairs(pairs)
    return {
        "pairs": [p.to_payload(with_votes=True, vote=votes.get(p.id)) for p in pairs],
        "total": total,
        "has_more": offset + limit < total,
    }


def list_pair_ids(kind: Optional[str] = None, source: Optional[str] = None) -> List[int]:
    rows = _filtered(kind, source).with_entities(Pair.id).order_by(Pair.created_at.desc(), Pair.id.desc()).all()
    return [row[0] for row in rows]


def delete_pair(ctx, pair_id: int) -> Dict[str, Any]:
    pair = db.session.get(Pair, pair_id)
    if pair is None:
        raise NotFound("Pair not found")

    names = [n for n in (filename_from_url(pair.option_1_url), filename_from_url(pair.option_2_url)) if n]
    if not remove_blobs(ctx.blob_store, names):
        logger.warning("[pairs] images for pair %s could not be removed: %s", pair_id, names)

    try:
        Vote.query.filter(Vote.pair_id == pair_id).delete(synchronize_session=False)
        db.session.delete(pair)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceFailure("Failed to delete pair") from exc

    logger.info("[pairs] deleted pair %s", pair_id)
    return {"message": "Pair, associated votes, and images deleted successfully", "id": pair_id}


def metadata() -> Dict[str, Any]:
    types = [row[0] for row in db.session.query(Pair.type).distinct().order_by(Pair.type).all()]
    sources = [row[0] for row in db.session.query(Pair.source).distinct().order_by(Pair.source).all()]
    return {
        "types": types,
        "sources": sources,
        "valid_types": valid_types(),
        "valid_sources": valid_sources(),
    }
