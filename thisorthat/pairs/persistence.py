from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError

from thisorthat.errors import PersistenceFailure
from thisorthat.extensions import db
from thisorthat.models import Pair, _utcnow

logger = logging.getLogger(__name__)

SAMPLE_POOL_SIZE = 100
SAMPLE_SIZE = 10


@dataclass
class SaveResult:
    inserted: List[Pair] = field(default_factory=list)
    duplicates: List = field(default_factory=list)


def find_duplicate(kind: str, option_1: str, option_2: str) -> Optional[Pair]:
    """Existing pair of the same type with the same two values, in either order."""
    return Pair.query.filter(
        Pair.type == kind,
        or_(
            and_(Pair.option_1_value == option_1, Pair.option_2_value == option_2),
            and_(Pair.option_1_value == option_2, Pair.option_2_value == option_1),
        ),
    ).first()


def save_pairs(candidates: Iterable) -> SaveResult:
    """
    Insert every candidate that is not already stored. Each insert commits
    on its own, so a failure part-way keeps the earlier rows.
    """
    result = SaveResult()
    for cand in candidates:
        try:
            if find_duplicate(cand.type, cand.option_1_value, cand.option_2_value):
                result.duplicates.append(cand)
                continue
            pair = Pair(
                type=cand.type,
                source=cand.source,
                option_1_value=cand.option_1_value,
                option_2_value=cand.option_2_value,
                created_at=_utcnow(),
            )
            db.session.add(pair)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("[pairs] saving %s vs %s failed: %s", cand.option_1_value, cand.option_2_value, exc)
            raise PersistenceFailure("Could not save generated pairs") from exc
        result.inserted.append(pair)

    logger.info("[pairs] saved %d new pairs, skipped %d duplicates", len(result.inserted), len(result.duplicates))
    return result


def fetch_recent_pairs(category: Optional[str] = None, limit: int = SAMPLE_POOL_SIZE) -> List[Pair]:
    try:
        query = Pair.query
        if category:
            query = query.filter(Pair.type == category)
        return query.order_by(Pair.created_at.desc(), Pair.id.desc()).limit(limit).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceFailure("Could not load existing pairs") from exc


def sample_existing(category: Optional[str] = None, k: int = SAMPLE_SIZE, rng=None) -> List[Pair]:
    """Random handful of recent pairs, shown to the generator as examples to steer away from."""
    pool = fetch_recent_pairs(category)
    rng = rng or random
    if len(pool) <= k:
        return pool
    return rng.sample(pool, k)
