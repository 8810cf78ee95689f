from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from thisorthat.errors import InvalidVoteOption, NotFound, PersistenceFailure
from thisorthat.extensions import db
from thisorthat.models import Pair, Vote

logger = logging.getLogger(__name__)


def _parse_option(option) -> int:
    try:
        value = int(option)
    except (TypeError, ValueError):
        value = None
    if value not in (1, 2):
        raise InvalidVoteOption("option must be 1 or 2")
    return value


def vote_event(pair: Pair, vote: Vote) -> Dict[str, Any]:
    return {
        "type": "vote",
        "data": {
            "pair_id": pair.id,
            "option_1": {"value": pair.option_1_value, "count": vote.option_1_count, "url": pair.option_1_url},
            "option_2": {"value": pair.option_2_value, "count": vote.option_2_count, "url": pair.option_2_url},
        },
    }


def record_vote(ctx, pair_id: int, option) -> Dict[str, Any]:
    """
    Count one vote for `option` of the pair. Votes are keyed by the pair's
    two option values, so a re-generated pair with the same labels shares
    its tally.
    """
    side = _parse_option(option)
    pair = db.session.get(Pair, pair_id)
    if pair is None:
        raise NotFound("Pair not found")

    try:
        vote = Vote.query.filter_by(option_1_value=pair.option_1_value, option_2_value=pair.option_2_value).first()
        if vote is None:
            vote = Vote(
                option_1_value=pair.option_1_value,
                option_2_value=pair.option_2_value,
                option_1_count=0,
                option_2_count=0,
            )
            db.session.add(vote)
        if side == 1:
            vote.option_1_count = (vote.option_1_count or 0) + 1
        else:
            vote.option_2_count = (vote.option_2_count or 0) + 1
        vote.pair_id = pair.id
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceFailure("Failed to process vote") from exc

    row = vote.to_row()
    event = vote_event(pair, vote)
    try:
        delivered = ctx.broadcaster.publish(event)
        logger.debug("[votes] broadcast pair %s to %d subscribers", pair.id, delivered)
    except Exception:  # noqa: BLE001
        logger.exception("[votes] broadcast failed for pair %s", pair.id)

    return {"message": "Vote processed successfully", "votes": row}


def _winning_percentage(vote: Vote) -> float:
    total = vote.total
    if not total:
        return 0.0
    return max(vote.option_1_count, vote.option_2_count) / total


def list_votes(limit: int = 20, offset: int = 0) -> Dict[str, Any]:
    """Voted pairs, most lopsided first, ties broken by total votes."""
    rows = (
        db.session.query(Vote, Pair)
        .join(Pair, Pair.id == Vote.pair_id)
        .all()
    )
    rows.sort(key=lambda vp: (_winning_percentage(vp[0]), vp[0].total), reverse=True)

    page = rows[offset: offset + limit]
    votes = [
        {
            "pair_id": pair.id,
            "option_1": {"value": pair.option_1_value, "count": vote.option_1_count, "url": pair.option_1_url},
            "option_2": {"value": pair.option_2_value, "count": vote.option_2_count, "url": pair.option_2_url},
            "total_votes": vote.total,
            "winning_percentage": round(_winning_percentage(vote), 4),
        }
        for vote, pair in page
    ]
    return {"votes": votes, "total": len(rows), "has_more": offset + limit < len(rows)}


def random_voted_pair(rng=None) -> Optional[Dict[str, Any]]:
    rows = (
        db.session.query(Vote, Pair)
        .join(Pair, Pair.id == Vote.pair_id)
        .filter((Vote.option_1_count > 0) | (Vote.option_2_count > 0))
        .all()
    )
    if not rows:
        return None
    vote, pair = (rng or random).choice(rows)
    return pair.to_payload(with_votes=True, vote=vote)


def votes_for_pairs(pairs: List[Pair]) -> Dict[int, Vote]:
    ids = [p.id for p in pairs]
    if not ids:
        return {}
    return {v.pair_id: v for v in Vote.query.filter(Vote.pair_id.in_(ids)).all()}
