from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from thisorthat.extensions import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Pair(db.Model):
    __tablename__ = "pairs"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    type = db.Column(db.String(40), index=True, nullable=False)
    source = db.Column(db.String(40), index=True, nullable=False)
    option_1_value = db.Column(db.String(200), nullable=False)
    option_2_value = db.Column(db.String(200), nullable=False)
    option_1_url = db.Column(db.String(600), nullable=True)
    option_2_url = db.Column(db.String(600), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    def option_value(self, side: int) -> str:
        return self.option_1_value if side == 1 else self.option_2_value

    def option_url(self, side: int) -> Optional[str]:
        return self.option_1_url if side == 1 else self.option_2_url

    @property
    def is_complete(self) -> bool:
        return bool(self.option_1_url and self.option_2_url)

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "option_1_value": self.option_1_value,
            "option_2_value": self.option_2_value,
            "option_1_url": self.option_1_url,
            "option_2_url": self.option_2_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def to_payload(self, with_votes: bool = False, vote: Optional["Vote"] = None) -> Dict[str, Any]:
        """Client shape: options as a two-item list, optionally with vote counts."""
        options = [
            {"value": self.option_1_value, "url": self.option_1_url},
            {"value": self.option_2_value, "url": self.option_2_url},
        ]
        if with_votes:
            options[0]["votes"] = vote.option_1_count if vote else 0
            options[1]["votes"] = vote.option_2_count if vote else 0
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "options": options,
        }

    def __repr__(self) -> str:
        return f"<Pair {self.id} {self.type}: {self.option_1_value} vs {self.option_2_value}>"


class Vote(db.Model):
    __tablename__ = "votes"
    __table_args__ = (
        db.UniqueConstraint("option_1_value", "option_2_value", name="uq_votes_option_values"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    # weak reference: lookups go through the option values, not this id
    pair_id = db.Column(db.Integer, index=True, nullable=True)
    option_1_value = db.Column(db.String(200), nullable=False)
    option_2_value = db.Column(db.String(200), nullable=False)
    option_1_count = db.Column(db.Integer, default=0, nullable=False)
    option_2_count = db.Column(db.Integer, default=0, nullable=False)

    @property
    def total(self) -> int:
        return (self.option_1_count or 0) + (self.option_2_count or 0)

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pair_id": self.pair_id,
            "option_1_value": self.option_1_value,
            "option_2_value": self.option_2_value,
            "option_1_count": self.option_1_count,
            "option_2_count": self.option_2_count,
        }

    def __repr__(self) -> str:
        return f"<Vote {self.option_1_value}={self.option_1_count} {self.option_2_value}={self.option_2_count}>"
