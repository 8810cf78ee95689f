"""
Generation loop: ask for candidates, drop what is already stored, repeat
until enough new pairs exist or the attempt ceiling is hit.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from thisorthat.models import Pair
from thisorthat.pairs.attach import AttachReport, attach_images
from thisorthat.pairs.generator import CandidatePair, generate_candidates
from thisorthat.pairs.persistence import save_pairs, sample_existing

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
MAX_ATTEMPTS_SCOPED = 5


class Phase(str, enum.Enum):
    SAMPLING = "sampling"
    GENERATING = "generating"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    DONE = "done"


@dataclass
class GenerationState:
    category: Optional[str]
    count: int
    sample: List[Pair] = field(default_factory=list)
    inserted: List[Pair] = field(default_factory=list)
    duplicates: List[CandidatePair] = field(default_factory=list)
    attempts: int = 0
    phase: Phase = Phase.SAMPLING

    @property
    def max_attempts(self) -> int:
        return MAX_ATTEMPTS_SCOPED if self.category else MAX_ATTEMPTS

    @property
    def remaining(self) -> int:
        return max(self.count - len(self.inserted), 0)

    @property
    def finished(self) -> bool:
        return self.remaining <= 0 or self.attempts >= self.max_attempts


@dataclass
class GenerationOutcome:
    inserted: List[Dict[str, Any]]
    duplicates: List[Dict[str, Any]]
    attempts: int
    images: Optional[AttachReport] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "success": True,
            "message": f"Generated {len(self.inserted)} new pairs in {self.attempts} attempt(s)",
            "attempts": self.attempts,
            "inserted": self.inserted,
            "duplicates": self.duplicates,
        }
        if self.images is not None:
            out["images"] = self.images.to_dict()
        return out


def generation_step(ctx, state: GenerationState) -> GenerationState:
    """One GENERATING -> VALIDATING -> PERSISTING round. ValidationFailure propagates."""
    state.attempts += 1
    state.phase = Phase.GENERATING
    logger.info(
        "[pairs] attempt %d/%d: %d pairs still needed%s",
        state.attempts, state.max_attempts, state.remaining,
        f" (type {state.category})" if state.category else "",
    )

    candidates = generate_candidates(ctx, state.category, state.sample, state.duplicates, state.remaining)
    state.phase = Phase.VALIDATING
    # never insert more than were asked for
    candidates = candidates[: state.remaining]

    state.phase = Phase.PERSISTING
    saved = save_pairs(candidates)
    state.inserted.extend(saved.inserted)
    state.duplicates.extend(saved.duplicates)
    state.phase = Phase.DONE if state.finished else Phase.GENERATING
    return state


def run_generation(ctx, category: Optional[str] = None, count: int = 10, attach: bool = False) -> GenerationOutcome:
    state = GenerationState(category=category, count=count)
    state.sample = sample_existing(category)
    while not state.finished:
        generation_step(ctx, state)

    if state.remaining:
        logger.warning("[pairs] stopped after %d attempts with %d of %d pairs", state.attempts, len(state.inserted), count)

    ids = [p.id for p in state.inserted]
    duplicates = [d.to_row() for d in state.duplicates]
    images = None
    if attach and ids:
        images = attach_images(ctx, state.inserted)
        survivors = Pair.query.filter(Pair.id.in_(ids)).order_by(Pair.id).all()
        inserted = [p.to_row() for p in survivors]
    else:
        inserted = [p.to_row() for p in state.inserted]

    return GenerationOutcome(inserted=inserted, duplicates=duplicates, attempts=state.attempts, images=images)
