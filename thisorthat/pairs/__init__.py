from thisorthat.pairs.attach import AttachReport, attach_images
from thisorthat.pairs.generator import CandidatePair, OpenAIPairClient, generate_candidates
from thisorthat.pairs.loop import GenerationOutcome, GenerationState, generation_step, run_generation
from thisorthat.pairs.persistence import SaveResult, save_pairs
from thisorthat.pairs.votes import record_vote

__all__ = [
    "AttachReport",
    "CandidatePair",
    "GenerationOutcome",
    "GenerationState",
    "OpenAIPairClient",
    "SaveResult",
    "attach_images",
    "generate_candidates",
    "generation_step",
    "record_vote",
    "run_generation",
    "save_pairs",
]
