import pytest

from conftest import FakeGenerator
from thisorthat.errors import ValidationFailure
from thisorthat.models import Pair
from thisorthat.pairs.loop import MAX_ATTEMPTS, MAX_ATTEMPTS_SCOPED, GenerationState, generation_step, run_generation


def _animals(*names):
    return {"pairs": [{"type": "animal", "source": "unsplash", "option_1": a, "option_2": b} for a, b in names]}


def test_ten_fresh_pairs_in_one_attempt(ctx):
    fresh = [(f"Fox{i}", f"Owl{i}") for i in range(10)]
    ctx.generator = FakeGenerator([_animals(*fresh)])

    outcome = run_generation(ctx, None, 10)

    assert outcome.attempts == 1
    assert len(outcome.inserted) == 10
    assert outcome.duplicates == []
    assert Pair.query.count() == 10
    assert outcome.to_dict()["success"] is True


def test_all_duplicates_exhausts_scoped_attempts(ctx, make_pair):
    names = [("Cat", "Dog"), ("Lion", "Tiger"), ("Shark", "Whale"), ("Horse", "Zebra"), ("Frog", "Toad")]
    for a, b in names:
        make_pair("animal", "unsplash", a, b)
    ctx.generator = FakeGenerator([_animals(*[(b, a) for a, b in names])])

    outcome = run_generation(ctx, "animal", 5)

    assert outcome.attempts == MAX_ATTEMPTS_SCOPED == 5
    assert outcome.inserted == []
    assert len(outcome.duplicates) == 25
    assert outcome.to_dict()["success"] is True
    # rejected pairs are fed back to the generator
    assert "already in the database" in ctx.generator.prompts[-1]


def test_unscoped_ceiling_is_three(ctx, make_pair):
    make_pair("animal", "unsplash", "Cat", "Dog")
    ctx.generator = FakeGenerator([_animals(("Cat", "Dog"))])
    outcome = run_generation(ctx, None, 2)
    assert outcome.attempts == MAX_ATTEMPTS == 3


def test_partial_success_keeps_going_until_count(ctx):
    ctx.generator = FakeGenerator([
        _animals(("Cat", "Dog"), ("Cat", "Dog")),
        _animals(("Bee", "Wasp")),
    ])
    outcome = run_generation(ctx, "animal", 2)
    assert outcome.attempts == 2
    assert [p["option_1_value"] for p in outcome.inserted] == ["Cat", "Bee"]


def test_generator_never_inserts_more_than_requested(ctx):
    ctx.generator = FakeGenerator([_animals(*[(f"A{i}", f"B{i}") for i in range(8)])])
    outcome = run_generation(ctx, "animal", 3)
    assert len(outcome.inserted) == 3


def test_invalid_output_aborts_the_run(ctx):
    ctx.generator = FakeGenerator([{"pairs": [{"type": "animal"}]}])
    with pytest.raises(ValidationFailure):
        run_generation(ctx, "animal", 3)
    assert len(ctx.generator.prompts) == 1


def test_step_accumulates_state(ctx):
    ctx.generator = FakeGenerator([_animals(("Emu", "Ostrich"))])
    state = GenerationState(category="animal", count=1)
    generation_step(ctx, state)
    assert state.attempts == 1
    assert state.finished
    assert [p.option_2_value for p in state.inserted] == ["Ostrich"]


def test_generation_can_attach_images(ctx, stub_images):
    stub_images["missing"].add("Dodo")
    ctx.generator = FakeGenerator([_animals(("Emu", "Ostrich"), ("Dodo", "Moa"))])

    outcome = run_generation(ctx, "animal", 2, attach=True)

    assert outcome.images.updated == 1
    assert outcome.images.deleted == 1
    assert [p["option_1_value"] for p in outcome.inserted] == ["Emu"]
    assert outcome.inserted[0]["option_1_url"]
