"""
Sentence builder state machine and formatting tests.
"""

from __future__ import annotations

import random

import pytest

from wordchain import (
    BuilderStatus,
    NoStartCandidateError,
    RetriesExhaustedError,
    SymbolKind,
    Trainer,
    WalkToken,
    format_tokens,
)
from wordchain.constants import MAX_RETRIES

CORPUS = [
    "The cat sat on the mat.",
    "A dog chased the cat around the garden!",
    "Did the bird sing at dawn?",
    "He said (hello) to her, then left.",
    "She wrote \"goodbye\" on the wall & walked away.",
]


class HeaviestFirstRandom(random.Random):
    """
    Random source that always takes the first ranked candidate.
    """

    def randrange(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        return 0


class ScriptedRandom:
    """
    Random source that returns ranked candidate positions from a fixed script.
    """

    def __init__(self, picks):  # type: ignore[no-untyped-def]
        self._picks = list(picks)

    def randrange(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        return self._picks.pop(0)


def _heaviest_first_trainer(*texts: str) -> Trainer:
    trainer = Trainer(rng=HeaviestFirstRandom())
    trainer.ingest_many(texts)
    return trainer


def _token(text: str, kind: SymbolKind = SymbolKind.PLAIN, closer=None) -> WalkToken:
    return WalkToken(node_id=None, text=text, symbol_kind=kind, wrapper_closer=closer)


def test_single_sentence_is_reproduced_exactly():
    trainer = _heaviest_first_trainer("The quick brown fox jumps over the fence.")
    builder = trainer.create_builder(1, 25)
    assert builder.render() == "The quick brown fox jumps over the fence."
    assert builder.status is BuilderStatus.TERMINATED
    assert builder.retry_count == 0


def test_open_wrapper_is_closed_after_the_end_symbol():
    trainer = _heaviest_first_trainer("He said (hello to her.")
    builder = trainer.create_builder(1, 25)
    assert builder.render() == "He said (hello to her.)"
    texts = [token.text for token in builder.sequence]
    assert texts[-2:] == [".", ")"]
    assert builder.open_wrapper is None


def test_trained_closer_is_skipped_and_emitted_after_the_end_symbol():
    trainer = _heaviest_first_trainer("He said (hello) to her.")
    builder = trainer.create_builder(1, 25)
    assert builder.render() == "He said (hello to her.)"
    assert [token.text for token in builder.sequence] == [
        "He",
        "said",
        "(",
        "hello",
        "to",
        "her",
        ".",
        ")",
    ]
    assert builder.retry_count == 1
    assert builder.open_wrapper is None


def test_wrapper_with_its_own_closer_closes_mid_sentence():
    trainer = Trainer(rng=ScriptedRandom([1, 0, 0, 0, 1, 0]))
    trainer.ingest('A "b" c.')
    builder = trainer.create_builder(1, 25)
    builder.render()
    assert [token.text for token in builder.sequence] == ["A", '"', "b", '"', "c", "."]
    assert builder.retry_count == 0
    assert builder.open_wrapper is None


def test_stray_closing_wrapper_is_skipped_and_counted():
    trainer = _heaviest_first_trainer(") begins here.")
    builder = trainer.create_builder(1, 10)
    assert builder.render() == "Begins here."
    assert builder.retry_count == 1


def test_wrapper_without_configured_closer_is_skipped():
    trainer = Trainer.from_symbols(".", ["."], [], [], [], [], [("{", "")])
    trainer.rng = HeaviestFirstRandom()
    trainer.ingest("alpha { beta.")
    builder = trainer.create_builder(1, 10)
    assert builder.render() == "Alpha beta."
    assert builder.retry_count == 1


def test_end_symbol_can_be_left_out():
    trainer = _heaviest_first_trainer("Hi there.")
    assert trainer.create_builder(1, 5).render(include_end=False) == "Hi there"


def test_walk_can_continue_past_end_symbols():
    trainer = _heaviest_first_trainer("Hi there. Bye now.")
    builder = trainer.create_builder(1, 4)
    assert builder.render(select_until_end=False) == "Hi there. Bye now"
    assert builder.plain_count == 4


def test_walk_stops_at_the_word_limit():
    trainer = _heaviest_first_trainer("one two three four five six seven eight.")
    builder = trainer.create_builder(1, 3)
    assert builder.render() == "One two three"
    assert builder.plain_count == 3


def test_render_truncates_after_an_end_symbol():
    trainer = _heaviest_first_trainer("One two. Three four five.")
    builder = trainer.create_builder(1, 3)
    for _ in range(6):
        builder.advance(select_until_end=False)
    assert builder.plain_count == 5
    assert builder.render() == "One two."
    assert builder.plain_count == 2


def test_render_is_idempotent_for_a_satisfied_sequence():
    trainer = Trainer(seed=21)
    trainer.ingest_many(CORPUS[:3])
    builder = trainer.create_builder(1, 30)
    first = builder.render()
    assert first is not None
    assert builder.render() == first
    assert builder.render() == first


@pytest.mark.parametrize("seed", range(25))
def test_rendered_sentences_respect_bounds_and_casing(seed):
    trainer = Trainer(seed=seed)
    trainer.ingest_many(CORPUS)
    builder = trainer.create_builder(1, 1000)
    rendered = builder.render()
    if rendered is None:
        assert builder.status is BuilderStatus.RETRIES_EXHAUSTED
        return
    assert 1 <= builder.plain_count <= 1000
    assert rendered == rendered.strip()
    assert rendered[0] == rendered[0].upper()


def test_unreachable_minimum_exhausts_retries():
    trainer = Trainer(seed=5)
    trainer.ingest("Hi there.")
    builder = trainer.create_builder(5, 10)
    assert builder.render() is None
    assert builder.status is BuilderStatus.RETRIES_EXHAUSTED
    assert builder.retry_count > MAX_RETRIES
    assert builder.sequence == ()
    assert builder.render() is None
    with pytest.raises(RetriesExhaustedError):
        builder.render_or_raise()


def test_empty_vocabulary_fails_without_retrying():
    builder = Trainer().create_builder(1, 5)
    assert builder.render() is None
    assert builder.status is BuilderStatus.NO_START_CANDIDATE
    assert builder.retry_count == 0
    with pytest.raises(NoStartCandidateError):
        builder.render_or_raise()


def test_advance_is_a_no_op_once_terminated():
    trainer = _heaviest_first_trainer("Stop.")
    builder = trainer.create_builder(1, 5).walk()
    assert builder.terminated
    before = builder.sequence
    builder.advance()
    assert builder.sequence == before


def test_reset_discards_the_session():
    trainer = _heaviest_first_trainer("Hi there.")
    builder = trainer.create_builder(1, 5)
    builder.render()
    builder.reset()
    assert builder.sequence == ()
    assert not builder.terminated
    assert builder.retry_count == 0
    assert builder.status is BuilderStatus.RUNNING
    assert builder.render() == "Hi there."


def test_builder_rejects_negative_bounds():
    trainer = Trainer()
    with pytest.raises(ValueError):
        trainer.create_builder(-1, 5)
    with pytest.raises(ValueError):
        trainer.create_builder(1, -5)


def test_inverted_bounds_fail_through_the_retry_budget():
    trainer = Trainer(seed=2)
    trainer.ingest("one two three four five six seven.")
    builder = trainer.create_builder(6, 5)
    assert builder.render() is None
    assert builder.status is BuilderStatus.RETRIES_EXHAUSTED


def test_format_tokens_applies_spacing_rules():
    tokens = [
        _token("cats"),
        _token("&", SymbolKind.SPACING),
        _token("dogs"),
        _token(",", SymbolKind.END_SEPARATOR),
        _token("mail"),
        _token("@", SymbolKind.COMBINATOR),
        _token("home"),
        _token(">", SymbolKind.SEPARATOR),
        _token("out"),
        _token(".", SymbolKind.END),
    ]
    assert format_tokens(tokens) == "Cats  & dogs, mail@home >out."


def test_format_tokens_attaches_end_to_following_wrapper():
    tokens = [
        _token("(", SymbolKind.WRAPPER, ")"),
        _token("quiet"),
        _token(".", SymbolKind.END),
        _token(")", SymbolKind.WRAPPER),
    ]
    assert format_tokens(tokens) == "(quiet.)"


def test_format_tokens_handles_an_empty_sequence():
    assert format_tokens([]) == ""
