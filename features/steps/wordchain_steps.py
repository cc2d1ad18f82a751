from __future__ import annotations

import random
from typing import Dict, Tuple

from behave import given, then, when

from wordchain import SymbolKind, Trainer


class _HeaviestFirstRandom(random.Random):
    def randrange(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        return 0


def _snapshot(trainer: Trainer) -> Dict[str, Tuple[int, SymbolKind, object, Dict[str, int]]]:
    return {
        node.text: (
            node.weight,
            node.symbol_kind,
            node.wrapper_closer,
            {text: edge.weight for text, edge in node.outgoing.items()},
        )
        for node in trainer.graph
    }


@given("a default trainer")
def step_default_trainer(context) -> None:
    context.trainer = Trainer()


@given("a default trainer seeded with {seed:d}")
def step_seeded_trainer(context, seed: int) -> None:
    context.trainer = Trainer(seed=seed)


@given("a default trainer that always picks the heaviest candidate")
def step_heaviest_trainer(context) -> None:
    context.trainer = Trainer(rng=_HeaviestFirstRandom())


@when('I train on "{text}" with {levels:d} levels')
def step_train_levels(context, text: str, levels: int) -> None:
    context.trainer.ingest(text, levels)


@when('I train on "{text}"')
def step_train(context, text: str) -> None:
    context.trainer.ingest(text)


@then('node "{text}" has weight {weight:d}')
def step_node_weight(context, text: str, weight: int) -> None:
    node = context.trainer.graph.lookup(text)
    assert node is not None, f"no node for {text!r}"
    assert node.weight == weight, node.weight


@then('node "{text}" has kind "{kind}"')
def step_node_kind(context, text: str, kind: str) -> None:
    node = context.trainer.graph.lookup(text)
    assert node is not None, f"no node for {text!r}"
    assert node.symbol_kind == SymbolKind(kind), node.symbol_kind


@then('node "{text}" closes with "{closer}"')
def step_node_closer(context, text: str, closer: str) -> None:
    node = context.trainer.graph.lookup(text)
    assert node is not None, f"no node for {text!r}"
    assert node.wrapper_closer == closer, node.wrapper_closer


@then('the transition from "{source}" to "{target}" has weight {weight:d}')
def step_transition_weight(context, source: str, target: str, weight: int) -> None:
    node = context.trainer.graph.lookup(source)
    assert node is not None, f"no node for {source!r}"
    edge = node.outgoing.get(target)
    assert edge is not None, f"no transition {source!r} -> {target!r}"
    assert edge.weight == weight, edge.weight


@when("I render a sentence with between {min_words:d} and {max_words:d} words without the end symbol")
def step_render_without_end(context, min_words: int, max_words: int) -> None:
    context.builder = context.trainer.create_builder(min_words, max_words)
    context.rendered = context.builder.render(include_end=False)


@when("I render a sentence with between {min_words:d} and {max_words:d} words")
def step_render(context, min_words: int, max_words: int) -> None:
    context.builder = context.trainer.create_builder(min_words, max_words)
    context.rendered = context.builder.render()


@when("I render the same builder again")
def step_render_again(context) -> None:
    context.first_rendered = context.rendered
    context.rendered = context.builder.render()


@then('the rendered sentence is "{expected}"')
def step_rendered_is(context, expected: str) -> None:
    assert context.rendered == expected, context.rendered


@then("both renders are identical")
def step_renders_identical(context) -> None:
    assert context.first_rendered is not None
    assert context.rendered == context.first_rendered


@then('rendering failed with status "{status}"')
def step_render_failed(context, status: str) -> None:
    assert context.rendered is None, context.rendered
    assert context.builder.status.value == status, context.builder.status


@when('I save the model to "{name}"')
def step_save(context, name: str) -> None:
    target = context.workdir / name
    if target.exists():
        context.previous_model_bytes = target.read_bytes()
    context.trainer.save(target, backup_path=context.workdir / "backup.bin")


@when('I load "{name}" into a fresh trainer')
def step_load_fresh(context, name: str) -> None:
    context.fresh_trainer = Trainer()
    context.loaded = context.fresh_trainer.load(context.workdir / name)


@then("the model was loaded")
def step_model_loaded(context) -> None:
    assert context.loaded is True


@then("the model was not loaded")
def step_model_not_loaded(context) -> None:
    assert context.loaded is False


@then("the fresh trainer matches the original graph")
def step_fresh_matches(context) -> None:
    assert _snapshot(context.fresh_trainer) == _snapshot(context.trainer)


@then("the fresh trainer has no vocabulary")
def step_fresh_empty(context) -> None:
    assert len(context.fresh_trainer.graph) == 0


@then("the backup file holds the first saved model")
def step_backup_holds_first(context) -> None:
    backup = context.workdir / "backup.bin"
    assert backup.is_file()
    assert backup.read_bytes() == context.previous_model_bytes
