"""
Command-line interface for wordchain.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from pydantic import ValidationError

from .configuration import load_symbol_configuration, parse_overrides
from .constants import BACKUP_FILENAME
from .errors import WordchainError
from .trainer import Trainer


def _progress(message: str) -> None:
    print(f"[wordchain] {message}", flush=True, file=sys.stderr)


def _add_configuration_args(parser: argparse.ArgumentParser) -> None:
    """
    Add the shared symbol configuration arguments to a parser.

    :param parser: Argument parser to modify.
    :type parser: argparse.ArgumentParser
    :return: None.
    :rtype: None
    """
    parser.add_argument(
        "--config",
        default=None,
        help="YAML file with symbol configuration (defaults to the built-in symbol sets).",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Override a configuration value (repeatable), for example end_symbols='[\".\"]'.",
    )


def _build_trainer(arguments: argparse.Namespace) -> Trainer:
    configuration = load_symbol_configuration(
        arguments.config,
        overrides=parse_overrides(arguments.overrides),
    )
    return Trainer(configuration, seed=getattr(arguments, "seed", None))


def _read_lines(sources: Iterable[str]) -> Iterator[str]:
    for source in sources:
        if source == "-":
            lines = sys.stdin.read().splitlines()
        else:
            path = Path(source)
            if not path.is_file():
                raise FileNotFoundError(f"Training input not found: {path}")
            lines = path.read_text(encoding="utf-8").splitlines()
        for line in lines:
            if line.strip():
                yield line


def cmd_train(arguments: argparse.Namespace) -> int:
    """
    Train a model file from text inputs.

    :param arguments: Parsed command-line interface arguments.
    :type arguments: argparse.Namespace
    :return: Exit code.
    :rtype: int
    """
    trainer = _build_trainer(arguments)
    if trainer.load(arguments.model):
        _progress(f"loaded {len(trainer.graph)} nodes from {arguments.model}")
    line_count = 0
    for line in _read_lines(arguments.inputs):
        trainer.ingest(line, arguments.levels)
        line_count += 1
    _progress(f"trained lines={line_count} levels={arguments.levels}")
    trainer.save(arguments.model, backup_path=arguments.backup)
    summary = trainer.summarize()
    _progress(f"saved nodes={summary.node_count} edges={summary.edge_count} to {arguments.model}")
    print(summary.model_dump_json(indent=2))
    return 0


def cmd_generate(arguments: argparse.Namespace) -> int:
    """
    Generate sentences from a model file.

    :param arguments: Parsed command-line interface arguments.
    :type arguments: argparse.Namespace
    :return: Exit code.
    :rtype: int
    """
    trainer = _build_trainer(arguments)
    trainer.load(arguments.model, missing_ok=False)
    failures = 0
    for _ in range(arguments.count):
        builder = trainer.create_builder(arguments.min_words, arguments.max_words)
        sentence = builder.render(
            select_until_end=not arguments.keep_going,
            include_end=not arguments.no_end,
        )
        if sentence is None:
            failures += 1
            _progress(f"generation failed: {builder.status.value}")
            continue
        print(sentence)
    return 1 if failures else 0


def cmd_stats(arguments: argparse.Namespace) -> int:
    """
    Print a summary of a model file.

    :param arguments: Parsed command-line interface arguments.
    :type arguments: argparse.Namespace
    :return: Exit code.
    :rtype: int
    """
    trainer = _build_trainer(arguments)
    trainer.load(arguments.model, missing_ok=False)
    print(trainer.summarize().model_dump_json(indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the command-line interface argument parser.

    :return: Argument parser instance.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="wordchain",
        description="Train word-transition models and generate sentences from them.",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_train = sub.add_parser("train", help="Train MODEL on lines of text.")
    p_train.add_argument("model", help="Model file to create or extend.")
    p_train.add_argument("inputs", nargs="+", help="Text files to train on ('-' reads stdin).")
    p_train.add_argument(
        "--levels", type=int, default=1, help="Training passes per line (default: 1)."
    )
    p_train.add_argument(
        "--backup",
        default=BACKUP_FILENAME,
        help=f"Backup path for the previous model file (default: {BACKUP_FILENAME}).",
    )
    _add_configuration_args(p_train)
    p_train.set_defaults(func=cmd_train)

    p_generate = sub.add_parser("generate", help="Generate sentences from MODEL.")
    p_generate.add_argument("model", help="Model file to read.")
    p_generate.add_argument(
        "--min", dest="min_words", type=int, default=1, help="Minimum words (default: 1)."
    )
    p_generate.add_argument(
        "--max", dest="max_words", type=int, default=25, help="Maximum words (default: 25)."
    )
    p_generate.add_argument(
        "--count", type=int, default=1, help="Number of sentences (default: 1)."
    )
    p_generate.add_argument("--seed", type=int, default=None, help="Random seed.")
    p_generate.add_argument(
        "--no-end", action="store_true", help="Leave out the final end symbol."
    )
    p_generate.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue past end symbols until the word limit is reached.",
    )
    _add_configuration_args(p_generate)
    p_generate.set_defaults(func=cmd_generate)

    p_stats = sub.add_parser("stats", help="Summarize MODEL as JSON.")
    p_stats.add_argument("model", help="Model file to read.")
    _add_configuration_args(p_stats)
    p_stats.set_defaults(func=cmd_stats)

    return parser


def main(argument_list: Optional[List[str]] = None) -> int:
    """
    Entry point for the wordchain command-line interface.

    :param argument_list: Optional command-line interface arguments.
    :type argument_list: list[str] or None
    :return: Exit code.
    :rtype: int
    """
    parser = build_parser()
    arguments = parser.parse_args(argument_list)
    try:
        return int(arguments.func(arguments))
    except (
        FileNotFoundError,
        KeyError,
        ValueError,
        WordchainError,
        ValidationError,
    ) as exception:
        message = exception.args[0] if getattr(exception, "args", None) else str(exception)
        print(str(message), file=sys.stderr)
        return 2
