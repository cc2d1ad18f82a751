"""
Sentence builder that walks a trained graph and renders the result.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from .constants import MAX_RETRIES, MAX_WALK_TOKENS
from .errors import NoStartCandidateError, RetriesExhaustedError
from .graph import Edge, Node
from .models import BuilderStatus, SymbolKind

if TYPE_CHECKING:
    from .trainer import Trainer

_ATTACHING_KINDS = (SymbolKind.END, SymbolKind.END_SEPARATOR, SymbolKind.COMBINATOR)
_UNSPACED_KINDS = (SymbolKind.COMBINATOR, SymbolKind.SEPARATOR, SymbolKind.WRAPPER)


@dataclass(frozen=True)
class WalkToken:
    """
    One generated token.

    :ivar node_id: Identifier of the graph node, or None for a closer that was never trained.
    :vartype node_id: int or None
    :ivar text: Token text.
    :vartype text: str
    :ivar symbol_kind: Symbol kind in this position.
    :vartype symbol_kind: SymbolKind
    :ivar wrapper_closer: Closing token when this is a wrapper opener.
    :vartype wrapper_closer: str or None
    """

    node_id: Optional[int]
    text: str
    symbol_kind: SymbolKind
    wrapper_closer: Optional[str] = None

    @classmethod
    def from_node(cls, node: Node) -> "WalkToken":
        return cls(
            node_id=node.node_id,
            text=node.text,
            symbol_kind=node.symbol_kind,
            wrapper_closer=node.wrapper_closer,
        )

    @classmethod
    def from_edge(cls, edge: Edge, target: Node) -> "WalkToken":
        return cls(
            node_id=edge.target_id,
            text=target.text,
            symbol_kind=edge.symbol_kind,
            wrapper_closer=edge.wrapper_closer,
        )

    @property
    def is_plain(self) -> bool:
        return self.symbol_kind is SymbolKind.PLAIN

    @property
    def is_closing_wrapper(self) -> bool:
        """
        Whether this is a wrapper token without a closer of its own.

        :return: True for closing or misconfigured wrapper tokens.
        :rtype: bool
        """
        return self.symbol_kind is SymbolKind.WRAPPER and not (self.wrapper_closer or "").strip()


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def format_tokens(tokens: Sequence[WalkToken]) -> str:
    """
    Render tokens to text using their symbol kinds.

    Spacing symbols get a space on both sides, separators, combinators and wrappers get none,
    and words or end marks drop their trailing space before attaching punctuation.

    :param tokens: Generated tokens.
    :type tokens: Sequence[WalkToken]
    :return: Rendered text with the first character uppercased.
    :rtype: str
    """
    parts: List[str] = []
    for index, token in enumerate(tokens):
        following = tokens[index + 1] if index + 1 < len(tokens) else None
        if token.symbol_kind is SymbolKind.SPACING:
            parts.append(f" {token.text} ")
        elif token.symbol_kind in _UNSPACED_KINDS:
            parts.append(token.text)
        elif following is not None and following.symbol_kind in _ATTACHING_KINDS:
            parts.append(token.text)
        elif (
            following is not None
            and following.symbol_kind is SymbolKind.WRAPPER
            and token.symbol_kind is SymbolKind.END
        ):
            parts.append(token.text)
        else:
            parts.append(f"{token.text} ")
    return capitalize_first("".join(parts).strip())


class Builder:
    """
    Stateful walk over a trainer's graph.

    The builder tracks a single open wrapper, so a second opener replaces the first.
    Malformed wrapper skips and under-length regenerations share one retry budget.

    :param trainer: Trainer that owns the graph.
    :type trainer: Trainer
    :param min_words: Minimum number of plain words.
    :type min_words: int
    :param max_words: Maximum number of plain words.
    :type max_words: int
    :param rng: Random source. Defaults to the trainer's.
    :type rng: random.Random or None
    :raises ValueError: If a word bound is negative.
    """

    def __init__(
        self,
        trainer: "Trainer",
        min_words: int,
        max_words: int,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        if min_words < 0 or max_words < 0:
            raise ValueError("min_words and max_words must be zero or greater")
        self._trainer = trainer
        self._rng = rng if rng is not None else trainer.rng
        self.min_words = min_words
        self.max_words = max_words
        self._sequence: List[WalkToken] = []
        self._current: Optional[WalkToken] = None
        self._open_wrapper: Optional[WalkToken] = None
        self._retry_count = 0
        self._terminated = False
        self._started = False
        self._status = BuilderStatus.RUNNING

    @property
    def sequence(self) -> Tuple[WalkToken, ...]:
        return tuple(self._sequence)

    @property
    def open_wrapper(self) -> Optional[WalkToken]:
        return self._open_wrapper

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def terminated(self) -> bool:
        return self._terminated

    @property
    def status(self) -> BuilderStatus:
        return self._status

    @property
    def plain_count(self) -> int:
        return sum(1 for token in self._sequence if token.is_plain)

    def reset(self) -> "Builder":
        """
        Discard the whole session, including the retry budget.

        :return: This builder.
        :rtype: Builder
        """
        self._restart()
        self._retry_count = 0
        self._started = False
        return self

    def advance(self, select_until_end: bool = True, include_end: bool = True) -> "Builder":
        """
        Generate the next token of the sequence.

        :param select_until_end: Stop at the first end symbol.
        :type select_until_end: bool
        :param include_end: Keep that end symbol in the sequence.
        :type include_end: bool
        :return: This builder.
        :rtype: Builder
        """
        self._started = True
        while True:
            if self._retry_count > MAX_RETRIES:
                self._exhaust()
                return self
            if self._terminated:
                return self
            token = self._pick()
            if token is None:
                self._terminate()
                return self
            self._current = token
            if token.is_closing_wrapper:
                self._retry_count += 1
                continue
            self._place(token, select_until_end=select_until_end, include_end=include_end)
            return self

    def walk(self, select_until_end: bool = True, include_end: bool = True) -> "Builder":
        """
        Advance until the walk terminates or the word limit is reached.

        :param select_until_end: Stop at the first end symbol.
        :type select_until_end: bool
        :param include_end: Keep that end symbol in the sequence.
        :type include_end: bool
        :return: This builder.
        :rtype: Builder
        """
        self._started = True
        while not self._terminated and self.plain_count < self.max_words:
            if len(self._sequence) >= MAX_WALK_TOKENS:
                self._terminate()
                break
            self.advance(select_until_end, include_end)
        return self

    def render(self, select_until_end: bool = True, include_end: bool = True) -> Optional[str]:
        """
        Render the generated sentence, generating or regenerating as needed.

        Rendering a sequence that already satisfies the word bounds returns the same text on
        every call.

        :param select_until_end: Stop at the first end symbol.
        :type select_until_end: bool
        :param include_end: Keep that end symbol in the sequence.
        :type include_end: bool
        :return: Rendered sentence, or None when generation failed.
        :rtype: str or None
        """
        if not self._started:
            self.walk(select_until_end, include_end)
        while True:
            if self._retry_count > MAX_RETRIES:
                self._exhaust()
                return None
            if self._status is BuilderStatus.NO_START_CANDIDATE:
                return None
            self._truncate()
            if self.plain_count >= self.min_words:
                break
            self._restart()
            self.walk(select_until_end, include_end)
            self._retry_count += 1
        return format_tokens(self._sequence)

    def render_or_raise(self, select_until_end: bool = True, include_end: bool = True) -> str:
        """
        Render the generated sentence, raising on failure.

        :return: Rendered sentence.
        :rtype: str
        :raises NoStartCandidateError: If the vocabulary has no start node.
        :raises RetriesExhaustedError: If the retry budget ran out.
        """
        rendered = self.render(select_until_end, include_end)
        if rendered is not None:
            return rendered
        if self._status is BuilderStatus.NO_START_CANDIDATE:
            raise NoStartCandidateError()
        raise RetriesExhaustedError(attempts=self._retry_count)

    def _pick(self) -> Optional[WalkToken]:
        graph = self._trainer.graph
        if self._current is None:
            try:
                node = self._trainer.select_start(self._rng)
            except NoStartCandidateError:
                self._sequence.clear()
                self._status = BuilderStatus.NO_START_CANDIDATE
                return None
            return WalkToken.from_node(node)
        if self._current.node_id is None:
            return None
        edge = graph.node(self._current.node_id).select_transition(self._rng)
        if edge is None:
            return None
        return WalkToken.from_edge(edge, graph.target(edge))

    def _closes_open_wrapper(self, token: WalkToken) -> bool:
        return (
            self._open_wrapper is not None
            and token.symbol_kind is SymbolKind.WRAPPER
            and token.text == self._open_wrapper.wrapper_closer
        )

    def _closer_for(self, opener: WalkToken) -> WalkToken:
        closer = opener.wrapper_closer or ""
        node = self._trainer.graph.lookup(closer)
        return WalkToken(
            node_id=node.node_id if node is not None else None,
            text=closer,
            symbol_kind=SymbolKind.WRAPPER,
        )

    def _place(self, token: WalkToken, *, select_until_end: bool, include_end: bool) -> None:
        if select_until_end and token.symbol_kind is SymbolKind.END:
            if include_end or self._open_wrapper is not None:
                self._sequence.append(token)
            if self._open_wrapper is not None:
                self._sequence.append(self._closer_for(self._open_wrapper))
                self._open_wrapper = None
            self._terminate()
            return
        if self._closes_open_wrapper(token):
            self._open_wrapper = None
        elif token.symbol_kind is SymbolKind.WRAPPER:
            self._open_wrapper = token
        self._sequence.append(token)

    def _truncate(self) -> None:
        if self.plain_count <= self.max_words:
            return
        limit = min(len(self._sequence), self.max_words)
        for index in range(limit):
            token = self._sequence[index]
            following = self._sequence[index + 1] if index < limit - 1 else None
            if token.is_closing_wrapper:
                del self._sequence[index + 1 :]
                return
            if token.symbol_kind is SymbolKind.END and (
                following is None or not following.is_closing_wrapper
            ):
                del self._sequence[index + 1 :]
                return

    def _terminate(self) -> None:
        self._terminated = True
        if self._status is BuilderStatus.RUNNING:
            self._status = BuilderStatus.TERMINATED

    def _exhaust(self) -> None:
        self._sequence.clear()
        self._terminated = True
        self._status = BuilderStatus.RETRIES_EXHAUSTED

    def _restart(self) -> None:
        self._sequence.clear()
        self._current = None
        self._open_wrapper = None
        self._terminated = False
        self._status = BuilderStatus.RUNNING
