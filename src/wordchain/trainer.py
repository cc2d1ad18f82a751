"""
Trainer that owns the word-transition graph.
"""

from __future__ import annotations

import random
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .constants import BACKUP_FILENAME, INITIAL_WEIGHT
from .errors import NoStartCandidateError
from .graph import Edge, Graph, Node, choose_heaviest, next_node_id
from .models import GraphSummary, SymbolConfiguration, SymbolKind, WrapperPair

if TYPE_CHECKING:
    from .builder import Builder


class Trainer:
    """
    Builds a first-order weighted Markov graph from text.

    The symbol configuration is fixed at construction and decides how tokens are split and
    classified.

    :param configuration: Symbol classification rules. Defaults to the standard symbol sets.
    :type configuration: SymbolConfiguration or None
    :param rng: Random source used for sampling.
    :type rng: random.Random or None
    :param seed: Seed for a new random source when ``rng`` is not given.
    :type seed: int or None
    """

    def __init__(
        self,
        configuration: Optional[SymbolConfiguration] = None,
        *,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.configuration = configuration or SymbolConfiguration()
        self.rng = rng if rng is not None else random.Random(seed)
        self.graph = Graph()
        self._groups = self.configuration.symbol_groups()
        self._symbols: FrozenSet[str] = frozenset(
            symbol for _, symbols in self._groups for symbol in symbols
        )
        self._wrapper_closers = self.configuration.wrapper_closers()
        self._default_terminator: Optional[Edge] = None
        end_symbol = self.configuration.default_end_symbol
        if end_symbol is not None:
            end_node = self.graph.add_detached(
                Node(node_id=next_node_id(), text=end_symbol, symbol_kind=SymbolKind.END)
            )
            self._default_terminator = Edge(
                target_id=end_node.node_id,
                symbol_kind=SymbolKind.END,
                weight=INITIAL_WEIGHT,
            )

    @classmethod
    def from_symbols(
        cls,
        default_end_symbol: Optional[str],
        end_symbols: Sequence[str],
        end_separator_symbols: Sequence[str],
        spacing_symbols: Sequence[str],
        separator_symbols: Sequence[str],
        combinator_symbols: Sequence[str],
        wrapper_pairs: Sequence[Tuple[str, str]],
        *,
        seed: Optional[int] = None,
    ) -> "Trainer":
        """
        Create a trainer from explicit symbol lists.

        :return: New trainer.
        :rtype: Trainer
        """
        configuration = SymbolConfiguration(
            default_end_symbol=default_end_symbol,
            end_symbols=list(end_symbols),
            end_separator_symbols=list(end_separator_symbols),
            spacing_symbols=list(spacing_symbols),
            separator_symbols=list(separator_symbols),
            combinator_symbols=list(combinator_symbols),
            wrapper_pairs=[WrapperPair(open=pair[0], close=pair[1]) for pair in wrapper_pairs],
        )
        return cls(configuration, seed=seed)

    @property
    def default_terminator(self) -> Optional[Edge]:
        return self._default_terminator

    def is_symbol(self, text: str) -> bool:
        return text in self._symbols

    def classify(self, text: str) -> Tuple[SymbolKind, Optional[str]]:
        """
        Classify a token by membership in the configured symbol sets.

        :param text: Token text.
        :type text: str
        :return: Symbol kind and, for wrapper openers, the configured closer.
        :rtype: tuple[SymbolKind, str or None]
        """
        for kind, symbols in self._groups:
            if text in symbols:
                if kind is SymbolKind.WRAPPER:
                    return kind, self._wrapper_closers.get(text)
                return kind, None
        return SymbolKind.PLAIN, None

    def closes_wrapper(self, text: str) -> bool:
        return text in self._wrapper_closers.values()

    def tokenize(self, text: str) -> List[str]:
        """
        Split text into tokens, padding configured symbols with spaces.

        End separators are not padded, so they stay attached to the preceding word.

        :param text: Raw text.
        :type text: str
        :return: Non-empty tokens in order.
        :rtype: list[str]
        """
        data = text.strip()
        for kind, symbols in self._groups:
            if kind is SymbolKind.END_SEPARATOR:
                continue
            for symbol in symbols:
                data = data.replace(symbol, f" {symbol} ")
        return [token.strip() for token in data.split() if token.strip()]

    def ingest(self, text: str, levels: int = 1) -> None:
        """
        Train on one piece of text.

        :param text: Raw text.
        :type text: str
        :param levels: Number of passes; more passes give the text more weight.
        :type levels: int
        :raises ValueError: If levels is negative.
        """
        if levels < 0:
            raise ValueError("levels must be zero or greater")
        tokens = self.tokenize(text)
        for _ in range(levels):
            previous: Optional[Node] = None
            for token in tokens:
                node = self._observe(token)
                if previous is not None:
                    self._link(previous, node)
                previous = node

    def ingest_many(self, texts: Iterable[str], levels: int = 1) -> None:
        """
        Train on a sequence of texts.

        :param texts: Raw texts.
        :type texts: Iterable[str]
        :param levels: Number of passes per text.
        :type levels: int
        """
        for text in texts:
            self.ingest(text, levels)

    def _observe(self, token: str) -> Node:
        node = self.graph.lookup(token)
        if node is not None:
            node.increase_weight()
            return node
        kind, closer = self.classify(token)
        return self.graph.insert(
            Node(
                node_id=next_node_id(),
                text=token,
                symbol_kind=kind,
                weight=INITIAL_WEIGHT,
                wrapper_closer=closer,
                default_terminator=self._default_terminator,
            )
        )

    def _link(self, previous: Node, node: Node) -> None:
        edge = previous.outgoing.get(node.text)
        if edge is not None:
            edge.increase_weight()
            return
        previous.outgoing[node.text] = self.edge_to(node)

    def edge_to(self, node: Node, weight: int = INITIAL_WEIGHT) -> Edge:
        """
        Build a transition to a node, copying its classification.

        :param node: Target node.
        :type node: Node
        :param weight: Initial transition weight.
        :type weight: int
        :return: New edge.
        :rtype: Edge
        """
        return Edge(
            target_id=node.node_id,
            symbol_kind=node.symbol_kind,
            weight=weight,
            wrapper_closer=node.wrapper_closer if node.symbol_kind is SymbolKind.WRAPPER else None,
        )

    def start_candidates(self) -> List[Node]:
        return [
            node
            for node in self.graph
            if not self.is_symbol(node.text) or node.symbol_kind is SymbolKind.WRAPPER
        ]

    def select_start(self, rng: Optional[random.Random] = None) -> Node:
        """
        Choose a node to begin a sentence with.

        Bare punctuation is never chosen; wrappers may start a sentence.

        :param rng: Random source. Defaults to the trainer's.
        :type rng: random.Random or None
        :return: Start node.
        :rtype: Node
        :raises NoStartCandidateError: If no vocabulary node qualifies.
        """
        chosen = choose_heaviest(
            self.start_candidates(), weight=lambda node: node.weight, rng=rng or self.rng
        )
        if chosen is None:
            raise NoStartCandidateError()
        return chosen

    def create_builder(
        self, min_words: int, max_words: int, *, rng: Optional[random.Random] = None
    ) -> "Builder":
        """
        Create a sentence builder over this trainer's graph.

        :param min_words: Minimum number of plain words.
        :type min_words: int
        :param max_words: Maximum number of plain words. Approximate when a sentence must close.
        :type max_words: int
        :param rng: Random source for the builder. Defaults to the trainer's.
        :type rng: random.Random or None
        :return: New builder.
        :rtype: Builder
        """
        from .builder import Builder

        return Builder(self, min_words, max_words, rng=rng)

    def save(self, path: Union[str, Path], *, backup_path: Union[str, Path] = BACKUP_FILENAME) -> None:
        """
        Write the graph to a binary model file.

        :param path: Destination path.
        :type path: str or Path
        :param backup_path: Where an existing file is copied before it is replaced.
        :type backup_path: str or Path
        """
        from .codec import save_graph

        save_graph(self, path, backup_path=backup_path)

    def load(self, path: Union[str, Path], *, missing_ok: bool = True) -> bool:
        """
        Read a binary model file into the graph.

        :param path: Source path.
        :type path: str or Path
        :param missing_ok: Return False instead of raising when the file does not exist.
        :type missing_ok: bool
        :return: True when a file was loaded.
        :rtype: bool
        :raises MissingModelFileError: If the file is missing and ``missing_ok`` is False.
        :raises CorruptModelFileError: If the file cannot be decoded.
        """
        from .codec import load_graph

        return load_graph(self, path, missing_ok=missing_ok)

    def summarize(self) -> GraphSummary:
        """
        Summarize the size of the trained graph.

        :return: Graph summary.
        :rtype: GraphSummary
        """
        nodes = self.graph.nodes()
        kinds: Dict[str, int] = dict(Counter(node.symbol_kind.value for node in nodes))
        return GraphSummary(
            node_count=len(nodes),
            edge_count=self.graph.edge_count(),
            total_weight=sum(node.weight for node in nodes),
            kinds=kinds,
        )
