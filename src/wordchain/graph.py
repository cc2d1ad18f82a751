"""
Weighted word-transition graph.

Nodes live in an arena keyed by a process-unique integer identifier. Edges refer to their
target by identifier, so a node and its own transition table never form a reference cycle.
"""

from __future__ import annotations

import itertools
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, TypeVar

from .constants import CANDIDATE_LIMIT, INITIAL_WEIGHT, MAX_WEIGHT, MIN_WEIGHT
from .models import SymbolKind

_T = TypeVar("_T")

_node_ids = itertools.count()


def next_node_id() -> int:
    """
    Allocate a node identifier that is unique for the lifetime of the process.

    :return: New node identifier.
    :rtype: int
    """
    return next(_node_ids)


def clamp_weight(weight: int) -> int:
    """
    Clamp a weight into the supported range.

    :param weight: Requested weight.
    :type weight: int
    :return: Weight within ``[MIN_WEIGHT, MAX_WEIGHT]``.
    :rtype: int
    """
    return min(MAX_WEIGHT, max(MIN_WEIGHT, int(weight)))


def saturating_increment(weight: int) -> int:
    """
    Increment a weight by one, stopping at ``MAX_WEIGHT``.

    :param weight: Current weight.
    :type weight: int
    :return: Incremented weight.
    :rtype: int
    """
    if weight >= MAX_WEIGHT:
        return MAX_WEIGHT
    return weight + 1


def choose_heaviest(
    items: Sequence[_T],
    *,
    weight: Callable[[_T], int],
    rng: random.Random,
    limit: int = CANDIDATE_LIMIT,
) -> Optional[_T]:
    """
    Pick uniformly among the heaviest items.

    Items are ranked by weight in descending order (ties keep their input order) and at most
    ``limit`` of them are kept before the uniform draw.

    :param items: Candidate items.
    :type items: Sequence
    :param weight: Weight accessor.
    :type weight: Callable
    :param rng: Random source.
    :type rng: random.Random
    :param limit: Maximum number of candidates kept.
    :type limit: int
    :return: Chosen item, or None when there are no items.
    :rtype: object or None
    """
    if not items:
        return None
    ranked = sorted(items, key=weight, reverse=True)[:limit]
    return ranked[rng.randrange(len(ranked))]


@dataclass
class Edge:
    """
    Weighted transition to a target node.

    :ivar target_id: Identifier of the target node.
    :vartype target_id: int
    :ivar symbol_kind: Symbol kind of the target in this transition.
    :vartype symbol_kind: SymbolKind
    :ivar weight: Transition weight.
    :vartype weight: int
    :ivar wrapper_closer: Closing token when the target is a wrapper opener.
    :vartype wrapper_closer: str or None
    """

    target_id: int
    symbol_kind: SymbolKind
    weight: int = INITIAL_WEIGHT
    wrapper_closer: Optional[str] = None

    def __post_init__(self) -> None:
        self.weight = clamp_weight(self.weight)

    def increase_weight(self) -> None:
        self.weight = saturating_increment(self.weight)


@dataclass
class Node:
    """
    Vocabulary entry with its outgoing transitions.

    :ivar node_id: Process-unique identifier.
    :vartype node_id: int
    :ivar text: Token text.
    :vartype text: str
    :ivar symbol_kind: Symbol kind of the token.
    :vartype symbol_kind: SymbolKind
    :ivar weight: Popularity of the token across all training input.
    :vartype weight: int
    :ivar wrapper_closer: Closing token when the node is a wrapper opener.
    :vartype wrapper_closer: str or None
    :ivar default_terminator: Transition used when ``outgoing`` is empty.
    :vartype default_terminator: Edge or None
    :ivar outgoing: Transitions keyed by target text.
    :vartype outgoing: dict[str, Edge]
    """

    node_id: int
    text: str
    symbol_kind: SymbolKind = SymbolKind.PLAIN
    weight: int = INITIAL_WEIGHT
    wrapper_closer: Optional[str] = None
    default_terminator: Optional[Edge] = None
    outgoing: Dict[str, Edge] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.weight = clamp_weight(self.weight)

    def increase_weight(self) -> None:
        self.weight = saturating_increment(self.weight)

    def select_transition(self, rng: random.Random) -> Optional[Edge]:
        """
        Choose the next transition from this node.

        :param rng: Random source.
        :type rng: random.Random
        :return: A heavy outgoing edge, the default terminator, or None.
        :rtype: Edge or None
        """
        chosen = choose_heaviest(
            list(self.outgoing.values()), weight=lambda edge: edge.weight, rng=rng
        )
        if chosen is None:
            return self.default_terminator
        return chosen


class Graph:
    """
    Arena of nodes plus a text-keyed vocabulary.

    Detached nodes (such as the default terminator) live in the arena but not in the
    vocabulary.
    """

    def __init__(self) -> None:
        self._nodes: Dict[int, Node] = {}
        self._vocabulary: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._vocabulary)

    def __contains__(self, text: object) -> bool:
        return text in self._vocabulary

    def __iter__(self) -> Iterator[Node]:
        for node_id in self._vocabulary.values():
            yield self._nodes[node_id]

    def node(self, node_id: int) -> Node:
        """
        Return the node with the given identifier.

        :param node_id: Node identifier.
        :type node_id: int
        :return: Node.
        :rtype: Node
        :raises KeyError: If no such node exists.
        """
        return self._nodes[node_id]

    def lookup(self, text: str) -> Optional[Node]:
        """
        Return the vocabulary node for a token text.

        :param text: Token text.
        :type text: str
        :return: Node or None.
        :rtype: Node or None
        """
        node_id = self._vocabulary.get(text)
        if node_id is None:
            return None
        return self._nodes[node_id]

    def add_detached(self, node: Node) -> Node:
        """
        Store a node in the arena without exposing it through the vocabulary.

        :param node: Node to store.
        :type node: Node
        :return: The stored node.
        :rtype: Node
        """
        self._nodes[node.node_id] = node
        return node

    def insert(self, node: Node) -> Node:
        """
        Store a node and make it the vocabulary entry for its text.

        A previous entry with the same text stays in the arena so existing edges keep resolving.

        :param node: Node to insert.
        :type node: Node
        :return: The inserted node.
        :rtype: Node
        """
        self._nodes[node.node_id] = node
        self._vocabulary[node.text] = node.node_id
        return node

    def target(self, edge: Edge) -> Node:
        return self._nodes[edge.target_id]

    def nodes(self) -> List[Node]:
        """
        Return the vocabulary nodes in insertion order.

        :return: Vocabulary nodes.
        :rtype: list[Node]
        """
        return list(self)

    def edge_count(self) -> int:
        return sum(len(node.outgoing) for node in self)
