"""
wordchain public package interface.
"""

from .builder import Builder, WalkToken, format_tokens
from .codec import load_graph, save_graph
from .configuration import load_symbol_configuration
from .errors import (
    CorruptModelFileError,
    MissingModelFileError,
    NoStartCandidateError,
    RetriesExhaustedError,
    WordchainError,
)
from .graph import Edge, Graph, Node
from .models import BuilderStatus, GraphSummary, SymbolConfiguration, SymbolKind, WrapperPair
from .trainer import Trainer

__all__ = [
    "__version__",
    "Builder",
    "BuilderStatus",
    "CorruptModelFileError",
    "Edge",
    "Graph",
    "GraphSummary",
    "MissingModelFileError",
    "Node",
    "NoStartCandidateError",
    "RetriesExhaustedError",
    "SymbolConfiguration",
    "SymbolKind",
    "Trainer",
    "WalkToken",
    "WordchainError",
    "WrapperPair",
    "format_tokens",
    "load_graph",
    "load_symbol_configuration",
    "save_graph",
]

__version__ = "0.1.0"
