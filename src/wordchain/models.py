"""
Pydantic models for wordchain configuration and reports.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .constants import (
    DEFAULT_COMBINATOR_SYMBOLS,
    DEFAULT_END_SEPARATOR_SYMBOLS,
    DEFAULT_END_SYMBOL,
    DEFAULT_END_SYMBOLS,
    DEFAULT_SEPARATOR_SYMBOLS,
    DEFAULT_SPACING_SYMBOLS,
    DEFAULT_WRAPPER_PAIRS,
)


class SymbolKind(str, Enum):
    """
    Formatting role of a token.
    """

    PLAIN = "plain"
    END = "end"
    END_SEPARATOR = "end_separator"
    SPACING = "spacing"
    SEPARATOR = "separator"
    COMBINATOR = "combinator"
    WRAPPER = "wrapper"

    @property
    def code(self) -> int:
        """
        Stable integer code used by the binary model format.

        :return: Integer code.
        :rtype: int
        """
        return _KIND_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "SymbolKind":
        """
        Resolve a symbol kind from its binary code.

        :param code: Integer code.
        :type code: int
        :return: Symbol kind.
        :rtype: SymbolKind
        :raises ValueError: If the code is unknown.
        """
        for kind, kind_code in _KIND_CODES.items():
            if kind_code == code:
                return kind
        raise ValueError(f"Unknown symbol kind code: {code}")


_KIND_CODES: Dict[SymbolKind, int] = {
    SymbolKind.PLAIN: 0,
    SymbolKind.END: 1,
    SymbolKind.END_SEPARATOR: 2,
    SymbolKind.SPACING: 3,
    SymbolKind.SEPARATOR: 4,
    SymbolKind.COMBINATOR: 5,
    SymbolKind.WRAPPER: 6,
}


def _clean_symbols(value: object, *, field_name: str) -> object:
    if value is None:
        return []
    if isinstance(value, str):
        raise ValueError(f"{field_name} must be a list of strings")
    cleaned = [str(symbol) for symbol in value]  # type: ignore[union-attr]
    if any(not symbol.strip() for symbol in cleaned):
        raise ValueError(f"{field_name} must be a list of non-empty strings")
    return cleaned


class WrapperPair(BaseModel):
    """
    Opening and closing token of a wrapper.

    A blank closer is accepted and marks the opener as unusable during generation.

    :ivar open: Opening token text.
    :vartype open: str
    :ivar close: Closing token text.
    :vartype close: str
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    open: str = Field(min_length=1)
    close: str = ""

    @model_validator(mode="before")
    @classmethod
    def _accept_sequences(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                raise ValueError("wrapper pairs must have exactly two entries: [open, close]")
            return {"open": value[0], "close": value[1]}
        return value

    @property
    def has_closer(self) -> bool:
        """
        Whether the pair has a usable closing token.

        :return: True when the closer is not blank.
        :rtype: bool
        """
        return bool(self.close.strip())


class SymbolConfiguration(BaseModel):
    """
    Symbol classification rules for a trainer.

    :ivar default_end_symbol: End token used when a node has no learned transitions.
    :vartype default_end_symbol: str or None
    :ivar end_symbols: Sentence terminators.
    :vartype end_symbols: list[str]
    :ivar end_separator_symbols: Terminator-adjacent punctuation.
    :vartype end_separator_symbols: list[str]
    :ivar spacing_symbols: Tokens rendered with surrounding spaces.
    :vartype spacing_symbols: list[str]
    :ivar separator_symbols: Tokens rendered without surrounding spaces.
    :vartype separator_symbols: list[str]
    :ivar combinator_symbols: Tokens joining words without spaces.
    :vartype combinator_symbols: list[str]
    :ivar wrapper_pairs: Paired opening and closing tokens.
    :vartype wrapper_pairs: list[WrapperPair]
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    default_end_symbol: Optional[str] = DEFAULT_END_SYMBOL
    end_symbols: List[str] = Field(default_factory=lambda: list(DEFAULT_END_SYMBOLS))
    end_separator_symbols: List[str] = Field(
        default_factory=lambda: list(DEFAULT_END_SEPARATOR_SYMBOLS)
    )
    spacing_symbols: List[str] = Field(default_factory=lambda: list(DEFAULT_SPACING_SYMBOLS))
    separator_symbols: List[str] = Field(default_factory=lambda: list(DEFAULT_SEPARATOR_SYMBOLS))
    combinator_symbols: List[str] = Field(
        default_factory=lambda: list(DEFAULT_COMBINATOR_SYMBOLS)
    )
    wrapper_pairs: List[WrapperPair] = Field(
        default_factory=lambda: [
            WrapperPair(open=open_symbol, close=close_symbol)
            for open_symbol, close_symbol in DEFAULT_WRAPPER_PAIRS
        ]
    )

    @field_validator("default_end_symbol", mode="before")
    @classmethod
    def _blank_end_symbol_is_none(cls, value: object) -> object:
        if value is None:
            return None
        text = str(value)
        return text if text.strip() else None

    @field_validator(
        "end_symbols",
        "end_separator_symbols",
        "spacing_symbols",
        "separator_symbols",
        "combinator_symbols",
        mode="before",
    )
    @classmethod
    def _validate_symbols(cls, value: object, info: ValidationInfo) -> object:
        return _clean_symbols(value, field_name=info.field_name)

    def wrapper_symbols(self) -> List[str]:
        """
        Return wrapper openers and closers interleaved in configuration order.

        :return: Wrapper token texts.
        :rtype: list[str]
        """
        symbols: List[str] = []
        for pair in self.wrapper_pairs:
            symbols.append(pair.open)
            symbols.append(pair.close)
        return symbols

    def wrapper_closers(self) -> Dict[str, str]:
        """
        Map wrapper openers to their closing token.

        Pairs with a blank closer are left out. A later pair with the same opener wins.

        :return: Opener to closer mapping.
        :rtype: dict[str, str]
        """
        return {pair.open: pair.close for pair in self.wrapper_pairs if pair.has_closer}

    def symbol_groups(self) -> List[Tuple[SymbolKind, List[str]]]:
        """
        Return symbol lists in classification precedence order.

        :return: Pairs of symbol kind and the symbols of that kind.
        :rtype: list[tuple[SymbolKind, list[str]]]
        """
        return [
            (SymbolKind.END, list(self.end_symbols)),
            (SymbolKind.END_SEPARATOR, list(self.end_separator_symbols)),
            (SymbolKind.SPACING, list(self.spacing_symbols)),
            (SymbolKind.SEPARATOR, list(self.separator_symbols)),
            (SymbolKind.COMBINATOR, list(self.combinator_symbols)),
            (SymbolKind.WRAPPER, [symbol for symbol in self.wrapper_symbols() if symbol.strip()]),
        ]


class GraphSummary(BaseModel):
    """
    Size summary of a trained graph.

    :ivar node_count: Number of vocabulary entries.
    :vartype node_count: int
    :ivar edge_count: Number of learned transitions.
    :vartype edge_count: int
    :ivar total_weight: Sum of node popularity weights.
    :vartype total_weight: int
    :ivar kinds: Vocabulary entries per symbol kind.
    :vartype kinds: dict[str, int]
    """

    model_config = ConfigDict(extra="forbid")

    node_count: int = Field(ge=0)
    edge_count: int = Field(ge=0)
    total_weight: int = Field(ge=0)
    kinds: Dict[str, int] = Field(default_factory=dict)


class BuilderStatus(str, Enum):
    """
    Lifecycle states of a sentence builder.
    """

    RUNNING = "running"
    TERMINATED = "terminated"
    NO_START_CANDIDATE = "no_start_candidate"
    RETRIES_EXHAUSTED = "retries_exhausted"
