"""
Error types for wordchain.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union


class WordchainError(RuntimeError):
    """
    Base class for wordchain errors.
    """


class NoStartCandidateError(WordchainError):
    """
    The vocabulary holds no node that may begin a sentence.

    Raised when the vocabulary is empty or only holds bare punctuation.
    """

    def __init__(self) -> None:
        super().__init__("No start candidate: train on text containing words or wrappers first")


class RetriesExhaustedError(WordchainError):
    """
    Generation gave up after exceeding the retry budget.

    :param attempts: Retries consumed when generation gave up.
    :type attempts: int
    """

    def __init__(self, *, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Generation retries exhausted: attempts={attempts}")


class MissingModelFileError(WordchainError, FileNotFoundError):
    """
    Model file does not exist.

    :param path: Path that was requested.
    :type path: str or Path
    """

    def __init__(self, *, path: Union[str, Path]) -> None:
        self.path = Path(path)
        super().__init__(f"Model file not found: {self.path}")


class CorruptModelFileError(WordchainError, ValueError):
    """
    Model file could not be decoded.

    :param path: Path of the model file.
    :type path: str or Path
    :param reason: Description of the decoding failure.
    :type reason: str
    """

    def __init__(self, *, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Corrupt model file {self.path}: {reason}")
