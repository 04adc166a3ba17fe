"""
Errors raised while building or calling layers.

Containers never catch the errors raised by their children, so anything
raised by a leaf layer reaches the caller unchanged.
"""
from __future__ import annotations

from typing import Iterable, Sequence

__all__ = ["LumenError", "StructureMismatch", "DuplicateNameError", "ArityMismatch"]


class LumenError(Exception):
    """Base class for all lumen errors."""


class StructureMismatch(LumenError, ValueError):
    """A parameter or state tree does not have the keys a layer expects."""

    def __init__(
        self,
        kind: str,
        expected: Iterable[str],
        missing: Iterable[str] = (),
        unexpected: Iterable[str] = (),
    ) -> None:
        self.kind = kind
        self.expected = tuple(expected)
        self.missing = tuple(missing)
        self.unexpected = tuple(unexpected)
        message = f"{kind} tree does not match layer structure {list(self.expected)}"
        if self.missing:
            message += f"; missing keys {list(self.missing)}"
        if self.unexpected:
            message += f"; unexpected keys {list(self.unexpected)}"
        super().__init__(message)

    @classmethod
    def not_a_mapping(
        cls, kind: str, expected: Sequence[str], value: object
    ) -> StructureMismatch:
        error = cls(kind, expected)
        error.args = (
            f"{kind} tree must be a mapping with keys {list(expected)}, "
            f"got {type(value).__name__}",
        )
        return error


class DuplicateNameError(LumenError, ValueError):
    """Two sibling layers were given the same name."""

    def __init__(self, duplicates: Iterable[str]) -> None:
        self.duplicates = tuple(duplicates)
        super().__init__(f"Duplicate layer names: {list(self.duplicates)}")


class ArityMismatch(LumenError, TypeError):
    """A connection or a tuple input does not match the number of sub-layers."""

    def __init__(self, message: str, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(f"{message}: expected {expected}, got {received}")
