"""
Ordered, immutable collection of named sub-layers.

Every container keeps its children in a NamedLayers. The same names key the
container's parameter tree and state tree, so the collection is also what
those trees are checked against on every call.
"""
from __future__ import annotations

from collections import Counter
from typing import (
    TYPE_CHECKING,
    Any,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from lumen.errors import DuplicateNameError, StructureMismatch

if TYPE_CHECKING:
    from lumen.nn.layer import Layer

__all__ = ["NamedLayers", "default_names", "check_structure"]


def default_names(n: int) -> Tuple[str, ...]:
    return tuple(f"layer_{i}" for i in range(1, n + 1))


def check_structure(tree: Any, expected: Sequence[str], kind: str) -> None:
    """Raise StructureMismatch unless `tree` is a mapping keyed by `expected`."""
    if not isinstance(tree, Mapping):
        raise StructureMismatch.not_a_mapping(kind, expected, tree)
    if len(tree) == len(expected) and all(key in tree for key in expected):
        return
    missing = [key for key in expected if key not in tree]
    unexpected = [key for key in tree if key not in expected]
    raise StructureMismatch(kind, expected, missing, unexpected)


class NamedLayers(Mapping[str, "Layer"]):
    """Mapping of name -> layer that remembers insertion order and never changes."""

    __slots__ = ("_items", "_index")

    def __init__(self, items: Iterable[Tuple[str, Layer]] = ()) -> None:
        items = tuple(items)
        for name, _ in items:
            if not isinstance(name, str):
                raise TypeError(f"Layer names must be strings, got {name!r}")
        counts = Counter(name for name, _ in items)
        duplicates = [name for name, count in counts.items() if count > 1]
        if duplicates:
            raise DuplicateNameError(duplicates)
        self._items = items
        self._index = dict(items)

    @classmethod
    def from_layers(
        cls, layers: Iterable[Layer], names: Optional[Sequence[str]] = None
    ) -> NamedLayers:
        layers = tuple(layers)
        if names is None:
            names = default_names(len(layers))
        elif len(names) != len(layers):
            raise ValueError(f"Got {len(names)} names for {len(layers)} layers")
        return cls(zip(names, layers))

    def __getitem__(self, name: str) -> Layer:
        return self._index[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._items)

    def keys(self) -> Tuple[str, ...]:  # type: ignore[override]
        return tuple(name for name, _ in self._items)

    def values(self) -> Tuple[Layer, ...]:  # type: ignore[override]
        return tuple(layer for _, layer in self._items)

    def items(self) -> Tuple[Tuple[str, Layer], ...]:  # type: ignore[override]
        return self._items

    def check_keys(self, tree: Any, kind: str) -> None:
        check_structure(tree, self.keys(), kind)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, NamedLayers):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        inner = ", ".join(f"{name}={layer!r}" for name, layer in self._items)
        return f"NamedLayers({inner})"
