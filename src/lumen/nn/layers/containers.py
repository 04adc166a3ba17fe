"""
Container layers composing other layers.

Containers are built with their `build` factories, which accept layers as
well as plain functions:

    model = Chain.build(
        Dense.build(2, 16, ActivationEnum.tanh),
        SkipConnection.build(Dense.build(16, 16), F.add),
        Parallel.build(F.concatenate, Dense.build(16, 4), Dense.build(16, 4)),
    )
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from pydantic import model_validator

from lumen.errors import ArityMismatch
from lumen.nn.apply import (
    apply_branching,
    apply_chain,
    apply_pairwise_fusion,
    apply_parallel,
)
from lumen.nn.functional import identity
from lumen.nn.layer import ContainerLayer, Layer, Params, State
from lumen.nn.layers.misc import NoOpLayer, WrappedFunction
from lumen.nn.named import NamedLayers
from lumen.rng import RNG

logger = logging.getLogger(__name__)

__all__ = [
    "as_layer",
    "flatten_layers",
    "Chain",
    "BranchLayer",
    "Parallel",
    "PairwiseFusion",
    "SkipConnection",
]


_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def _takes_layer_arguments(func: Callable[..., Any]) -> bool:
    """True if `func` has exactly the `(inputs, params, state)` signature.

    All three must be required positional parameters. Functions with
    optional extras, such as `softmax(x, axis=-1)`, or with `*args` are
    applied to the inputs alone.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return False
    positional = []
    for parameter in signature.parameters.values():
        if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
            return False
        if parameter.kind in _POSITIONAL:
            if parameter.default is not inspect.Parameter.empty:
                return False
            positional.append(parameter)
        elif parameter.kind == inspect.Parameter.KEYWORD_ONLY:
            if parameter.default is inspect.Parameter.empty:
                return False
    return len(positional) == 3


def as_layer(item: Any) -> Layer:
    """Coerce a layer or a plain function into a Layer.

    Functions taking `(inputs, params, state)` are used as they are; any
    other function is applied to the inputs alone. The identity function
    becomes a NoOpLayer.
    """
    if isinstance(item, Layer):
        return item
    if callable(item):
        if _takes_layer_arguments(item):
            return WrappedFunction(func=item, explicit=True)
        if item is identity:
            return NoOpLayer()
        return WrappedFunction(func=item)
    raise TypeError(f"Expected a Layer or a function, got {type(item).__name__}")


def flatten_layers(items: Iterable[Any]) -> List[Layer]:
    """Flatten nested lists and chains into one list of layers, dropping no-ops."""
    flattened: List[Layer] = []
    for item in items:
        if isinstance(item, (list, tuple)):
            flattened.extend(flatten_layers(item))
        elif isinstance(item, Chain):
            logger.debug("Inlining nested chain with %d layers", len(item))
            flattened.extend(item.layers.values())
        else:
            layer = as_layer(item)
            if isinstance(layer, NoOpLayer):
                logger.debug("Dropping no-op %r", item)
                continue
            flattened.append(layer)
    return flattened


def _check_connection(connection: Callable[..., Any], arity: int, owner: str) -> None:
    try:
        signature = inspect.signature(connection)
    except (TypeError, ValueError):
        return
    try:
        signature.bind(*range(arity))
    except TypeError:
        positional = [
            parameter
            for parameter in signature.parameters.values()
            if parameter.kind in _POSITIONAL
        ]
        raise ArityMismatch(
            f"{owner} connection must accept one argument per input",
            arity,
            len(positional),
        ) from None


def _named(layers: Sequence[Any], names: Optional[Sequence[str]]) -> NamedLayers:
    return NamedLayers.from_layers([as_layer(layer) for layer in layers], names)


def _unpack(layers: Tuple[Any, ...]) -> Tuple[Any, ...]:
    # Chain.build([a, b]) is the same as Chain.build(a, b)
    if len(layers) == 1 and isinstance(layers[0], (list, tuple)):
        return tuple(layers[0])
    return layers


class Chain(ContainerLayer):
    """Calls its layers in sequence, feeding each output to the next layer."""

    @classmethod
    def build(
        cls,
        *layers: Any,
        names: Optional[Sequence[str]] = None,
        disable_optimizations: bool = False,
    ) -> Layer:
        """Build a chain from layers, functions and nested lists of them.

        Unless `disable_optimizations` is set, nested chains and lists are
        inlined, plain functions are wrapped, no-ops are dropped, a single
        remaining layer is returned as it is and an empty chain becomes a
        NoOpLayer. Explicit `names` keep the given structure as it is.
        """
        layers = _unpack(layers)
        if names is not None or disable_optimizations:
            return cls(layers=_named(layers, names))

        flattened = flatten_layers(layers)
        if not flattened:
            logger.debug("Chain is empty after flattening, using a no-op")
            return NoOpLayer()
        if len(flattened) == 1:
            logger.debug("Chain has a single layer, returning it unwrapped")
            return flattened[0]
        return cls(layers=NamedLayers.from_layers(flattened))

    def add(self, *layers: Any) -> Layer:
        return Chain.build(self, *layers)

    def forward(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        return apply_chain(self.layers, inputs, params, state)


class BranchLayer(ContainerLayer):
    """Passes the same input to every layer and returns the tuple of outputs.

    Unlike Parallel, a tuple input is not split between the layers.
    """

    @classmethod
    def build(cls, *layers: Any, names: Optional[Sequence[str]] = None) -> BranchLayer:
        return cls(layers=_named(layers, names))

    def forward(
        self, inputs: Any, params: Params, state: State
    ) -> Tuple[Tuple[Any, ...], State]:
        return apply_branching(self.layers, inputs, params, state)


class Parallel(ContainerLayer):
    """Passes the input through every layer, then reduces the outputs.

    A tuple input with one element per layer is split between the layers,
    any other input goes to all of them. Without a connection the tuple of
    outputs is returned.
    """

    connection: Optional[Callable[..., Any]] = None

    @model_validator(mode="after")
    def check_arity(self) -> Parallel:
        if self.connection is not None:
            _check_connection(self.connection, len(self.layers), "Parallel")
        return self

    @classmethod
    def build(
        cls,
        connection: Optional[Callable[..., Any]],
        *layers: Any,
        names: Optional[Sequence[str]] = None,
    ) -> Parallel:
        return cls(connection=connection, layers=_named(layers, names))

    def forward(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        return apply_parallel(self.layers, self.connection, inputs, params, state)


class PairwiseFusion(ContainerLayer):
    """Runs layers in sequence, merging each output with an external input.

    For a tuple input `(x0, x1, ..., xN)`:

        y = x0
        y = connection(layer_1(y), x1)
        ...
        y = connection(layer_N(y), xN)

    Any other input `x` plays the part of every `xi`.
    """

    connection: Callable[[Any, Any], Any]

    @model_validator(mode="after")
    def check_arity(self) -> PairwiseFusion:
        _check_connection(self.connection, 2, "PairwiseFusion")
        return self

    @classmethod
    def build(
        cls,
        connection: Callable[[Any, Any], Any],
        *layers: Any,
        names: Optional[Sequence[str]] = None,
    ) -> PairwiseFusion:
        return cls(connection=connection, layers=_named(layers, names))

    def forward(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        return apply_pairwise_fusion(
            self.layers, self.connection, inputs, params, state
        )


class SkipConnection(Layer):
    """Computes `connection(layer(x), x)`.

    The simplest residual block is `SkipConnection.build(layer, F.add)`.
    Parameters and state are those of `layer`, without an extra level of
    nesting.
    """

    layer: Layer
    connection: Callable[[Any, Any], Any]

    @model_validator(mode="after")
    def check_arity(self) -> SkipConnection:
        _check_connection(self.connection, 2, "SkipConnection")
        return self

    @classmethod
    def build(cls, layer: Any, connection: Callable[[Any, Any], Any]) -> SkipConnection:
        return cls(layer=as_layer(layer), connection=connection)

    def initial_parameters(self, rng: RNG) -> Params:
        return self.layer.initial_parameters(rng)

    def initial_state(self, rng: RNG) -> State:
        return self.layer.initial_state(rng)

    def parameter_count(self) -> int:
        return self.layer.parameter_count()

    def state_size(self) -> int:
        return self.layer.state_size()

    def forward(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        outputs, state = self.layer(inputs, params, state)
        return self.connection(outputs, inputs), state
