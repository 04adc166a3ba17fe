"""
Abstract Layer class with automatic Pytree registration

Layers only describe computation. Their parameters and state live outside
of them and are passed to every call:

    params, state = layer.setup(rng)
    outputs, state = layer(inputs, params, state)
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Tuple

from jax import jit
from jax.tree_util import register_pytree_node
from pydantic import BaseModel, ConfigDict

from lumen.nn.named import NamedLayers
from lumen.rng import RNG

__all__ = ["Layer", "ContainerLayer", "Params", "State"]

Params = Dict[str, Any]
State = Dict[str, Any]

# Type of a jitted function, so `@jit` methods are not mistaken for fields.
Jitted = type(jit(lambda x: x))


def split_rng(rng: RNG, num: int) -> Tuple[RNG, ...]:
    if num == 0:
        return ()
    return rng.split(num)


class Layer(BaseModel, ABC):
    model_config = ConfigDict(
        frozen=True, arbitrary_types_allowed=True, ignored_types=(Jitted,)
    )

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        register_pytree_node(cls, cls._tree_flatten, cls._tree_unflatten)

    # A layer carries no arrays, so it flattens to no leaves and rides along
    # as static auxiliary data through jit and tree_util.
    def _tree_flatten(self) -> Tuple[Tuple[()], Layer]:
        return (), self

    @classmethod
    def _tree_unflatten(cls, aux: Layer, children: List[Any]) -> Layer:
        return aux

    @abstractmethod
    def forward(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        raise NotImplementedError

    def __call__(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        return self.forward(inputs, params, state)

    def initial_parameters(self, rng: RNG) -> Params:
        return {}

    def initial_state(self, rng: RNG) -> State:
        return {}

    def parameter_count(self) -> int:
        return 0

    def state_size(self) -> int:
        return 0

    def setup(self, rng: RNG) -> Tuple[Params, State]:
        """Create a fresh parameter tree and state tree for this layer."""
        params_rng, state_rng = rng.split()
        return self.initial_parameters(params_rng), self.initial_state(state_rng)


class ContainerLayer(Layer, ABC):
    """A layer that delegates to named child layers.

    Parameter and state trees of a container are dicts keyed by the child
    names, each value being the tree of that child.
    """

    layers: NamedLayers

    def initial_parameters(self, rng: RNG) -> Params:
        rngs = split_rng(rng, len(self.layers))
        return {
            name: layer.initial_parameters(layer_rng)
            for (name, layer), layer_rng in zip(self.layers.items(), rngs)
        }

    def initial_state(self, rng: RNG) -> State:
        rngs = split_rng(rng, len(self.layers))
        return {
            name: layer.initial_state(layer_rng)
            for (name, layer), layer_rng in zip(self.layers.items(), rngs)
        }

    def parameter_count(self) -> int:
        return sum(layer.parameter_count() for layer in self.layers.values())

    def state_size(self) -> int:
        return sum(layer.state_size() for layer in self.layers.values())

    def keys(self) -> Tuple[str, ...]:
        return self.layers.keys()

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[Layer]:  # type: ignore[override]
        return iter(self.layers.values())

    def __getitem__(self, name: str) -> Layer:
        return self.layers[name]
