"""
Parameterless layers: plumbing, reshaping and function adapters.
"""
from __future__ import annotations

from typing import Any, Callable, Tuple

import jax.numpy as np

from lumen.nn.functional import ACTIVATIONS, ActivationEnum
from lumen.nn.layer import Layer, Params, State
from lumen.tensor import Tensor


class NoOpLayer(Layer):
    """Returns its input unchanged."""

    def forward(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        return inputs, state


class WrappedFunction(Layer):
    """Adapts a plain function to the layer calling convention.

    By default `func` is called as `func(inputs)` and the state is passed
    through untouched. With `explicit=True` it already follows the layer
    convention and is called as `func(inputs, params, state)`.
    """

    func: Callable[..., Any]
    explicit: bool = False

    def forward(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        if self.explicit:
            return self.func(inputs, params, state)
        return self.func(inputs), state


class ActivationFunction(Layer):
    activation: ActivationEnum

    def forward(
        self, inputs: Tensor, params: Params, state: State
    ) -> Tuple[Tensor, State]:
        return ACTIVATIONS[self.activation](inputs), state


class ReshapeLayer(Layer):
    """Reshapes each example in the batch to `dims`. Axis 0 is the batch."""

    dims: Tuple[int, ...]

    def forward(
        self, inputs: Tensor, params: Params, state: State
    ) -> Tuple[Tensor, State]:
        return np.reshape(inputs, (inputs.shape[0], *self.dims)), state


class FlattenLayer(Layer):
    """Flattens every example in the batch into a vector."""

    def forward(
        self, inputs: Tensor, params: Params, state: State
    ) -> Tuple[Tensor, State]:
        return np.reshape(inputs, (inputs.shape[0], -1)), state


class SelectDim(Layer):
    """Selects `index` along axis `dim`, dropping that axis."""

    dim: int
    index: int

    def forward(
        self, inputs: Tensor, params: Params, state: State
    ) -> Tuple[Tensor, State]:
        return np.take(inputs, self.index, axis=self.dim), state
