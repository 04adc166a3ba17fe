"""
A loss function measures how good our predictions are,
we can use this to adjust the parameters of our network.

Loss functions take the layer first and its parameters second, so the
derivative is taken with jax.grad(loss, argnums=1). They return the loss
together with the updated state of the layer.
"""
from enum import Enum
from typing import Callable, Tuple

import jax.numpy as np
from jax.tree_util import tree_leaves

import lumen.nn.functional as F
from lumen.nn import Layer, Params, State
from lumen.tensor import Tensor

Loss = Callable[[Layer, Params, State, Tensor, Tensor], Tuple[Tensor, State]]


class LossEnum(str, Enum):
    mean_squared_error = "mean_squared_error"
    cross_entropy = "cross_entropy"


class RegularizationEnum(str, Enum):
    l2 = "l2"
    l1 = "l1"


def l2(params: Params) -> Tensor:
    return sum(np.sum(leaf**2) for leaf in tree_leaves(params)) / 2


def l1(params: Params) -> Tensor:
    return sum(np.sum(np.abs(leaf)) for leaf in tree_leaves(params))


def l2_regularized(loss: Loss, gamma: float = 0.01) -> Loss:
    def wrapped(
        layer: Layer, params: Params, state: State, inputs: Tensor, targets: Tensor
    ) -> Tuple[Tensor, State]:
        value, state = loss(layer, params, state, inputs, targets)
        return value + l2(params) * gamma, state

    return wrapped


def l1_regularized(loss: Loss, gamma: float = 0.01) -> Loss:
    def wrapped(
        layer: Layer, params: Params, state: State, inputs: Tensor, targets: Tensor
    ) -> Tuple[Tensor, State]:
        value, state = loss(layer, params, state, inputs, targets)
        return value + l1(params) * gamma, state

    return wrapped


def mean_squared_error(
    layer: Layer, params: Params, state: State, inputs: Tensor, targets: Tensor
) -> Tuple[Tensor, State]:
    predicted, state = layer(inputs, params, state)
    return np.mean((predicted - targets) ** 2), state


def cross_entropy(
    layer: Layer, params: Params, state: State, inputs: Tensor, targets: Tensor
) -> Tuple[Tensor, State]:
    predicted, state = layer(inputs, params, state)
    # log softmax
    predicted = F.log_softmax(predicted)

    # negative log likelihood
    return -np.mean(np.sum(targets * predicted, axis=-1)), state


LOSS_FUNCTIONS = {
    "mean_squared_error": mean_squared_error,
    "cross_entropy": cross_entropy,
}


REGULARIZATIONS = {
    "l2": l2_regularized,
    "l1": l1_regularized,
}
