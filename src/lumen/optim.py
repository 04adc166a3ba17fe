import logging
from abc import ABC, abstractmethod
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

from jax import jit, value_and_grad
from jax.example_libraries.optimizers import adam
from jax.tree_util import tree_map
from pydantic import BaseModel, ConfigDict

from lumen.loss import Loss
from lumen.nn import Layer, Params, State
from lumen.tensor import Tensor

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="Optimizer")


class Optimizer(BaseModel, ABC):
    """Takes gradient steps on an explicit parameter tree.

    `step` returns the loss, the new parameters and the new state; the
    caller is expected to feed both back into the next step.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    layer: Layer
    loss: Loss
    value_grad_func: Callable[..., Any]
    grads: Optional[Params] = None
    learning_rate: float = 0.001

    @abstractmethod
    def step(
        self, params: Params, state: State, inputs: Tensor, targets: Tensor
    ) -> Tuple[Tensor, Params, State]:
        raise NotImplementedError

    @classmethod
    def initialize(
        cls: Type[T], layer: Layer, loss: Loss, learning_rate: float = 0.01
    ) -> T:
        value_grad_func = jit(value_and_grad(loss, argnums=1, has_aux=True))
        return cls(
            layer=layer,
            loss=loss,
            value_grad_func=value_grad_func,
            learning_rate=learning_rate,
        )


@jit
def sgd_update_combiner(param: Tensor, grad: Tensor, lr: float) -> Tensor:
    """Convenience method for performing SGD on parameter trees"""
    return param - (lr * grad)


class SGD(Optimizer):
    def step(
        self, params: Params, state: State, inputs: Tensor, targets: Tensor
    ) -> Tuple[Tensor, Params, State]:
        (loss, state), self.grads = self.value_grad_func(
            self.layer, params, state, inputs, targets
        )

        combiner = partial(sgd_update_combiner, lr=self.learning_rate)
        return loss, tree_map(combiner, params, self.grads), state


class Adam(Optimizer):
    """Adam over explicit parameters.

    The moment estimates live in `opt_state` together with the parameters
    returned by the last step. Passing any other parameter tree starts a
    fresh optimizer state from it.
    """

    opt_state: Any = None
    last_params: Any = None
    update_count: int = 0

    def step(
        self, params: Params, state: State, inputs: Tensor, targets: Tensor
    ) -> Tuple[Tensor, Params, State]:
        init_fun, update_fun, get_params = adam(step_size=self.learning_rate)
        if self.opt_state is None or params is not self.last_params:
            if self.opt_state is not None:
                logger.debug("Parameters changed outside of Adam, resetting its state")
            self.opt_state = init_fun(params)
            self.update_count = 0

        (loss, state), self.grads = self.value_grad_func(
            self.layer, params, state, inputs, targets
        )
        self.opt_state = update_fun(self.update_count, self.grads, self.opt_state)
        self.update_count += 1
        self.last_params = get_params(self.opt_state)
        return loss, self.last_params, state


OPTIMIZERS: Dict[str, Type[Optimizer]] = {"sgd": SGD, "adam": Adam}


class OptimizerEnum(str, Enum):
    sgd = "sgd"
    adam = "adam"
