"""
Layers that own parameters or state.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Tuple

import jax.numpy as np
from jax import jit, random
from pydantic import Field

from lumen.nn.functional import (
    ACTIVATIONS,
    INITIALIZERS,
    ActivationEnum,
    InitializerEnum,
)
from lumen.nn.layer import Layer, Params, State
from lumen.nn.named import check_structure
from lumen.rng import RNG
from lumen.tensor import Tensor


class Mode(str, Enum):
    """Allowed values for Layers that behave differently in training and inference."""

    train = "train"
    eval = "eval"


class Dense(Layer):
    """Dense Linear Layer.
    Computes outputs = activation(inputs @ weight + bias)

    weight has shape (in_dims, out_dims) and bias (out_dims,), so inputs of
    shape (..., in_dims) map to outputs of shape (..., out_dims).
    """

    in_dims: int
    out_dims: int
    activation: ActivationEnum = ActivationEnum.identity
    use_bias: bool = True
    init_weight: InitializerEnum = InitializerEnum.glorot_uniform
    init_bias: InitializerEnum = InitializerEnum.zeros

    @classmethod
    def build(
        cls,
        in_dims: int,
        out_dims: int,
        activation: ActivationEnum = ActivationEnum.identity,
        use_bias: bool = True,
        init_weight: InitializerEnum = InitializerEnum.glorot_uniform,
        init_bias: InitializerEnum = InitializerEnum.zeros,
    ) -> Dense:
        """Factory for new Dense from input and output dimensions"""
        return cls(
            in_dims=in_dims,
            out_dims=out_dims,
            activation=activation,
            use_bias=use_bias,
            init_weight=init_weight,
            init_bias=init_bias,
        )

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return ("weight", "bias") if self.use_bias else ("weight",)

    def initial_parameters(self, rng: RNG) -> Params:
        weight_rng, bias_rng = rng.split()
        params = {
            "weight": INITIALIZERS[self.init_weight](
                weight_rng.to_prng(), (self.in_dims, self.out_dims)
            )
        }
        if self.use_bias:
            params["bias"] = INITIALIZERS[self.init_bias](
                bias_rng.to_prng(), (self.out_dims,)
            )
        return params

    def parameter_count(self) -> int:
        if self.use_bias:
            return self.out_dims * (self.in_dims + 1)
        return self.out_dims * self.in_dims

    @jit
    def forward(
        self, inputs: Tensor, params: Params, state: State
    ) -> Tuple[Tensor, State]:
        check_structure(params, self.parameter_names, "parameters")
        outputs = inputs @ params["weight"]
        if self.use_bias:
            outputs = outputs + params["bias"]
        return ACTIVATIONS[self.activation](outputs), state


class Scale(Layer):
    """Elementwise affine layer.
    Computes outputs = activation(weight * inputs + bias)

    weight and bias have shape `dims` and broadcast against the trailing
    axes of the inputs.
    """

    dims: Tuple[int, ...]
    activation: ActivationEnum = ActivationEnum.identity
    use_bias: bool = True
    init_weight: InitializerEnum = InitializerEnum.ones
    init_bias: InitializerEnum = InitializerEnum.zeros

    @classmethod
    def build(
        cls,
        *dims: int,
        activation: ActivationEnum = ActivationEnum.identity,
        use_bias: bool = True,
        init_weight: InitializerEnum = InitializerEnum.ones,
        init_bias: InitializerEnum = InitializerEnum.zeros,
    ) -> Scale:
        return cls(
            dims=dims,
            activation=activation,
            use_bias=use_bias,
            init_weight=init_weight,
            init_bias=init_bias,
        )

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return ("weight", "bias") if self.use_bias else ("weight",)

    def initial_parameters(self, rng: RNG) -> Params:
        weight_rng, bias_rng = rng.split()
        params = {
            "weight": INITIALIZERS[self.init_weight](weight_rng.to_prng(), self.dims)
        }
        if self.use_bias:
            params["bias"] = INITIALIZERS[self.init_bias](bias_rng.to_prng(), self.dims)
        return params

    def parameter_count(self) -> int:
        return (1 + self.use_bias) * math.prod(self.dims)

    @jit
    def forward(
        self, inputs: Tensor, params: Params, state: State
    ) -> Tuple[Tensor, State]:
        check_structure(params, self.parameter_names, "parameters")
        outputs = params["weight"] * inputs
        if self.use_bias:
            outputs = outputs + params["bias"]
        return ACTIVATIONS[self.activation](outputs), state


class Dropout(Layer):
    """Dropout Layer. In train mode, keeps input activations with probability
    `keep`, otherwise returns inputs directly.

    The PRNG key lives in the state and is replaced on every training call,
    so successive calls draw different masks.
    """

    keep: float = Field(0.5, gt=0.0, le=1.0)
    mode: Mode = Mode.train

    @classmethod
    def build(cls, keep: float, mode: Mode = Mode.train) -> Dropout:
        return cls(keep=keep, mode=mode)

    def initial_state(self, rng: RNG) -> State:
        return {"rng": rng.to_prng()}

    def state_size(self) -> int:
        return 2

    def forward(
        self, inputs: Tensor, params: Params, state: State
    ) -> Tuple[Tensor, State]:
        check_structure(state, ("rng",), "state")
        if self.mode == Mode.eval:
            return inputs, state

        rng, mask_rng = random.split(state["rng"])
        mask = random.bernoulli(mask_rng, self.keep, np.shape(inputs))
        return np.where(mask, inputs / self.keep, 0), {"rng": rng}

    def to_train(self) -> Dropout:
        return self.model_copy(update={"mode": Mode.train})

    def to_eval(self) -> Dropout:
        return self.model_copy(update={"mode": Mode.eval})
