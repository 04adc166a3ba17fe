"""
Connection functions combine the outputs of sibling layers.

`add` and `multiply` fold over any number of arguments so they can reduce
the outputs of a Parallel with more than two branches.
"""
import operator
from enum import Enum
from functools import reduce
from typing import Any

import jax.numpy as np

from lumen.tensor import Tensor


def add(*xs: Tensor) -> Tensor:
    return reduce(operator.add, xs)


def multiply(*xs: Tensor) -> Tensor:
    return reduce(operator.mul, xs)


def concatenate(*xs: Tensor) -> Tensor:
    """Concatenate along the last (feature) axis."""
    return np.concatenate(xs, axis=-1)


def stack(*xs: Tensor) -> Tensor:
    return np.stack(xs, axis=0)


def first(x: Any, *rest: Any) -> Any:
    return x


class ConnectionEnum(str, Enum):
    add = "add"
    multiply = "multiply"
    concatenate = "concatenate"
    stack = "stack"
    first = "first"


CONNECTIONS = {
    "add": add,
    "multiply": multiply,
    "concatenate": concatenate,
    "stack": stack,
    "first": first,
}
