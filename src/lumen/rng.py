from __future__ import annotations

from typing import Any, Tuple, Union

import jax.numpy as np
from jax import random
from numpy import ndarray
from pydantic import BaseModel, ConfigDict

from lumen.tensor import Tensor


class RNG(BaseModel):
    """Hashable, serializable wrapper around a raw jax PRNG key."""

    model_config = ConfigDict(frozen=True)

    int_1: int
    int_2: int

    def to_prng(self) -> Tensor:
        return np.array([self.int_1, self.int_2], dtype=np.uint32)

    @classmethod
    def from_seed(cls, seed: int) -> RNG:
        return cls.from_prng(random.PRNGKey(seed))

    @classmethod
    def from_prng(cls, key: Union[ndarray, Tensor]) -> RNG:
        return cls(int_1=int(key[0]), int_2=int(key[1]))

    def split(self, num: int = 2) -> Tuple[RNG, ...]:
        new_keys = random.split(self.to_prng(), num=num)
        return tuple(RNG.from_prng(key) for key in new_keys)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, RNG):
            return NotImplemented
        return self.int_1 == other.int_1 and self.int_2 == other.int_2

    def __hash__(self) -> int:
        return hash((self.int_1, self.int_2))
