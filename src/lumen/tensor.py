"""
A tensor is just a n-dimensional jax array
"""
from jax import Array

Tensor = Array

__all__ = ["Tensor"]
