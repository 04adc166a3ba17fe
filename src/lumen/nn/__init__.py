from lumen.nn.layer import ContainerLayer, Layer, Params, State  # isort:skip
from lumen.nn.named import NamedLayers  # isort:skip
from lumen.nn.layers import (
    ActivationFunction,
    BranchLayer,
    Chain,
    Dense,
    Dropout,
    FlattenLayer,
    Mode,
    NoOpLayer,
    PairwiseFusion,
    Parallel,
    ReshapeLayer,
    Scale,
    SelectDim,
    SkipConnection,
    WrappedFunction,
)

__all__ = [
    "Layer",
    "ContainerLayer",
    "Params",
    "State",
    "NamedLayers",
    "ActivationFunction",
    "BranchLayer",
    "Chain",
    "Dense",
    "Dropout",
    "FlattenLayer",
    "Mode",
    "NoOpLayer",
    "PairwiseFusion",
    "Parallel",
    "ReshapeLayer",
    "Scale",
    "SelectDim",
    "SkipConnection",
    "WrappedFunction",
]
