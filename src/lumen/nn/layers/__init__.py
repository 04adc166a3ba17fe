from lumen.nn.layers.core import Dense, Dropout, Mode, Scale
from lumen.nn.layers.misc import (
    ActivationFunction,
    FlattenLayer,
    NoOpLayer,
    ReshapeLayer,
    SelectDim,
    WrappedFunction,
)
from lumen.nn.layers.containers import (  # isort:skip
    BranchLayer,
    Chain,
    PairwiseFusion,
    Parallel,
    SkipConnection,
    as_layer,
    flatten_layers,
)

__all__ = [
    "Dense",
    "Scale",
    "Dropout",
    "Mode",
    "ActivationFunction",
    "FlattenLayer",
    "NoOpLayer",
    "ReshapeLayer",
    "SelectDim",
    "WrappedFunction",
    "BranchLayer",
    "Chain",
    "PairwiseFusion",
    "Parallel",
    "SkipConnection",
    "as_layer",
    "flatten_layers",
]
