"""
Declarative layer configs.

Every config has a `kind` tag and a `build()` method returning the layer it
describes, so a whole model can be read from JSON:

    {
        "random_seed": 0,
        "model": {
            "kind": "Chain",
            "layers": [
                {"kind": "Dense", "in_dims": 2, "out_dims": 8, "activation": "tanh"},
                {"kind": "SkipConnection", "connection": "add",
                 "layer": {"kind": "Dense", "in_dims": 8, "out_dims": 8}},
                {"kind": "Dense", "in_dims": 8, "out_dims": 2}
            ]
        }
    }
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field
from typing_extensions import Annotated, Literal

from lumen.nn import (
    ActivationFunction,
    BranchLayer,
    Chain,
    Dense,
    Dropout,
    FlattenLayer,
    Layer,
    Mode,
    NoOpLayer,
    PairwiseFusion,
    Parallel,
    Params,
    ReshapeLayer,
    Scale,
    SelectDim,
    SkipConnection,
    State,
)
from lumen.nn.functional import (
    CONNECTIONS,
    ActivationEnum,
    ConnectionEnum,
    InitializerEnum,
)
from lumen.rng import RNG

logger = logging.getLogger(__name__)


class LayerConfig(BaseModel, ABC):
    @abstractmethod
    def build(self) -> Layer:
        raise NotImplementedError


class DenseConfig(LayerConfig):
    kind: Literal["Dense"] = "Dense"
    in_dims: int
    out_dims: int
    activation: ActivationEnum = ActivationEnum.identity
    use_bias: bool = True
    init_weight: InitializerEnum = InitializerEnum.glorot_uniform
    init_bias: InitializerEnum = InitializerEnum.zeros

    def build(self) -> Dense:
        return Dense.build(**self.model_dump(exclude={"kind"}))


class ScaleConfig(LayerConfig):
    kind: Literal["Scale"] = "Scale"
    dims: Tuple[int, ...]
    activation: ActivationEnum = ActivationEnum.identity
    use_bias: bool = True
    init_weight: InitializerEnum = InitializerEnum.ones
    init_bias: InitializerEnum = InitializerEnum.zeros

    def build(self) -> Scale:
        return Scale(**self.model_dump(exclude={"kind"}))


class DropoutConfig(LayerConfig):
    kind: Literal["Dropout"] = "Dropout"
    keep: float = 0.5
    mode: Mode = Mode.train

    def build(self) -> Dropout:
        return Dropout.build(keep=self.keep, mode=self.mode)


class ActivationConfig(LayerConfig):
    kind: Literal["Activation"] = "Activation"
    activation: ActivationEnum

    def build(self) -> ActivationFunction:
        return ActivationFunction(activation=self.activation)


class ReshapeConfig(LayerConfig):
    kind: Literal["Reshape"] = "Reshape"
    dims: Tuple[int, ...]

    def build(self) -> ReshapeLayer:
        return ReshapeLayer(dims=self.dims)


class FlattenConfig(LayerConfig):
    kind: Literal["Flatten"] = "Flatten"

    def build(self) -> FlattenLayer:
        return FlattenLayer()


class SelectDimConfig(LayerConfig):
    kind: Literal["SelectDim"] = "SelectDim"
    dim: int
    index: int

    def build(self) -> SelectDim:
        return SelectDim(dim=self.dim, index=self.index)


class NoOpConfig(LayerConfig):
    kind: Literal["NoOp"] = "NoOp"

    def build(self) -> NoOpLayer:
        return NoOpLayer()


class ChainConfig(LayerConfig):
    kind: Literal["Chain"] = "Chain"
    layers: List[AnyLayerConfig]
    names: Optional[List[str]] = None
    disable_optimizations: bool = False

    def build(self) -> Layer:
        return Chain.build(
            *(config.build() for config in self.layers),
            names=self.names,
            disable_optimizations=self.disable_optimizations,
        )


class BranchConfig(LayerConfig):
    kind: Literal["Branch"] = "Branch"
    layers: List[AnyLayerConfig]
    names: Optional[List[str]] = None

    def build(self) -> BranchLayer:
        return BranchLayer.build(
            *(config.build() for config in self.layers), names=self.names
        )


class ParallelConfig(LayerConfig):
    kind: Literal["Parallel"] = "Parallel"
    connection: Optional[ConnectionEnum] = None
    layers: List[AnyLayerConfig]
    names: Optional[List[str]] = None

    def build(self) -> Parallel:
        connection = CONNECTIONS[self.connection] if self.connection else None
        return Parallel.build(
            connection, *(config.build() for config in self.layers), names=self.names
        )


class PairwiseFusionConfig(LayerConfig):
    kind: Literal["PairwiseFusion"] = "PairwiseFusion"
    connection: ConnectionEnum
    layers: List[AnyLayerConfig]
    names: Optional[List[str]] = None

    def build(self) -> PairwiseFusion:
        return PairwiseFusion.build(
            CONNECTIONS[self.connection],
            *(config.build() for config in self.layers),
            names=self.names,
        )


class SkipConnectionConfig(LayerConfig):
    kind: Literal["SkipConnection"] = "SkipConnection"
    layer: AnyLayerConfig
    connection: ConnectionEnum = ConnectionEnum.add

    def build(self) -> SkipConnection:
        return SkipConnection.build(self.layer.build(), CONNECTIONS[self.connection])


AnyLayerConfig = Annotated[
    Union[
        DenseConfig,
        ScaleConfig,
        DropoutConfig,
        ActivationConfig,
        ReshapeConfig,
        FlattenConfig,
        SelectDimConfig,
        NoOpConfig,
        ChainConfig,
        BranchConfig,
        ParallelConfig,
        PairwiseFusionConfig,
        SkipConnectionConfig,
    ],
    Field(discriminator="kind"),
]

for _config in (
    ChainConfig,
    BranchConfig,
    ParallelConfig,
    PairwiseFusionConfig,
    SkipConnectionConfig,
):
    _config.model_rebuild()


class ModelConfig(BaseModel):
    model: AnyLayerConfig
    random_seed: int = 42

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> ModelConfig:
        return cls(**d)

    @classmethod
    def from_file(cls, filename: str) -> ModelConfig:
        with open(filename) as infile:
            d = json.load(infile)
            return cls.from_dict(d)

    @classmethod
    def from_flattened(cls, config: Dict[str, Any]) -> ModelConfig:
        """Build from a config whose nested fields may be given as dotted keys,
        e.g. {"model.kind": "Dense", "model.in_dims": 2, ...}."""
        config = dict(config)
        nested_fields = [field for field in config.keys() if "." in field]

        for field in nested_fields:
            new_field, inner_field = field.split(".", 1)
            if new_field not in config.keys():
                config[new_field] = {}
            config[new_field].update({inner_field: config[field]})
            del config[field]

        return cls(**config)

    def build(self) -> Layer:
        return self.model.build()

    def initialize(self) -> Tuple[Layer, Params, State]:
        layer = self.build()
        params, state = layer.setup(RNG.from_seed(self.random_seed))
        logger.info(
            "Built %s with %d parameters and state size %d",
            type(layer).__name__,
            layer.parameter_count(),
            layer.state_size(),
        )
        return layer, params, state
