import json
from pathlib import Path
from typing import Any, Dict

import jax.numpy as np
import pytest
from pydantic import ValidationError

from lumen.config import ChainConfig, DenseConfig, ModelConfig, ParallelConfig
from lumen.nn import Chain, Dense, Dropout, Parallel, SkipConnection
from lumen.nn.functional import ActivationEnum


@pytest.fixture
def normal_config() -> Dict[str, Any]:
    return {
        "random_seed": 0,
        "model": {
            "kind": "Chain",
            "layers": [
                {"kind": "Dense", "in_dims": 2, "out_dims": 8, "activation": "tanh"},
                {
                    "kind": "SkipConnection",
                    "connection": "add",
                    "layer": {"kind": "Dense", "in_dims": 8, "out_dims": 8},
                },
                {"kind": "Dropout", "keep": 0.9},
                {"kind": "Dense", "in_dims": 8, "out_dims": 2},
            ],
        },
    }


@pytest.fixture
def flattened_config() -> Dict[str, Any]:
    return {
        "random_seed": 0,
        "model.kind": "Dense",
        "model.in_dims": 3,
        "model.out_dims": 5,
        "model.activation": "relu",
    }


def test_from_dict(normal_config: Dict[str, Any]) -> None:
    config = ModelConfig.from_dict(normal_config)

    layer, params, state = config.initialize()

    assert isinstance(layer, Chain)
    assert isinstance(layer["layer_2"], SkipConnection)
    assert isinstance(layer["layer_3"], Dropout)
    assert layer.parameter_count() == 24 + 72 + 18
    assert set(params) == {"layer_1", "layer_2", "layer_3", "layer_4"}
    assert set(state["layer_3"]) == {"rng"}

    outputs, _ = layer(np.ones((4, 2)), params, state)
    assert outputs.shape == (4, 2)


def test_initialize_is_reproducible(normal_config: Dict[str, Any]) -> None:
    _, params, _ = ModelConfig.from_dict(normal_config).initialize()
    _, same_params, _ = ModelConfig.from_dict(normal_config).initialize()

    assert np.array_equal(params["layer_1"]["weight"], same_params["layer_1"]["weight"])


def test_unflattening(flattened_config: Dict[str, Any]) -> None:
    config = ModelConfig.from_flattened(flattened_config)

    expected = ModelConfig(
        random_seed=0,
        model=DenseConfig(in_dims=3, out_dims=5, activation=ActivationEnum.relu),
    )
    assert config.model_dump() == expected.model_dump()
    assert config.build() == Dense.build(3, 5, ActivationEnum.relu)


def test_from_file(tmp_path: Path, normal_config: Dict[str, Any]) -> None:
    filename = tmp_path / "model.json"
    filename.write_text(json.dumps(normal_config))

    config = ModelConfig.from_file(str(filename))

    assert config.model_dump() == ModelConfig.from_dict(normal_config).model_dump()


def test_unknown_kind_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ModelConfig.from_dict({"model": {"kind": "Conv", "in_dims": 2}})


def test_single_layer_chain_is_unwrapped() -> None:
    config = ChainConfig(
        layers=[{"kind": "Dense", "in_dims": 2, "out_dims": 2}, {"kind": "NoOp"}]
    )

    assert config.build() == Dense.build(2, 2)


def test_named_chain_keeps_structure() -> None:
    config = ChainConfig(
        layers=[{"kind": "Dense", "in_dims": 2, "out_dims": 2}, {"kind": "NoOp"}],
        names=["dense", "skip"],
    )

    layer = config.build()

    assert isinstance(layer, Chain)
    assert layer.keys() == ("dense", "skip")


def test_parallel_config() -> None:
    config = ParallelConfig(
        connection="concatenate",
        layers=[
            {"kind": "Dense", "in_dims": 2, "out_dims": 3},
            {"kind": "Dense", "in_dims": 2, "out_dims": 4},
        ],
    )
    layer, params, state = ModelConfig(model=config).initialize()

    assert isinstance(layer, Parallel)
    assert layer.parameter_count() == 9 + 12

    outputs, _ = layer(np.ones((5, 2)), params, state)
    assert outputs.shape == (5, 7)
