import logging
from typing import Any, Tuple

import jax.numpy as np
import pytest
from numpy import testing

import lumen.nn.functional as F
from lumen.errors import StructureMismatch
from lumen.nn import (
    ActivationFunction,
    Chain,
    Dense,
    Layer,
    NoOpLayer,
    Params,
    State,
    WrappedFunction,
)
from lumen.nn.functional import ActivationEnum
from lumen.nn.layers import flatten_layers
from lumen.rng import RNG


class PassThrough(Layer):
    """Identity layer that is not a NoOpLayer, so chains keep it."""

    tag: str = ""

    def forward(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        return inputs, state


class Failing(Layer):
    def forward(self, inputs: Any, params: Params, state: State) -> Tuple[Any, State]:
        raise RuntimeError("leaf failure")


@pytest.fixture
def rng() -> RNG:
    return RNG.from_seed(42)


@pytest.fixture
def a() -> Layer:
    return PassThrough(tag="a")


@pytest.fixture
def b() -> Layer:
    return PassThrough(tag="b")


@pytest.fixture
def c() -> Layer:
    return PassThrough(tag="c")


def test_chain_of_pass_through_layers(a: Layer, b: Layer, c: Layer, rng: RNG) -> None:
    chain = Chain.build(a, b, c)
    params, state = chain.setup(rng)

    outputs, new_state = chain(5, params, state)

    assert outputs == 5
    assert new_state == {"layer_1": {}, "layer_2": {}, "layer_3": {}}


def test_nested_chains_and_no_ops_are_flattened(a: Layer, b: Layer, c: Layer) -> None:
    chain = Chain.build([Chain.build(a, b), NoOpLayer(), c])

    assert chain == Chain.build(a, b, c)
    assert chain.keys() == ("layer_1", "layer_2", "layer_3")
    assert list(chain) == [a, b, c]


def test_flatten_is_idempotent(a: Layer, b: Layer, c: Layer) -> None:
    chain = Chain.build(a, [b, [NoOpLayer(), c]])
    assert Chain.build(chain) == chain
    assert flatten_layers(flatten_layers([chain])) == flatten_layers([chain])


def test_empty_chain_is_a_no_op(rng: RNG) -> None:
    chain = Chain.build()
    assert isinstance(chain, NoOpLayer)
    assert chain(3, {}, {}) == (3, {})

    assert isinstance(Chain.build(NoOpLayer(), F.identity, []), NoOpLayer)


def test_single_layer_is_unwrapped(rng: RNG) -> None:
    dense = Dense.build(2, 2)
    chain = Chain.build(NoOpLayer(), [dense])

    assert chain is dense
    params, _ = chain.setup(rng)
    assert set(params) == {"weight", "bias"}


def test_functions_are_wrapped(rng: RNG) -> None:
    def double(x: Any) -> Any:
        return x * 2

    def explicit(x: Any, params: Params, state: State) -> Tuple[Any, State]:
        return x + 1, state

    chain = Chain.build(double, F.identity, explicit)

    assert chain.keys() == ("layer_1", "layer_2")
    assert chain["layer_1"] == WrappedFunction(func=double)
    assert chain["layer_2"] == WrappedFunction(func=explicit, explicit=True)

    params, state = chain.setup(rng)
    outputs, _ = chain(3, params, state)
    assert outputs == 7


@pytest.mark.parametrize("activation", [F.softmax, F.log_softmax])
def test_functions_with_optional_arguments_take_inputs_only(
    activation: Any, rng: RNG
) -> None:
    chain = Chain.build(Dense.build(3, 4), activation)

    assert chain["layer_2"] == WrappedFunction(func=activation)

    params, state = chain.setup(rng)
    outputs, new_state = chain(np.ones((2, 3)), params, state)

    assert outputs.shape == (2, 4)
    assert new_state == {"layer_1": {}, "layer_2": {}}


def test_reductions_are_wrapped_as_plain_functions(rng: RNG) -> None:
    chain = Chain.build(Dense.build(3, 4), np.sum)
    params, state = chain.setup(rng)

    outputs, _ = chain(np.ones((2, 3)), params, state)

    assert chain["layer_2"] == WrappedFunction(func=np.sum)
    assert outputs.shape == ()


def test_only_three_required_arguments_make_a_layer_function() -> None:
    def with_default(x: Any, params: Params, state: Any = None) -> Any:
        return x

    def variadic(x: Any, *rest: Any) -> Any:
        return x

    def four(x: Any, params: Params, state: State, extra: Any) -> Any:
        return x

    for func in (with_default, variadic, four):
        assert Chain.build(func, disable_optimizations=True)["layer_1"] == (
            WrappedFunction(func=func)
        )


def test_disable_optimizations_keeps_structure(a: Layer, b: Layer) -> None:
    inner = Chain.build(a, b)
    chain = Chain.build(inner, NoOpLayer(), disable_optimizations=True)

    assert isinstance(chain, Chain)
    assert chain.keys() == ("layer_1", "layer_2")
    assert chain["layer_1"] == inner

    single = Chain.build(a, disable_optimizations=True)
    assert isinstance(single, Chain) and len(single) == 1

    empty = Chain.build(disable_optimizations=True)
    assert isinstance(empty, Chain)
    assert empty(1, {}, {}) == (1, {})


def test_explicit_names(a: Layer, b: Layer, rng: RNG) -> None:
    chain = Chain.build(a, b, names=["encoder", "decoder"])
    params, state = chain.setup(rng)

    assert set(params) == {"encoder", "decoder"}
    _, new_state = chain(1, params, state)
    assert set(new_state) == {"encoder", "decoder"}


def test_flattening_preserves_semantics(rng: RNG) -> None:
    layers = [
        Dense.build(3, 4, ActivationEnum.tanh),
        [ActivationFunction(activation=ActivationEnum.relu), NoOpLayer()],
        Chain.build(Dense.build(4, 4), Dense.build(4, 2)),
    ]
    flat = Chain.build(*layers)
    literal = Chain.build(
        layers[0],
        Chain.build(*layers[1], disable_optimizations=True),
        layers[2],
        disable_optimizations=True,
    )
    params, state = flat.setup(rng)

    inputs = np.ones((5, 3))
    expected = inputs
    for name, layer in flat.layers.items():
        expected, _ = layer(expected, params[name], state[name])

    outputs, _ = flat(inputs, params, state)
    testing.assert_allclose(outputs, expected)

    # the same layers, nested, computed without flattening
    nested_params = {
        "layer_1": params["layer_1"],
        "layer_2": {"layer_1": params["layer_2"], "layer_2": {}},
        "layer_3": {"layer_1": params["layer_3"], "layer_2": params["layer_4"]},
    }
    nested_state = {
        "layer_1": {},
        "layer_2": {"layer_1": {}, "layer_2": {}},
        "layer_3": {"layer_1": {}, "layer_2": {}},
    }
    nested_outputs, _ = literal(inputs, nested_params, nested_state)
    testing.assert_allclose(outputs, nested_outputs)


def test_structure_mismatch(a: Layer, b: Layer) -> None:
    chain = Chain.build(a, b)

    with pytest.raises(StructureMismatch):
        chain(1, {"layer_1": {}}, {"layer_1": {}, "layer_2": {}})

    with pytest.raises(StructureMismatch):
        chain(1, {"layer_1": {}, "layer_2": {}}, {"layer_1": {}, "layer_3": {}})


def test_leaf_errors_propagate(a: Layer) -> None:
    chain = Chain.build(a, Failing())
    with pytest.raises(RuntimeError, match="leaf failure"):
        chain(1, {"layer_1": {}, "layer_2": {}}, {"layer_1": {}, "layer_2": {}})


def test_add_appends_layers(a: Layer, b: Layer, c: Layer) -> None:
    chain = Chain.build(a, b)
    assert chain.add(c) == Chain.build(a, b, c)


def test_flattening_is_logged(a: Layer, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="lumen"):
        Chain.build(NoOpLayer(), a)
    assert "single layer" in caplog.text


def test_rejects_non_layers() -> None:
    with pytest.raises(TypeError):
        Chain.build(PassThrough(), 3)
