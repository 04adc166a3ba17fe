"""
Execution strategies shared by the container layers.

Each function runs the children of a NamedLayers in construction order,
hands every child only its own slice of the parameter and state trees, and
returns a new state tree with exactly the same keys. The loops run over a
tuple fixed when the container was built, so under `jax.jit` they unroll
into a static call sequence once per container structure.
"""
from __future__ import annotations

from typing import Any, Callable, Optional, Tuple

from lumen.errors import ArityMismatch
from lumen.nn.layer import Params, State
from lumen.nn.named import NamedLayers

__all__ = ["apply_chain", "apply_branching", "apply_parallel", "apply_pairwise_fusion"]


def _check_trees(layers: NamedLayers, params: Params, state: State) -> None:
    layers.check_keys(params, "parameters")
    layers.check_keys(state, "state")


def apply_chain(
    layers: NamedLayers, inputs: Any, params: Params, state: State
) -> Tuple[Any, State]:
    _check_trees(layers, params, state)
    new_state: State = {}
    for name, layer in layers.items():
        inputs, new_state[name] = layer(inputs, params[name], state[name])
    return inputs, new_state


def apply_branching(
    layers: NamedLayers, inputs: Any, params: Params, state: State
) -> Tuple[Tuple[Any, ...], State]:
    _check_trees(layers, params, state)
    outputs = []
    new_state: State = {}
    for name, layer in layers.items():
        output, new_state[name] = layer(inputs, params[name], state[name])
        outputs.append(output)
    return tuple(outputs), new_state


def apply_parallel(
    layers: NamedLayers,
    connection: Optional[Callable[..., Any]],
    inputs: Any,
    params: Params,
    state: State,
) -> Tuple[Any, State]:
    _check_trees(layers, params, state)
    if isinstance(inputs, tuple):
        if len(inputs) != len(layers):
            raise ArityMismatch("Parallel tuple input length", len(layers), len(inputs))
        routed = inputs
    else:
        routed = (inputs,) * len(layers)

    outputs = []
    new_state: State = {}
    for (name, layer), layer_inputs in zip(layers.items(), routed):
        output, new_state[name] = layer(layer_inputs, params[name], state[name])
        outputs.append(output)

    if connection is None:
        return tuple(outputs), new_state
    return connection(*outputs), new_state


def apply_pairwise_fusion(
    layers: NamedLayers,
    connection: Callable[[Any, Any], Any],
    inputs: Any,
    params: Params,
    state: State,
) -> Tuple[Any, State]:
    """
    x[0] -> layer_1 -> y_1 \\
                           connection -> layer_2 -> y_2 \\
                   x[1] /                                connection -> ...
                                                 x[2] /

    With a non-tuple input every connection receives the input itself.
    """
    _check_trees(layers, params, state)
    if isinstance(inputs, tuple):
        if len(inputs) != len(layers) + 1:
            raise ArityMismatch(
                "PairwiseFusion tuple input length", len(layers) + 1, len(inputs)
            )
        fused, injected = inputs[0], inputs[1:]
    else:
        fused, injected = inputs, (inputs,) * len(layers)

    new_state: State = {}
    for (name, layer), external in zip(layers.items(), injected):
        output, new_state[name] = layer(fused, params[name], state[name])
        fused = connection(output, external)
    return fused, new_state
