from lumen.nn.functional.activations import (
    ACTIVATIONS,
    ActivationEnum,
    gelu,
    identity,
    leaky_relu,
    log_softmax,
    mish,
    relu,
    selu,
    sigmoid,
    softmax,
    softplus,
    tanh,
)
from lumen.nn.functional.connections import (
    CONNECTIONS,
    ConnectionEnum,
    add,
    concatenate,
    first,
    multiply,
    stack,
)
from lumen.nn.functional.initializers import INITIALIZERS, InitializerEnum
