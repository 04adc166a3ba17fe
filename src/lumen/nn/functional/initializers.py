from enum import Enum

from jax.nn.initializers import (
    glorot_normal,
    glorot_uniform,
    he_normal,
    lecun_normal,
    normal,
    ones,
    zeros,
)

INITIALIZERS = {
    "normal": normal(),
    "glorot_normal": glorot_normal(),
    "glorot_uniform": glorot_uniform(),
    "xavier_normal": glorot_normal(),
    "lecun_normal": lecun_normal(),
    "he_normal": he_normal(),
    "kaiming_normal": he_normal(),
    "ones": ones,
    "zeros": zeros,
}


class InitializerEnum(str, Enum):
    normal = "normal"
    glorot_normal = "glorot_normal"
    glorot_uniform = "glorot_uniform"
    xavier_normal = "xavier_normal"
    lecun_normal = "lecun_normal"
    he_normal = "he_normal"
    kaiming_normal = "kaiming_normal"
    ones = "ones"
    zeros = "zeros"
