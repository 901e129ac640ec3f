"""Two-hidden-layer multilayer perceptron with softplus or leaky-ReLU activations."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

DEFAULT_LEAKY_SLOPE = 0.2
DEFAULT_SOFTPLUS_BETA = 1.0


def _generator(rng: np.random.Generator | None) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def kaiming_uniform(
    rng: np.random.Generator | None, fan_in: int, shape: tuple[int, ...]
) -> np.ndarray:
    """Uniform draw in ``[-1/sqrt(fan_in), 1/sqrt(fan_in)]``."""
    bound = 1.0 / math.sqrt(fan_in)
    return _generator(rng).uniform(-bound, bound, size=shape)


class ActivationKind(Enum):
    SOFTPLUS = "softplus"
    LEAKY_RELU = "leaky_relu"


@dataclass(frozen=True)
class Activation:
    """Element-wise nonlinearity; ``parameter`` is softplus beta or leaky-ReLU slope."""

    kind: ActivationKind
    parameter: float

    @classmethod
    def softplus(cls, beta: float = DEFAULT_SOFTPLUS_BETA) -> "Activation":
        if beta <= 0:
            raise ValueError(f"softplus beta must be positive (got {beta})")
        return cls(ActivationKind.SOFTPLUS, beta)

    @classmethod
    def leaky_relu(cls, negative_slope: float = DEFAULT_LEAKY_SLOPE) -> "Activation":
        return cls(ActivationKind.LEAKY_RELU, negative_slope)

    def apply(self, x) -> np.ndarray:
        values = np.asarray(x, dtype=float)
        if self.kind is ActivationKind.SOFTPLUS:
            return np.logaddexp(0.0, self.parameter * values) / self.parameter
        return np.where(values >= 0.0, values, self.parameter * values)


@dataclass
class Linear:
    """Affine map ``x @ weight + bias`` with ``weight`` of shape ``[in, out]``."""

    weight: np.ndarray
    bias: np.ndarray

    @classmethod
    def init(
        cls, input_dim: int, output_dim: int, rng: np.random.Generator | None = None
    ) -> "Linear":
        rng = _generator(rng)
        return cls(
            weight=kaiming_uniform(rng, input_dim, (input_dim, output_dim)),
            bias=kaiming_uniform(rng, input_dim, (output_dim,)),
        )

    @property
    def input_dim(self) -> int:
        return self.weight.shape[0]

    @property
    def output_dim(self) -> int:
        return self.weight.shape[1]

    def forward(self, x) -> np.ndarray:
        values = np.asarray(x, dtype=float)
        if values.shape[-1] != self.input_dim:
            raise ValueError(
                f"expected trailing dimension {self.input_dim}, got {values.shape[-1]}"
            )
        return values @ self.weight + self.bias


@dataclass
class Mlp:
    """``Linear -> activation -> Linear -> activation -> Linear``."""

    first_linear: Linear
    second_linear: Linear
    output_linear: Linear
    activation: Activation

    def forward(self, x) -> np.ndarray:
        """Map ``[..., input_dim]`` to ``[..., output_dim]``."""
        first_hidden = self.activation.apply(self.first_linear.forward(x))
        second_hidden = self.activation.apply(self.second_linear.forward(first_hidden))
        return self.output_linear.forward(second_hidden)


@dataclass
class MlpConfig:
    input_dim: int
    output_dim: int
    hidden_dim: int
    activation: Activation

    @classmethod
    def softplus(cls, input_dim: int, output_dim: int, hidden_dim: int) -> "MlpConfig":
        """Softplus MLP, used for transition networks."""
        return cls(input_dim, output_dim, hidden_dim, Activation.softplus(1.0))

    @classmethod
    def leaky_relu(cls, input_dim: int, output_dim: int, hidden_dim: int) -> "MlpConfig":
        """Leaky-ReLU MLP (slope 0.2), used for encoders and decoders."""
        return cls(input_dim, output_dim, hidden_dim, Activation.leaky_relu(0.2))

    def init(self, rng: np.random.Generator | None = None) -> Mlp:
        rng = _generator(rng)
        return Mlp(
            first_linear=Linear.init(self.input_dim, self.hidden_dim, rng),
            second_linear=Linear.init(self.hidden_dim, self.hidden_dim, rng),
            output_linear=Linear.init(self.hidden_dim, self.output_dim, rng),
            activation=self.activation,
        )