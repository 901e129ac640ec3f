"""Convolutional encoder/decoder pair with a flat ``(batch, features)`` interface.

Observations are flat NHWC rows of length ``3 * res * res``; the networks
reshape to NCHW internally. For ``n_layers = log2(res / 8)``:

- the encoder halves the spatial side ``n_layers + 1`` times down to ``4x4``;
- the decoder starts from ``8x8`` and doubles ``n_layers`` times up to ``res``.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from snlds.mlp import Activation, Mlp, MlpConfig, kaiming_uniform

LEAKY_NEGATIVE_SLOPE = 0.2
ENCODER_BOTTLENECK_SPATIAL = 4
DECODER_INPUT_SPATIAL = 8
IMAGE_CHANNELS = 3
KERNEL_SIZE = 3


def validate_cnn_res(res: int) -> None:
    """Raise ``ValueError`` unless ``res`` is a power of two and at least 16."""
    if not (res >= 16 and res & (res - 1) == 0):
        raise ValueError(f"CNN encoder requires res >= 16 and a power of 2 (got {res})")


def n_layers_for_res(res: int) -> int:
    """Number of strided/refine conv pairs needed for ``res``: ``log2(res / 8)``."""
    validate_cnn_res(res)
    return res.bit_length() - 4


def _relu(x: np.ndarray) -> np.ndarray:
    return np.maximum(x, 0.0)


@dataclass
class Conv2d:
    """2-D convolution on NCHW input; ``weight`` is ``[out, in, kh, kw]``."""

    weight: np.ndarray
    bias: np.ndarray
    stride: int = 1
    padding: int = 0

    @classmethod
    def init(
        cls,
        in_channels: int,
        out_channels: int,
        kernel_size: int,
        rng: np.random.Generator | None = None,
        *,
        stride: int = 1,
        padding: int = 0,
    ) -> "Conv2d":
        rng = rng if rng is not None else np.random.default_rng()
        fan_in = in_channels * kernel_size * kernel_size
        return cls(
            weight=kaiming_uniform(
                rng, fan_in, (out_channels, in_channels, kernel_size, kernel_size)
            ),
            bias=kaiming_uniform(rng, fan_in, (out_channels,)),
            stride=stride,
            padding=padding,
        )

    def forward(self, x) -> np.ndarray:
        values = np.asarray(x, dtype=float)
        if values.ndim != 4 or values.shape[1] != self.weight.shape[1]:
            raise ValueError(
                f"expected [B, {self.weight.shape[1]}, H, W] input, got {values.shape}"
            )
        kh, kw = self.weight.shape[2:]
        p, s = self.padding, self.stride
        padded = np.pad(values, ((0, 0), (0, 0), (p, p), (p, p)))
        windows = sliding_window_view(padded, (kh, kw), axis=(2, 3))[:, :, ::s, ::s]
        out = np.einsum("bchwkl,ockl->bohw", windows, self.weight)
        return out + self.bias[None, :, None, None]


@dataclass
class ConvTranspose2d:
    """Transposed 2-D convolution on NCHW input; ``weight`` is ``[in, out, kh, kw]``.

    Output side is ``(H - 1) * stride - 2 * padding + kernel``.
    """

    weight: np.ndarray
    bias: np.ndarray
    stride: int = 1
    padding: int = 0

    @classmethod
    def init(
        cls,
        in_channels: int,
        out_channels: int,
        kernel_size: int,
        rng: np.random.Generator | None = None,
        *,
        stride: int = 1,
        padding: int = 0,
    ) -> "ConvTranspose2d":
        rng = rng if rng is not None else np.random.default_rng()
        fan_in = in_channels * kernel_size * kernel_size
        return cls(
            weight=kaiming_uniform(
                rng, fan_in, (in_channels, out_channels, kernel_size, kernel_size)
            ),
            bias=kaiming_uniform(rng, fan_in, (out_channels,)),
            stride=stride,
            padding=padding,
        )

    def forward(self, x) -> np.ndarray:
        values = np.asarray(x, dtype=float)
        if values.ndim != 4 or values.shape[1] != self.weight.shape[0]:
            raise ValueError(
                f"expected [B, {self.weight.shape[0]}, H, W] input, got {values.shape}"
            )
        batch, _, height, width = values.shape
        out_channels, kh, kw = self.weight.shape[1:]
        s, p = self.stride, self.padding
        full_h = (height - 1) * s + kh
        full_w = (width - 1) * s + kw
        full = np.zeros((batch, out_channels, full_h, full_w))
        contributions = np.einsum("bihw,iokl->bohwkl", values, self.weight)
        for ky, kx in itertools.product(range(kh), range(kw)):
            full[
                :, :, ky : ky + s * (height - 1) + 1 : s, kx : kx + s * (width - 1) + 1 : s
            ] += contributions[..., ky, kx]
        out = full[:, :, p : full_h - p, p : full_w - p]
        return out + self.bias[None, :, None, None]


def _leaky() -> Activation:
    return Activation.leaky_relu(LEAKY_NEGATIVE_SLOPE)


@dataclass
class CnnEncoder:
    """``[B, 3 * res * res] -> [B, output_dim]`` via strided convolutions."""

    in_conv: Conv2d
    strided_convs: list[Conv2d]
    refine_convs: list[Conv2d]
    projection: Mlp
    res: int
    hidden_dim: int
    activation: Activation = field(default_factory=_leaky)

    def forward(self, x) -> np.ndarray:
        values = np.asarray(x, dtype=float)
        expected = IMAGE_CHANNELS * self.res * self.res
        if values.ndim != 2 or values.shape[1] != expected:
            raise ValueError(f"CnnEncoder expected [B, {expected}] input, got {values.shape}")
        batch = values.shape[0]
        feature_map = values.reshape(batch, self.res, self.res, IMAGE_CHANNELS).transpose(
            0, 3, 1, 2
        )
        feature_map = _relu(self.in_conv.forward(feature_map))
        for strided, refine in zip(self.strided_convs, self.refine_convs):
            feature_map = self.activation.apply(strided.forward(feature_map))
            feature_map = self.activation.apply(refine.forward(feature_map))
        bottleneck = self.hidden_dim * ENCODER_BOTTLENECK_SPATIAL**2
        return self.projection.forward(feature_map.reshape(batch, bottleneck))


@dataclass
class CnnEncoderConfig:
    res: int
    output_dim: int
    hidden_dim: int

    def init(self, rng: np.random.Generator | None = None) -> CnnEncoder:
        n_layers = n_layers_for_res(self.res)
        rng = rng if rng is not None else np.random.default_rng()
        hidden = self.hidden_dim
        in_conv = Conv2d.init(IMAGE_CHANNELS, hidden, KERNEL_SIZE, rng, stride=2, padding=1)
        strided_convs = []
        refine_convs = []
        for _ in range(n_layers):
            strided_convs.append(Conv2d.init(hidden, hidden, KERNEL_SIZE, rng, stride=2, padding=1))
            refine_convs.append(Conv2d.init(hidden, hidden, KERNEL_SIZE, rng, stride=1, padding=1))
        projection = MlpConfig.leaky_relu(
            hidden * ENCODER_BOTTLENECK_SPATIAL**2, self.output_dim, hidden
        ).init(rng)
        return CnnEncoder(
            in_conv=in_conv,
            strided_convs=strided_convs,
            refine_convs=refine_convs,
            projection=projection,
            res=self.res,
            hidden_dim=hidden,
        )


@dataclass
class CnnDecoder:
    """``[B, input_dim] -> [B, 3 * res * res]``; output is unbounded (no sigmoid)."""

    projection: Mlp
    transposed_convs: list[ConvTranspose2d]
    refine_convs: list[Conv2d]
    final_conv: Conv2d
    res: int
    hidden_dim: int
    activation: Activation = field(default_factory=_leaky)

    def forward(self, x) -> np.ndarray:
        values = np.asarray(x, dtype=float)
        batch = values.shape[0]
        feature_map = self.projection.forward(values).reshape(
            batch, self.hidden_dim, DECODER_INPUT_SPATIAL, DECODER_INPUT_SPATIAL
        )
        # A stride-2 transposed conv maps H to 2H - 1; one trailing row and
        # column of zeros restores an even 2H extent.
        for transposed, refine in zip(self.transposed_convs, self.refine_convs):
            feature_map = self.activation.apply(transposed.forward(feature_map))
            feature_map = np.pad(feature_map, ((0, 0), (0, 0), (0, 1), (0, 1)))
            feature_map = self.activation.apply(refine.forward(feature_map))
        pixels = self.final_conv.forward(feature_map)
        return pixels.transpose(0, 2, 3, 1).reshape(batch, IMAGE_CHANNELS * self.res * self.res)


@dataclass
class CnnDecoderConfig:
    res: int
    input_dim: int
    hidden_dim: int

    def init(self, rng: np.random.Generator | None = None) -> CnnDecoder:
        n_layers = n_layers_for_res(self.res)
        rng = rng if rng is not None else np.random.default_rng()
        hidden = self.hidden_dim
        projection = MlpConfig.leaky_relu(
            self.input_dim, hidden * DECODER_INPUT_SPATIAL**2, hidden
        ).init(rng)
        transposed_convs = []
        refine_convs = []
        for _ in range(n_layers):
            transposed_convs.append(
                ConvTranspose2d.init(hidden, hidden, KERNEL_SIZE, rng, stride=2, padding=1)
            )
            refine_convs.append(Conv2d.init(hidden, hidden, KERNEL_SIZE, rng, stride=1, padding=1))
        final_conv = Conv2d.init(hidden, IMAGE_CHANNELS, KERNEL_SIZE, rng, stride=1, padding=1)
        return CnnDecoder(
            projection=projection,
            transposed_convs=transposed_convs,
            refine_convs=refine_convs,
            final_conv=final_conv,
            res=self.res,
            hidden_dim=hidden,
        )