"""Layout helpers for multi-scale normalising-flow latents."""

from __future__ import annotations

import numpy as np


def glow_split_dims(in_channels: int, num_levels: int, height: int, width: int) -> tuple[int, int]:
    """Return ``(prefix_dim, last_split_dim)``.

    Each level squeezes (channels x4, sides /2); every level except the last
    splits off half its channels into the prefix, the last level is kept whole.
    """
    prefix = 0
    last = 0
    channels, h, w = in_channels, height, width
    for level in range(num_levels):
        channels *= 4
        h //= 2
        w //= 2
        if level < num_levels - 1:
            prefix += (channels // 2) * h * w
            channels //= 2
        else:
            last = channels * h * w
    return prefix, last


def glow_flattened_latent_dim(in_channels: int, num_levels: int, height: int, width: int) -> int:
    """Total flattened latent dimension over all levels."""
    prefix, last = glow_split_dims(in_channels, num_levels, height, width)
    return prefix + last


def glow_last_split_dim(in_channels: int, num_levels: int, height: int, width: int) -> int:
    """Dimension of the deepest level, which is kept whole."""
    return glow_split_dims(in_channels, num_levels, height, width)[1]


def flat_nhwc_rows_to_nchw(flat, res: int) -> np.ndarray:
    """Convert flat NHWC rows ``[B, res*res*3]`` to NCHW ``[B, 3, res, res]``."""
    values = np.asarray(flat, dtype=float)
    if values.ndim != 2 or values.shape[1] != res * res * 3:
        raise ValueError(f"expected [B, {res * res * 3}] rows, got {values.shape}")
    return values.reshape(values.shape[0], res, res, 3).transpose(0, 3, 1, 2)