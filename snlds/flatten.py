"""Flatten multi-scale latents ``[B, C, H, W]`` into one ``[B, D]`` array and back."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

Shape4 = tuple[int, int, int, int]


def flatten_zs(zs: Sequence) -> tuple[np.ndarray, list[Shape4]]:
    """Concatenate per-level ``[B, C, H, W]`` arrays into ``[B, sum(C*H*W)]``.

    Returns the flat array and the per-level shapes needed by :func:`unflatten_zs`.
    """
    levels = [np.asarray(z, dtype=float) for z in zs]
    if not levels:
        raise ValueError("flatten_zs requires at least one latent level")
    shapes: list[Shape4] = []
    for level in levels:
        if level.ndim != 4:
            raise ValueError(f"each latent level must be [B, C, H, W], got {level.shape}")
        shapes.append(tuple(int(n) for n in level.shape))
    batch = shapes[0][0]
    if any(shape[0] != batch for shape in shapes):
        raise ValueError(f"all latent levels must share the batch size {batch}")
    flat = np.concatenate([level.reshape(batch, -1) for level in levels], axis=1)
    return flat, shapes


def unflatten_zs(flat, shapes: Sequence[Sequence[int]]) -> list[np.ndarray]:
    """Split ``[B, D]`` back into per-level ``[B, C, H, W]`` arrays (batch taken from ``flat``)."""
    values = np.asarray(flat, dtype=float)
    if values.ndim != 2:
        raise ValueError(f"flat latents must be [B, D], got {values.shape}")
    batch, width = values.shape
    sizes = [int(c) * int(h) * int(w) for _, c, h, w in shapes]
    if sum(sizes) > width:
        raise ValueError(f"shapes need {sum(sizes)} columns but flat has {width}")
    offsets = np.cumsum([0, *sizes])
    return [
        values[:, start:stop].reshape(batch, int(c), int(h), int(w))
        for (_, c, h, w), start, stop in zip(shapes, offsets[:-1], offsets[1:])
    ]