"""Linear PCA reduction of observation sequences."""

from __future__ import annotations

import numpy as np


def pca_fit_transform(obs, n_components: int) -> np.ndarray:
    """Fit PCA on all frames of ``obs`` (``[N, T, D]``) and return ``[N, T, n_components]``.

    Frames are centred and projected onto the leading principal axes; each
    axis is signed so that its largest-magnitude loading is positive.
    """
    values = np.asarray(obs, dtype=float)
    if values.ndim != 3:
        raise ValueError(f"obs must be [N, T, D], got {values.shape}")
    num_sequences, seq_length, obs_dim = values.shape
    if n_components == 0:
        raise ValueError("n_components must be > 0")
    if n_components > obs_dim:
        raise ValueError(f"n_components ({n_components}) must be <= obs_dim ({obs_dim})")

    rows = values.reshape(num_sequences * seq_length, obs_dim)
    centred = rows - rows.mean(axis=0)
    _, singular, vt = np.linalg.svd(centred, full_matrices=False)
    tolerance = (singular.max() if singular.size else 0.0) * max(centred.shape) * np.finfo(
        float
    ).eps
    rank = int((singular > tolerance).sum())
    if rank < n_components:
        raise ValueError(
            f"PCA found only {rank} non-degenerate components, expected {n_components}"
        )

    axes = vt[:n_components]
    signs = np.sign(axes[np.arange(n_components), np.abs(axes).argmax(axis=1)])
    axes = axes * signs[:, None]
    projected = centred @ axes.T
    return projected.reshape(num_sequences, seq_length, n_components)