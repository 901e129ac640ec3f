"""Isotropic Gaussian prior for residual latents."""

from __future__ import annotations

import math

import numpy as np

LOG_2PI = math.log(2.0 * math.pi)


def log_p_z_isotropic(z) -> np.ndarray:
    """Log-density of each row of ``z`` (``[B, D]``) under ``N(0, I)``; returns ``[B]``."""
    values = np.asarray(z, dtype=float)
    if values.ndim != 2:
        raise ValueError(f"z must be [B, D], got {values.shape}")
    dim = values.shape[1]
    return -0.5 * (values * values).sum(axis=1) - 0.5 * dim * LOG_2PI