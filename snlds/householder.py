"""Learned stack of Householder reflections: an orthogonal map on ``R^D``."""

from __future__ import annotations

import numpy as np

HH_EPS = 1e-8


class HouseholderStack:
    """``K`` successive reflections ``z <- z - 2 v (v . z)`` with unit vectors ``v``.

    Each reflection is orthogonal, so the log-determinant of the map is zero.
    ``raw`` holds unnormalised directions of shape ``[K, D]``.
    """

    def __init__(self, num_reflectors: int, dim: int, rng: np.random.Generator | None = None):
        if num_reflectors <= 0:
            raise ValueError("HouseholderStack requires K >= 1")
        if dim <= 0:
            raise ValueError("HouseholderStack requires D >= 1")
        rng = rng if rng is not None else np.random.default_rng()
        self.raw = rng.normal(0.0, 0.01, size=(num_reflectors, dim))

    def forward(self, z) -> np.ndarray:
        """Apply the reflections in order: ``[B, D] -> [B, D]``."""
        return self._apply(z, reverse=False)

    def inverse(self, z) -> np.ndarray:
        """Apply the reflections in reverse order."""
        return self._apply(z, reverse=True)

    def _unit_vectors(self) -> np.ndarray:
        raw = np.asarray(self.raw, dtype=float)
        sq_norm = np.maximum((raw * raw).sum(axis=1, keepdims=True), HH_EPS * HH_EPS)
        return raw / np.sqrt(sq_norm)

    def _apply(self, z, reverse: bool) -> np.ndarray:
        out = np.array(z, dtype=float)
        vectors = self._unit_vectors()
        if out.ndim != 2 or out.shape[1] != vectors.shape[1]:
            raise ValueError(f"expected [B, {vectors.shape[1]}] input, got {out.shape}")
        for v in vectors[::-1] if reverse else vectors:
            out = out - 2.0 * (out @ v)[:, None] * v[None, :]
        return out