"""Rotation block of Neural PCA: per-batch right singular vectors or a frozen rotation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

_U32_MASK = 0xFFFFFFFF
_MAX_BASIS_ATTEMPTS = 1_000_000


def _residual(vector: np.ndarray, basis: list[np.ndarray]) -> np.ndarray:
    """Remove from ``vector`` its components along each basis vector in turn."""
    out = vector.copy()
    for col in basis:
        out = out - (out @ col) * col
    return out


def _orthonormalize(vectors: list[np.ndarray]) -> list[np.ndarray]:
    """Gram-Schmidt in order; vectors of negligible norm are left unnormalised."""
    result: list[np.ndarray] = []
    for vector in vectors:
        reduced = _residual(vector, result)
        norm = float(np.sqrt(reduced @ reduced))
        result.append(reduced / norm if norm > 1e-10 else reduced)
    return result


def _pseudo_random_vector(dim: int, seed: int, attempt: int) -> np.ndarray:
    idx = np.arange(dim, dtype=np.uint64)
    offset = (seed + attempt * 7919) & _U32_MASK
    mixed = (idx * np.uint64(1103515245) + np.uint64(offset)) & np.uint64(_U32_MASK)
    return (mixed & np.uint64(0x7FFF)).astype(float) / 16384.0 - 1.0


def _wide_right_vectors(z: np.ndarray) -> np.ndarray:
    """Full ``[D, D]`` right factor for ``z`` of shape ``[B, D]`` with ``B < D``.

    Singular vectors come from the small ``z z^T`` Gram matrix; the basis is
    then completed to ``D`` orthonormal columns.
    """
    batch, dim = z.shape
    if batch == 0:
        return np.eye(dim)

    u, sigma_sq, _ = np.linalg.svd(z @ z.T)
    v_lead = (z.T @ u) / np.sqrt(np.maximum(sigma_sq, 1e-20))
    basis = _orthonormalize(list(v_lead.T))

    for unit in np.eye(dim):
        if len(basis) >= dim:
            break
        candidate = _residual(unit, basis)
        norm = float(np.sqrt(candidate @ candidate))
        if norm > 1e-5:
            basis.append(candidate / norm)

    attempt = 0
    while len(basis) < dim:
        seed = len(basis) + attempt
        candidate = _residual(_pseudo_random_vector(dim, seed, attempt), basis)
        attempt += 1
        norm = float(np.sqrt(candidate @ candidate))
        if norm > 1e-8:
            basis.append(candidate / norm)
        if attempt > _MAX_BASIS_ATTEMPTS:
            raise RuntimeError(
                f"could not complete a {dim}x{dim} basis (got {len(basis)} vectors)"
            )

    return np.column_stack(basis[:dim])


def svd_right_vectors(z) -> np.ndarray:
    """Right singular factor ``V`` (``[D, D]``, orthonormal columns) of ``z`` (``[B, D]``)."""
    values = np.asarray(z, dtype=float)
    if values.ndim != 2:
        raise ValueError(f"z must be [B, D], got {values.shape}")
    rows, cols = values.shape
    if rows >= cols:
        _, _, vt = np.linalg.svd(values, full_matrices=False)
        return vt.T.copy()
    return _wide_right_vectors(values)


def matrix_det(a) -> float:
    """Determinant by Gaussian elimination with partial pivoting."""
    m = np.array(a, dtype=float)
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        raise ValueError(f"matrix must be square, got {m.shape}")
    n = m.shape[0]
    sign = 1.0
    product = 1.0
    for k in range(n):
        pivot_row = k + int(np.argmax(np.abs(m[k:, k])))
        if abs(m[pivot_row, k]) < 1e-20:
            return 0.0
        if pivot_row != k:
            m[[k, pivot_row]] = m[[pivot_row, k]]
            sign = -sign
        pivot = m[k, k]
        product *= pivot
        factors = m[k + 1 :, k] / pivot
        m[k + 1 :, k + 1 :] -= np.outer(factors, m[k, k + 1 :])
    return sign * product


def project_mean_rotation(vs) -> np.ndarray:
    """Project the mean of rotations ``vs`` (``[M, D, D]``) onto SO(D)."""
    stack = np.asarray(vs, dtype=float)
    if stack.ndim != 3 or stack.shape[0] == 0:
        raise ValueError(f"V must be a non-empty [M, D, D] stack, got {stack.shape}")
    if stack.shape[1] != stack.shape[2]:
        raise ValueError(f"V must be square, got {stack.shape[1:]}")
    u, _, vt = np.linalg.svd(stack.mean(axis=0))
    projection = u @ vt
    if matrix_det(projection) < 0.0:
        u[:, -1] = -u[:, -1]
        projection = u @ vt
    return projection


@dataclass
class RotateOutput:
    """Rotated latents and, in training mode, the rotation that was used."""

    z_pca: np.ndarray
    v_matrix: np.ndarray | None


class PcaRotate:
    """Rotate by batch SVD while training, or by the frozen ``v_tilde`` afterwards."""

    def __init__(self, dim: int):
        self.v_tilde = np.eye(dim)
        self.training = True

    def forward(self, z) -> RotateOutput:
        values = np.asarray(z, dtype=float)
        if not self.training:
            return RotateOutput(z_pca=values @ self.v_tilde, v_matrix=None)
        v = svd_right_vectors(values)
        return RotateOutput(z_pca=values @ v, v_matrix=v)

    def inverse(self, z_pca) -> np.ndarray:
        return np.asarray(z_pca, dtype=float) @ self.v_tilde.T

    def freeze(self, v_tilde) -> None:
        self.v_tilde = np.array(v_tilde, dtype=float)
        self.training = False

    def set_training(self, training: bool) -> None:
        self.training = training