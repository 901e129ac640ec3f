"""Batch normalisation for Neural PCA: learnable scale ``alpha`` and no shift."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

BN_EPS = 1e-5


@dataclass
class BnOutput:
    """Normalised latents, per-sample log-determinant and the statistics used."""

    z_bn: np.ndarray
    log_det: np.ndarray
    batch_stats: tuple[np.ndarray, np.ndarray]


class PcaBatchNorm:
    """Normalise each of ``dim`` features and scale by ``alpha``.

    Without stored statistics the minibatch mean and unbiased (Bessel-corrected)
    variance are used; a batch of one uses the population variance.
    """

    def __init__(self, dim: int):
        self.alpha = np.ones(dim)
        self.stats: tuple[np.ndarray, np.ndarray] | None = None

    def forward(self, z) -> BnOutput:
        values = np.asarray(z, dtype=float)
        if values.ndim != 2 or values.shape[1] != self.alpha.shape[0]:
            raise ValueError(f"expected [B, {self.alpha.shape[0]}] input, got {values.shape}")
        batch = values.shape[0]
        if self.stats is None:
            mean = values.mean(axis=0)
            var = ((values - mean) ** 2).mean(axis=0)
            if batch > 1:
                var = var * (batch / (batch - 1))
        else:
            mean, var = self.stats
        z_bn = (values - mean) / np.sqrt(var + BN_EPS) * self.alpha
        log_det_scalar = np.log(np.abs(self.alpha)).sum() - 0.5 * np.log(var + BN_EPS).sum()
        log_det = np.full(batch, log_det_scalar)
        return BnOutput(z_bn=z_bn, log_det=log_det, batch_stats=(mean.copy(), var.copy()))

    def set_stats(self, means, variances) -> None:
        """Store the average of per-batch means and variances (each ``[M, D]``)."""
        mean_rows = np.asarray(means, dtype=float)
        var_rows = np.asarray(variances, dtype=float)
        if mean_rows.ndim != 2 or var_rows.shape != mean_rows.shape:
            raise ValueError(
                f"means and variances must be matching [M, D], got {mean_rows.shape} and {var_rows.shape}"
            )
        self.stats = (mean_rows.mean(axis=0), var_rows.mean(axis=0))

    def inverse(self, z_bn, batch_stats) -> np.ndarray:
        """Undo :meth:`forward`, using stored statistics when present, else ``batch_stats``."""
        values = np.asarray(z_bn, dtype=float)
        mean, var = self.stats if self.stats is not None else batch_stats
        mean = np.asarray(mean, dtype=float)
        var = np.asarray(var, dtype=float)
        return values / self.alpha * np.sqrt(var + BN_EPS) + mean