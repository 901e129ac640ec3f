"""Local-evidence helpers for switching latent dynamics under diagonal Gaussians."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from snlds.mlp import Mlp

COV_EPS = 1e-6
LOG_2PI = math.log(2.0 * math.pi)


def diagonal_mvn_log_prob_all_states(z_batch, means, variances) -> np.ndarray:
    """Log N(z; mean_k, diag(var_k)) for every state at once.

    ``z_batch`` is ``[N, L]``, ``means`` and ``variances`` are ``[K, L]``;
    the result is ``[N, K]``.
    """
    z = np.asarray(z_batch, dtype=float)
    mu = np.asarray(means, dtype=float)
    var = np.asarray(variances, dtype=float)
    if z.ndim != 2 or mu.ndim != 2 or mu.shape != var.shape or z.shape[1] != mu.shape[1]:
        raise ValueError(
            f"incompatible shapes: z {z.shape}, means {mu.shape}, variances {var.shape}"
        )
    diff = z[:, None, :] - mu[None, :, :]
    return -0.5 * (np.log(var)[None] + diff**2 / var[None] + LOG_2PI).sum(axis=2)


def compute_local_evidence(
    latent_samples,
    transition_nets: Sequence[Mlp],
    init_mean,
    init_cov_factor,
    emission_cov_factor,
) -> np.ndarray:
    """Log p(z_1 | s_1) and log p(z_t | z_{t-1}, s_t) as a ``[N, T, K]`` array.

    Variances are ``factor ** 2 + COV_EPS``; transition means come from one
    network per state applied to the previous latent.
    """
    latent = np.asarray(latent_samples, dtype=float)
    if latent.ndim != 3:
        raise ValueError(f"latent_samples must be [N, T, L], got {latent.shape}")
    if not transition_nets:
        raise ValueError("at least one transition network is required")
    batch, seq_len, latent_dim = latent.shape
    num_states = len(transition_nets)
    mu0 = np.asarray(init_mean, dtype=float)
    if mu0.shape != (num_states, latent_dim):
        raise ValueError(
            f"init_mean must be [{num_states}, {latent_dim}], got {mu0.shape}"
        )

    init_var = np.asarray(init_cov_factor, dtype=float) ** 2 + COV_EPS
    init_log_prob = diagonal_mvn_log_prob_all_states(latent[:, 0, :], mu0, init_var)[
        :, None, :
    ]
    if seq_len == 1:
        return init_log_prob

    emission_var = np.asarray(emission_cov_factor, dtype=float) ** 2 + COV_EPS
    if emission_var.shape != (num_states, latent_dim):
        raise ValueError(
            f"emission_cov_factor must be [{num_states}, {latent_dim}], got {emission_var.shape}"
        )
    flat_prev = latent[:, :-1, :].reshape(-1, latent_dim)
    transition_means = np.stack([net.forward(flat_prev) for net in transition_nets], axis=1)
    z_next = latent[:, 1:, :].reshape(-1, 1, latent_dim)
    diff = z_next - transition_means
    transition_log_prob = -0.5 * (
        np.log(emission_var)[None] + diff**2 / emission_var[None] + LOG_2PI
    ).sum(axis=2)
    transition_log_prob = transition_log_prob.reshape(batch, seq_len - 1, num_states)
    return np.concatenate([init_log_prob, transition_log_prob], axis=1)