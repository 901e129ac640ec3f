# snlds

Building blocks for switching nonlinear dynamical systems (SNLDS), written with NumPy.
Every layer holds its parameters as plain NumPy arrays and computes its forward
(and, where it has one, inverse) pass on NumPy arrays.

## Modules

- `snlds.mlp`
  - `Activation` (`Activation.softplus(beta)`, `Activation.leaky_relu(negative_slope)`, `apply(x)`)
  - `Linear` (`Linear.init(input_dim, output_dim, rng)`, `forward(x)`)
  - `Mlp`: `Linear -> activation -> Linear -> activation -> Linear`, `forward(x)`
  - `MlpConfig.softplus(...)` (beta 1.0) and `MlpConfig.leaky_relu(...)` (slope 0.2), then `init(rng)`
- `snlds.cnn`
  - `validate_cnn_res(res)` raises `ValueError` unless `res` is a power of two and at least 16
  - `n_layers_for_res(res)` gives `log2(res / 8)` (1 for 16, 2 for 32, 3 for 64)
  - `Conv2d`, `ConvTranspose2d` on NCHW arrays
  - `CnnEncoderConfig(res, output_dim, hidden_dim).init(rng)` builds a `CnnEncoder`
    mapping flat NHWC rows `[B, 3*res*res]` to `[B, output_dim]`
  - `CnnDecoderConfig(res, input_dim, hidden_dim).init(rng)` builds a `CnnDecoder`
    mapping `[B, input_dim]` to unbounded `[B, 3*res*res]` rows
- `snlds.switching`
  - `diagonal_mvn_log_prob_all_states(z_batch, means, variances)`: `[N, K]` log densities
  - `compute_local_evidence(latent_samples, transition_nets, init_mean, init_cov_factor, emission_cov_factor)`:
    `[N, T, K]` log p(z_1 | s_1) and log p(z_t | z_{t-1}, s_t), with variances `factor**2 + 1e-6`
- Neural PCA layers
  - `snlds.flatten`: `flatten_zs(zs)` and `unflatten_zs(flat, shapes)` for multi-scale `[B, C, H, W]` latents
  - `snlds.geometry`: `glow_split_dims`, `glow_flattened_latent_dim`, `glow_last_split_dim`,
    `flat_nhwc_rows_to_nchw`
  - `snlds.householder`: `HouseholderStack(num_reflectors, dim, rng)` with `forward` and `inverse`
  - `snlds.prior`: `log_p_z_isotropic(z)`, the row-wise log density under `N(0, I)`
  - `snlds.batchnorm`: `PcaBatchNorm(dim)` with `forward` (returns `BnOutput`), `set_stats`, `inverse`;
    minibatch variance is Bessel-corrected for batches larger than one
  - `snlds.pca_rotate`: `svd_right_vectors(z)`, `matrix_det(a)`, `project_mean_rotation(vs)`,
    and `PcaRotate(dim)` with `forward` (returns `RotateOutput`), `inverse`, `freeze`, `set_training`
- `snlds.pca`: `pca_fit_transform(obs, n_components)` reduces `[N, T, D]` to `[N, T, n_components]`;
  it raises `ValueError` for 0 components, more components than `D`, or too few non-degenerate components

## Installation

```
pip install .
```

## Example

```python
import numpy as np
from snlds.mlp import MlpConfig
from snlds.switching import compute_local_evidence

rng = np.random.default_rng(0)
nets = [MlpConfig.softplus(2, 2, 8).init(rng) for _ in range(3)]
z = rng.normal(size=(4, 5, 2))            # [N, T, latent_dim]
init_mean = rng.normal(size=(3, 2))
init_cov = rng.uniform(0.1, 1.0, size=(3, 2))
emission_cov = np.ones((3, 2))

evidence = compute_local_evidence(z, nets, init_mean, init_cov, emission_cov)
print(evidence.shape)                      # (4, 5, 3)
```

Reducing observations with PCA:

```python
from snlds.pca import pca_fit_transform

obs = rng.normal(size=(8, 6, 5))
reduced = pca_fit_transform(obs, 3)        # shape (8, 6, 3)
```

## What this package does not do

- It computes forward passes only: there are no gradients, optimisers or training loops.
- It does not assemble a complete variational or flow-based SNLDS model, run HMM
  forward/backward recursions, or contain a normalising flow; it provides the layers
  and helpers such a model is built from.
- It has no command-line tool and no storage for model checkpoints.

## Tests

```
pip install ".[test]"
pytest
```