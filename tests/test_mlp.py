import numpy as np
import pytest

from snlds.mlp import Activation, ActivationKind, Linear, Mlp, MlpConfig


def _constant_mlp(input_dim, output_dim, hidden_dim, constant):
    return Mlp(
        first_linear=Linear(np.zeros((input_dim, hidden_dim)), np.zeros(hidden_dim)),
        second_linear=Linear(np.zeros((hidden_dim, hidden_dim)), np.zeros(hidden_dim)),
        output_linear=Linear(np.zeros((hidden_dim, output_dim)), np.full(output_dim, constant)),
        activation=Activation.leaky_relu(),
    )


def test_leaky_relu_passes_positive_and_scales_negative():
    act = Activation.leaky_relu(0.2)
    x = np.array([-2.0, -0.5, 0.0, 1.5, 3.0])
    out = act.apply(x)
    np.testing.assert_allclose(out[x >= 0], x[x >= 0])
    np.testing.assert_allclose(out[x < 0], 0.2 * x[x < 0])


def test_softplus_identity_and_positivity():
    act = Activation.softplus()
    x = np.linspace(-20.0, 20.0, 41)
    out = act.apply(x)
    assert np.all(out > 0)
    assert np.all(out >= x)
    np.testing.assert_allclose(out - act.apply(-x), x, atol=1e-12)


def test_softplus_is_stable_for_large_inputs():
    out = Activation.softplus().apply(np.array([1000.0, -1000.0]))
    assert np.all(np.isfinite(out))
    assert out[0] == pytest.approx(1000.0)
    assert out[1] == pytest.approx(0.0, abs=1e-12)


def test_softplus_rejects_non_positive_beta():
    with pytest.raises(ValueError):
        Activation.softplus(0.0)


def test_config_factories_pick_activation():
    soft = MlpConfig.softplus(3, 4, 5)
    leaky = MlpConfig.leaky_relu(3, 4, 5)
    assert soft.activation.kind is ActivationKind.SOFTPLUS
    assert soft.activation.parameter == 1.0
    assert leaky.activation.kind is ActivationKind.LEAKY_RELU
    assert leaky.activation.parameter == 0.2
    assert (leaky.input_dim, leaky.output_dim, leaky.hidden_dim) == (3, 4, 5)


def test_init_shapes():
    mlp = MlpConfig.leaky_relu(6, 2, 8).init(np.random.default_rng(0))
    assert mlp.first_linear.weight.shape == (6, 8)
    assert mlp.second_linear.weight.shape == (8, 8)
    assert mlp.output_linear.weight.shape == (8, 2)
    assert mlp.output_linear.bias.shape == (2,)


def test_init_weights_within_kaiming_bound():
    mlp = MlpConfig.softplus(16, 3, 4).init(np.random.default_rng(1))
    assert np.all(np.abs(mlp.first_linear.weight) <= 1.0 / np.sqrt(16))
    assert np.all(np.abs(mlp.second_linear.weight) <= 1.0 / np.sqrt(4))


def test_init_is_deterministic_for_seed():
    a = MlpConfig.softplus(3, 3, 4).init(np.random.default_rng(7))
    b = MlpConfig.softplus(3, 3, 4).init(np.random.default_rng(7))
    x = np.random.default_rng(2).normal(size=(5, 3))
    np.testing.assert_array_equal(a.forward(x), b.forward(x))


def test_forward_shapes_for_batched_inputs():
    mlp = MlpConfig.leaky_relu(4, 2, 8).init(np.random.default_rng(3))
    assert mlp.forward(np.zeros((7, 4))).shape == (7, 2)
    assert mlp.forward(np.zeros((2, 5, 4))).shape == (2, 5, 2)


def test_forward_rows_are_independent():
    mlp = MlpConfig.softplus(3, 3, 6).init(np.random.default_rng(4))
    x = np.random.default_rng(5).normal(size=(4, 3))
    batched = mlp.forward(x)
    for row, expected in zip(x, batched):
        np.testing.assert_allclose(mlp.forward(row[None, :])[0], expected)


def test_zero_weight_mlp_returns_output_bias():
    mlp = _constant_mlp(3, 2, 4, 1.25)
    out = mlp.forward(np.random.default_rng(6).normal(size=(5, 3)))
    np.testing.assert_allclose(out, np.full((5, 2), 1.25))


def test_linear_identity_weights_return_input():
    lin = Linear(np.eye(3), np.zeros(3))
    x = np.random.default_rng(8).normal(size=(4, 3))
    np.testing.assert_allclose(lin.forward(x), x)


def test_linear_rejects_wrong_input_dim():
    lin = Linear.init(3, 2, np.random.default_rng(0))
    with pytest.raises(ValueError):
        lin.forward(np.zeros((2, 4)))