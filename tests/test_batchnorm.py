import numpy as np
import pytest

from snlds.batchnorm import BN_EPS, PcaBatchNorm


def test_forward_output_is_finite():
    rng = np.random.default_rng(0)
    bn = PcaBatchNorm(4)
    out = bn.forward(rng.normal(5.0, 2.0, size=(8, 4)))
    assert np.all(np.isfinite(out.z_bn))
    assert np.all(np.isfinite(out.log_det))
    assert out.log_det.shape == (8,)


def test_inverse_recovers_input_with_batch_stats():
    rng = np.random.default_rng(1)
    bn = PcaBatchNorm(4)
    for _ in range(20):
        bn.forward(rng.normal(3.0, 2.0, size=(32, 4)))
    z = rng.normal(3.0, 2.0, size=(8, 4))
    out = bn.forward(z)
    recovered = bn.inverse(out.z_bn, out.batch_stats)
    assert np.abs(recovered - z).max() < 0.5


def test_round_trip_after_learned_stats():
    rng = np.random.default_rng(2)
    bn = PcaBatchNorm(4)
    batch_means = np.array(
        [[1.0, 0.0, -0.5, 2.0], [1.2, 0.1, -0.4, 1.9], [0.8, -0.1, -0.6, 2.1]]
    )
    batch_vars = np.array(
        [[0.5, 1.0, 0.25, 2.0], [0.6, 1.1, 0.30, 1.8], [0.4, 0.9, 0.20, 2.2]]
    )
    bn.set_stats(batch_means, batch_vars)
    np.testing.assert_allclose(bn.stats[0], batch_means.mean(axis=0))
    np.testing.assert_allclose(bn.stats[1], batch_vars.mean(axis=0))
    z = rng.normal(size=(8, 4))
    out = bn.forward(z)
    z_back = bn.inverse(out.z_bn, out.batch_stats)
    assert np.abs(z_back - z).max() < 1e-4


def test_minibatch_mode_matches_closed_form():
    bn = PcaBatchNorm(3)
    assert bn.stats is None
    z = np.array([[1.0, 2.0, 4.0], [3.0, 4.0, 10.0], [5.0, 6.0, 4.0]])
    out = bn.forward(z)
    mean = np.array([3.0, 4.0, 6.0])
    var = np.array([4.0, 4.0, 12.0])
    expected = (z - mean) / np.sqrt(var + BN_EPS)
    assert np.abs(out.z_bn - expected).max() < 1e-5


def test_minibatch_stats_in_output_match_batch_statistics():
    bn = PcaBatchNorm(2)
    z = np.array([[10.0, -2.0], [4.0, 6.0], [0.0, 4.0]])
    out = bn.forward(z)
    np.testing.assert_allclose(out.batch_stats[0], z.mean(axis=0), atol=1e-5)
    np.testing.assert_allclose(out.batch_stats[1], z.var(axis=0, ddof=1), atol=1e-5)


def test_batch_size_one_skips_bessel():
    bn = PcaBatchNorm(2)
    out = bn.forward(np.array([[1.0, -1.0]]))
    assert np.all(np.isfinite(out.z_bn))
    np.testing.assert_array_equal(out.batch_stats[1], [0.0, 0.0])


def test_forward_uses_stored_stats_not_batch_stats():
    bn = PcaBatchNorm(2)
    bn.set_stats(np.array([[0.0, 0.0]]), np.array([[1.0, 1.0]]))
    z = np.tile([3.0, -1.0], (4, 1))
    out = bn.forward(z)
    expected = z / np.sqrt(1.0 + BN_EPS)
    assert np.abs(out.z_bn - expected).max() < 1e-4


def test_log_det_with_unit_alpha_uses_variance():
    bn = PcaBatchNorm(2)
    bn.set_stats(np.array([[0.0, 0.0]]), np.array([[1.0, 1.0]]))
    out = bn.forward(np.zeros((3, 2)))
    np.testing.assert_allclose(out.log_det, np.full(3, -np.log(1.0 + BN_EPS)))


def test_forward_rejects_wrong_width():
    with pytest.raises(ValueError):
        PcaBatchNorm(3).forward(np.zeros((2, 4)))