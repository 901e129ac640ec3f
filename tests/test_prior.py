import math

import numpy as np
import pytest

from snlds.prior import log_p_z_isotropic

TAU_LN = math.log(2.0 * math.pi)


def test_matches_hand_computed():
    result = log_p_z_isotropic(np.array([[1.0, 2.0]]))
    expected = -0.5 * 5.0 - TAU_LN
    assert result.shape == (1,)
    assert abs(result[0] - expected) < 1e-5


def test_zero_is_normalising_constant():
    result = log_p_z_isotropic(np.zeros((1, 3)))
    assert abs(result[0] - (-1.5 * TAU_LN)) < 1e-5


def test_rows_are_independent():
    result = log_p_z_isotropic(np.array([[1.0, 2.0], [0.0, 0.0]]))
    assert abs(result[0] - (-2.5 - TAU_LN)) < 1e-9
    assert abs(result[1] - (-TAU_LN)) < 1e-9


def test_rejects_non_matrix():
    with pytest.raises(ValueError):
        log_p_z_isotropic(np.zeros(3))