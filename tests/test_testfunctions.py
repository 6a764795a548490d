import numpy as np
import pytest

from eelsurrogate.misc import testfunctions as tf


def test_twobumps_shape():
    z = tf.twobumps(np.linspace(-1.0, 1.0, 5).reshape(-1, 1))
    assert z.shape == (5,)
    assert tf.twobumps([0.0])[0] == pytest.approx(-np.sin(1.0))


def test_branin_minima():
    x = np.array([[-np.pi, 12.275], [np.pi, 2.275], [9.42478, 2.475]])
    np.testing.assert_allclose(tf.branin(x), 0.397887, atol=1e-5)


def test_nvs09():
    x = np.full((1, 10), 9.0)
    expected = 10 * (np.log(7.0) ** 2 + np.log(1.0) ** 2) - (9.0**10) ** 0.2
    assert tf.nvs09(x)[0] == pytest.approx(expected)
    with pytest.raises(ValueError):
        tf.nvs09(np.ones((1, 3)))


def test_bounds():
    for name, (lower, upper) in tf.BOUNDS.items():
        assert len(lower) == len(upper)
        assert all(lo < up for lo, up in zip(lower, upper))
