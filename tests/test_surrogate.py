import logging
import unittest

import numpy as np

import eelsurrogate as es
from eelsurrogate.config import get_config, clear_caches
from eelsurrogate.device import live_buffers
from eelsurrogate.errors import EstimateError, ParameterError, ShapeError
from eelsurrogate.misc.reference import ordinary_kriging


def design_2d(n=8, seed=0):
    rng = np.random.default_rng(seed)
    xi = rng.uniform(0.0, 1.0, size=(n, 2))
    zi = np.sin(3.0 * xi[:, 0]) + xi[:, 1] ** 2
    return xi, zi


class TestEstimate(unittest.TestCase):
    def test_single_site_interpolation(self):
        # unit amplitude: every operation of the pipeline is exact
        z = es.estimate([[0.3]], [1.7], [0.3], theta=1.0, variance=1.0)
        self.assertEqual(z, 1.7)
        # other amplitudes go through 1 / (variance - nugget), which rounds
        z = es.estimate([[0.3]], [1.7], [0.3], theta=1.0, variance=2.0, nugget=0.3)
        self.assertAlmostEqual(z, 1.7, places=12)

    def test_single_site_from_buffers(self):
        z = es.estimate_from_buffers(1, [0.3], [1.7], [0.3], 1.0, 1.0)
        self.assertEqual(z, 1.7)

    def test_symmetric_sites(self):
        for v in (-2.0, 0.0, 3.5):
            z = es.estimate([[-1.0], [1.0]], [v, v], [0.0], theta=0.5, variance=1.0)
            self.assertAlmostEqual(z, v, places=12)
        sites = [[0.0, 1.0], [2.0, 1.0]]
        z = es.estimate(sites, [4.0, 4.0], [1.0, 1.0], theta=0.5, variance=1.0)
        self.assertAlmostEqual(z, 4.0, places=12)

    def test_interpolates_design_sites(self):
        xi, zi = design_2d()
        for i in range(3):
            z = es.estimate(xi, zi, xi[i], theta=5.0, variance=1.0)
            self.assertAlmostEqual(z, zi[i], places=6)

    def test_agrees_with_reference(self):
        xi, zi = design_2d()
        xt = np.array([[0.5, 0.5], [0.1, 0.9], [0.8, 0.2]])
        zref = ordinary_kriging(xi, zi, xt, 5.0, 2.0, 0.1)
        for i in range(xt.shape[0]):
            z = es.estimate(xi, zi, xt[i], theta=5.0, variance=2.0, nugget=0.1)
            self.assertAlmostEqual(z, zref[i], places=8)

    def test_buffer_convention(self):
        sites = np.array([[0.0, 0.5], [1.0, 0.0]])
        values = np.array([[2.0, 9.0], [3.0, 9.0]])
        test_site = np.array([[0.4, 0.0], [0.6, 0.0]])
        z = es.estimate_from_buffers(
            2,
            sites.reshape(-1, order="F"),
            values.reshape(-1, order="F"),
            test_site.reshape(-1, order="F"),
            1.0,
            1.0,
        )
        zref = ordinary_kriging(sites, values[:, 0], test_site[:, 0], 1.0, 1.0)
        self.assertAlmostEqual(z, zref[0], places=10)

    def test_buffer_length_checked(self):
        with self.assertRaises(ShapeError):
            es.estimate_from_buffers(2, np.zeros(4), np.zeros(3), np.zeros(4), 1.0, 1.0)
        with self.assertRaises(ShapeError):
            es.estimate_from_buffers(0, [], [], [], 1.0, 1.0)

    def test_invalid_input(self):
        with self.assertRaises(ShapeError):
            es.estimate([[0.0], [1.0]], [1.0], [0.5], 1.0, 1.0)
        with self.assertRaises(ShapeError):
            es.estimate([[0.0], [1.0]], [1.0, 2.0], [0.5, 0.5], 1.0, 1.0)
        with self.assertRaises(ParameterError):
            es.estimate([[0.0], [1.0]], [1.0, np.nan], [0.5], 1.0, 1.0)
        with self.assertRaises(ParameterError):
            es.estimate([[0.0], [1.0]], [1.0, 2.0], [0.5], 1.0, 1.0, nugget=2.0)

    def test_failure_is_distinguishable(self):
        # duplicated site without nugget: singular covariance
        with self.assertLogs("eelsurrogate", level=logging.ERROR):
            with self.assertRaises(EstimateError) as cm:
                es.estimate([[0.0], [0.0], [1.0]], [1.0, 1.0, 2.0], [0.5], 1.0, 1.0)
        err = cm.exception
        self.assertEqual(err.step, "invert")
        self.assertEqual(err.cause_status, "singular_matrix")
        self.assertIsInstance(err.__cause__, es.errors.SingularMatrixError)
        self.assertEqual(live_buffers(), 0)

    def test_near_duplicate_sites(self):
        # covariance rows equal up to rounding
        with self.assertLogs("eelsurrogate", level=logging.ERROR):
            with self.assertRaises(EstimateError) as cm:
                es.estimate([[0.0], [1e-8], [1.0]], [1.0, 5.0, 2.0], [0.5], 1.0, 1.0)
        self.assertEqual(cm.exception.step, "invert")
        self.assertEqual(cm.exception.cause_status, "singular_matrix")
        # a nugget does not regularize: it only scales the covariance
        with self.assertRaises(EstimateError):
            es.estimate([[0.0], [1e-8], [1.0]], [1.0, 5.0, 2.0], [0.5], 1.0, 3.0, nugget=1.0)
        self.assertEqual(live_buffers(), 0)


class TestKrigingSurrogate(unittest.TestCase):
    def setUp(self):
        clear_caches()

    def tearDown(self):
        clear_caches()

    def test_weights_sum_to_one(self):
        xi, zi = design_2d()
        s = es.KrigingSurrogate(xi, zi, theta=5.0, variance=1.0)
        w = s.weights([0.3, 0.6]).to_array()
        self.assertEqual(w.shape, (s.n + 1,))
        self.assertAlmostEqual(w[: s.n].sum(), 1.0, places=10)
        _, lambdamu = ordinary_kriging(xi, zi, [0.3, 0.6], 5.0, 1.0, return_weights=True)
        np.testing.assert_allclose(w, lambdamu[:, 0], rtol=1e-7, atol=1e-9)

    def test_predict_many(self):
        xi, zi = design_2d(seed=4)
        xt = np.random.default_rng(5).uniform(size=(4, 2))
        s = es.KrigingSurrogate(xi, zi, theta=5.0, variance=1.0)
        np.testing.assert_allclose(
            s.predict_many(xt), ordinary_kriging(xi, zi, xt, 5.0, 1.0), rtol=1e-8, atol=1e-10
        )
        with self.assertRaises(ShapeError):
            s.predict_many(np.zeros((2, 3)))

    def test_inverse_computed_once(self):
        xi, zi = design_2d()
        s = es.KrigingSurrogate(xi, zi, theta=5.0, variance=1.0)
        self.assertIs(s.inverse(), s.inverse())
        self.assertEqual(s.inverse().shape, (9, 9))

    def test_covariance_cache(self):
        xi, zi = design_2d()
        s1 = es.KrigingSurrogate(xi, zi, theta=5.0, variance=1.0, use_cache=True)
        s1.predict([0.5, 0.5])
        cache = get_config().caches["covariance"]
        self.assertEqual(len(cache), 1)

        # same sites, other values: shares the inverse
        s2 = es.KrigingSurrogate(xi, 2.0 * zi, theta=5.0, variance=1.0, use_cache=True)
        self.assertIs(s2.inverse(), s1.inverse())

        s3 = es.KrigingSurrogate(xi, zi, theta=4.0, variance=1.0, use_cache=True)
        s3.inverse()
        self.assertEqual(len(cache), 2)

        clear_caches("covariance")
        self.assertNotIn("covariance", get_config().caches)

    def test_inverse_follows_inversion_settings(self):
        xi, zi = design_2d()
        s = es.KrigingSurrogate(xi, zi, theta=5.0, variance=1.0, use_cache=True)
        first = s.inverse()
        cache = get_config().caches["covariance"]
        try:
            get_config().update(pivot_tolerance=1e-10)
            second = s.inverse()
            self.assertIsNot(second, first)
            self.assertEqual(len(cache), 2)
            np.testing.assert_allclose(second.data, first.data)
        finally:
            get_config().update(pivot_tolerance=1e-12)
        self.assertIs(s.inverse(), first)

    def test_tightened_tolerance_is_applied(self):
        xi, zi = design_2d()
        s = es.KrigingSurrogate(xi, zi, theta=5.0, variance=1.0)
        s.predict([0.5, 0.5])
        try:
            # the first pivot equals the largest entry of its row
            get_config().update(pivot_tolerance=1.0)
            with self.assertRaises(EstimateError):
                s.predict([0.5, 0.5])
        finally:
            get_config().update(pivot_tolerance=1e-12)

    def test_correlation_matrix(self):
        xi, zi = design_2d()
        s = es.KrigingSurrogate(xi, zi, theta=5.0, variance=3.0, nugget=1.0)
        c = s.covariance_matrix().to_array()
        r = s.correlation_matrix().to_array()
        np.testing.assert_allclose(np.diag(c), np.full(s.n, 2.0))
        np.testing.assert_allclose(r, c / 2.0)

    def test_rejects_bad_hyperparameters(self):
        with self.assertRaises(ParameterError):
            es.KrigingSurrogate([[0.0]], [1.0], theta=-1.0, variance=1.0)


if __name__ == "__main__":
    unittest.main()
