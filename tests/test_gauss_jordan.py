import unittest

import numpy as np

import eelsurrogate.core.operations as ops
from eelsurrogate.config import get_config
from eelsurrogate.device import DeviceSession, live_buffers
from eelsurrogate.errors import (
    KernelLaunchError,
    KernelTimeoutError,
    SingularMatrixError,
    ShapeError,
    TransferError,
)
from eelsurrogate.kernels import gauss_jordan as gj
from eelsurrogate.matrix import Matrix


def well_conditioned(n, seed=0):
    """Diagonally dominant matrix, safe without row exchanges."""
    rng = np.random.default_rng(seed)
    a = rng.uniform(-1.0, 1.0, size=(n, n))
    return a + np.diag(np.abs(a).sum(axis=1) + 1.0)


class TestInversion(unittest.TestCase):
    def test_identity_is_its_own_inverse(self):
        for n in range(1, 8):
            inv = ops.invert(np.eye(n))
            np.testing.assert_array_equal(inv.to_array(), np.eye(n))

    def test_inverse_times_matrix(self):
        for n in (1, 2, 5, 9):
            m = well_conditioned(n, seed=n)
            inv = ops.invert(m).to_array()
            np.testing.assert_allclose(inv @ m, np.eye(n), atol=1e-12)
            np.testing.assert_allclose(inv, np.linalg.inv(m), rtol=1e-10, atol=1e-12)

    def test_double_inversion(self):
        m = well_conditioned(6, seed=11)
        back = ops.invert(ops.invert(m))
        np.testing.assert_allclose(back.to_array(), m, rtol=1e-10, atol=1e-12)

    def test_symmetric_positive_definite(self):
        x = np.linspace(0.0, 1.0, 6).reshape(-1, 1)
        k = np.exp(-10.0 * (x - x.T) ** 2)
        inv = ops.invert(k).to_array()
        np.testing.assert_allclose(inv @ k, np.eye(6), atol=1e-8)

    def test_bordered_system(self):
        # zero in the last diagonal entry
        k = np.array([[1.0, 0.2], [0.2, 1.0]])
        e = np.block([[k, np.ones((2, 1))], [np.ones((1, 2)), np.zeros((1, 1))]])
        inv = ops.invert(ops.extend(k)).to_array()
        np.testing.assert_allclose(inv @ e, np.eye(3), atol=1e-12)

    def test_input_not_modified(self):
        m = Matrix.from_array(well_conditioned(3))
        before = m.data.copy()
        ops.invert(m)
        np.testing.assert_array_equal(m.data, before)

    def test_paired_matrix_is_used(self):
        m = well_conditioned(3)
        # starting from 2I yields 2 M^{-1}
        inv = ops.invert(m, paired=2.0 * np.eye(3)).to_array()
        np.testing.assert_allclose(inv, 2.0 * np.linalg.inv(m), rtol=1e-10)
        with self.assertRaises(ShapeError):
            ops.invert(m, paired=np.eye(2))

    def test_rejects_non_square(self):
        with self.assertRaises(ShapeError):
            ops.invert(np.ones((2, 3)))


class TestSingular(unittest.TestCase):
    def test_zero_pivot(self):
        with self.assertRaises(SingularMatrixError) as cm:
            ops.invert(np.zeros((3, 3)))
        self.assertEqual(cm.exception.pivot_index, 0)
        self.assertEqual(cm.exception.status, "singular_matrix")
        self.assertEqual(live_buffers(), 0)

    def test_rank_deficient(self):
        m = np.array([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0], [1.0, 0.0, 1.0]])
        with self.assertRaises(SingularMatrixError) as cm:
            ops.invert(m)
        self.assertEqual(cm.exception.pivot_index, 1)

    def test_rank_two_after_elimination(self):
        # third row is eliminated down to rounding noise
        m = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]])
        with self.assertRaises(SingularMatrixError) as cm:
            ops.invert(m)
        self.assertEqual(cm.exception.pivot_index, 2)
        self.assertEqual(live_buffers(), 0)

    def test_near_singular(self):
        with self.assertRaises(SingularMatrixError):
            ops.invert([[1.0, 1.0], [1.0, 1.0 + 1e-14]])
        inv = ops.invert([[1.0, 1.0], [1.0, 1.0 + 1e-6]]).to_array()
        np.testing.assert_allclose(inv, [[1e6 + 1.0, -1e6], [-1e6, 1e6]], rtol=1e-8)

    def test_check_is_scale_free(self):
        m = well_conditioned(4, seed=7)
        for factor in (1e-30, 1e30):
            inv = ops.invert(factor * m).to_array()
            np.testing.assert_allclose(inv * factor, np.linalg.inv(m), rtol=1e-10)
        with self.assertRaises(SingularMatrixError):
            ops.invert(1e-30 * np.array([[1.0, 2.0], [2.0, 4.0]]))

    def test_tolerance_from_config(self):
        m = [[1.0, 1.0], [1.0, 1.0 + 1e-6]]
        try:
            get_config().update(pivot_tolerance=1e-4)
            with self.assertRaises(SingularMatrixError):
                ops.invert(m)
        finally:
            get_config().update(pivot_tolerance=1e-12)
        ops.invert(m)

    def test_out_untouched_on_failure(self):
        out = Matrix.from_array(np.full((2, 2), 9.0))
        with self.assertRaises(SingularMatrixError):
            ops.invert(np.ones((2, 2)), out=out)
        np.testing.assert_array_equal(out.data, np.full(4, 9.0))

    def test_out_written_on_success(self):
        out = Matrix.zeros(2)
        result = ops.invert(np.diag([2.0, 4.0]), out=out)
        self.assertIs(result, out)
        np.testing.assert_allclose(out.to_array(), np.diag([0.5, 0.25]))


class TestLaunches(unittest.TestCase):
    def tearDown(self):
        get_config().update(max_block_size=1024, spin_limit=1000)

    def test_follower_without_leader_times_out(self):
        get_config().update(spin_limit=5)
        with self.assertRaises(KernelTimeoutError):
            with DeviceSession("timeout") as session:
                n = 2
                d_m = session.to_device(Matrix.identity(n))
                d_p = session.to_device(Matrix.identity(n))
                scratch = session.alloc(2 * n)
                ready = session.alloc(1)
                scale = session.alloc(n)
                session.launch(gj.reset_buffers, 2, n, scratch, ready)
                session.launch(
                    gj.normalize_rows,
                    n,
                    n,
                    scratch,
                    ready,
                    d_m,
                    d_p,
                    scale,
                    n,
                    0,
                    get_config().spin_limit,
                )
        self.assertEqual(live_buffers(), 0)

    def test_row_scale_kernel(self):
        m = Matrix.from_array([[1.0, -5.0], [0.5, 0.25]])
        with DeviceSession("row_scale") as session:
            d_m = session.to_device(m)
            scale = session.alloc(2)
            session.launch(gj.row_scale, 1, 2, scale, d_m, 2)
            result = session.to_host(scale, 2, vector=True)
        np.testing.assert_array_equal(result.to_array(), [5.0, 0.5])

    def test_block_limit(self):
        get_config().update(max_block_size=2)
        with self.assertRaises(KernelLaunchError):
            ops.invert(well_conditioned(3))
        self.assertEqual(live_buffers(), 0)

    def test_non_kernel_rejected(self):
        with self.assertRaises(KernelLaunchError):
            with DeviceSession("launch") as session:
                session.launch(len, 1, 1)

    def test_freed_buffer_rejected(self):
        with DeviceSession("freed") as session:
            buf = session.alloc(4)
            buf.free()
            with self.assertRaises(TransferError):
                session.to_host(buf, 2, 2)


if __name__ == "__main__":
    unittest.main()
