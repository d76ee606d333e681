"""
Tests for Khatri-Rao products.

These tests verify:
1. Column-wise Kronecker definition and output shape
2. Left-to-right fold order for several matrices
3. Agreement between the fold order and row unfoldings (the identity the
   ALS update depends on)
4. Dimension mismatch errors
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from multilinear.ops import khatri_rao, khatri_rao_product, row_unfold


class TestKhatriRao:
    """Two-matrix product."""

    def test_shape(self):
        A = np.random.randn(3, 4)
        B = np.random.randn(5, 4)
        assert khatri_rao(A, B).shape == (15, 4)

    def test_columns_are_kronecker_products(self):
        np.random.seed(42)
        A = np.random.randn(3, 2)
        B = np.random.randn(4, 2)
        C = khatri_rao(A, B)
        for i in range(2):
            assert_allclose(C[:, i], np.kron(A[:, i], B[:, i]))

    def test_single_column_is_kronecker(self):
        a = np.random.randn(3, 1)
        b = np.random.randn(2, 1)
        assert_allclose(khatri_rao(a, b), np.kron(a, b))

    def test_column_mismatch(self):
        with pytest.raises(ValueError, match="Dimension mismatch"):
            khatri_rao(np.random.randn(3, 2), np.random.randn(4, 3))

    def test_requires_2d(self):
        with pytest.raises(ValueError, match="2D matrices"):
            khatri_rao(np.random.randn(3), np.random.randn(3, 1))


class TestKhatriRaoProduct:
    """Products of several matrices."""

    def test_left_to_right_fold(self):
        np.random.seed(42)
        A, B, C = (np.random.randn(d, 3) for d in (2, 4, 5))
        assert_allclose(khatri_rao_product([A, B, C]), khatri_rao(khatri_rao(A, B), C))

    def test_skip(self):
        np.random.seed(42)
        A, B, C = (np.random.randn(d, 3) for d in (2, 4, 5))
        assert_allclose(khatri_rao_product([A, B, C], skip=1), khatri_rao(A, C))
        assert khatri_rao_product([A, B, C], skip=0).shape == (20, 3)

    def test_single_matrix(self):
        A = np.random.randn(4, 2)
        assert_allclose(khatri_rao_product([A]), A)

    def test_nothing_left(self):
        with pytest.raises(ValueError, match="at least one matrix"):
            khatri_rao_product([np.eye(2)], skip=0)

    def test_mismatch_propagates(self):
        with pytest.raises(ValueError, match="Dimension mismatch"):
            khatri_rao_product([np.eye(2), np.eye(3), np.eye(2)])


class TestFoldOrderMatchesUnfolding:
    """T_(n) = U_n (KR of the other factors, ascending)^T for a CP tensor."""

    @pytest.mark.parametrize("mode", [0, 1, 2, 3])
    def test_cp_unfolding_identity(self, mode):
        rng = np.random.default_rng(7)
        factors = [rng.standard_normal((d, 3)) for d in (2, 3, 4, 5)]
        T = np.einsum("ir,jr,kr,lr->ijkl", *factors)

        KR = khatri_rao_product(factors, skip=mode)
        assert_allclose(row_unfold(T, mode), factors[mode] @ KR.T, rtol=1e-10, atol=1e-12)
