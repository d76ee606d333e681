"""
Tests for the CP-ALS solver.

These tests verify:
1. Exact recovery of noise-free low-rank tensors
2. Result invariants (factor count, shapes, unit columns, sign convention)
3. Convergence reporting (status, warnings, callbacks, verbose output)
4. Numerical degeneracy handling (singular Grams, zero tensor)
5. Argument validation before any numeric work
"""

import dataclasses
from functools import reduce

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from multilinear import (
    CANDECOMP,
    ConvergenceStatus,
    CPALSConfig,
    candecomp,
    rel_residue,
)


def low_rank_tensor(shape, rank, seed=1):
    """Sum of ``rank`` outer products of Gaussian vectors."""
    rng = np.random.default_rng(seed)
    T = np.zeros(shape)
    for _ in range(rank):
        T += reduce(np.multiply.outer, [rng.standard_normal(d) for d in shape])
    return T


class TestRecovery:
    """Noise-free low-rank tensors must be fitted to high accuracy."""

    def test_rank2_10x20x30(self):
        """Two rank-1 terms of sizes 10, 20, 30 decompose with rank 2."""
        T = low_rank_tensor((10, 20, 30), 2, seed=1)

        cp = candecomp(T, 2, config=CPALSConfig(max_iter=1000, random_state=1))

        assert isinstance(cp, CANDECOMP)
        assert len(cp.factors) == T.ndim
        for n in range(T.ndim):
            assert cp.factors[n].shape == (T.shape[n], 2)
        assert len(cp.lambdas) == 2
        assert cp.core.shape == (2, 2, 2)
        assert cp.error < 1e-5
        assert cp.converged
        assert cp.status is ConvergenceStatus.CONVERGED

    def test_rank3_four_way(self):
        T = low_rank_tensor((6, 7, 8, 5), 3, seed=3)

        cp = candecomp(T, 3, config=CPALSConfig(max_iter=1000, random_state=0))

        assert len(cp.factors) == 4
        assert [F.shape for F in cp.factors] == [(6, 3), (7, 3), (8, 3), (5, 3)]
        assert cp.error < 1e-5

    def test_svd_initialization(self):
        T = low_rank_tensor((8, 9, 10), 2, seed=5)
        cp = candecomp(T, 2, config=CPALSConfig(init="svd", max_iter=1000))
        assert cp.error < 1e-5

    def test_compose_reproduces_tensor_within_error(self):
        T = low_rank_tensor((5, 6, 7), 2, seed=2)
        cp = candecomp(T, 2, config=CPALSConfig(max_iter=1000, random_state=2))

        approx = cp.compose()
        assert approx.shape == T.shape
        assert rel_residue(T, approx) <= cp.error + 1e-12

    def test_integer_tensor_accepted(self):
        T = np.einsum("i,j,k->ijk", np.arange(1, 4), np.arange(1, 5), np.arange(1, 6))
        cp = candecomp(T, 1, config=CPALSConfig(random_state=0))
        assert cp.error < 1e-8


class TestResultInvariants:

    @pytest.fixture(scope="class")
    def cp(self):
        T = low_rank_tensor((5, 6, 7), 3, seed=11)
        return candecomp(T, 3, config=CPALSConfig(max_iter=500, random_state=11))

    def test_unit_norm_columns(self, cp):
        for F in cp.factors:
            assert_allclose(np.linalg.norm(F, axis=0), np.ones(3), rtol=1e-10)

    def test_sign_convention(self, cp):
        """Largest-magnitude entry of every factor column is positive."""
        for F in cp.factors:
            for j in range(F.shape[1]):
                assert F[np.argmax(np.abs(F[:, j])), j] > 0

    def test_core_is_superdiagonal(self, cp):
        G = cp.core
        assert G.shape == (3, 3, 3)
        assert_allclose([G[j, j, j] for j in range(3)], cp.lambdas)
        assert_allclose(np.sum(np.abs(G)), np.sum(np.abs(cp.lambdas)))

    def test_error_history_non_increasing(self, cp):
        history = np.array(cp.error_history)
        assert len(history) == cp.iterations
        assert history[-1] == cp.error
        assert np.all(np.diff(history) <= 1e-10)

    def test_result_is_read_only(self, cp):
        with pytest.raises(ValueError):
            cp.factors[0][0, 0] = 1.0
        with pytest.raises(ValueError):
            cp.lambdas[0] = 1.0
        with pytest.raises(dataclasses.FrozenInstanceError):
            cp.error = 0.0

    def test_repr(self, cp):
        assert "rank=3" in repr(cp)
        assert "shape=(5, 6, 7)" in repr(cp)


class TestReproducibility:

    def test_same_seed_same_factors(self):
        T = np.random.default_rng(0).standard_normal((4, 5, 6))
        config = CPALSConfig(max_iter=20, tol=0.0, error_tol=0.0, random_state=123)
        with pytest.warns(UserWarning):
            a = candecomp(T, 2, config=config)
        with pytest.warns(UserWarning):
            b = candecomp(T, 2, config=config)

        for Fa, Fb in zip(a.factors, b.factors):
            assert_array_equal(Fa, Fb)
        assert a.error == b.error

    def test_explicit_initial_factors(self):
        T = low_rank_tensor((4, 5, 6), 2, seed=4)
        init = [np.random.default_rng(9).standard_normal((d, 2)) for d in T.shape]

        a = candecomp(T, 2, factors=init, config=CPALSConfig(max_iter=500))
        b = candecomp(T, 2, factors=init, config=CPALSConfig(max_iter=500))

        assert_array_equal(a.lambdas, b.lambdas)
        assert a.error < 1e-5

    def test_input_factors_not_modified(self):
        T = low_rank_tensor((4, 5, 6), 2, seed=4)
        init = [np.ones((d, 2)) + np.arange(2) for d in T.shape]
        snapshot = [F.copy() for F in init]

        with pytest.warns(UserWarning):
            candecomp(T, 2, factors=init, config=CPALSConfig(max_iter=2, tol=0.0, error_tol=0.0))

        for F, F0 in zip(init, snapshot):
            assert_array_equal(F, F0)

    def test_callable_initializer(self):
        calls = []

        def init(shape, core_dims, rng):
            calls.append((shape, core_dims))
            return [rng.standard_normal((d, r)) for d, r in zip(shape, core_dims)]

        T = low_rank_tensor((4, 5, 6), 2, seed=6)
        cp = candecomp(T, 2, config=CPALSConfig(init=init, random_state=0, max_iter=1000))

        assert calls == [((4, 5, 6), (2, 2, 2))]
        assert cp.error < 1e-5


class TestConvergenceReporting:

    def test_max_iter_warns_and_returns_result(self):
        T = np.random.default_rng(0).standard_normal((4, 5, 6))
        config = CPALSConfig(max_iter=3, tol=0.0, error_tol=0.0, random_state=0)

        with pytest.warns(UserWarning, match="Maximum number 3 of iterations exceeded"):
            cp = candecomp(T, 2, config=config)

        assert not cp.converged
        assert cp.status is ConvergenceStatus.MAX_ITER_EXCEEDED
        assert cp.iterations == 3
        assert np.isfinite(cp.error)

    def test_callback_receives_status(self):
        events = []
        T = low_rank_tensor((4, 5, 6), 1, seed=8)
        config = CPALSConfig(max_iter=500, random_state=0, callback=lambda s, m: events.append((s, m)))

        cp = candecomp(T, 1, config=config)

        assert len(events) == 1
        status, message = events[0]
        assert status is ConvergenceStatus.CONVERGED
        assert f"after {cp.iterations} iterations" in message

    def test_callback_on_max_iter(self):
        events = []
        T = np.random.default_rng(1).standard_normal((4, 5, 6))
        config = CPALSConfig(
            max_iter=2, tol=0.0, error_tol=0.0, random_state=0, callback=lambda s, m: events.append(s)
        )

        with pytest.warns(UserWarning):
            candecomp(T, 2, config=config)

        assert events == [ConvergenceStatus.MAX_ITER_EXCEEDED]

    def test_verbose_output(self, capsys):
        T = low_rank_tensor((4, 5, 6), 1, seed=8)
        candecomp(T, 1, config=CPALSConfig(max_iter=500, random_state=0, verbose=True))

        out = capsys.readouterr().out
        assert "CP-ALS: shape=(4, 5, 6), rank=1" in out
        assert "Algorithm converged after" in out

    def test_silent_by_default(self, capsys):
        T = low_rank_tensor((4, 5, 6), 1, seed=8)
        candecomp(T, 1, config=CPALSConfig(max_iter=500, random_state=0))
        assert capsys.readouterr().out == ""


class TestDegenerateInputs:
    """Singular normal equations are reported through the error, never raised."""

    def test_zero_tensor(self):
        cp = candecomp(np.zeros((3, 4, 5)), 2, config=CPALSConfig(random_state=0))

        assert cp.error == 0.0
        assert cp.converged
        assert np.all(np.isfinite(cp.lambdas))
        for F in cp.factors:
            assert np.all(np.isfinite(F))

    @pytest.mark.filterwarnings("ignore::UserWarning")
    def test_identical_initial_columns(self):
        """Rank-deficient initial factors make every Gram matrix singular."""
        T = low_rank_tensor((4, 5, 6), 2, seed=3)
        init = [np.ones((d, 2)) for d in T.shape]

        cp = candecomp(T, 2, factors=init, config=CPALSConfig(max_iter=50, tol=1e-6))

        assert np.isfinite(cp.error)
        assert cp.error <= 1.0 + 1e-12
        for F in cp.factors:
            assert np.all(np.isfinite(F))


class TestArgumentErrors:

    def test_matrix_rejected(self):
        with pytest.raises(ValueError, match="not supported"):
            candecomp(np.random.randn(4, 5), 2)

    def test_rank_zero(self):
        with pytest.raises(ValueError, match="core_dims"):
            candecomp(np.random.randn(4, 5, 6), 0)

    def test_rank_above_dimension(self):
        with pytest.raises(ValueError, match="core_dims"):
            candecomp(np.random.randn(4, 5, 6), 5)

    def test_rank_must_be_integer(self):
        with pytest.raises(ValueError, match="single integer"):
            candecomp(np.random.randn(4, 5, 6), (2, 2, 2))
        with pytest.raises(ValueError, match="single integer"):
            candecomp(np.random.randn(4, 5, 6), 2.0)

    def test_wrong_initial_factor_shape(self):
        init = [np.zeros((4, 2)), np.zeros((5, 2)), np.zeros((6, 3))]
        with pytest.raises(ValueError, match="Factor 2 must have shape"):
            candecomp(np.random.randn(4, 5, 6), 2, factors=init)

    def test_complex_rejected(self):
        with pytest.raises(ValueError, match="real-valued"):
            candecomp(np.zeros((3, 3, 3), dtype=complex), 1)

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"max_iter": 0}, "max_iter"),
            ({"tol": -1.0}, "non-negative"),
            ({"init": "ones"}, "init must be"),
        ],
    )
    def test_invalid_config(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            CPALSConfig(**kwargs)
