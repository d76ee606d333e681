"""
Decomposition result types.

A decomposition of an N-mode tensor T of shape (d_0, ..., d_{N-1}) is a set
of factor matrices U_n of shape (d_n, r_n) together with a core G of shape
(r_0, ..., r_{N-1}):

    T ≈ G x_0 U_0 x_1 U_1 ... x_{N-1} U_{N-1}

For Tucker the core is a dense array. For CANDECOMP/PARAFAC all r_n equal the
CP rank r and the core is superdiagonal, so only its diagonal (the component
weights ``lambdas``) is stored.

Results are frozen: the arrays are stored read-only and the dataclasses
cannot be reassigned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from multilinear.ops.contraction import MatrixAxis, contract_matrices
from multilinear.utils.validation import ArrayF


class ConvergenceStatus(Enum):
    """Terminal state of an iterative solver."""

    CONVERGED = "converged"
    MAX_ITER_EXCEEDED = "max_iter_exceeded"


def _frozen_copy(a: np.ndarray) -> ArrayF:
    out = np.array(a, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out


def validate_factors(factors: tuple[np.ndarray, ...], core_dims: tuple[int, ...]) -> None:
    """
    Check that factor matrices match a core.

    Raises
    ------
    ValueError
        If the number of factors differs from the number of core modes, or a
        factor does not have ``core_dims[n]`` columns
    """
    if len(factors) != len(core_dims):
        raise ValueError(f"Need {len(core_dims)} factor matrices, got {len(factors)}")

    for n, (F, r) in enumerate(zip(factors, core_dims)):
        if F.ndim != 2:
            raise ValueError(f"Factor {n} must be a 2D matrix, got shape {F.shape}")
        if F.shape[1] != r:
            raise ValueError(f"Factor {n} has {F.shape[1]} columns, core mode {n} has size {r}")


@dataclass(frozen=True, eq=False)
class Tucker:
    """
    Tucker decomposition: dense core acted on by one factor per mode.

    Attributes
    ----------
    factors : tuple[np.ndarray, ...]
        ``factors[n]`` has shape (d_n, r_n)
    core : np.ndarray
        Core array, shape (r_0, ..., r_{N-1})
    error : float
        Relative reconstruction error ||T - compose()|| / ||T||
    iterations : int
        Number of sweeps performed (0 for a one-shot HOSVD)
    converged : bool
        Whether the solver met its tolerance
    error_history : tuple[float, ...]
        Error after each sweep
    """

    factors: tuple[np.ndarray, ...]
    core: np.ndarray
    error: float
    iterations: int = 0
    converged: bool = True
    error_history: tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self):
        factors = tuple(_frozen_copy(F) for F in self.factors)
        core = _frozen_copy(self.core)
        validate_factors(factors, core.shape)

        object.__setattr__(self, "factors", factors)
        object.__setattr__(self, "core", core)
        object.__setattr__(self, "error", float(self.error))
        object.__setattr__(self, "error_history", tuple(float(e) for e in self.error_history))

    @property
    def ndim(self) -> int:
        return len(self.factors)

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of the reconstructed tensor (d_0, ..., d_{N-1})."""
        return tuple(F.shape[0] for F in self.factors)

    @property
    def core_dims(self) -> tuple[int, ...]:
        return self.core.shape

    @property
    def status(self) -> ConvergenceStatus:
        return ConvergenceStatus.CONVERGED if self.converged else ConvergenceStatus.MAX_ITER_EXCEEDED

    def compose(self) -> ArrayF:
        """Reconstruct the dense tensor by contracting the core against every factor."""
        return contract_matrices(self.core, self.factors, axis=MatrixAxis.COLUMNS)

    def __repr__(self) -> str:
        return f"Tucker(shape={self.shape}, core_dims={self.core_dims}, error={self.error:.3e})"


@dataclass(frozen=True, eq=False)
class CANDECOMP:
    """
    CANDECOMP/PARAFAC decomposition: a weighted sum of r rank-1 terms.

        T ≈ sum_j lambdas[j] * U_0[:, j] ∘ U_1[:, j] ∘ ... ∘ U_{N-1}[:, j]

    Attributes
    ----------
    factors : tuple[np.ndarray, ...]
        ``factors[n]`` has shape (d_n, r); columns have unit 2-norm unless
        the component is degenerate
    lambdas : np.ndarray
        Component weights, shape (r,)
    error : float
        Relative reconstruction error ||T - compose()|| / ||T||
    iterations : int
        Number of ALS sweeps performed
    converged : bool
        Whether the solver met its tolerance
    error_history : tuple[float, ...]
        Error after each sweep
    """

    factors: tuple[np.ndarray, ...]
    lambdas: np.ndarray
    error: float
    iterations: int = 0
    converged: bool = True
    error_history: tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self):
        factors = tuple(_frozen_copy(F) for F in self.factors)
        lambdas = _frozen_copy(self.lambdas)
        if lambdas.ndim != 1:
            raise ValueError(f"lambdas must be 1D, got shape {lambdas.shape}")
        validate_factors(factors, (lambdas.shape[0],) * len(factors))

        object.__setattr__(self, "factors", factors)
        object.__setattr__(self, "lambdas", lambdas)
        object.__setattr__(self, "error", float(self.error))
        object.__setattr__(self, "error_history", tuple(float(e) for e in self.error_history))

    @property
    def ndim(self) -> int:
        return len(self.factors)

    @property
    def rank(self) -> int:
        return int(self.lambdas.shape[0])

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of the reconstructed tensor (d_0, ..., d_{N-1})."""
        return tuple(F.shape[0] for F in self.factors)

    @property
    def status(self) -> ConvergenceStatus:
        return ConvergenceStatus.CONVERGED if self.converged else ConvergenceStatus.MAX_ITER_EXCEEDED

    @property
    def core(self) -> ArrayF:
        """Superdiagonal core of shape (r,) * N with ``lambdas`` on the diagonal."""
        return superdiagonal(self.lambdas, self.ndim)

    def compose(self) -> ArrayF:
        """Reconstruct the dense tensor by contracting the core against every factor."""
        return contract_matrices(self.core, self.factors, axis=MatrixAxis.COLUMNS)

    def __repr__(self) -> str:
        return f"CANDECOMP(shape={self.shape}, rank={self.rank}, error={self.error:.3e})"


def superdiagonal(values: np.ndarray, ndim: int) -> ArrayF:
    """
    Build an ndim-mode hypercube with ``values`` on its superdiagonal.

    Examples
    --------
    >>> G = superdiagonal(np.array([2.0, 3.0]), 3)
    >>> G.shape
    (2, 2, 2)
    >>> G[1, 1, 1]
    3.0
    """
    values = np.asarray(values, dtype=np.float64)
    r = values.shape[0]
    core = np.zeros((r,) * ndim)
    core[(np.arange(r),) * ndim] = values
    return core
