"""
Tucker decomposition by HOSVD and Higher-Order Orthogonal Iteration (HOOI).

A Tucker decomposition approximates an N-mode tensor T by a core G of shape
(r_0, ..., r_{N-1}) and orthonormal factors U_n of shape (d_n, r_n):

    T ≈ G x_0 U_0 ... x_{N-1} U_{N-1},    G = T x_0 U_0^T ... x_{N-1} U_{N-1}^T

HOSVD takes U_n as the leading left singular vectors of each unfolding T_(n).
HOOI (the Tucker form of ALS) then sweeps the modes in ascending order,
projecting T onto every other factor and refreshing U_n from the leading
singular vectors of the projected unfolding.

The error after each sweep is measured on the dense reconstruction; the
shortcut ||T||^2 - ||G||^2 loses all precision once the fit is near exact.

References:
- De Lathauwer, De Moor, Vandewalle (2000), "A multilinear singular value
  decomposition", SIAM J. Matrix Anal. Appl.
- De Lathauwer, De Moor, Vandewalle (2000), "On the best rank-1 and
  rank-(R1,...,RN) approximation of higher-order tensors"
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from scipy import linalg

from multilinear.models.decomposition import Tucker
from multilinear.ops.contraction import (
    MatrixAxis,
    contract_matrices,
    contract_matrices_into,
    contract_matrix,
)
from multilinear.ops.unfolding import row_unfold
from multilinear.solvers.cp_als import leading_left_singular_vectors
from multilinear.solvers.reporting import (
    StatusCallback,
    has_converged,
    print_progress,
    report_status,
)
from multilinear.utils.metrics import rel_residue
from multilinear.utils.validation import (
    ArrayF,
    as_float_tensor,
    check_factors,
    check_tensor,
    expand_core_dims,
    normalize_column_signs,
)


@dataclass
class TuckerConfig:
    """
    Configuration for the Tucker solvers.

    Parameters
    ----------
    max_iter : int, default=50
        Maximum number of HOOI sweeps
    tol : float, default=1e-10
        Stop when the relative error changes by less than this between sweeps
    error_tol : float, default=1e-12
        Stop as soon as the relative error falls below this
    init : str, default='hosvd'
        'hosvd' or 'randn' (random orthonormal factors)
    random_state : int, optional
        Seed for ``init='randn'``
    normalize_signs : bool, default=True
        Flip factor columns so their largest-magnitude entry is positive
        (the core is computed afterwards, so it follows the flips)
    verbose : bool, default=False
        Print iteration progress
    callback : callable, optional
        Receives ``(status, message)`` when HOOI stops
    """

    max_iter: int = 50
    tol: float = 1e-10
    error_tol: float = 1e-12
    init: str = "hosvd"
    random_state: int | None = None
    normalize_signs: bool = True
    verbose: bool = False
    callback: StatusCallback | None = None

    def __post_init__(self):
        """Validate configuration."""
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.tol < 0 or self.error_tol < 0:
            raise ValueError(f"Tolerances must be non-negative, got tol={self.tol}, error_tol={self.error_tol}")
        if self.init not in ("hosvd", "randn"):
            raise ValueError(f"init must be 'hosvd' or 'randn', got {self.init!r}")


def _hosvd_factors(tensor: np.ndarray, core_dims: tuple[int, ...]) -> list[ArrayF]:
    return [leading_left_singular_vectors(row_unfold(tensor, n), r) for n, r in enumerate(core_dims)]


def _assemble(
    tensor: np.ndarray,
    factors: list[np.ndarray],
    core_dims: tuple[int, ...],
    normalize_signs: bool,
    iterations: int,
    converged: bool,
    error_history: list[float],
) -> Tucker:
    """Sign-normalize the factors, then project the tensor onto the final core."""
    if normalize_signs:
        factors = [normalize_column_signs(F)[0] for F in factors]

    core = np.empty(core_dims)
    contract_matrices_into(core, tensor, factors, axis=MatrixAxis.ROWS)

    approx = contract_matrices(core, factors, axis=MatrixAxis.COLUMNS)
    error = rel_residue(tensor, approx)

    return Tucker(
        factors=tuple(factors),
        core=core,
        error=error,
        iterations=iterations,
        converged=converged,
        error_history=tuple(error_history),
    )


def hosvd(
    tensor: np.ndarray,
    core_dims: int | Sequence[int],
    config: TuckerConfig | None = None,
) -> Tucker:
    """
    Truncated higher-order SVD.

    Parameters
    ----------
    tensor : np.ndarray
        Real tensor with at least 3 modes
    core_dims : int or Sequence[int]
        Uniform or per-mode core dimensions, ``1 <= r_n <= d_n``
    config : TuckerConfig, optional
        Only ``normalize_signs`` is used

    Returns
    -------
    decomposition : Tucker
        One-shot decomposition (``iterations == 0``)

    Raises
    ------
    ValueError
        If the tensor or core dimensions are invalid

    Examples
    --------
    >>> T = np.random.randn(6, 7, 8)
    >>> hosvd(T, (6, 7, 8)).error < 1e-10
    True
    """
    if config is None:
        config = TuckerConfig()

    tensor = as_float_tensor(tensor)
    N = check_tensor(tensor, core_dims)
    dims = expand_core_dims(core_dims, N)

    factors = _hosvd_factors(tensor, dims)
    return _assemble(tensor, factors, dims, config.normalize_signs, 0, True, [])


def tucker(
    tensor: np.ndarray,
    core_dims: int | Sequence[int],
    factors: Sequence[np.ndarray] | None = None,
    config: TuckerConfig | None = None,
) -> Tucker:
    """
    Tucker decomposition by Higher-Order Orthogonal Iteration.

    Parameters
    ----------
    tensor : np.ndarray
        Real tensor with at least 3 modes
    core_dims : int or Sequence[int]
        Uniform or per-mode core dimensions, ``1 <= r_n <= d_n``
    factors : Sequence[np.ndarray], optional
        Initial factors of shapes (d_n, r_n); overrides ``config.init``
    config : TuckerConfig, optional
        Solver configuration

    Returns
    -------
    decomposition : Tucker
        Orthonormal factors, core, relative error and convergence info

    Raises
    ------
    ValueError
        If the tensor, core dimensions or initial factors are invalid
    """
    if config is None:
        config = TuckerConfig()

    tensor = as_float_tensor(tensor)
    N = check_tensor(tensor, core_dims)
    dims = expand_core_dims(core_dims, N)

    if factors is not None:
        factors = check_factors(factors, tensor.shape, dims)
    elif config.init == "randn":
        rng = np.random.default_rng(config.random_state)
        factors = [linalg.qr(rng.standard_normal((d, r)), mode="economic")[0] for d, r in zip(tensor.shape, dims)]
    else:
        factors = _hosvd_factors(tensor, dims)

    if config.verbose:
        print(f"Tucker-HOOI: shape={tensor.shape}, core_dims={dims}, max_iter={config.max_iter}")

    error_history = []
    prev_error = np.inf
    converged = False

    for iteration in range(1, config.max_iter + 1):
        for n in range(N):
            others = [m for m in range(N) if m != n]
            projected = contract_matrices(tensor, [factors[m] for m in others], others, axis=MatrixAxis.ROWS)
            factors[n] = leading_left_singular_vectors(row_unfold(projected, n), dims[n])

        # projected already holds every mode but the last
        core = contract_matrix(projected, factors[N - 1], N - 1, axis=MatrixAxis.ROWS)
        error = rel_residue(tensor, contract_matrices(core, factors, axis=MatrixAxis.COLUMNS))
        error_history.append(error)

        if config.verbose:
            print_progress("Tucker-HOOI", iteration, config.max_iter, error, abs(prev_error - error))

        if has_converged(prev_error, error, config.tol, config.error_tol):
            converged = True
            break

        prev_error = error

    report_status(converged, len(error_history), config.max_iter, config.verbose, config.callback)

    return _assemble(tensor, factors, dims, config.normalize_signs, len(error_history), converged, error_history)
