"""
CANDECOMP/PARAFAC decomposition by Alternating Least Squares (CP-ALS).

Given an N-mode tensor T and a rank r, CP-ALS finds factor matrices
U_0, ..., U_{N-1} of shape (d_n, r) and weights lambdas such that

    T ≈ sum_j lambdas[j] * U_0[:, j] ∘ ... ∘ U_{N-1}[:, j]

Each sweep visits the modes in ascending order. With every other factor
fixed, the update for mode n is the least-squares solution of

    min ||T_(n) - U_n KR_n^T||_F,    KR_n = U_0 ⊙ ... ⊙ U_{n-1} ⊙ U_{n+1} ⊙ ... ⊙ U_{N-1}

where T_(n) is the row unfolding on mode n (remaining modes ascending). Via
the normal equations, U_n = T_(n) KR_n pinv(V_n), with the Gram matrix
V_n = KR_n^T KR_n computed as the Hadamard product of the U_m^T U_m.
A symmetric pseudo-inverse is used so a singular V_n never raises.

References:
- Kolda & Bader (2009), "Tensor Decompositions and Applications", SIAM Review
- Harshman (1970), "Foundations of the PARAFAC procedure"
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np
from scipy import linalg

from multilinear.models.decomposition import CANDECOMP, superdiagonal
from multilinear.ops.contraction import MatrixAxis, contract_matrices_into
from multilinear.ops.khatri_rao import khatri_rao_product
from multilinear.ops.unfolding import row_unfold
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
    normalize_column_signs,
    random_factors,
)

FactorInitializer = Callable[[tuple, tuple, np.random.Generator], Sequence[np.ndarray]]


@dataclass
class CPALSConfig:
    """
    Configuration for the CP-ALS solver.

    Parameters
    ----------
    max_iter : int, default=200
        Maximum number of ALS sweeps
    tol : float, default=1e-10
        Stop when the relative error changes by less than this between sweeps
    error_tol : float, default=1e-12
        Stop as soon as the relative error falls below this
    init : str or callable, default='randn'
        'randn' (Gaussian factors), 'svd' (leading singular vectors of each
        unfolding) or a callable ``init(shape, core_dims, rng)`` returning
        the N initial factor matrices
    random_state : int, optional
        Seed for the random generator used by initialization
    normalize_signs : bool, default=True
        Flip factor columns so their largest-magnitude entry is positive,
        compensating in the weights
    verbose : bool, default=False
        Print iteration progress
    callback : callable, optional
        Receives ``(status, message)`` when the solver stops
    """

    max_iter: int = 200
    tol: float = 1e-10
    error_tol: float = 1e-12
    init: str | FactorInitializer = "randn"
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
        if not callable(self.init) and self.init not in ("randn", "svd"):
            raise ValueError(f"init must be 'randn', 'svd' or a callable, got {self.init!r}")


def leading_left_singular_vectors(matrix: np.ndarray, k: int) -> ArrayF:
    """
    First ``k`` left singular vectors of a matrix, shape (rows, k).

    Requires ``k <= rows``. When the matrix has fewer than ``k`` columns the
    full left basis is computed so that k orthonormal vectors are available.
    """
    U, _, _ = linalg.svd(matrix, full_matrices=matrix.shape[1] < k)
    return U[:, :k]


def _initialize_factors(
    tensor: np.ndarray, rank: int, init, rng: np.random.Generator
) -> list[ArrayF]:
    shape = tensor.shape
    core_dims = (rank,) * tensor.ndim

    if callable(init):
        return check_factors(init(shape, core_dims, rng), shape, core_dims)
    if init == "svd":
        return [leading_left_singular_vectors(row_unfold(tensor, n), rank) for n in range(tensor.ndim)]
    return random_factors(shape, core_dims, rng)


def _normalize_columns(F: np.ndarray) -> tuple[ArrayF, ArrayF]:
    """Scale columns to unit 2-norm; zero columns are left as they are."""
    norms = np.linalg.norm(F, axis=0)
    safe = np.where(norms > 0, norms, 1.0)
    return F / safe[np.newaxis, :], norms


def _gram_hadamard(grams: list[np.ndarray], skip: int) -> ArrayF:
    """Hadamard product of all Gram matrices except ``skip`` (= KR_n^T KR_n)."""
    V = np.ones_like(grams[0])
    for m, G in enumerate(grams):
        if m != skip:
            V *= G
    return V


def als_update(
    unfolded: np.ndarray, factors: list[np.ndarray], grams: list[np.ndarray], mode: int
) -> ArrayF:
    """
    Least-squares update of one factor with all others fixed.

    Parameters
    ----------
    unfolded : np.ndarray
        ``row_unfold(T, mode)``, shape (d_n, prod of other dims)
    factors : List[np.ndarray]
        Current factors; ``factors[mode]`` is ignored
    grams : List[np.ndarray]
        ``factors[m].T @ factors[m]`` for every m
    mode : int
        Mode being updated

    Returns
    -------
    F : np.ndarray
        Unnormalized new factor, shape (d_n, r)
    """
    KR = khatri_rao_product(factors, skip=mode)
    V = _gram_hadamard(grams, skip=mode)
    return (unfolded @ KR) @ linalg.pinvh(V)


def candecomp(
    tensor: np.ndarray,
    rank: int,
    factors: Sequence[np.ndarray] | None = None,
    config: CPALSConfig | None = None,
) -> CANDECOMP:
    """
    CANDECOMP/PARAFAC decomposition of a dense tensor by ALS.

    Parameters
    ----------
    tensor : np.ndarray
        Real tensor with at least 3 modes
    rank : int
        Number of rank-1 components r, with ``1 <= r <= tensor.shape[n]``
    factors : Sequence[np.ndarray], optional
        Initial factor matrices of shapes (d_n, r); overrides ``config.init``
    config : CPALSConfig, optional
        Solver configuration

    Returns
    -------
    decomposition : CANDECOMP
        Factors, weights, relative error and convergence info. The best
        factors found are returned even when the iteration cap is reached.

    Raises
    ------
    ValueError
        If the tensor, rank or initial factors are invalid. Raised before
        any iteration runs.

    Examples
    --------
    >>> rng = np.random.default_rng(0)
    >>> A, B, C = rng.standard_normal((4, 2)), rng.standard_normal((5, 2)), rng.standard_normal((6, 2))
    >>> T = np.einsum('ir,jr,kr->ijk', A, B, C)
    >>> cp = candecomp(T, 2, config=CPALSConfig(random_state=0))
    >>> cp.error < 1e-5
    True
    """
    if config is None:
        config = CPALSConfig()

    tensor = as_float_tensor(tensor)
    if isinstance(rank, (bool, np.bool_)) or not isinstance(rank, (int, np.integer)):
        raise ValueError(f"CP rank must be a single integer, got {rank!r}")
    N = check_tensor(tensor, rank)
    rank = int(rank)

    rng = np.random.default_rng(config.random_state)
    if factors is not None:
        factors = check_factors(factors, tensor.shape, (rank,) * N)
    else:
        factors = _initialize_factors(tensor, rank, config.init, rng)

    if config.verbose:
        print(f"CP-ALS: shape={tensor.shape}, rank={rank}, max_iter={config.max_iter}")

    unfoldings = [row_unfold(tensor, n) for n in range(N)]
    grams = [F.T @ F for F in factors]
    lambdas = np.ones(rank)
    approx = np.empty(tensor.shape)

    error_history = []
    prev_error = np.inf
    converged = False

    for iteration in range(1, config.max_iter + 1):
        for n in range(N):
            F = als_update(unfoldings[n], factors, grams, n)
            factors[n], lambdas = _normalize_columns(F)
            grams[n] = factors[n].T @ factors[n]

        contract_matrices_into(approx, superdiagonal(lambdas, N), factors, axis=MatrixAxis.COLUMNS)
        error = rel_residue(tensor, approx)
        error_history.append(error)

        if config.verbose:
            print_progress("CP-ALS", iteration, config.max_iter, error, abs(prev_error - error))

        if has_converged(prev_error, error, config.tol, config.error_tol):
            converged = True
            break

        prev_error = error

    report_status(converged, len(error_history), config.max_iter, config.verbose, config.callback)

    if config.normalize_signs:
        for n in range(N):
            factors[n], signs = normalize_column_signs(factors[n])
            lambdas = lambdas * signs

    return CANDECOMP(
        factors=tuple(factors),
        lambdas=lambdas,
        error=error_history[-1],
        iterations=len(error_history),
        converged=converged,
        error_history=tuple(error_history),
    )
