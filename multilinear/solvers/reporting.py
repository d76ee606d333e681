"""
Convergence reporting shared by the iterative solvers.

Solvers return their terminal state explicitly (``ConvergenceStatus`` on the
result). This module turns that state into the two user-facing events:
"converged after K iterations" (printed when verbose) and "iteration cap
reached" (a ``UserWarning``). An optional callback receives both.
"""

import warnings
from collections.abc import Callable

from multilinear.models.decomposition import ConvergenceStatus

StatusCallback = Callable[[ConvergenceStatus, str], None]


def report_status(
    converged: bool,
    iterations: int,
    max_iter: int,
    verbose: bool = False,
    callback: StatusCallback | None = None,
) -> ConvergenceStatus:
    """
    Report the terminal state of an iterative solver.

    Parameters
    ----------
    converged : bool
        Whether the tolerance was met
    iterations : int
        Number of sweeps performed
    max_iter : int
        Configured iteration cap
    verbose : bool, default=False
        Print the convergence message
    callback : callable, optional
        Called as ``callback(status, message)``

    Returns
    -------
    status : ConvergenceStatus
    """
    if converged:
        status = ConvergenceStatus.CONVERGED
        message = f"Algorithm converged after {iterations} iterations."
        if verbose:
            print(message)
    else:
        status = ConvergenceStatus.MAX_ITER_EXCEEDED
        message = f"Maximum number {max_iter} of iterations exceeded."
        warnings.warn(message, UserWarning, stacklevel=3)

    if callback is not None:
        callback(status, message)

    return status


def has_converged(prev_error: float, error: float, tol: float, error_tol: float) -> bool:
    """
    Convergence test applied after each full sweep.

    Converged when the error is already below ``error_tol``, or when it
    changed by less than ``tol`` since the previous sweep.
    """
    if error < error_tol:
        return True
    return abs(prev_error - error) < tol


def print_progress(name: str, iteration: int, max_iter: int, error: float, change: float) -> None:
    print(f"  {name} iter {iteration}/{max_iter}: error={error:.6e}, change={change:.6e}")
