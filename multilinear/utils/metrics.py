"""
Reconstruction error metrics.
"""

import numpy as np


def rel_residue(tensor: np.ndarray, approximation: np.ndarray) -> float:
    """
    Relative Frobenius residual of an approximation.

    Computes ||T - A||_F / ||T||_F. For an all-zero tensor the relative error
    is undefined, so the absolute residual norm ||A||_F is returned instead.

    Parameters
    ----------
    tensor : np.ndarray
        Original tensor T
    approximation : np.ndarray
        Approximation A, same shape as T

    Returns
    -------
    error : float
        Relative residual

    Raises
    ------
    ValueError
        If the shapes differ
    """
    if np.shape(tensor) != np.shape(approximation):
        raise ValueError(
            f"Shape mismatch: tensor {np.shape(tensor)} vs approximation "
            f"{np.shape(approximation)}"
        )

    resid = float(np.linalg.norm(np.ravel(tensor) - np.ravel(approximation)))
    t_norm = float(np.linalg.norm(np.ravel(tensor)))

    if t_norm == 0.0:
        return resid
    return resid / t_norm
