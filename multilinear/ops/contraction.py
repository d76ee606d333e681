"""
Tensor-times-matrix (TTM) contraction along a single mode, and chains of them.

Contracting mode n of a tensor T of shape (d_0, ..., d_{N-1}) against a
matrix M replaces d_n with a new size k; every other mode keeps its size and
position. Which axis of M is summed against mode n is selected explicitly:

- ``MatrixAxis.ROWS``: M has shape (d_n, k),
  T'[..., j, ...] = sum_i T[..., i, ...] * M[i, j]
- ``MatrixAxis.COLUMNS``: M has shape (k, d_n),
  T'[..., j, ...] = sum_i T[..., i, ...] * M[j, i]

With factor matrices U_n of shape (d_n, r_n), projecting a tensor onto its
Tucker core uses ROWS and reconstructing from the core uses COLUMNS.

Implementation: row-unfold T along n, one matrix multiply, row-fold back.
"""

from collections.abc import Sequence
from enum import Enum

import numpy as np

from multilinear.ops.unfolding import row_fold, row_unfold
from multilinear.utils.validation import ArrayF


class MatrixAxis(Enum):
    """Axis of the matrix that is summed against the contracted tensor mode."""

    ROWS = "rows"
    COLUMNS = "columns"


def _contracted_size(tensor_shape: tuple[int, ...], matrix: np.ndarray, mode: int, axis: MatrixAxis) -> int:
    """Validate one TTM and return the new size of ``mode``."""
    N = len(tensor_shape)
    if not 0 <= mode < N:
        raise ValueError(f"mode must be in [0, {N - 1}], got {mode}")
    if matrix.ndim != 2:
        raise ValueError(f"Contraction requires a 2D matrix, got shape {matrix.shape}")

    axis = MatrixAxis(axis)
    inner, outer = (0, 1) if axis is MatrixAxis.ROWS else (1, 0)

    d_n = tensor_shape[mode]
    if matrix.shape[inner] != d_n:
        raise ValueError(
            f"Matrix of shape {matrix.shape} cannot contract mode {mode} of size {d_n} "
            f"along its {axis.value}"
        )

    return matrix.shape[outer]


def _contract_unfolded(tensor: np.ndarray, matrix: np.ndarray, mode: int, axis: MatrixAxis) -> ArrayF:
    """Return the contraction result as a row-unfolded matrix (k, prod of other dims)."""
    T_n = row_unfold(tensor, mode)  # (d_n, prod_{m != n} d_m)
    if axis is MatrixAxis.ROWS:
        return matrix.T @ T_n
    return matrix @ T_n


def expected_contraction_shape(
    shape: Sequence[int],
    matrices: Sequence[np.ndarray],
    modes: Sequence[int] | None = None,
    axis: MatrixAxis = MatrixAxis.ROWS,
) -> tuple[int, ...]:
    """
    Shape of ``contract_matrices(tensor, matrices, modes, axis)`` for a tensor of ``shape``.

    Useful for allocating the destination of ``contract_matrices_into``.

    Raises
    ------
    ValueError
        If any contraction in the chain is invalid
    """
    modes = _default_modes(matrices, modes)
    out = [int(d) for d in shape]
    for mtx, n in zip(matrices, modes):
        out[n] = _contracted_size(tuple(out), np.asarray(mtx), n, MatrixAxis(axis))
    return tuple(out)


def contract_matrix(
    tensor: np.ndarray,
    matrix: np.ndarray,
    mode: int,
    axis: MatrixAxis = MatrixAxis.ROWS,
) -> ArrayF:
    """
    Contract one mode of a tensor against a matrix.

    Parameters
    ----------
    tensor : np.ndarray
        Tensor of shape (d_0, ..., d_{N-1})
    matrix : np.ndarray
        Shape (d_n, k) for ``MatrixAxis.ROWS`` or (k, d_n) for ``MatrixAxis.COLUMNS``
    mode : int
        Mode n to contract (0-based)
    axis : MatrixAxis, default=MatrixAxis.ROWS
        Which matrix axis is summed against mode n

    Returns
    -------
    result : np.ndarray
        New tensor with mode n of size k

    Raises
    ------
    ValueError
        If the mode is out of range or the matrix does not fit

    Examples
    --------
    >>> T = np.random.randn(3, 4, 5)
    >>> contract_matrix(T, np.random.randn(4, 2), mode=1).shape
    (3, 2, 5)
    >>> contract_matrix(T, np.random.randn(2, 4), mode=1, axis=MatrixAxis.COLUMNS).shape
    (3, 2, 5)
    """
    axis = MatrixAxis(axis)
    matrix = np.asarray(matrix)
    k = _contracted_size(tensor.shape, matrix, mode, axis)

    out_shape = list(tensor.shape)
    out_shape[mode] = k

    return np.ascontiguousarray(row_fold(_contract_unfolded(tensor, matrix, mode, axis), mode, out_shape))


def contract_matrix_into(
    dest: np.ndarray,
    tensor: np.ndarray,
    matrix: np.ndarray,
    mode: int,
    axis: MatrixAxis = MatrixAxis.ROWS,
) -> np.ndarray:
    """
    Contract one mode of a tensor against a matrix, writing into ``dest``.

    Same semantics as ``contract_matrix``; exists to reuse one buffer across
    solver iterations. ``dest`` is owned by the caller and must not alias
    ``tensor`` or ``matrix``.

    Returns
    -------
    dest : np.ndarray
        The destination buffer, overwritten

    Raises
    ------
    ValueError
        If ``dest`` has the wrong shape or shares memory with an input
    """
    axis = MatrixAxis(axis)
    matrix = np.asarray(matrix)
    k = _contracted_size(tensor.shape, matrix, mode, axis)

    out_shape = list(tensor.shape)
    out_shape[mode] = k
    if dest.shape != tuple(out_shape):
        raise ValueError(
            f"Shape mismatch: destination has shape {dest.shape}, expected {tuple(out_shape)}"
        )
    if np.shares_memory(dest, tensor) or np.shares_memory(dest, matrix):
        raise ValueError("Destination buffer must not share memory with the source tensor or matrix")

    dest[...] = row_fold(_contract_unfolded(tensor, matrix, mode, axis), mode, out_shape)
    return dest


def contract_matrices(
    tensor: np.ndarray,
    matrices: Sequence[np.ndarray],
    modes: Sequence[int] | None = None,
    axis: MatrixAxis = MatrixAxis.ROWS,
) -> ArrayF:
    """
    Contract a tensor against several matrices, one mode at a time.

    Each contraction acts on the previous result. Modes use the original
    tensor's numbering, which a TTM never changes.

    Parameters
    ----------
    tensor : np.ndarray
        Source tensor
    matrices : Sequence[np.ndarray]
        Matrices to contract, in application order
    modes : Sequence[int], optional
        Mode for each matrix; defaults to 0, 1, ..., len(matrices) - 1
    axis : MatrixAxis, default=MatrixAxis.ROWS
        Matrix axis summed against each mode (same for every matrix)

    Returns
    -------
    result : np.ndarray
        Contracted tensor (a copy of ``tensor`` if no matrices are given)

    Examples
    --------
    >>> T = np.random.randn(4, 5, 6)
    >>> U = [np.random.randn(d, 2) for d in T.shape]
    >>> contract_matrices(T, U).shape  # project onto a 2x2x2 core
    (2, 2, 2)
    """
    modes = _default_modes(matrices, modes)
    result = tensor
    for mtx, n in zip(matrices, modes):
        result = contract_matrix(result, mtx, n, axis)
    return np.array(result, copy=True) if result is tensor else result


def contract_matrices_into(
    dest: np.ndarray,
    tensor: np.ndarray,
    matrices: Sequence[np.ndarray],
    modes: Sequence[int] | None = None,
    axis: MatrixAxis = MatrixAxis.ROWS,
) -> np.ndarray:
    """
    Contract a tensor against several matrices, writing the result into ``dest``.

    Intermediate results are allocated; only the last contraction writes into
    ``dest``.

    Raises
    ------
    ValueError
        If no matrices are given, or ``dest`` has the wrong shape
    """
    modes = _default_modes(matrices, modes)
    if len(matrices) == 0:
        raise ValueError("At least one matrix is required")
    if np.shares_memory(dest, tensor):
        raise ValueError("Destination buffer must not share memory with the source tensor")

    src = tensor
    for mtx, n in zip(matrices[:-1], modes[:-1]):
        src = contract_matrix(src, mtx, n, axis)

    return contract_matrix_into(dest, src, matrices[-1], modes[-1], axis)


def _default_modes(matrices: Sequence[np.ndarray], modes: Sequence[int] | None) -> list[int]:
    if modes is None:
        return list(range(len(matrices)))
    if len(modes) != len(matrices):
        raise ValueError(f"Got {len(matrices)} matrices but {len(modes)} modes")
    return [int(n) for n in modes]
