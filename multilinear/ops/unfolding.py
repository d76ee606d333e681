"""
Tensor unfolding (matricization) and its inverse.

Element ordering
----------------
All reshapes use C (row-major) order. Unfolding a tensor with row modes R
and column modes C is defined as::

    np.transpose(T, R + C).reshape(prod(shape[R]), prod(shape[C]))

so entry (r, c) is the element whose coordinates, reordered as R followed
by C, unravel from (r, c) in row-major fashion. Within the column index the
last listed column mode varies fastest. The contraction and Khatri-Rao code
rely on this single convention.

Modes are 0-based numpy axes.
"""

from collections.abc import Sequence

import numpy as np

from multilinear.utils.validation import ArrayF


def _check_partition(ndim: int, row_modes: Sequence[int], col_modes: Sequence[int]) -> list[int]:
    """Return ``row_modes + col_modes`` if it is a permutation of range(ndim)."""
    order = [int(m) for m in row_modes] + [int(m) for m in col_modes]

    if len(order) != ndim:
        raise ValueError(
            f"Shape mismatch: {len(row_modes)} row modes + {len(col_modes)} column modes "
            f"given for a {ndim}-mode tensor"
        )
    if sorted(order) != list(range(ndim)):
        raise ValueError(
            f"Shape mismatch: row modes {list(row_modes)} and column modes {list(col_modes)} "
            f"must be disjoint and cover modes 0..{ndim - 1}"
        )

    return order


def _check_mode(mode: int, ndim: int) -> int:
    if not 0 <= mode < ndim:
        raise ValueError(f"mode must be in [0, {ndim - 1}], got {mode}")
    return int(mode)


def unfold(tensor: np.ndarray, row_modes: Sequence[int], col_modes: Sequence[int]) -> ArrayF:
    """
    Unfold a tensor into a matrix with the given modes as rows and columns.

    Parameters
    ----------
    tensor : np.ndarray
        Tensor of shape (d_0, ..., d_{N-1})
    row_modes : Sequence[int]
        Modes grouped into the matrix rows, in order
    col_modes : Sequence[int]
        Modes grouped into the matrix columns, in order

    Returns
    -------
    matrix : np.ndarray
        Shape (prod d[row_modes], prod d[col_modes]). A view when the
        permutation allows it, otherwise a copy.

    Raises
    ------
    ValueError
        If the two lists are not a disjoint, exhaustive partition of the modes

    Examples
    --------
    >>> T = np.arange(24).reshape(2, 3, 4)
    >>> unfold(T, [1], [0, 2]).shape
    (3, 8)
    """
    order = _check_partition(tensor.ndim, row_modes, col_modes)
    shape = tensor.shape

    n_rows = int(np.prod([shape[m] for m in row_modes], dtype=np.int64))
    n_cols = int(np.prod([shape[m] for m in col_modes], dtype=np.int64))

    return np.transpose(tensor, order).reshape(n_rows, n_cols)


def fold(
    matrix: np.ndarray,
    row_modes: Sequence[int],
    col_modes: Sequence[int],
    shape: Sequence[int],
) -> ArrayF:
    """
    Inverse of ``unfold``: rebuild a tensor of the given shape from a matrix.

    Parameters
    ----------
    matrix : np.ndarray
        Unfolded matrix, shape (prod shape[row_modes], prod shape[col_modes])
    row_modes, col_modes : Sequence[int]
        The partition used for unfolding
    shape : Sequence[int]
        Shape of the tensor to rebuild

    Returns
    -------
    tensor : np.ndarray
        Tensor with ``unfold(tensor, row_modes, col_modes) == matrix``

    Raises
    ------
    ValueError
        If the partition is invalid or the matrix shape does not match
    """
    shape = tuple(int(d) for d in shape)
    order = _check_partition(len(shape), row_modes, col_modes)

    n_rows = int(np.prod([shape[m] for m in row_modes], dtype=np.int64))
    n_cols = int(np.prod([shape[m] for m in col_modes], dtype=np.int64))
    if matrix.shape != (n_rows, n_cols):
        raise ValueError(
            f"Shape mismatch: matrix of shape {matrix.shape} cannot be folded into "
            f"{shape} (expected {(n_rows, n_cols)})"
        )

    permuted = matrix.reshape([shape[m] for m in order])
    return np.transpose(permuted, np.argsort(order))


def row_unfold(tensor: np.ndarray, mode: int) -> ArrayF:
    """
    Unfold so that ``mode`` becomes the matrix rows.

    The remaining modes, in ascending order, form the columns. This is the
    mode-n matricization used by the ALS updates.
    """
    mode = _check_mode(mode, tensor.ndim)
    others = [m for m in range(tensor.ndim) if m != mode]
    return unfold(tensor, [mode], others)


def col_unfold(tensor: np.ndarray, mode: int) -> ArrayF:
    """Unfold so that ``mode`` becomes the matrix columns."""
    mode = _check_mode(mode, tensor.ndim)
    others = [m for m in range(tensor.ndim) if m != mode]
    return unfold(tensor, others, [mode])


def row_fold(matrix: np.ndarray, mode: int, shape: Sequence[int]) -> ArrayF:
    """Inverse of ``row_unfold`` for a tensor of the given shape."""
    mode = _check_mode(mode, len(shape))
    others = [m for m in range(len(shape)) if m != mode]
    return fold(matrix, [mode], others, shape)


def col_fold(matrix: np.ndarray, mode: int, shape: Sequence[int]) -> ArrayF:
    """Inverse of ``col_unfold`` for a tensor of the given shape."""
    mode = _check_mode(mode, len(shape))
    others = [m for m in range(len(shape)) if m != mode]
    return fold(matrix, others, [mode], shape)
