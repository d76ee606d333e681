"""
Khatri-Rao (column-wise Kronecker) products.

Fold order
----------
For several matrices the product is folded left to right in list order:
``A0 ⊙ A1 ⊙ ... ⊙ Ak``. Under C ordering, row i of the result is the
product of ``A0[i0], A1[i1], ...`` where (i0, i1, ...) is i unravelled over
``(rows(A0), rows(A1), ...)``, the last matrix varying fastest. Passing
factors in ascending mode order therefore lines the rows up with the columns
of ``row_unfold(T, n)``.
"""

from collections.abc import Sequence
from functools import reduce

import numpy as np

from multilinear.utils.validation import ArrayF


def khatri_rao(A: np.ndarray, B: np.ndarray) -> ArrayF:
    """
    Khatri-Rao product of two matrices with the same number of columns.

    Parameters
    ----------
    A : np.ndarray
        Shape (m, k)
    B : np.ndarray
        Shape (p, k)

    Returns
    -------
    C : np.ndarray
        Shape (m * p, k), ``C[:, i] == np.kron(A[:, i], B[:, i])``

    Raises
    ------
    ValueError
        If the inputs are not 2D or the column counts differ

    Examples
    --------
    >>> A = np.random.randn(3, 2)
    >>> B = np.random.randn(4, 2)
    >>> khatri_rao(A, B).shape
    (12, 2)
    """
    A = np.asarray(A)
    B = np.asarray(B)
    if A.ndim != 2 or B.ndim != 2:
        raise ValueError(f"Khatri-Rao product needs 2D matrices, got shapes {A.shape} and {B.shape}")
    if A.shape[1] != B.shape[1]:
        raise ValueError(
            f"Dimension mismatch: input matrices should have the same number of columns, "
            f"got {A.shape[1]} and {B.shape[1]}"
        )

    m, k = A.shape
    p = B.shape[0]
    # (m, 1, k) * (1, p, k) -> (m, p, k), B index fastest after reshape
    return (A[:, np.newaxis, :] * B[np.newaxis, :, :]).reshape(m * p, k)


def khatri_rao_product(matrices: Sequence[np.ndarray], skip: int | None = None) -> ArrayF:
    """
    Khatri-Rao product of several matrices, folded left to right.

    Parameters
    ----------
    matrices : Sequence[np.ndarray]
        Matrices with a common column count, in fold order
    skip : int, optional
        Index of a matrix to leave out (the factor being updated in ALS)

    Returns
    -------
    C : np.ndarray
        Shape (prod of row counts, k)

    Raises
    ------
    ValueError
        If nothing is left to multiply or column counts differ
    """
    selected = [M for i, M in enumerate(matrices) if i != skip]
    if not selected:
        raise ValueError("Khatri-Rao product needs at least one matrix")

    return reduce(khatri_rao, selected[1:], np.asarray(selected[0]))
