"""
Argument validation and factor helpers for tensor decompositions.

Conventions
-----------
Tensors are dense ``np.ndarray`` objects of real floating dtype. Modes are
0-based numpy axes. A rank specification ("core dims") is either a single
integer r, meaning an r x r x ... x r core, or one integer per mode.

This module provides utilities to:
1. Promote input data to a float tensor
2. Expand and validate rank specifications against a tensor's shape
3. Normalize the sign of factor columns
4. Draw random Gaussian factor matrices
"""

from __future__ import annotations

from collections.abc import Sequence
from numbers import Integral

import numpy as np
import numpy.typing as npt

ArrayF = npt.NDArray[np.floating]


def as_float_tensor(tensor) -> ArrayF:
    """
    Convert array-like input to a floating-point ndarray.

    Integer and boolean arrays are promoted to float64; floating arrays are
    returned as-is (no copy).

    Raises
    ------
    ValueError
        If the data is complex or not numeric
    """
    arr = np.asarray(tensor)
    if np.iscomplexobj(arr):
        raise ValueError(f"Only real-valued tensors are supported, got dtype {arr.dtype}")
    if not np.issubdtype(arr.dtype, np.number) and arr.dtype != np.bool_:
        raise ValueError(f"Tensor must be numeric, got dtype {arr.dtype}")
    if not np.issubdtype(arr.dtype, np.floating):
        arr = arr.astype(np.float64)
    return arr


def expand_core_dims(core_dims: int | Sequence[int], ndim: int) -> tuple[int, ...]:
    """
    Expand a rank specification into one rank per mode.

    Parameters
    ----------
    core_dims : int or Sequence[int]
        Uniform rank r, or per-mode ranks
    ndim : int
        Number of tensor modes N

    Returns
    -------
    core_dims : tuple[int, ...]
        Per-mode ranks, length N

    Raises
    ------
    ValueError
        If ranks are not integers or the length does not match ``ndim``

    Examples
    --------
    >>> expand_core_dims(2, 3)
    (2, 2, 2)
    >>> expand_core_dims([2, 3, 4], 3)
    (2, 3, 4)
    """
    if _is_int(core_dims):
        return (int(core_dims),) * ndim

    if not isinstance(core_dims, Sequence) and not isinstance(core_dims, np.ndarray):
        raise ValueError(f"core_dims must be an int or a sequence of ints, got {core_dims!r}")

    dims = tuple(core_dims)
    for n, r in enumerate(dims):
        if not _is_int(r):
            raise ValueError(f"core_dims[{n}] must be an integer, got {r!r}")
    if len(dims) != ndim:
        raise ValueError(f"Need {ndim} core dims for a {ndim}-mode tensor, got {len(dims)}")

    return tuple(int(r) for r in dims)


def check_tensor(tensor: np.ndarray, core_dims: int | Sequence[int]) -> int:
    """
    Check that a tensor can be decomposed with the given core dimensions.

    Checks:
    1. The tensor has at least 3 modes (scalars, vectors and matrices are
       not supported)
    2. There is one core dim per mode
    3. ``1 <= core_dims[n] <= tensor.shape[n]`` for every mode n

    Parameters
    ----------
    tensor : np.ndarray
        Tensor to decompose
    core_dims : int or Sequence[int]
        Uniform rank or per-mode ranks

    Returns
    -------
    ndim : int
        Number of tensor modes N

    Raises
    ------
    ValueError
        If any check fails

    Examples
    --------
    >>> check_tensor(np.zeros((4, 5, 6)), (4, 5, 6))
    3
    >>> check_tensor(np.zeros((4, 5)), 2)  # Raises ValueError
    """
    shape = np.shape(tensor)
    N = len(shape)
    if N <= 2:
        raise ValueError(
            f"Scalars, vectors and matrices are not supported, got tensor of shape {shape}"
        )

    dims = expand_core_dims(core_dims, N)
    for n, (r, d) in enumerate(zip(dims, shape)):
        if not 0 < r <= d:
            raise ValueError(
                f"core_dims[{n}]={r} given, 1 <= core_dims[{n}] <= "
                f"tensor.shape[{n}]={d} expected"
            )

    return N


def check_factors(
    factors: Sequence[np.ndarray], orig_dims: Sequence[int], core_dims: Sequence[int]
) -> list[ArrayF]:
    """
    Validate caller-supplied factor matrices and return float copies.

    Raises
    ------
    ValueError
        If the number of factors or any factor shape is wrong
    """
    if len(factors) != len(orig_dims):
        raise ValueError(f"Need {len(orig_dims)} factor matrices, got {len(factors)}")

    checked = []
    for n, (F, d, r) in enumerate(zip(factors, orig_dims, core_dims)):
        F = as_float_tensor(F)
        if F.shape != (d, r):
            raise ValueError(f"Factor {n} must have shape {(d, r)}, got {F.shape}")
        checked.append(np.array(F, dtype=np.float64))

    return checked


def check_sign(v: np.ndarray) -> np.ndarray:
    """
    Flip a vector so that its largest-magnitude entry is positive.

    Ties are broken by the first occurrence. A zero vector is returned
    unchanged.

    Examples
    --------
    >>> check_sign(np.array([0.5, -2.0, 1.0]))
    array([-0.5,  2. , -1. ])
    """
    v = np.asarray(v)
    if v.size == 0:
        return v.copy()
    s = np.sign(v[np.argmax(np.abs(v))])
    return v * (s if s != 0 else 1.0)


def normalize_column_signs(matrix: np.ndarray) -> tuple[ArrayF, ArrayF]:
    """
    Apply ``check_sign`` to every column of a matrix.

    Returns
    -------
    matrix : np.ndarray
        Sign-normalized copy of the matrix
    signs : np.ndarray
        Per-column flips (+1 or -1), so that ``matrix_in * signs == matrix``
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2:
        raise ValueError(f"Expected a 2D matrix, got shape {matrix.shape}")

    pivots = np.argmax(np.abs(matrix), axis=0)
    signs = np.sign(matrix[pivots, np.arange(matrix.shape[1])])
    signs[signs == 0] = 1.0

    return matrix * signs[np.newaxis, :], signs


def random_factors(
    orig_dims: Sequence[int],
    core_dims: int | Sequence[int],
    rng: np.random.Generator | None = None,
) -> list[ArrayF]:
    """
    Draw Gaussian factor matrices for Tucker/CP decompositions.

    Parameters
    ----------
    orig_dims : Sequence[int]
        Original tensor dimensions
    core_dims : int or Sequence[int]
        Core dimensions (an int means an r^N hypercube core)
    rng : np.random.Generator, optional
        Random source; a fresh unseeded generator if omitted

    Returns
    -------
    factors : List[np.ndarray]
        N matrices, ``factors[n]`` of shape (orig_dims[n], core_dims[n])
    """
    if rng is None:
        rng = np.random.default_rng()
    dims = expand_core_dims(core_dims, len(orig_dims))
    return [rng.standard_normal((d, r)) for d, r in zip(orig_dims, dims)]


def _is_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, (bool, np.bool_))
