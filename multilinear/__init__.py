"""
Low-rank decompositions of dense N-dimensional arrays.

This package computes CANDECOMP/PARAFAC (CP) and Tucker decompositions of
dense real tensors with alternating least squares, on top of a small set of
tensor-algebra primitives.

Features:
---------
- CP-ALS with pseudo-inverse normal equations (singular Grams never raise)
- Tucker by truncated HOSVD and higher-order orthogonal iteration (HOOI)
- Unfolding / folding along any grouping of modes (C element ordering)
- Tensor-times-matrix contraction with explicit matrix-axis selection,
  including a destination-buffer variant
- Khatri-Rao products with a fixed left-to-right fold order

Typical usage:
--------------
    import numpy as np
    from multilinear import candecomp, CPALSConfig

    T = np.einsum('ir,jr,kr->ijk', A, B, C)   # rank-2 tensor
    cp = candecomp(T, 2, config=CPALSConfig(random_state=0))
    cp.error          # relative reconstruction error
    cp.factors        # (A', B', C') with unit-norm columns
    cp.compose()      # dense reconstruction

Modes are 0-based numpy axes throughout.
"""

from multilinear.models import (
    CANDECOMP,
    ConvergenceStatus,
    Tucker,
)
from multilinear.ops import (
    MatrixAxis,
    col_fold,
    col_unfold,
    contract_matrices,
    contract_matrices_into,
    contract_matrix,
    contract_matrix_into,
    fold,
    khatri_rao,
    khatri_rao_product,
    row_fold,
    row_unfold,
    unfold,
)
from multilinear.solvers import (
    CPALSConfig,
    TuckerConfig,
    candecomp,
    hosvd,
    tucker,
)
from multilinear.utils import (
    check_sign,
    check_tensor,
    rel_residue,
)

__version__ = "0.1.0"

__all__ = [
    # Results
    "CANDECOMP",
    "ConvergenceStatus",
    "Tucker",
    # Solvers
    "CPALSConfig",
    "TuckerConfig",
    "candecomp",
    "hosvd",
    "tucker",
    # Primitives
    "MatrixAxis",
    "unfold",
    "fold",
    "row_unfold",
    "col_unfold",
    "row_fold",
    "col_fold",
    "contract_matrix",
    "contract_matrix_into",
    "contract_matrices",
    "contract_matrices_into",
    "khatri_rao",
    "khatri_rao_product",
    # Validation
    "check_sign",
    "check_tensor",
    "rel_residue",
]
