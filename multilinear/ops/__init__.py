"""
Numeric primitives shared by the decomposition solvers.

This module provides the low-level tensor algebra:
- Unfolding (matricization) along any grouping of modes, and folding back
- Tensor-times-matrix contraction along one mode, with a destination-buffer variant
- Chains of contractions against one matrix per mode
- Khatri-Rao (column-wise Kronecker) products

All primitives use C (row-major) element ordering and 0-based modes.
"""

from multilinear.ops.unfolding import (
    unfold,
    fold,
    row_unfold,
    col_unfold,
    row_fold,
    col_fold,
)

from multilinear.ops.contraction import (
    MatrixAxis,
    contract_matrix,
    contract_matrix_into,
    contract_matrices,
    contract_matrices_into,
    expected_contraction_shape,
)

from multilinear.ops.khatri_rao import (
    khatri_rao,
    khatri_rao_product,
)

__all__ = [
    # Unfolding
    "unfold",
    "fold",
    "row_unfold",
    "col_unfold",
    "row_fold",
    "col_fold",
    # Contraction
    "MatrixAxis",
    "contract_matrix",
    "contract_matrix_into",
    "contract_matrices",
    "contract_matrices_into",
    "expected_contraction_shape",
    # Khatri-Rao
    "khatri_rao",
    "khatri_rao_product",
]
