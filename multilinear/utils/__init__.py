"""
Utility functions for tensor decompositions.

This module provides helper functions for:
- Input validation (tensor order, rank specifications, factor shapes)
- Sign normalization of factor columns
- Random factor initialization
- Reconstruction error metrics
"""

from multilinear.utils.validation import (
    ArrayF,
    as_float_tensor,
    check_factors,
    check_sign,
    check_tensor,
    expand_core_dims,
    normalize_column_signs,
    random_factors,
)
from multilinear.utils.metrics import rel_residue

__all__ = [
    "ArrayF",
    "as_float_tensor",
    "check_factors",
    "check_sign",
    "check_tensor",
    "expand_core_dims",
    "normalize_column_signs",
    "random_factors",
    "rel_residue",
]
