"""
Decomposition result types.

- CANDECOMP: CP decomposition (factor matrices + component weights)
- Tucker: Tucker decomposition (factor matrices + dense core)
- ConvergenceStatus: terminal state reported by the iterative solvers
"""

from multilinear.models.decomposition import (
    CANDECOMP,
    ConvergenceStatus,
    Tucker,
    superdiagonal,
    validate_factors,
)

__all__ = [
    "CANDECOMP",
    "ConvergenceStatus",
    "Tucker",
    "superdiagonal",
    "validate_factors",
]
