"""
Iterative decomposition solvers.

- CP-ALS: CANDECOMP/PARAFAC by alternating least squares
- HOSVD: truncated higher-order SVD (one shot)
- HOOI: Tucker decomposition by higher-order orthogonal iteration

Every solver validates its input before any numeric work, reports its
terminal state on the returned result, and never raises on non-convergence.
"""

from multilinear.solvers.cp_als import (
    CPALSConfig,
    als_update,
    candecomp,
    leading_left_singular_vectors,
)
from multilinear.solvers.tucker import (
    TuckerConfig,
    hosvd,
    tucker,
)
from multilinear.solvers.reporting import (
    has_converged,
    report_status,
)

__all__ = [
    # CP
    "CPALSConfig",
    "als_update",
    "candecomp",
    # Tucker
    "TuckerConfig",
    "hosvd",
    "tucker",
    # Shared
    "has_converged",
    "leading_left_singular_vectors",
    "report_status",
]
