# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Triangular factorizations: Doolittle LU and Cholesky.
"""

import logging
from typing import List, Tuple

import numpy as np

from .errors import NotPositiveDefiniteError, SingularMatrixError
from .utils import (
    PIVOT_TOL,
    SYMMETRY_TOL,
    back_substitute,
    back_substitute_transpose,
    clone_matrix,
    clone_vector,
    forward_substitute,
    is_approximately_zero,
    swap_rows,
)

logger = logging.getLogger(__name__)


def lu_decompose(A: np.ndarray) -> Tuple[np.ndarray, np.ndarray, List[int]]:
    """
    Doolittle factorization P A = L U, computed in place.

    L is unit lower-triangular and U upper-triangular. Rows are only
    exchanged when the natural pivot is numerically zero, so P is the
    identity for any matrix whose leading minors are non-singular.

    Returns
    -------
    L    : (n, n) ndarray
    U    : (n, n) ndarray
    perm : list[int]
        Row i of P A is row perm[i] of A.

    Raises
    ------
    SingularMatrixError : if a diagonal entry of U is numerically zero.
    """
    LU = clone_matrix(A)
    n = LU.shape[0]
    perm = list(range(n))

    for k in range(n):
        if abs(LU[k, k]) < PIVOT_TOL:
            # multipliers already stored left of column k travel with the row
            pivot_row = k + int(np.abs(LU[k:, k]).argmax())
            if abs(LU[pivot_row, k]) < PIVOT_TOL:
                raise SingularMatrixError(f"pivot close to zero in LU factorization at step {k}")
            logger.debug(f"lu step {k}: swapping rows {k} and {pivot_row}")
            swap_rows(LU, k, pivot_row)
            perm[k], perm[pivot_row] = perm[pivot_row], perm[k]

        LU[k + 1 :, k] /= LU[k, k]
        LU[k + 1 :, k + 1 :] -= np.outer(LU[k + 1 :, k], LU[k, k + 1 :])

    L = np.tril(LU, -1) + np.eye(n)
    U = np.triu(LU)
    return L, U, perm


def lu_solve(A: np.ndarray, b: np.ndarray) -> np.ndarray:
    L, U, perm = lu_decompose(A)
    y = forward_substitute(L, clone_vector(b)[perm])
    return back_substitute(U, y)


def is_symmetric(A: np.ndarray, tol: float = SYMMETRY_TOL) -> bool:
    A = np.asarray(A, dtype=float)
    return bool(np.all(np.abs(A - A.T) <= tol))


def cholesky_decompose(A: np.ndarray) -> np.ndarray:
    """
    Factor a symmetric positive-definite A as L L^T.

    Returns
    -------
    L : (n, n) ndarray, lower-triangular

    Raises
    ------
    NotPositiveDefiniteError : if A is not symmetric (within 1e-10) or a
        diagonal value is not positive.
    """
    A = clone_matrix(A)
    if not is_symmetric(A):
        raise NotPositiveDefiniteError("Matrix is not symmetric; Cholesky is not applicable.")

    n = A.shape[0]
    L = np.zeros((n, n), dtype=float)

    for i in range(n):
        for j in range(i + 1):
            s = L[i, :j] @ L[j, :j]
            if i == j:
                value = A[i, i] - s
                if value <= SYMMETRY_TOL:
                    raise NotPositiveDefiniteError(
                        "Matrix is not positive definite; Cholesky is not applicable."
                    )
                L[i, i] = np.sqrt(value)
            else:
                if is_approximately_zero(L[j, j]):
                    raise NotPositiveDefiniteError(
                        "Matrix is not positive definite; Cholesky is not applicable."
                    )
                L[i, j] = (A[i, j] - s) / L[j, j]

    return L


def cholesky_solve(A: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Solve A x = b via L y = b then L^T x = y.

    Raises
    ------
    NotPositiveDefiniteError, SingularMatrixError
    """
    L = cholesky_decompose(A)
    y = forward_substitute(L, clone_vector(b))
    return back_substitute_transpose(L, y)
