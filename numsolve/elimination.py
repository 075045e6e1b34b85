# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
from typing import List, Tuple

import numpy as np

from .errors import SingularMatrixError
from .utils import PIVOT_TOL, back_substitute, clone_matrix, clone_vector, swap_columns, swap_rows

logger = logging.getLogger(__name__)

NO_PIVOTING = "none"
PARTIAL_PIVOTING = "partial"
FULL_PIVOTING = "full"


def _eliminate_below(U: np.ndarray, c: np.ndarray, k: int) -> None:
    # Eliminate entries below the pivot U[k, k]
    factors = U[k + 1 :, k] / U[k, k]
    U[k + 1 :, k:] -= factors[:, None] * U[k, k:]
    c[k + 1 :] -= factors * c[k]
    U[k + 1 :, k] = 0.0


def forward_eliminate(
    A: np.ndarray,
    b: np.ndarray,
    pivoting: str = PARTIAL_PIVOTING,
) -> Tuple[np.ndarray, np.ndarray, List[int]]:
    """
    Reduce a square system to upper-triangular form.

    Parameters
    ----------
    A : np.ndarray               (n, n)
        Coefficient matrix; not modified.
    b : np.ndarray               (n,)
        Right-hand side; the same row swaps & updates are applied.
    pivoting : str
        ``"none"``    keep the natural pivot, swapping in a lower row only
                      when the natural pivot is numerically zero.
        ``"partial"`` take the largest magnitude in the pivot column.
        ``"full"``    take the largest magnitude in the remaining
                      submatrix, swapping rows and columns.

    Returns
    -------
    U      : np.ndarray          (n, n)
        Upper-triangular form of A.
    c      : np.ndarray          (n,)
        b after identical row ops.
    perm   : list[int]
        Column order: unknown k of the reduced system is original
        unknown perm[k]. Identity unless pivoting is ``"full"``.

    Raises
    ------
    SingularMatrixError : if no usable pivot remains.
    """
    if pivoting not in (NO_PIVOTING, PARTIAL_PIVOTING, FULL_PIVOTING):
        raise ValueError(f"unknown pivoting strategy: {pivoting!r}")

    U = clone_matrix(A)
    c = clone_vector(b)
    n = U.shape[0]
    perm = list(range(n))

    for k in range(n):
        pivot_row, pivot_col = k, k

        if pivoting == FULL_PIVOTING:
            sub = np.abs(U[k:, k:])
            i, j = np.unravel_index(int(sub.argmax()), sub.shape)
            pivot_row, pivot_col = k + int(i), k + int(j)
        elif pivoting == PARTIAL_PIVOTING or abs(U[k, k]) < PIVOT_TOL:
            # The computation is more stable if we pick the largest
            # magnitude in the column, k and below.
            pivot_row = k + int(np.abs(U[k:, k]).argmax())

        if abs(U[pivot_row, pivot_col]) < PIVOT_TOL:
            raise SingularMatrixError(
                f"pivot close to zero at step {k} ({pivoting} pivoting)"
            )

        if pivot_row != k:
            logger.debug(f"step {k}: swapping rows {k} and {pivot_row}")
            swap_rows(U, k, pivot_row)
            c[k], c[pivot_row] = c[pivot_row], c[k]

        if pivot_col != k:
            logger.debug(f"step {k}: swapping columns {k} and {pivot_col}")
            swap_columns(U, k, pivot_col)
            perm[k], perm[pivot_col] = perm[pivot_col], perm[k]

        _eliminate_below(U, c, k)

    return U, c, perm


def gaussian_solve(A: np.ndarray, b: np.ndarray, pivoting: str = PARTIAL_PIVOTING) -> np.ndarray:
    """
    Solve A x = b by forward elimination and back substitution.

    With full pivoting the solution is permuted back into the original
    variable order.

    Raises
    ------
    SingularMatrixError : on a numerically zero pivot.
    """
    U, c, perm = forward_eliminate(A, b, pivoting=pivoting)
    y = back_substitute(U, c)

    x = np.empty_like(y)
    x[perm] = y
    return x
