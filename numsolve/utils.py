# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import time

import numpy as np

from .errors import SingularMatrixError

EPS: float = 1e-12

PIVOT_TOL: float = EPS
SYMMETRY_TOL: float = 1e-10
DIVERGENCE_THRESHOLD: float = 1e12
DERIVATIVE_STEP_SCALE: float = 1e-6


def clone_matrix(A) -> np.ndarray:
    """Return a writable float64 copy of A."""
    return np.array(A, dtype=float, copy=True)


def clone_vector(v) -> np.ndarray:
    return np.array(v, dtype=float, copy=True).ravel()


def multiply(A: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Matrix-vector product A @ x."""
    return np.asarray(A, dtype=float) @ np.asarray(x, dtype=float)


def norm2(v: np.ndarray) -> float:
    return float(np.linalg.norm(v, ord=2))


def is_approximately_zero(value: float, eps: float = EPS) -> bool:
    return abs(value) < eps


def swap_rows(M: np.ndarray, i: int, j: int) -> None:
    if i != j:
        M[[i, j]] = M[[j, i]]


def swap_columns(M: np.ndarray, i: int, j: int) -> None:
    if i != j:
        M[:, [i, j]] = M[:, [j, i]]


def forward_substitute(L: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Solve L y = b for lower-triangular L.

    Raises
    ------
    SingularMatrixError : if a diagonal entry of L is numerically zero.
    """
    L = np.asarray(L, dtype=float)
    b = np.asarray(b, dtype=float)
    n = L.shape[0]
    y = np.zeros(n, dtype=float)

    for i in range(n):
        pivot = L[i, i]
        if is_approximately_zero(pivot):
            raise SingularMatrixError("pivot is zero during forward substitution")
        y[i] = (b[i] - L[i, :i] @ y[:i]) / pivot

    return y


def back_substitute(U: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Parameters
    ----------
    U : (n, n) ndarray
        Upper-triangular matrix (output of forward elimination).
    y : (n,) ndarray
        RHS after identical row operations.
    Returns
    -------
    x : (n,) ndarray
        Solution of Ux = y.
    Raises
    ------
    SingularMatrixError : if a diagonal entry of U is numerically zero.
    """
    U = np.asarray(U, dtype=float)
    y = np.asarray(y, dtype=float)
    n = U.shape[0]
    x = np.zeros(n, dtype=float)

    for i in reversed(range(n)):
        pivot = U[i, i]
        if is_approximately_zero(pivot):
            raise SingularMatrixError("pivot is zero during backward substitution")
        x[i] = (y[i] - U[i, i + 1 :] @ x[i + 1 :]) / pivot

    return x


def back_substitute_transpose(L: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Solve L^T x = y using the lower-triangular factor L directly."""
    L = np.asarray(L, dtype=float)
    y = np.asarray(y, dtype=float)
    n = L.shape[0]
    x = np.zeros(n, dtype=float)

    for i in reversed(range(n)):
        pivot = L[i, i]
        if is_approximately_zero(pivot):
            raise SingularMatrixError("pivot is zero while solving L^T x = y")
        # column i of L below the diagonal is row i of L^T right of it
        x[i] = (y[i] - L[i + 1 :, i] @ x[i + 1 :]) / pivot

    return x


def elapsed_ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000.0


def random_nonsingular_upper(n, low=-100, high=100, seed=None) -> np.ndarray:
    """
    Build a matrix U that is upper-triangular with random entries
    everywhere and put only non-zero values on its diagonal

    Returns
    -------
    Matrix with float64 dtype
    """
    rng = np.random.default_rng(seed)
    U = rng.uniform(low, high, size=(n, n))
    # enforce upper-triangular
    U = np.triu(U)
    # replace any accidental zeros on the diagonal
    diag = rng.uniform(low if low != 0 else 1, high, size=n)
    U[np.diag_indices(n)] = diag
    return np.asarray(U)


def random_diagonally_dominant(n, seed=None) -> np.ndarray:
    """
    Random matrix whose diagonal outweighs the rest of its row, so
    Jacobi and Gauss-Seidel converge and no pivot vanishes.
    """
    rng = np.random.default_rng(seed)
    A = rng.uniform(-1.0, 1.0, size=(n, n))
    row_sums = np.sum(np.abs(A), axis=1)
    signs = np.where(rng.uniform(size=n) < 0.5, -1.0, 1.0)
    A[np.diag_indices(n)] = signs * (row_sums + rng.uniform(1.0, 2.0, size=n))
    return A


def random_spd(n, seed=None) -> np.ndarray:
    """M^T M + n I, symmetric positive-definite."""
    rng = np.random.default_rng(seed)
    M = rng.standard_normal((n, n))
    A = M.T @ M + n * np.eye(n)
    # remove round-off asymmetry
    return (A + A.T) / 2.0
