# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pytest

from numsolve.decomposition import (
    cholesky_decompose,
    cholesky_solve,
    is_symmetric,
    lu_decompose,
    lu_solve,
)
from numsolve.errors import NotPositiveDefiniteError, SingularMatrixError
from numsolve.utils import random_diagonally_dominant, random_spd

TEST_ITERATIONS = 10
logger = logging.getLogger(__name__)

A_REF = np.array(
    [
        [2, -1, 3, 5],
        [6, -3, 12, 11],
        [4, -1, 10, 8],
        [0, -2, -8, 10],
    ],
    dtype=float,
)
B_REF = np.array([-7, 4, 4, -60], dtype=float)
X_REF = np.array([1, -2, 3, -4], dtype=float)


def test_lu_reconstructs_random_matrices():
    for i in range(TEST_ITERATIONS):
        A = random_diagonally_dominant(15, seed=i)
        L, U, perm = lu_decompose(A)
        logger.debug(f"\nL:\n{L}\nU:\n{U}")
        assert perm == list(range(15))
        np.testing.assert_allclose(np.diag(L), 1.0)
        np.testing.assert_allclose(np.triu(L, 1), 0.0)
        np.testing.assert_allclose(np.tril(U, -1), 0.0)
        np.testing.assert_allclose(L @ U, A, rtol=1e-10, atol=1e-10)


def test_lu_swaps_only_on_zero_pivot():
    # the second and third natural pivots of A_REF vanish
    L, U, perm = lu_decompose(A_REF)
    assert perm == [0, 3, 1, 2]
    np.testing.assert_allclose(L @ U, A_REF[perm], atol=1e-12)


def test_lu_solve_reference_system():
    np.testing.assert_allclose(lu_solve(A_REF, B_REF), X_REF, rtol=0, atol=1e-9)


def test_lu_does_not_modify_input():
    A = A_REF.copy()
    lu_decompose(A)
    np.testing.assert_array_equal(A, A_REF)


def test_lu_singular_raises():
    with pytest.raises(SingularMatrixError):
        lu_solve(np.array([[1.0, 2.0], [2.0, 4.0]]), np.ones(2))


def test_cholesky_matches_numpy():
    for i in range(TEST_ITERATIONS):
        A = random_spd(12, seed=i)
        L = cholesky_decompose(A)
        np.testing.assert_allclose(L, np.linalg.cholesky(A), rtol=1e-10, atol=1e-10)

        b = np.linspace(-1.0, 1.0, 12)
        np.testing.assert_allclose(cholesky_solve(A, b), np.linalg.solve(A, b), rtol=1e-8, atol=1e-10)


def test_cholesky_rejects_non_symmetric():
    with pytest.raises(NotPositiveDefiniteError):
        cholesky_decompose(A_REF)


@pytest.mark.parametrize(
    "A",
    [
        np.array([[1.0, 2.0], [2.0, 1.0]]),
        np.array([[0.0, 0.0], [0.0, 1.0]]),
        np.array([[-4.0, 1.0], [1.0, 3.0]]),
    ],
)
def test_cholesky_rejects_indefinite(A):
    with pytest.raises(NotPositiveDefiniteError):
        cholesky_solve(A, np.ones(2))


def test_is_symmetric_tolerance():
    A = np.array([[2.0, 1.0], [1.0, 3.0]])
    assert is_symmetric(A)
    A[0, 1] += 1e-11
    assert is_symmetric(A)
    A[0, 1] += 1e-9
    assert not is_symmetric(A)
