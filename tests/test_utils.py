# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np
import pytest

from numsolve.errors import SingularMatrixError
from numsolve.utils import (
    back_substitute,
    back_substitute_transpose,
    clone_vector,
    forward_substitute,
    random_diagonally_dominant,
    random_spd,
    swap_columns,
    swap_rows,
)

L = np.array([[2.0, 0.0, 0.0], [1.0, 3.0, 0.0], [4.0, -1.0, 5.0]])


def test_forward_substitute():
    b = np.array([2.0, 7.0, 13.0])
    y = forward_substitute(L, b)
    np.testing.assert_allclose(L @ y, b)


def test_back_substitute():
    U = L.T.copy()
    y = np.array([1.0, -2.0, 5.0])
    x = back_substitute(U, y)
    np.testing.assert_allclose(U @ x, y)


def test_back_substitute_transpose_matches_explicit_transpose():
    y = np.array([3.0, 1.0, -4.0])
    np.testing.assert_allclose(back_substitute_transpose(L, y), np.linalg.solve(L.T, y))


@pytest.mark.parametrize("solve", [forward_substitute, back_substitute, back_substitute_transpose])
def test_zero_diagonal_raises(solve):
    M = L.copy()
    M[1, 1] = 0.0
    with pytest.raises(SingularMatrixError):
        solve(M, np.ones(3))


def test_swaps_are_in_place():
    M = np.arange(9, dtype=float).reshape(3, 3)
    swap_rows(M, 0, 2)
    np.testing.assert_array_equal(M[0], [6.0, 7.0, 8.0])
    swap_columns(M, 0, 1)
    np.testing.assert_array_equal(M[:, 0], [7.0, 4.0, 1.0])
    before = M.copy()
    swap_rows(M, 1, 1)
    np.testing.assert_array_equal(M, before)


def test_clone_vector_is_flat_copy():
    v = np.array([[1.0], [2.0]])
    c = clone_vector(v)
    assert c.shape == (2,)
    c[0] = 10.0
    assert v[0, 0] == 1.0


def test_random_diagonally_dominant():
    for seed in range(5):
        A = random_diagonally_dominant(8, seed=seed)
        diag = np.abs(np.diag(A))
        off = np.sum(np.abs(A), axis=1) - diag
        assert np.all(diag > off)


def test_random_spd():
    for seed in range(5):
        A = random_spd(6, seed=seed)
        np.testing.assert_array_equal(A, A.T)
        assert np.all(np.linalg.eigvalsh(A) > 0)
