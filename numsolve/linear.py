# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Entry point for solving square linear systems.

`solve_linear_system` looks the method up in `SOLVERS` and never raises
for numerical trouble: singular pivots, failed Cholesky preconditions
and bad iterative parameters all come back as a `SolverStatus`.
"""

import logging
import time
from typing import Callable, Dict, Optional

import numpy as np

from .decomposition import cholesky_solve, lu_solve
from .elimination import FULL_PIVOTING, NO_PIVOTING, PARTIAL_PIVOTING, gaussian_solve
from .errors import NotPositiveDefiniteError, SingularMatrixError
from .iterative import gauss_seidel, jacobi
from .types import (
    IterativeParams,
    LinearSolverMethod,
    LinearSystem,
    SolverResult,
    SolverStatus,
)
from .utils import elapsed_ms

logger = logging.getLogger(__name__)

LinearSolver = Callable[[LinearSystem, Optional[IterativeParams], bool], SolverResult]


def _direct(solve: Callable[[np.ndarray, np.ndarray], np.ndarray], name: str) -> LinearSolver:
    """Wrap a direct solver so that its exceptions become statuses."""

    def run(system: LinearSystem, _params=None, _return_steps=False) -> SolverResult:
        t0 = time.perf_counter()
        try:
            x = solve(system.A, system.b)
        except SingularMatrixError as e:
            logger.debug(f"{name}: {e}")
            return SolverResult(
                SolverStatus.SINGULAR_MATRIX,
                elapsed_ms=elapsed_ms(t0),
                message=f"{name}: {e}.",
            )
        except NotPositiveDefiniteError as e:
            logger.debug(f"{name}: {e}")
            return SolverResult(
                SolverStatus.NOT_SPD, elapsed_ms=elapsed_ms(t0), message=str(e)
            )
        return SolverResult(SolverStatus.SUCCESS, solution=x, elapsed_ms=elapsed_ms(t0))

    run.__name__ = f"solve_{name.lower().replace(' ', '_')}"
    return run


def _stationary(method) -> LinearSolver:
    def run(system: LinearSystem, params=None, return_steps=False) -> SolverResult:
        return method(system.A, system.b, params, return_steps)

    run.__name__ = f"solve_{method.__name__}"
    return run


SOLVERS: Dict[LinearSolverMethod, LinearSolver] = {
    LinearSolverMethod.GAUSS: _direct(
        lambda A, b: gaussian_solve(A, b, pivoting=NO_PIVOTING), "Gauss elimination"
    ),
    LinearSolverMethod.GAUSS_PARTIAL_PIVOTING: _direct(
        lambda A, b: gaussian_solve(A, b, pivoting=PARTIAL_PIVOTING),
        "Gauss with partial pivoting",
    ),
    LinearSolverMethod.GAUSS_FULL_PIVOTING: _direct(
        lambda A, b: gaussian_solve(A, b, pivoting=FULL_PIVOTING),
        "Gauss with full pivoting",
    ),
    LinearSolverMethod.LU: _direct(lu_solve, "LU factorization"),
    LinearSolverMethod.CHOLESKY: _direct(cholesky_solve, "Cholesky"),
    LinearSolverMethod.JACOBI: _stationary(jacobi),
    LinearSolverMethod.GAUSS_SEIDEL: _stationary(gauss_seidel),
}


def solve_linear_system(
    system: LinearSystem,
    method: LinearSolverMethod,
    iterative_params: Optional[IterativeParams] = None,
    return_steps: bool = False,
) -> SolverResult:
    """
    Solve ``system.A @ x = system.b`` with the selected method.

    Parameters
    ----------
    system : LinearSystem
        Square system; never modified.
    method : LinearSolverMethod
        One of the seven methods in `SOLVERS`.
    iterative_params : IterativeParams | None
        Required for JACOBI and GAUSS_SEIDEL, ignored otherwise.
    return_steps : bool
        Record per-iteration steps (iterative methods only).

    Returns
    -------
    SolverResult
    """
    try:
        method = LinearSolverMethod(method)
        solver = SOLVERS[method]
    except (ValueError, KeyError):
        return SolverResult(
            SolverStatus.NOT_IMPLEMENTED,
            message="Unrecognized method for solving linear systems.",
        )

    result = solver(system, iterative_params, return_steps)
    logger.debug(
        f"{method.value}: status={result.status.value} "
        f"iterations={result.iterations} elapsed={result.elapsed_ms:.3f}ms"
    )
    return result
