# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Stationary iterative methods (Jacobi, Gauss-Seidel).

Both split A into its diagonal and off-diagonal parts and apply the same
update every sweep, starting from the zero vector.
"""

import logging
import time
from typing import Callable, List, Optional

import numpy as np

from .types import (
    IterativeParams,
    LinearIterationStep,
    SolverResult,
    SolverStatus,
    StopCondition,
)
from .utils import (
    DIVERGENCE_THRESHOLD,
    clone_matrix,
    clone_vector,
    elapsed_ms,
    is_approximately_zero,
    multiply,
    norm2,
)

logger = logging.getLogger(__name__)

Sweep = Callable[[np.ndarray, np.ndarray, np.ndarray], np.ndarray]


def jacobi_sweep(A: np.ndarray, b: np.ndarray, x_old: np.ndarray) -> np.ndarray:
    """Every component is computed from the previous iterate only."""
    d = np.diag(A)
    off = A @ x_old - d * x_old
    return (b - off) / d


def gauss_seidel_sweep(A: np.ndarray, b: np.ndarray, x_old: np.ndarray) -> np.ndarray:
    """Components already updated in this sweep are used immediately."""
    x = x_old.copy()
    for i in range(len(b)):
        s = A[i, :i] @ x[:i] + A[i, i + 1 :] @ x_old[i + 1 :]
        x[i] = (b[i] - s) / A[i, i]
    return x


def stop_value(
    A: np.ndarray,
    b: np.ndarray,
    x_old: np.ndarray,
    x_new: np.ndarray,
    condition: StopCondition,
) -> float:
    """||A x_new - b||_2 or ||x_new - x_old||_2, as selected."""
    if condition == StopCondition.BY_RESIDUAL:
        return norm2(multiply(A, x_new) - b)
    return norm2(x_new - x_old)


def _has_diverged(metric: float, x: np.ndarray) -> bool:
    if not np.isfinite(metric) or not np.all(np.isfinite(x)):
        return True
    return norm2(x) > DIVERGENCE_THRESHOLD


def validate_params(params: Optional[IterativeParams]) -> Optional[SolverResult]:
    """Return an INVALID_INPUT result for unusable parameters, else None."""
    if params is None:
        return SolverResult(
            SolverStatus.INVALID_INPUT,
            message="Iterative parameters are required for the selected method.",
        )
    if not params.tolerance > 0:
        return SolverResult(
            SolverStatus.INVALID_INPUT, message="Tolerance must be greater than zero."
        )
    if params.max_iterations <= 0:
        return SolverResult(
            SolverStatus.INVALID_INPUT,
            message="Maximum number of iterations must be greater than zero.",
        )
    try:
        StopCondition(params.stop_condition)
    except ValueError:
        return SolverResult(
            SolverStatus.INVALID_INPUT,
            message=f"Unrecognized stop condition: {params.stop_condition!r}.",
        )
    return None


def stationary_solve(
    A: np.ndarray,
    b: np.ndarray,
    params: Optional[IterativeParams],
    sweep: Sweep,
    name: str,
    return_steps: bool = False,
) -> SolverResult:
    """
    Drive `sweep` until the stop metric drops below the tolerance.

    Parameters
    ----------
    A, b : ndarray
        The system; cloned before use.
    params : IterativeParams | None
        Tolerance, iteration budget and stop metric.
    sweep : callable
        ``sweep(A, b, x_old) -> x_new``.
    name : str
        Method name used in messages.
    return_steps : bool
        If True, record one `LinearIterationStep` per sweep.

    Returns
    -------
    SolverResult
        SUCCESS, DIVERGENCE or MAX_ITERATIONS_REACHED carrying the last
        iterate; INVALID_INPUT for bad parameters or a zero diagonal.
    """
    t0 = time.perf_counter()
    invalid = validate_params(params)
    if invalid is not None:
        return invalid

    A = clone_matrix(A)
    b = clone_vector(b)
    n = b.shape[0]
    condition = StopCondition(params.stop_condition)

    for i in range(n):
        if is_approximately_zero(A[i, i]):
            return SolverResult(
                SolverStatus.INVALID_INPUT,
                elapsed_ms=elapsed_ms(t0),
                message=f"Diagonal contains zero; {name} cannot be applied.",
            )

    steps: Optional[List[LinearIterationStep]] = [] if return_steps else None
    x_old = np.zeros(n, dtype=float)
    x_new = x_old

    for iteration in range(1, params.max_iterations + 1):
        with np.errstate(all="ignore"):
            x_new = sweep(A, b, x_old)
            metric = stop_value(A, b, x_old, x_new, condition)
            diverged = _has_diverged(metric, x_new)

        if steps is not None:
            steps.append(LinearIterationStep(iteration, x_new.copy(), metric))
        logger.debug(f"{name} iteration {iteration}: metric={metric:.3e}")

        if diverged:
            logger.warning(f"{name} diverged after {iteration} iterations")
            return SolverResult(
                SolverStatus.DIVERGENCE,
                solution=x_new.copy(),
                iterations=iteration,
                elapsed_ms=elapsed_ms(t0),
                message=f"Iterations diverged in the {name} method.",
                steps=steps,
            )

        if metric < params.tolerance:
            return SolverResult(
                SolverStatus.SUCCESS,
                solution=x_new.copy(),
                iterations=iteration,
                elapsed_ms=elapsed_ms(t0),
                steps=steps,
            )

        x_old = x_new

    return SolverResult(
        SolverStatus.MAX_ITERATIONS_REACHED,
        solution=x_new.copy(),
        iterations=params.max_iterations,
        elapsed_ms=elapsed_ms(t0),
        message=f"Maximum number of iterations reached in the {name} method.",
        steps=steps,
    )


def jacobi(A, b, params: Optional[IterativeParams], return_steps: bool = False) -> SolverResult:
    return stationary_solve(A, b, params, jacobi_sweep, "Jacobi", return_steps)


def gauss_seidel(A, b, params: Optional[IterativeParams], return_steps: bool = False) -> SolverResult:
    return stationary_solve(A, b, params, gauss_seidel_sweep, "Gauss-Seidel", return_steps)
