# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Value objects shared by the linear and root-finding engines.

Every request and result is created fresh per call. Results can be
flattened to plain Python values with ``to_dict()``.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np


class SolverStatus(str, Enum):
    SUCCESS = "success"
    SINGULAR_MATRIX = "singular_matrix"
    NOT_SPD = "not_spd"
    DIVERGENCE = "divergence"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"
    INVALID_INPUT = "invalid_input"
    NOT_IMPLEMENTED = "not_implemented"


class LinearSolverMethod(str, Enum):
    GAUSS = "gauss"
    GAUSS_PARTIAL_PIVOTING = "gauss_partial_pivoting"
    GAUSS_FULL_PIVOTING = "gauss_full_pivoting"
    LU = "lu"
    CHOLESKY = "cholesky"
    JACOBI = "jacobi"
    GAUSS_SEIDEL = "gauss_seidel"


class StopCondition(str, Enum):
    BY_RESIDUAL = "residual"
    BY_DELTA_X = "delta_x"


class RootFindingMethod(str, Enum):
    BISECTION = "bisection"
    FIXED_POINT = "fixed_point"
    NEWTON = "newton"
    REGULA_FALSI = "regula_falsi"
    SECANT = "secant"


# ---------------------------------------------------------------------
# Linear systems
# ---------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class LinearSystem:
    """
    Square system A x = b.

    A and b are stored as read-only float64 arrays; solvers work on
    clones.

    Raises
    ------
    ValueError : if A is not square or b does not match its size.
    """

    A: np.ndarray
    b: np.ndarray

    def __post_init__(self):
        A = np.array(self.A, dtype=float, copy=True)
        b = np.array(self.b, dtype=float, copy=True)
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise ValueError("Matrix A must be square.")
        if b.ndim != 1 or b.shape[0] != A.shape[0]:
            raise ValueError("Vector b length must match the dimensions of matrix A.")
        A.setflags(write=False)
        b.setflags(write=False)
        object.__setattr__(self, "A", A)
        object.__setattr__(self, "b", b)

    @property
    def n(self) -> int:
        return self.b.shape[0]


@dataclass(frozen=True)
class IterativeParams:
    tolerance: float
    max_iterations: int
    stop_condition: StopCondition = StopCondition.BY_RESIDUAL


@dataclass(frozen=True, eq=False)
class LinearIterationStep:
    iteration: int
    x: np.ndarray
    error: float

    def to_dict(self) -> dict:
        return {"iteration": self.iteration, "x": self.x.tolist(), "error": self.error}


@dataclass(frozen=True, eq=False)
class SolverResult:
    status: SolverStatus
    solution: np.ndarray = field(default_factory=lambda: np.zeros(0))
    iterations: int = 0
    elapsed_ms: float = 0.0
    message: str = ""
    steps: Optional[List[LinearIterationStep]] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "solution": np.asarray(self.solution, dtype=float).tolist(),
            "iterations": self.iterations,
            "elapsed_ms": self.elapsed_ms,
            "message": self.message,
            "steps": None if self.steps is None else [s.to_dict() for s in self.steps],
        }


# ---------------------------------------------------------------------
# Root finding
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class RootFindingRequest:
    function_expression: str
    method: RootFindingMethod
    tolerance: float
    max_iterations: int
    phi_expression: Optional[str] = None
    derivative_expression: Optional[str] = None
    a: Optional[float] = None
    b: Optional[float] = None
    initial_guess: Optional[float] = None
    second_guess: Optional[float] = None


@dataclass(frozen=True)
class RootFindingStep:
    iteration: int
    x: float
    fx: float
    a: Optional[float] = None
    b: Optional[float] = None
    error: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class RootFindingResult:
    """
    Outcome of `solve_root`.

    `root` is only set on SUCCESS. MAX_ITERATIONS_REACHED keeps the last
    iterate in `last_estimate`; DIVERGENCE exposes neither.
    """

    status: SolverStatus
    root: Optional[float] = None
    iterations: int = 0
    elapsed_ms: float = 0.0
    message: str = ""
    steps: Optional[List[RootFindingStep]] = None
    last_estimate: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "root": self.root,
            "iterations": self.iterations,
            "elapsed_ms": self.elapsed_ms,
            "message": self.message,
            "steps": None if self.steps is None else [s.to_dict() for s in self.steps],
            "last_estimate": self.last_estimate,
        }
