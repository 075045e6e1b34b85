# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
numsolve
========

Linear-system solvers and scalar root finders over a small formula
language in one variable ``x``.

Public API
~~~~~~~~~~
- Linear systems
    - `solve_linear_system` with `LinearSystem`, `LinearSolverMethod`,
      `IterativeParams`, `StopCondition`
- Root finding
    - `solve_root` with `RootFindingRequest`, `RootFindingMethod`
- Formulas
    - `compile_expression`
- Results
    - `SolverResult`, `RootFindingResult`, `RootFindingStep`,
      `LinearIterationStep`, `SolverStatus`

Everything else lives in sub-modules and is **not** considered part of the
stable interface.

Example
-------
>>> import numsolve as ns
>>> req = ns.RootFindingRequest("x^2 - 2", ns.RootFindingMethod.BISECTION,
...                             tolerance=1e-10, max_iterations=100, a=0, b=2)
>>> res = ns.solve_root(req)
>>> res.status, round(res.root, 8)
(<SolverStatus.SUCCESS: 'success'>, 1.41421356)
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

from .errors import (
    ExpressionEvaluationError,
    ExpressionParseError,
    NotPositiveDefiniteError,
    NumsolveError,
    SingularMatrixError,
)
from .expression import CompiledExpression, compile_expression

# ---------------------------------------------------------------------
# Re-export the high-level functions users are expected to call.
# Each of these names is implemented in one of the internal sub-modules.
# ---------------------------------------------------------------------
from .linear import solve_linear_system
from .rootfinding import solve_root
from .types import (
    IterativeParams,
    LinearIterationStep,
    LinearSolverMethod,
    LinearSystem,
    RootFindingMethod,
    RootFindingRequest,
    RootFindingResult,
    RootFindingStep,
    SolverResult,
    SolverStatus,
    StopCondition,
)

__all__ = [
    "solve_linear_system",
    "solve_root",
    "compile_expression",
    "CompiledExpression",
    "LinearSystem",
    "LinearSolverMethod",
    "IterativeParams",
    "StopCondition",
    "SolverResult",
    "LinearIterationStep",
    "RootFindingMethod",
    "RootFindingRequest",
    "RootFindingResult",
    "RootFindingStep",
    "SolverStatus",
    "NumsolveError",
    "ExpressionParseError",
    "ExpressionEvaluationError",
    "SingularMatrixError",
    "NotPositiveDefiniteError",
]

# ---------------------------------------------------------------------
# Version string (helps “pip show numsolve”, Sphinx, etc.)
# ---------------------------------------------------------------------
try:  # installed via pip / build backend
    __version__ = _pkg_version(__name__)
except PackageNotFoundError:  # running from a checkout
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------
# Optional: lightweight default logging config so users see warnings
# only if they deliberately enable them.
# ---------------------------------------------------------------------
import logging as _logging

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
