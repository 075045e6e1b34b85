# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Exceptions raised by the internal helpers.

The public entry points (`solve_linear_system`, `solve_root`) catch these
and report a `SolverStatus` instead; only `compile_expression` lets
`ExpressionParseError` reach the caller.
"""


class NumsolveError(ValueError):
    """Base class for every error raised by numsolve."""


class ExpressionParseError(NumsolveError):
    """The formula text could not be compiled."""


class ExpressionEvaluationError(ExpressionParseError):
    """A compiled formula could not be evaluated at a given point."""


class SingularMatrixError(NumsolveError):
    """A pivot was numerically zero."""


class NotPositiveDefiniteError(NumsolveError):
    """Cholesky preconditions were violated."""
