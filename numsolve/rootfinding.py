# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Root finding for scalar functions given as formula text.

`solve_root` compiles the formulas of a `RootFindingRequest`, checks the
method's preconditions and runs one of

- Bisection and Regula Falsi (bracketing, need ``a < b`` with a sign
  change),
- Newton (``initial_guess``, optional derivative formula; otherwise a
  central difference),
- Fixed Point (``initial_guess`` and ``phi_expression``),
- Secant (two distinct guesses, falling back to ``a``/``b``).

Every run ends in SUCCESS, DIVERGENCE (non-finite or oversized values,
vanishing denominators) or MAX_ITERATIONS_REACHED. Only SUCCESS sets
``root``; MAX_ITERATIONS_REACHED leaves the last iterate in
``last_estimate``.
"""

import logging
import math
import time
from typing import Callable, Dict, List, NamedTuple, Optional

from .errors import ExpressionEvaluationError, ExpressionParseError
from .expression import CompiledExpression, compile_expression
from .types import (
    RootFindingMethod,
    RootFindingRequest,
    RootFindingResult,
    RootFindingStep,
    SolverStatus,
)
from .utils import DERIVATIVE_STEP_SCALE, DIVERGENCE_THRESHOLD, EPS, elapsed_ms

logger = logging.getLogger(__name__)

Function = Callable[[float], float]
Steps = Optional[List[RootFindingStep]]


class _StartPointError(Exception):
    """A formula cannot be evaluated at a caller-supplied starting point."""


class Functions(NamedTuple):
    f: CompiledExpression
    phi: Optional[CompiledExpression] = None
    derivative: Optional[CompiledExpression] = None


def has_diverged(*values: float) -> bool:
    """True if any value is NaN/Inf or larger in magnitude than 1e12."""
    for v in values:
        if not math.isfinite(v) or abs(v) > DIVERGENCE_THRESHOLD:
            return True
    return False


def approximate_derivative(f: Function, x: float) -> float:
    """Central difference with step 1e-6 * max(1, |x|)."""
    h = DERIVATIVE_STEP_SCALE * max(1.0, abs(x))
    return (f(x + h) - f(x - h)) / (2.0 * h)


def _at_start(fn: Function, x: float, label: str) -> float:
    try:
        return fn(x)
    except ExpressionEvaluationError as e:
        raise _StartPointError(f"{label} cannot be evaluated at x = {x:g}: {e}") from e


def _record(steps: Steps, iteration, x, fx, a=None, b=None, error=None) -> None:
    if steps is not None:
        steps.append(RootFindingStep(iteration, x, fx, a=a, b=b, error=error))
    logger.debug(f"iteration {iteration}: x={x!r} f(x)={fx!r} error={error!r}")


# ---------------------------------------------------------------------
# Result builders
# ---------------------------------------------------------------------


def _invalid(message: str, t0: Optional[float] = None, steps: Steps = None) -> RootFindingResult:
    return RootFindingResult(
        SolverStatus.INVALID_INPUT,
        elapsed_ms=0.0 if t0 is None else elapsed_ms(t0),
        message=message,
        steps=steps,
    )


def _success(root: float, iterations: int, t0: float, steps: Steps) -> RootFindingResult:
    return RootFindingResult(
        SolverStatus.SUCCESS,
        root=root,
        iterations=iterations,
        elapsed_ms=elapsed_ms(t0),
        steps=steps,
    )


def _diverged(message: str, iterations: int, t0: float, steps: Steps) -> RootFindingResult:
    logger.warning(f"{message} (iteration {iterations})")
    return RootFindingResult(
        SolverStatus.DIVERGENCE,
        iterations=iterations,
        elapsed_ms=elapsed_ms(t0),
        message=message,
        steps=steps,
    )


def _exhausted(last: float, iterations: int, t0: float, steps: Steps) -> RootFindingResult:
    return RootFindingResult(
        SolverStatus.MAX_ITERATIONS_REACHED,
        iterations=iterations,
        elapsed_ms=elapsed_ms(t0),
        message="Maximum number of iterations reached without convergence "
        "within the requested tolerance.",
        steps=steps,
        last_estimate=last,
    )


# ---------------------------------------------------------------------
# Bracketing methods
# ---------------------------------------------------------------------


def _check_bracket(f: Function, request: RootFindingRequest, name: str, t0: float, steps: Steps):
    """Return (a, b, fa, fb) or an INVALID_INPUT / DIVERGENCE result."""
    if request.a is None or request.b is None:
        return _invalid(f"Parameters 'a' and 'b' are required for {name}.")
    a, b = float(request.a), float(request.b)
    if not a < b:
        return _invalid(f"'a' must be less than 'b' for {name}.")

    fa = _at_start(f, a, "f(a)")
    fb = _at_start(f, b, "f(b)")
    if not (math.isfinite(fa) and math.isfinite(fb)):
        return _invalid(f"f(x) is not finite at the interval endpoints for {name}.")
    if has_diverged(a, fa, b, fb):
        return _diverged(
            f"f(x) is too large at the interval endpoints for {name}.", 0, t0, steps
        )
    if fa * fb > 0:
        return _invalid(f"f(a) and f(b) must have opposite signs for {name}.")
    return a, b, fa, fb


def bisection(f: Function, request: RootFindingRequest, steps: Steps = None) -> RootFindingResult:
    """
    Halve [a, b] until its width is within tolerance.

    The half of the bracket that keeps the sign change survives each
    step. An exact zero at a midpoint ends the search early.
    """
    t0 = time.perf_counter()
    bracket = _check_bracket(f, request, "Bisection", t0, steps)
    if isinstance(bracket, RootFindingResult):
        return bracket
    a, b, fa, fb = bracket
    tol = request.tolerance

    if fa == 0.0:
        return _success(a, 0, t0, steps)
    if fb == 0.0:
        return _success(b, 0, t0, steps)
    if b - a <= tol:
        return _success((a + b) / 2.0, 0, t0, steps)

    iteration = 0
    try:
        for iteration in range(1, request.max_iterations + 1):
            mid = (a + b) / 2.0
            fm = f(mid)
            _record(steps, iteration, mid, fm, a=a, b=b, error=(b - a) / 2.0)

            if has_diverged(mid, fm):
                return _diverged("Iterations diverged in the Bisection method.", iteration, t0, steps)
            if fm == 0.0:
                return _success(mid, iteration, t0, steps)

            if fa * fm < 0:
                b, fb = mid, fm
            else:
                a, fa = mid, fm

            if b - a <= tol:
                return _success((a + b) / 2.0, iteration, t0, steps)
    except ExpressionEvaluationError as e:
        return _diverged(f"Bisection: {e}", iteration, t0, steps)

    return _exhausted((a + b) / 2.0, request.max_iterations, t0, steps)


def regula_falsi(f: Function, request: RootFindingRequest, steps: Steps = None) -> RootFindingResult:
    """
    False position: intersect the chord through (a, f(a)) and (b, f(b))
    with the axis and keep the endpoint that preserves the sign change.
    """
    t0 = time.perf_counter()
    bracket = _check_bracket(f, request, "Regula Falsi", t0, steps)
    if isinstance(bracket, RootFindingResult):
        return bracket
    a, b, fa, fb = bracket
    tol = request.tolerance

    if b - a < tol:
        return _success((a + b) / 2.0, 0, t0, steps)
    if abs(fa) < tol:
        return _success(a, 0, t0, steps)
    if abs(fb) < tol:
        return _success(b, 0, t0, steps)

    iteration = 0
    x_prev = None
    x = a
    try:
        for iteration in range(1, request.max_iterations + 1):
            denominator = fb - fa
            if abs(denominator) < EPS:
                return _diverged("Denominator close to zero in Regula Falsi.", iteration, t0, steps)

            x = (a * fb - b * fa) / denominator
            fx = f(x)
            error = None if x_prev is None else abs(x - x_prev)
            _record(steps, iteration, x, fx, a=a, b=b, error=error)

            if has_diverged(x, fx):
                return _diverged("Iterations diverged in Regula Falsi.", iteration, t0, steps)
            if abs(fx) < tol:
                return _success(x, iteration, t0, steps)

            if fa * fx > 0:
                a, fa = x, fx
            else:
                b, fb = x, fx

            if b - a < tol:
                return _success((a + b) / 2.0, iteration, t0, steps)
            x_prev = x
    except ExpressionEvaluationError as e:
        return _diverged(f"Regula Falsi: {e}", iteration, t0, steps)

    return _exhausted(x, request.max_iterations, t0, steps)


# ---------------------------------------------------------------------
# Open methods
# ---------------------------------------------------------------------


def secant(f: Function, request: RootFindingRequest, steps: Steps = None) -> RootFindingResult:
    t0 = time.perf_counter()
    x0 = request.initial_guess if request.initial_guess is not None else request.a
    x1 = request.second_guess if request.second_guess is not None else request.b

    if x0 is None or x1 is None:
        return _invalid("Two initial guesses are required for the Secant method.")
    x0, x1 = float(x0), float(x1)
    if abs(x0 - x1) < EPS:
        return _invalid("The initial guesses for the Secant method must be distinct.")

    tol = request.tolerance
    f0 = _at_start(f, x0, "f(x0)")
    f1 = _at_start(f, x1, "f(x1)")
    if has_diverged(x0, f0, x1, f1):
        return _diverged("f(x) is not finite or too large at the initial guesses.", 0, t0, steps)
    if abs(f0) < tol:
        return _success(x0, 0, t0, steps)
    if abs(f1) < tol:
        return _success(x1, 0, t0, steps)

    iteration = 0
    try:
        for iteration in range(1, request.max_iterations + 1):
            denominator = f1 - f0
            if abs(denominator) < EPS:
                return _diverged("Denominator close to zero in the Secant method.", iteration, t0, steps)

            x2 = x1 - f1 * (x1 - x0) / denominator
            f2 = f(x2)
            _record(steps, iteration, x2, f2, error=abs(x2 - x1))

            if has_diverged(x2, f2):
                return _diverged("Iterations diverged in the Secant method.", iteration, t0, steps)
            if abs(f2) < tol or abs(x2 - x1) < tol:
                return _success(x2, iteration, t0, steps)

            x0, f0 = x1, f1
            x1, f1 = x2, f2
    except ExpressionEvaluationError as e:
        return _diverged(f"Secant: {e}", iteration, t0, steps)

    return _exhausted(x1, request.max_iterations, t0, steps)


def newton(
    f: Function,
    request: RootFindingRequest,
    steps: Steps = None,
    derivative: Optional[Function] = None,
) -> RootFindingResult:
    """
    Newton-Raphson, ``x <- x - f(x) / f'(x)``.

    Without a derivative formula f' is approximated by a central
    difference. A derivative under 1e-12 in magnitude counts as
    divergence.
    """
    t0 = time.perf_counter()
    if request.initial_guess is None:
        return _invalid("An initial guess is required for Newton's method.")

    tol = request.tolerance
    x = float(request.initial_guess)
    fx = _at_start(f, x, "f(x0)")
    _record(steps, 0, x, fx)

    if has_diverged(x, fx):
        return _diverged("Iterations diverged in Newton's method.", 0, t0, steps)
    if abs(fx) <= tol:
        return _success(x, 0, t0, steps)

    def slope(at: float) -> float:
        if derivative is not None:
            return derivative(at)
        return approximate_derivative(f, at)

    iteration = 0
    try:
        for iteration in range(1, request.max_iterations + 1):
            d = _at_start(slope, x, "f'(x0)") if iteration == 1 else slope(x)
            if not math.isfinite(d) or abs(d) < EPS:
                return _diverged("Derivative close to zero in Newton's method.", iteration, t0, steps)

            x_new = x - fx / d
            fx_new = f(x_new)
            _record(steps, iteration, x_new, fx_new, error=abs(x_new - x))

            if has_diverged(x_new, fx_new):
                return _diverged("Iterations diverged in Newton's method.", iteration, t0, steps)
            if abs(fx_new) <= tol or abs(x_new - x) <= tol:
                return _success(x_new, iteration, t0, steps)

            x, fx = x_new, fx_new
    except ExpressionEvaluationError as e:
        return _diverged(f"Newton: {e}", iteration, t0, steps)

    return _exhausted(x, request.max_iterations, t0, steps)


def fixed_point(
    f: Function,
    phi: Function,
    request: RootFindingRequest,
    steps: Steps = None,
) -> RootFindingResult:
    """Iterate ``x <- phi(x)``, stopping on a small f(x) or a small step."""
    t0 = time.perf_counter()
    if request.initial_guess is None:
        return _invalid("An initial guess is required for the Fixed Point method.")

    tol = request.tolerance
    x = float(request.initial_guess)
    fx = _at_start(f, x, "f(x0)")
    _record(steps, 0, x, fx)

    if has_diverged(x, fx):
        return _diverged("Iterations diverged in the Fixed Point method.", 0, t0, steps)
    if abs(fx) < tol:
        return _success(x, 0, t0, steps)

    iteration = 0
    try:
        for iteration in range(1, request.max_iterations + 1):
            x_new = _at_start(phi, x, "phi(x0)") if iteration == 1 else phi(x)
            fx_new = f(x_new)
            _record(steps, iteration, x_new, fx_new, error=abs(x_new - x))

            if has_diverged(x_new, fx_new):
                return _diverged("Iterations diverged in the Fixed Point method.", iteration, t0, steps)
            if abs(fx_new) < tol or abs(x_new - x) < tol:
                return _success(x_new, iteration, t0, steps)

            x = x_new
    except ExpressionEvaluationError as e:
        return _diverged(f"Fixed Point: {e}", iteration, t0, steps)

    return _exhausted(x, request.max_iterations, t0, steps)


# ---------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------

METHODS: Dict[RootFindingMethod, Callable[[Functions, RootFindingRequest, Steps], RootFindingResult]] = {
    RootFindingMethod.BISECTION: lambda fns, req, steps: bisection(fns.f, req, steps),
    RootFindingMethod.FIXED_POINT: lambda fns, req, steps: fixed_point(fns.f, fns.phi, req, steps),
    RootFindingMethod.NEWTON: lambda fns, req, steps: newton(fns.f, req, steps, fns.derivative),
    RootFindingMethod.REGULA_FALSI: lambda fns, req, steps: regula_falsi(fns.f, req, steps),
    RootFindingMethod.SECANT: lambda fns, req, steps: secant(fns.f, req, steps),
}


def _blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


def solve_root(request: RootFindingRequest, return_steps: bool = False) -> RootFindingResult:
    """
    Find a root of ``request.function_expression`` with ``request.method``.

    Parameters
    ----------
    request : RootFindingRequest
    return_steps : bool
        If True, `steps` holds one `RootFindingStep` per iteration (plus
        an iteration-0 record for Newton and Fixed Point).

    Returns
    -------
    RootFindingResult
        Never raises for bad input: compile failures, missing parameters
        and unevaluable starting points are INVALID_INPUT.
    """
    if _blank(request.function_expression):
        return _invalid("The function expression cannot be empty.")
    if not request.tolerance > 0:
        return _invalid("Tolerance must be greater than zero.")
    if request.max_iterations <= 0:
        return _invalid("Maximum number of iterations must be greater than zero.")

    try:
        method = RootFindingMethod(request.method)
    except ValueError:
        return RootFindingResult(
            SolverStatus.NOT_IMPLEMENTED, message="Unrecognized root-finding method."
        )

    try:
        f = compile_expression(request.function_expression)
    except ExpressionParseError as e:
        return _invalid(f"Invalid expression for f(x): {e}")

    phi = None
    if method == RootFindingMethod.FIXED_POINT:
        if _blank(request.phi_expression):
            return _invalid("phi(x) is required for the Fixed Point method.")
        try:
            phi = compile_expression(request.phi_expression)
        except ExpressionParseError as e:
            return _invalid(f"Invalid expression for phi(x): {e}")

    derivative = None
    if method == RootFindingMethod.NEWTON and not _blank(request.derivative_expression):
        try:
            derivative = compile_expression(request.derivative_expression)
        except ExpressionParseError as e:
            return _invalid(f"Invalid expression for f'(x): {e}")

    steps: Steps = [] if return_steps else None
    t0 = time.perf_counter()
    try:
        result = METHODS[method](Functions(f, phi, derivative), request, steps)
    except _StartPointError as e:
        return _invalid(str(e), t0, steps)

    logger.debug(
        f"{method.value}: status={result.status.value} "
        f"iterations={result.iterations} elapsed={result.elapsed_ms:.3f}ms"
    )
    return result
