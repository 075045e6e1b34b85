#!/usr/bin/python3
# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Command line front end.

    python -m numsolve root "x^2 - 2" --method bisection -a 0 -b 2
    python -m numsolve linear system.json --method jacobi --tol 1e-8 --max-iter 500
    python -m numsolve eval "sin(x)^2 + cos(x)^2" 0 1 2
"""

import argparse
import json
import logging
import sys

import pandas as pd

from .errors import ExpressionParseError
from .expression import compile_expression
from .linear import solve_linear_system
from .rootfinding import solve_root
from .types import (
    IterativeParams,
    LinearSolverMethod,
    LinearSystem,
    RootFindingMethod,
    RootFindingRequest,
    SolverStatus,
    StopCondition,
)

logger = logging.getLogger(__name__)


def steps_table(steps) -> pd.DataFrame:
    """One row per recorded iteration."""
    return pd.DataFrame([s.to_dict() for s in steps])


def _print_result(result, show_steps: bool) -> int:
    payload = result.to_dict()
    steps = payload.pop("steps")
    print(json.dumps(payload, indent=2))
    if show_steps and steps:
        print(steps_table(result.steps).to_string(index=False))
    return 0 if result.status == SolverStatus.SUCCESS else 1


def run_root(args) -> int:
    request = RootFindingRequest(
        function_expression=args.expression,
        method=RootFindingMethod(args.method),
        tolerance=args.tol,
        max_iterations=args.max_iter,
        phi_expression=args.phi,
        derivative_expression=args.derivative,
        a=args.a,
        b=args.b,
        initial_guess=args.x0,
        second_guess=args.x1,
    )
    return _print_result(solve_root(request, return_steps=args.steps), args.steps)


def run_linear(args) -> int:
    with open(args.system, "r") as f:
        data = json.load(f)
    try:
        system = LinearSystem(data["A"], data["b"])
    except (KeyError, ValueError) as e:
        print(f"invalid system file {args.system}: {e}", file=sys.stderr)
        return 2

    params = None
    if args.tol is not None or args.max_iter is not None:
        params = IterativeParams(
            tolerance=args.tol if args.tol is not None else 1e-10,
            max_iterations=args.max_iter if args.max_iter is not None else 1000,
            stop_condition=StopCondition(args.stop),
        )
    result = solve_linear_system(
        system, LinearSolverMethod(args.method), params, return_steps=args.steps
    )
    return _print_result(result, args.steps)


def run_eval(args) -> int:
    try:
        f = compile_expression(args.expression)
    except ExpressionParseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    print(f"rpn: {f.to_rpn()}")
    for x in args.points:
        print(f"f({x:g}) = {f(x)!r}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="numsolve",
        description="Solve linear systems and find roots of formulas in x.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    sub = parser.add_subparsers(dest="command", required=True)

    root = sub.add_parser("root", help="find a root of f(x)")
    root.add_argument("expression", type=str, help="f(x), e.g. 'x^2 - 2'")
    root.add_argument(
        "--method", choices=[m.value for m in RootFindingMethod], default="bisection"
    )
    root.add_argument("-a", type=float, default=None, help="left end of the bracket")
    root.add_argument("-b", type=float, default=None, help="right end of the bracket")
    root.add_argument("--x0", type=float, default=None, help="initial guess")
    root.add_argument("--x1", type=float, default=None, help="second guess (secant)")
    root.add_argument("--phi", type=str, default=None, help="phi(x) for fixed point")
    root.add_argument("--derivative", type=str, default=None, help="f'(x) for Newton")
    root.add_argument("--tol", type=float, default=1e-8)
    root.add_argument("--max-iter", type=int, default=100)
    root.add_argument("--steps", action="store_true", help="print the iteration trace")
    root.set_defaults(func=run_root)

    linear = sub.add_parser("linear", help="solve A x = b from a JSON file")
    linear.add_argument("system", type=str, help='JSON file {"A": [[...]], "b": [...]}')
    linear.add_argument(
        "--method", choices=[m.value for m in LinearSolverMethod], default="gauss_partial_pivoting"
    )
    linear.add_argument("--tol", type=float, default=None)
    linear.add_argument("--max-iter", type=int, default=None)
    linear.add_argument(
        "--stop", choices=[s.value for s in StopCondition], default=StopCondition.BY_RESIDUAL.value
    )
    linear.add_argument("--steps", action="store_true", help="print the iteration trace")
    linear.set_defaults(func=run_linear)

    ev = sub.add_parser("eval", help="evaluate f(x) at some points")
    ev.add_argument("expression", type=str)
    ev.add_argument("points", type=float, nargs="*")
    ev.set_defaults(func=run_eval)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logger.debug(f"arguments: {vars(args)}")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
