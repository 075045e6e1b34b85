# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import json

import numpy as np
import pytest

from numsolve.cli import build_parser, main, steps_table
from numsolve.types import RootFindingStep
from numsolve.utils import random_diagonally_dominant

A_REF = [
    [2, -1, 3, 5],
    [6, -3, 12, 11],
    [4, -1, 10, 8],
    [0, -2, -8, 10],
]
B_REF = [-7, 4, 4, -60]


@pytest.fixture
def system_file(tmp_path):
    def write(A, b):
        path = tmp_path / "system.json"
        path.write_text(json.dumps({"A": A, "b": b}))
        return str(path)

    return write


def test_root_success(capsys):
    code = main(["root", "x^2 - 2", "--method", "bisection", "-a", "0", "-b", "2", "--tol", "1e-10"])
    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["status"] == "success"
    assert payload["root"] == pytest.approx(2 ** 0.5, abs=1e-9)
    assert "steps" not in payload


def test_root_failure_exit_code(capsys):
    code = main(["root", "x^2 + 1", "-a", "-1", "-b", "1"])
    payload = json.loads(capsys.readouterr().out)
    assert code == 1
    assert payload["status"] == "invalid_input"


def test_root_prints_step_table(capsys):
    code = main(["root", "x^2 - 2", "--method", "newton", "--x0", "1", "--derivative", "2*x", "--steps"])
    out = capsys.readouterr().out
    assert code == 0
    assert "iteration" in out
    assert "fx" in out


def test_linear_direct(capsys, system_file):
    code = main(["linear", system_file(A_REF, B_REF), "--method", "lu"])
    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    np.testing.assert_allclose(payload["solution"], [1, -2, 3, -4], atol=1e-9)


def test_linear_iterative(capsys, system_file):
    A = random_diagonally_dominant(5, seed=2)
    b = [1.0, 2.0, 3.0, 4.0, 5.0]
    path = system_file(A.tolist(), b)
    code = main(["linear", path, "--method", "gauss_seidel", "--tol", "1e-10", "--stop", "delta_x"])
    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["iterations"] > 0
    np.testing.assert_allclose(payload["solution"], np.linalg.solve(A, b), atol=1e-8)


def test_linear_iterative_without_parameters(capsys, system_file):
    code = main(["linear", system_file(A_REF, B_REF), "--method", "jacobi"])
    payload = json.loads(capsys.readouterr().out)
    assert code == 1
    assert payload["status"] == "invalid_input"


def test_linear_bad_file(capsys, system_file):
    code = main(["linear", system_file([[1, 2], [3, 4]], [1, 2, 3])])
    assert code == 2
    assert "invalid system file" in capsys.readouterr().err


def test_eval(capsys):
    code = main(["eval", "x^2 - 4", "3", "0.5"])
    out = capsys.readouterr().out
    assert code == 0
    assert "rpn: x 2 ^ 4 -" in out
    assert "f(3) = 5.0" in out
    assert "f(0.5) = -3.75" in out


def test_eval_parse_error(capsys):
    assert main(["eval", "sin("]) == 2
    assert "error" in capsys.readouterr().err


def test_unknown_method_is_rejected_by_parser():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["root", "x", "--method", "brent"])


def test_steps_table():
    table = steps_table([RootFindingStep(1, 1.5, 0.25, a=1.0, b=2.0, error=0.5)])
    assert list(table.columns) == ["iteration", "x", "fx", "a", "b", "error"]
    assert table.loc[0, "fx"] == 0.25
