"""Entry points shared by the dense and sparse solvers.

A workspace is chosen once per model with :func:`make_workspace` and then
passed to :func:`solve` for every (possibly updated) Jacobian:

* ``"GS"`` builds a :class:`~linear_re.solver_dense.LinearGSWorkspace`
  taking the compact Jacobian and solved by generalized Schur
  decomposition;
* ``"CR"`` builds a :class:`~linear_re.solver_sparse.LinearCRWorkspace`
  taking the full Jacobian and solved by cyclic reduction.
"""

from __future__ import annotations

from typing import Union

import numpy as np
from scipy import sparse

from .indices import Indices, build_indices
from .options import LinearRationalExpectationsOptions
from .results import LinearRationalExpectationsResults
from .solver_dense import LinearGSWorkspace, solve_dense
from .solver_sparse import LinearCRWorkspace, solve_sparse

Array = np.ndarray
LinearRationalExpectationsWorkspace = Union[LinearGSWorkspace, LinearCRWorkspace]

ALGORITHMS = ("GS", "CR")


def make_workspace(algo: str, *args) -> LinearRationalExpectationsWorkspace:
    """Build the workspace of the requested algorithm.

    Parameters
    ----------
    algo : str
        ``"GS"`` for generalized Schur (dense) or ``"CR"`` for cyclic
        reduction (sparse).
    *args
        Either a single :class:`Indices` or the arguments of
        :func:`~linear_re.indices.build_indices`.

    Raises
    ------
    ValueError
        If *algo* is not one of ``"GS"`` or ``"CR"``.
    """
    if len(args) == 1 and isinstance(args[0], Indices):
        ids = args[0]
    else:
        ids = build_indices(*args)

    if algo == "GS":
        return LinearGSWorkspace(ids)
    if algo == "CR":
        return LinearCRWorkspace(ids)
    raise ValueError(f"Unknown algorithm '{algo}', expected one of {ALGORITHMS}")


def solve(
    results: LinearRationalExpectationsResults,
    jacobian: Array | sparse.spmatrix,
    options: LinearRationalExpectationsOptions | None,
    ws: LinearRationalExpectationsWorkspace,
) -> LinearRationalExpectationsResults:
    """Solve the linear rational-expectations system in place.

    Dispatches to :func:`~linear_re.solver_dense.solve_dense` or
    :func:`~linear_re.solver_sparse.solve_sparse` according to the type of
    *ws*.  See those functions for the expected Jacobian layouts and the
    exceptions raised.
    """
    if isinstance(ws, LinearGSWorkspace):
        return solve_dense(results, jacobian, options, ws)
    if isinstance(ws, LinearCRWorkspace):
        return solve_sparse(results, jacobian, options, ws)
    raise TypeError(f"Unsupported workspace type: {type(ws).__name__}")
