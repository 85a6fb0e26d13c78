"""Sparse first-order solver based on cyclic reduction.

The sparse path works on the full Jacobian, with ``n_endogenous`` columns
per period: ``[y(t-1) | y(t) | y(t+1) | u(t)]``.  No static elimination
is needed: the three square blocks give the quadratic matrix equation

.. math::

    a X^2 + b X + c = 0

whose minimal solution is the decision rule ``y_t = X y_{t-1}``.  The
shock response then follows from ``(a X + b) g_{1,2} = -J_u``.
"""

from __future__ import annotations

import numpy as np
from scipy import sparse

from .cyclic_reduction import CyclicReductionSolver
from .indices import Indices
from .linalg_ops import lu_factor_checked, lu_solve
from .options import LinearRationalExpectationsOptions
from .results import LinearRationalExpectationsResults, fill_results

Array = np.ndarray


class LinearCRWorkspace:
    """Workspace for sparse Jacobians, solved by cyclic reduction.

    Only the dense current block ``b`` and the solution buffer of the
    cyclic reduction are reused across calls.  The sparse blocks ``a`` and
    ``c`` are fresh slices of each Jacobian, and the reduction allocates
    its iteration matrices on every call.

    Parameters
    ----------
    ids : Indices
        Index model of the variables.

    Attributes
    ----------
    a : csc_matrix or None
        Derivatives with respect to ``y(t+1)`` of the last solve.
    b : Array, shape (n_endogenous, n_endogenous)
        Derivatives with respect to ``y(t)``, overwritten in place.
    c : csc_matrix or None
        Derivatives with respect to ``y(t-1)`` of the last solve.
    """

    def __init__(self, ids: Indices):
        n = ids.n_endogenous
        self.ids = ids
        self.a: sparse.csc_matrix | None = None
        self.b = np.zeros((n, n), dtype=float)
        self.c: sparse.csc_matrix | None = None
        self.solver_ws = CyclicReductionSolver(n)


def solve_sparse(
    results: LinearRationalExpectationsResults,
    jacobian: Array | sparse.spmatrix,
    options: LinearRationalExpectationsOptions | None,
    ws: LinearCRWorkspace,
) -> LinearRationalExpectationsResults:
    """Solve the linear rational-expectations system for a full Jacobian.

    Parameters
    ----------
    results : LinearRationalExpectationsResults
        Overwritten in place.  ``results.eigenvalues`` is emptied, cyclic
        reduction does not compute them.
    jacobian : sparse matrix or Array, shape (n_endogenous, 3 * n_endogenous + n_exogenous)
        Full Jacobian ``[y(t-1) | y(t) | y(t+1) | u(t)]``.
    options : LinearRationalExpectationsOptions or None
        Solver options; defaults are used when ``None``.
    ws : LinearCRWorkspace
        Workspace built from the model's :class:`Indices`.

    Raises
    ------
    CyclicReductionError
        If cyclic reduction does not converge.
    SingularSystemError
        If ``a X + b`` or a cyclic-reduction block is singular.
    """
    if options is None:
        options = LinearRationalExpectationsOptions()

    ids = ws.ids
    n = ids.n_endogenous
    back = ids.backward

    jac = sparse.csc_matrix(jacobian, dtype=float)
    if jac.shape != (n, ids.n_full_columns):
        raise ValueError(
            f"Expected a full Jacobian of shape {(n, ids.n_full_columns)}, got {jac.shape}"
        )

    ws.a = jac[:, 2 * n : 3 * n]
    ws.b[...] = jac[:, n : 2 * n].toarray()
    ws.c = jac[:, :n]

    cr = options.cyclic_reduction
    x = ws.solver_ws.solve(
        ws.a, ws.b, ws.c, tolerance=cr.tolerance, max_iterations=cr.max_iterations
    )

    results.eigenvalues = np.empty(0, dtype=complex)
    results.gs1[...] = x[np.ix_(back, back)]
    results.g1_1[...] = x[:, back]
    if ids.n_exogenous > 0:
        ax_plus_b = ws.a @ x + ws.b
        factor = lu_factor_checked(np.asarray(ax_plus_b), "a*X + b")
        results.g1_2[...] = -lu_solve(factor, jac[:, 3 * n :].toarray())

    fill_results(results, ids)
    return results
