"""Dense first-order solver based on the generalized Schur decomposition.

Algorithm outline
-----------------
1. Eliminate the static variables: QR-factorise the columns of the
   Jacobian holding their current derivatives and apply ``Q^T`` to the
   whole Jacobian.  The first ``n_static`` rows then hold the static
   equations, the remaining rows no longer involve the static variables.
2. Fill the pencil ``(D, E)`` from the dynamic rows, adding one identity
   equation per variable that is both forward and backward.
3. Solve the pencil with the ordered QZ decomposition
   (:class:`~linear_re.qz.GeneralizedSchurSolver`).
4. Recover the static rows of the decision rule by back-substitution:

   .. math::

       G_{y,static} = -B_{s,s}^{-1}
           (A_s G_{y,fwrd} g_{s} + B_{s,d} G_{y,dynamic} + C_s)

5. Solve ``(A G + B) g_{1,2} = -J_u`` for the shock response.

References
----------
Villemot, S. (2011). "Solving rational expectations models at first
    order: what Dynare does." *Dynare Working Papers*, 2.
"""

from __future__ import annotations

import numpy as np
from scipy import linalg, sparse

from .indices import Indices
from .linalg_ops import as_dense, lu_factor_checked, lu_solve
from .options import LinearRationalExpectationsOptions
from .qz import GeneralizedSchurSolver
from .results import LinearRationalExpectationsResults, fill_results

Array = np.ndarray


class LinearGSWorkspace:
    """Workspace for dense Jacobians, solved by generalized Schur decomposition.

    All buffers are sized once from *ids* and reused by every call to
    :func:`solve_dense`.  A workspace must not be shared by concurrent
    solves.

    Parameters
    ----------
    ids : Indices
        Index model of the variables.
    singular_tol : float
        Tolerance used to detect infinite eigenvalues and singular blocks.
    """

    def __init__(self, ids: Indices, *, singular_tol: float = 1e-12):
        n_back = ids.n_backward
        n_stat = ids.n_static
        n_forw = ids.n_forward
        n_end = ids.n_endogenous
        n_curr = ids.n_current
        de_order = n_forw + n_back

        self.ids = ids
        self.singular_tol = singular_tol

        self.d = np.zeros((de_order, de_order), dtype=float)
        self.e = np.zeros((de_order, de_order), dtype=float)
        self.solver_ws = GeneralizedSchurSolver(de_order, n_back, singular_tol=singular_tol)

        self.jacobian = np.empty((n_end, ids.n_compact_columns), dtype=float)
        self.jacobian_static = np.empty((n_end, n_stat), dtype=float)

        self.a_s = np.empty((n_stat, n_forw), dtype=float)
        self.c_s = np.empty((n_stat, n_back), dtype=float)
        self.gy_forward = np.empty((n_forw, n_back), dtype=float)
        self.gy_dynamic = np.empty((n_end - n_stat, n_back), dtype=float)
        self.temp = np.empty((n_stat, n_back), dtype=float)
        self.b10 = np.empty((n_stat, n_stat), dtype=float)
        self.b11 = np.empty((n_stat, n_end - n_stat), dtype=float)

        self.ag_plus_b_backward = np.empty((n_end, n_back), dtype=float)
        self.jacobian_forward = np.empty((n_end, n_forw), dtype=float)
        self.jacobian_current = np.empty((n_end, n_curr), dtype=float)
        self.ag_plus_b = np.empty((n_end, n_end), dtype=float)


def remove_static(jacobian: Array, ws: LinearGSWorkspace) -> Array:
    """Remove the static variables from the dynamic equations by QR decomposition.

    *jacobian* is transformed in place: on exit its first ``n_static``
    rows hold the (upper-triangular) static block and the remaining rows
    the dynamic equations, with zero coefficients on the static variables.
    """
    ids = ws.ids
    if ids.n_static == 0:
        return jacobian
    ws.jacobian_static[...] = jacobian[:, ids.current_in_static_jacobian]
    q, _ = linalg.qr(ws.jacobian_static)
    jacobian[...] = q.T @ jacobian
    return jacobian


def copy_jacobian(ws: LinearGSWorkspace, jacobian: Array) -> tuple[Array, Array]:
    """Fill the pencil matrices ``D`` and ``E`` from the transformed Jacobian."""
    ws.d.fill(0.0)
    ws.e.fill(0.0)

    ids = ws.ids
    n_dyn = ids.n_dynamic
    dynamic_rows = jacobian[ids.n_static :, :]

    ws.d[:n_dyn, ids.D_columns.pencil] = dynamic_rows[:, ids.D_columns.jacobian]
    ws.e[:n_dyn, ids.E_columns.pencil] = -dynamic_rows[:, ids.E_columns.jacobian]

    for i in range(ids.n_both):
        k = n_dyn + i
        ws.d[k, ids.UD_columns[i]] = 1.0
        ws.e[k, ids.UE_columns[i]] = 1.0

    return ws.d, ws.e


def add_static(
    results: LinearRationalExpectationsResults, jacobian: Array, ws: LinearGSWorkspace
) -> Array:
    """Compute the rows of the decision rule of the static variables.

    .. math::

        G_{y,static} = -B_{s,s}^{-1}(A_s G_{y,fwrd} g_s + B_{s,d} G_{y,dynamic} + C_s)

    Raises
    ------
    SingularSystemError
        If the static block ``B_{s,s}`` is singular.
    """
    ids = ws.ids
    n_stat = ids.n_static
    n_back = ids.n_backward
    n_cur = ids.n_current
    n_for = ids.n_forward
    # static rows are at the top of the QR transformed Jacobian
    static_rows = jacobian[:n_stat, :]

    # B_s,s
    ws.b10[...] = static_rows[:, ids.current_in_static_jacobian]
    # B_s,d
    ws.b11.fill(0.0)
    ws.b11[:, ids.current_in_dynamic] = static_rows[:, ids.current_in_dynamic_jacobian]
    # A_s
    ws.a_s[...] = static_rows[:, n_back + n_cur : n_back + n_cur + n_for]
    # C_s
    ws.c_s[...] = static_rows[:, :n_back]
    ws.gy_forward[...] = results.g1_1[ids.forward, :]
    ws.gy_dynamic[...] = results.g1_1[ids.dynamic, :]

    # C_s <- -(A_s Gy_fwrd gs1 + B_s,d Gy_dynamic + C_s)
    ws.c_s += ws.b11 @ ws.gy_dynamic
    np.matmul(ws.a_s, ws.gy_forward, out=ws.temp)
    ws.c_s[...] = -(ws.temp @ results.gs1) - ws.c_s

    factor = lu_factor_checked(ws.b10, "static block B_s,s", singular_tol=ws.singular_tol)
    if n_back > 0:
        results.g1[ids.static, :n_back] = lu_solve(factor, ws.c_s)
    return results.g1


def make_ag_plus_b(
    ag_plus_b: Array, a: Array, g: Array, b: Array, ws: LinearGSWorkspace
) -> Array:
    """Assemble ``A G + B`` over all endogenous columns.

    ``B`` (current derivatives) fills the current columns and ``A G_fwrd``
    (forward derivatives times the forward rows of the decision rule) is
    added to the backward columns.
    """
    ids = ws.ids
    ag_plus_b.fill(0.0)
    ag_plus_b[:, ids.current] = b
    ws.gy_forward[...] = g[ids.forward, :]
    np.matmul(a, ws.gy_forward, out=ws.ag_plus_b_backward)
    ag_plus_b[:, ids.backward] += ws.ag_plus_b_backward
    return ag_plus_b


def solve_for_derivatives_with_respect_to_shocks(
    results: LinearRationalExpectationsResults, jacobian: Array, ws: LinearGSWorkspace
) -> Array:
    """Solve ``(A G + B) g1_2 = -J_u`` for the shock columns of ``g1``.

    Raises
    ------
    SingularSystemError
        If ``A G + B`` is singular.
    """
    ids = ws.ids
    if ids.n_exogenous > 0:
        factor = lu_factor_checked(ws.ag_plus_b, "A*G + B", singular_tol=ws.singular_tol)
        results.g1_2[...] = -lu_solve(factor, jacobian[:, ids.exogenous])
    return results.g1_2


def solve_dense(
    results: LinearRationalExpectationsResults,
    jacobian: Array | sparse.spmatrix,
    options: LinearRationalExpectationsOptions | None,
    ws: LinearGSWorkspace,
) -> LinearRationalExpectationsResults:
    """Solve the linear rational-expectations system for a compact Jacobian.

    Parameters
    ----------
    results : LinearRationalExpectationsResults
        Overwritten in place.
    jacobian : Array, shape (n_endogenous, n_backward + n_current + n_forward + n_exogenous)
        Compact Jacobian ``[backward | current | forward | exogenous]``.
        It is copied into the workspace and never modified.
    options : LinearRationalExpectationsOptions or None
        Solver options; defaults are used when ``None``.
    ws : LinearGSWorkspace
        Workspace built from the model's :class:`Indices`.

    Returns
    -------
    LinearRationalExpectationsResults
        *results*, filled with the decision rule.

    Raises
    ------
    BlanchardKahnError
        If there is no unique stable solution.  ``results.eigenvalues``
        still holds the eigenvalues of the pencil.
    SingularSystemError
        If the static block or ``A G + B`` is singular.
    """
    if options is None:
        options = LinearRationalExpectationsOptions()

    ids = ws.ids
    n_back = ids.n_backward
    n_cur = ids.n_current
    n_for = ids.n_forward

    jacobian_in = as_dense(jacobian)
    if jacobian_in.shape != ws.jacobian.shape:
        raise ValueError(
            f"Expected a compact Jacobian of shape {ws.jacobian.shape}, got {jacobian_in.shape}"
        )
    ws.jacobian[...] = jacobian_in

    jacobian = remove_static(ws.jacobian, ws)
    copy_jacobian(ws, jacobian)

    try:
        g1, g2 = ws.solver_ws.solve(ws.d, ws.e, options.generalized_schur.criterium)
    finally:
        results.eigenvalues = ws.solver_ws.eigenvalues.copy()

    results.gs1[...] = g1
    results.g1[ids.backward, :n_back] = g1
    results.g1[ids.purely_forward, :n_back] = g2[ids.purely_forward_in_forward, :]

    if ids.n_static > 0:
        add_static(results, jacobian, ws)

    ws.jacobian_forward[...] = jacobian[:, n_back + n_cur : n_back + n_cur + n_for]
    ws.jacobian_current[...] = jacobian[:, n_back : n_back + n_cur]
    make_ag_plus_b(ws.ag_plus_b, ws.jacobian_forward, results.g1_1, ws.jacobian_current, ws)

    solve_for_derivatives_with_respect_to_shocks(results, jacobian, ws)

    fill_results(results, ids)
    return results
