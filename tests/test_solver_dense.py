"""Tests for the dense generalized Schur solver.

The dense path eliminates static variables by QR decomposition, solves
the reduced pencil ``D w_t = E w_{t-1}`` with the ordered QZ
decomposition and back-substitutes the static block.  The models built in
``helpers`` have closed-form decision rules, which provide exact checks of
every stage.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from helpers import (
    hybrid_model_root,
    make_hybrid_model,
    make_nk_model,
    make_random_walk_model,
    make_scalar_model,
    scalar_model_decision_rule,
)
from linear_re.exceptions import BlanchardKahnError, SingularSystemError
from linear_re.indices import build_indices, compact_jacobian
from linear_re.options import GSOptions, LinearRationalExpectationsOptions
from linear_re.qz import GeneralizedSchurSolver
from linear_re.results import LinearRationalExpectationsResults
from linear_re.solver import make_workspace, solve
from linear_re.solver_dense import solve_for_derivatives_with_respect_to_shocks


def _solve_dense(model, options=None):
    ids = model.ids
    ws = make_workspace("GS", ids)
    results = LinearRationalExpectationsResults.from_indices(ids)
    solve(results, model.compact_jacobian, options, ws)
    return results, ws


def test_dense_solver_matches_analytic_decision_rule():
    """Verify g1 against the closed form of the scalar model with static variables.

    The backward row is the AR(1) law of motion, the forward row the
    Euler-equation policy ``P = kappa / (1 - beta * rho)`` and the static
    rows follow by substitution.
    """
    results, _ = _solve_dense(make_scalar_model())

    expected = scalar_model_decision_rule()
    assert_allclose(results.g1, expected, atol=1e-10)
    assert_allclose(results.gs1, [[0.9]], atol=1e-10)
    assert_allclose(results.hs1, [[0.01]], atol=1e-10)
    assert_allclose(results.gns1, expected[[0, 2, 3], :1], atol=1e-10)
    assert_allclose(results.hns1, expected[[0, 2, 3], 1:], atol=1e-10)
    assert results.stable


def test_dense_solver_reports_eigenvalues_stable_first():
    results, _ = _solve_dense(make_scalar_model())

    assert results.eigenvalues.shape == (2,)
    assert_allclose(results.eigenvalues[0], 0.9, atol=1e-10)
    assert_allclose(results.eigenvalues[1], 1.0 / 0.95, atol=1e-10)


def test_dense_solver_handles_variable_both_forward_and_backward():
    """The hybrid equation x = a x(-1) + b x(+1) + eps has root lambda = (1 - sqrt(1 - 4ab)) / 2b."""
    a, b = 0.5, 0.3
    results, _ = _solve_dense(make_hybrid_model(a, b))

    root = hybrid_model_root(a, b)
    assert_allclose(results.gs1, [[root]], atol=1e-10)
    assert_allclose(results.hs1, [[1.0 / (1.0 - b * root)]], atol=1e-10)
    assert results.gns1.shape == (0, 1)


def test_pencil_residual_vanishes_on_stable_subspace():
    """D [I; g2] g1 = E [I; g2] must hold for the pencil of the reduced system."""
    _, ws = _solve_dense(make_nk_model())

    g1 = ws.solver_ws.g1
    g2 = ws.solver_ws.g2
    basis = np.vstack([np.eye(g1.shape[0]), g2])
    assert_allclose(ws.d @ basis @ g1, ws.e @ basis, atol=1e-10)


def test_decision_rule_satisfies_model_equations():
    """Plugging the decision rule into the full Jacobian gives zero residuals.

    With y(t) = G y(t-1)_b + H u and E_t y(t+1) = G y(t)_b, the coefficients
    on y(t-1) and on u(t) of every equation must vanish.
    """
    model = make_nk_model()
    ids = model.ids
    results, _ = _solve_dense(model)
    n = ids.n_endogenous
    jac = model.full_jacobian
    a, b, c, d = jac[:, 2 * n : 3 * n], jac[:, n : 2 * n], jac[:, :n], jac[:, 3 * n :]

    x = np.zeros((n, n))
    x[:, ids.backward] = results.g1_1
    assert_allclose(a @ x @ x + b @ x + c, 0.0, atol=1e-10)
    assert_allclose((a @ x + b) @ results.g1_2 + d, 0.0, atol=1e-10)


def test_dense_solver_is_idempotent():
    """Solving twice with the same Jacobian and workspace gives bit-identical results."""
    model = make_nk_model()
    ids = model.ids
    ws = make_workspace("GS", ids)
    jacobian = model.compact_jacobian
    first = LinearRationalExpectationsResults.from_indices(ids)
    second = LinearRationalExpectationsResults.from_indices(ids)

    solve(first, jacobian, None, ws)
    solve(second, jacobian, None, ws)

    for name in ("g1", "gs1", "hs1", "gns1", "hns1", "eigenvalues"):
        assert_array_equal(getattr(first, name), getattr(second, name))


def test_dense_solver_does_not_modify_caller_jacobian():
    model = make_scalar_model()
    jacobian = model.compact_jacobian
    original = jacobian.copy()
    ids = model.ids

    solve(LinearRationalExpectationsResults.from_indices(ids), jacobian, None, make_workspace("GS", ids))

    assert_array_equal(jacobian, original)


def test_dense_solver_is_invariant_to_role_vector_order():
    """Reversing every role vector permutes the columns of g1 and nothing else."""
    model = make_nk_model()
    ids = model.ids
    results, _ = _solve_dense(model)

    reversed_ids = build_indices(
        ids.n_exogenous, ids.forward[::-1], ids.current[::-1], ids.backward[::-1], ids.static[::-1]
    )
    reversed_results = LinearRationalExpectationsResults.from_indices(reversed_ids)
    solve(
        reversed_results,
        compact_jacobian(model.full_jacobian, reversed_ids),
        None,
        make_workspace("GS", reversed_ids),
    )

    assert_allclose(reversed_results.g1_1, results.g1_1[:, ::-1], atol=1e-10)
    assert_allclose(reversed_results.g1_2, results.g1_2, atol=1e-10)
    assert_allclose(reversed_results.gs1, results.gs1[::-1, ::-1], atol=1e-10)
    assert_allclose(reversed_results.hs1, results.hs1[::-1], atol=1e-10)
    assert_allclose(reversed_results.gns1, results.gns1[:, ::-1], atol=1e-10)
    assert_allclose(reversed_results.hns1, results.hns1, atol=1e-10)


def test_unit_root_is_stable_under_default_criterium():
    """A random walk has a root of exactly one, which the default criterium keeps as stable."""
    results, _ = _solve_dense(make_random_walk_model())

    assert_allclose(results.gs1, [[1.0]], atol=1e-10)
    assert_allclose(results.g1, [[1.0, 1.0], [0.0, 1.0]], atol=1e-10)


def test_unit_root_is_unstable_under_strict_criterium():
    options = LinearRationalExpectationsOptions(generalized_schur=GSOptions(criterium=1.0 - 1e-6))

    with pytest.raises(BlanchardKahnError) as exc:
        _solve_dense(make_random_walk_model(), options)

    assert exc.value.reason == "no_stable_equilibrium"


def test_too_many_stable_roots_raise_indeterminacy():
    """x = 2 x(+1) has the stable root 0.5 but no backward variable to pin it down.

    The eigenvalues of the pencil remain available on the results for
    diagnosis.
    """
    ids = build_indices(0, [0], [0], [], [])
    ws = make_workspace("GS", ids)
    results = LinearRationalExpectationsResults.from_indices(ids)

    with pytest.raises(BlanchardKahnError) as exc:
        solve(results, np.array([[1.0, -2.0]]), None, ws)

    assert exc.value.reason == "indeterminacy"
    assert exc.value.stable_count == 1
    assert exc.value.expected_stable == 0
    assert_allclose(results.eigenvalues, [0.5], atol=1e-12)


def test_too_few_stable_roots_raise_no_stable_equilibrium():
    """x = 2 x(-1) + eps is explosive: one backward variable but no stable root."""
    ids = build_indices(1, [], [0], [0], [])
    ws = make_workspace("GS", ids)
    results = LinearRationalExpectationsResults.from_indices(ids)

    with pytest.raises(BlanchardKahnError) as exc:
        solve(results, np.array([[-2.0, 1.0, -1.0]]), None, ws)

    assert exc.value.reason == "no_stable_equilibrium"
    assert exc.value.stable_count == 0
    assert_allclose(results.eigenvalues, [2.0], atol=1e-12)


def test_dense_solver_rejects_wrong_jacobian_shape():
    model = make_scalar_model()
    ids = model.ids
    with pytest.raises(ValueError, match="compact Jacobian"):
        solve(
            LinearRationalExpectationsResults.from_indices(ids),
            model.full_jacobian,
            None,
            make_workspace("GS", ids),
        )


def test_collinear_static_variables_raise_singular_static_block():
    """s1 + s2 = k and 2 s1 + 2 s2 = 2 k leave the static variables undetermined.

    The dynamic part k = 0.5 k(-1) + eps still solves, so the pencil
    eigenvalues are reported before the static back-substitution fails.
    """
    ids = build_indices(1, [], [0, 1, 2], [0], [1, 2])
    ws = make_workspace("GS", ids)
    results = LinearRationalExpectationsResults.from_indices(ids)
    jacobian = np.array(
        [
            [-0.5, 1.0, 0.0, 0.0, -1.0],
            [0.0, -1.0, 1.0, 1.0, 0.0],
            [0.0, -2.0, 2.0, 2.0, 0.0],
        ]
    )

    with pytest.raises(SingularSystemError) as exc:
        solve(results, jacobian, None, ws)

    assert exc.value.matrix_name == "static block B_s,s"
    assert_allclose(results.eigenvalues, [0.5], atol=1e-12)


def test_singular_ag_plus_b_raises_in_shock_response():
    """A singular A G + B leaves the response to the shocks undetermined.

    Since ``a z^2 + b z + c = (z a + (a G + b)) (z I - G)``, a singular
    ``A G + B`` adds a zero root to the pencil and a full solve stops at
    the Blanchard-Kahn count, so the shock step is driven directly after
    a successful solve.
    """
    model = make_scalar_model()
    ids = model.ids
    ws = make_workspace("GS", ids)
    results = LinearRationalExpectationsResults.from_indices(ids)
    solve(results, model.compact_jacobian, None, ws)
    ws.ag_plus_b[:, 0] = ws.ag_plus_b[:, 1]

    with pytest.raises(SingularSystemError) as exc:
        solve_for_derivatives_with_respect_to_shocks(results, ws.jacobian, ws)

    assert exc.value.matrix_name == "A*G + B"
    assert_allclose(results.eigenvalues, [0.9, 1.0 / 0.95], atol=1e-10)


def test_infinite_eigenvalue_is_not_counted_as_stable():
    """|alpha| < criterium |beta| holds for alpha = 1e-16, beta = 1e-14, but the root is infinite."""
    solver = GeneralizedSchurSolver(1, 1)

    with pytest.raises(BlanchardKahnError) as exc:
        solver.solve(np.array([[1e-14]]), np.array([[1e-16]]), 1.0 + 1e-6)

    assert exc.value.stable_count == 0
    assert exc.value.reason == "no_stable_equilibrium"
    assert np.isinf(exc.value.eigenvalues).all()
