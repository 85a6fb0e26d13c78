"""Blanchard-Kahn diagnostics and the generalized Schur (QZ) pencil solver.

The reduced dynamic system of a linear rational-expectations model is the
matrix pencil

.. math::

    D \\, w_t = E \\, w_{t-1}, \\qquad
    w_t = [y^b_t;\\ y^f_{t+1}]

where :math:`y^b` collects the backward-looking and :math:`y^f` the
forward-looking variables.  The ordered generalised Schur decomposition of
``(E, D)`` separates the stable invariant subspace, which must have the
dimension of :math:`y^b` for a unique stable solution to exist
(Blanchard and Kahn, 1980).  On that subspace the solution reads

.. math::

    w_t = \\begin{bmatrix} I \\\\ g_2 \\end{bmatrix} y^b_t, \\qquad
    y^b_t = g_1 \\, y^b_{t-1}.

References
----------
Blanchard, O. J. and Kahn, C. M. (1980). "The Solution of Linear
    Difference Models under Rational Expectations." *Econometrica*,
    48(5), 1305-1311.
Klein, P. (2000). "Using the generalized Schur form to solve a
    multivariate linear rational expectations model." *JEDC*, 24(10),
    1405-1423.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy import linalg

from .exceptions import BlanchardKahnError

Array = np.ndarray


@dataclass(frozen=True)
class BKDiagnostics:
    """Diagnostic information for a Blanchard-Kahn condition check.

    Attributes
    ----------
    stable_count : int
        Number of generalised eigenvalues with modulus below the
        stability criterium.
    expected_stable : int
        Number of stable eigenvalues required for a unique equilibrium,
        equal to the number of backward-looking variables.
    reason : str
        Classification of the result: ``"ok"``, ``"indeterminacy"``
        (too many stable), ``"no_stable_equilibrium"`` (too few stable),
        or ``"rank_failure"`` (singular Z partition).
    eigenvalues : Array
        All generalised eigenvalues of the pencil.
    """

    stable_count: int
    expected_stable: int
    reason: str
    eigenvalues: Array


def compute_generalized_eigenvalues(
    alpha: Array, beta: Array, singular_tol: float
) -> Array:
    """Compute generalised eigenvalues from QZ output.

    Given the diagonal entries ``alpha`` and ``beta`` of the generalised
    Schur decomposition, computes ``alpha_i / beta_i``.  Entries where
    ``|beta_i|`` is below *singular_tol* are mapped to infinity.

    Parameters
    ----------
    alpha : Array
        Diagonal of the S factor from the QZ decomposition.
    beta : Array
        Diagonal of the T factor from the QZ decomposition.
    singular_tol : float
        Threshold below which ``|beta_i|`` is considered zero.

    Returns
    -------
    Array
        Complex generalised eigenvalues.
    """
    alpha = np.asarray(alpha, dtype=complex)
    beta = np.asarray(beta, dtype=complex)
    with np.errstate(divide="ignore", invalid="ignore"):
        eigenvalues = alpha / beta
    return np.where(np.abs(beta) < singular_tol, complex(np.inf, 0.0), eigenvalues)


def classify_bk_failure(stable_count: int, expected_stable: int) -> str:
    """Classify the type of Blanchard-Kahn condition failure.

    Parameters
    ----------
    stable_count : int
        Number of stable eigenvalues found.
    expected_stable : int
        Number required for a unique equilibrium.

    Returns
    -------
    str
        ``"indeterminacy"`` if too many stable roots (multiple
        equilibria), ``"no_stable_equilibrium"`` if too few, or
        ``"ok"`` if the condition is satisfied.
    """
    if stable_count > expected_stable:
        return "indeterminacy"
    if stable_count < expected_stable:
        return "no_stable_equilibrium"
    return "ok"


class GeneralizedSchurSolver:
    """Stable-subspace solver for the pencil ``D w_t = E w_{t-1}``.

    Parameters
    ----------
    n : int
        Order of the pencil (``n_forward + n_backward``).
    n_backward : int
        Dimension of the backward block, i.e. the required number of
        stable eigenvalues.
    singular_tol : float
        Tolerance for infinite eigenvalues and for the conditioning of
        the ``Z11`` and ``T11`` blocks.

    Attributes
    ----------
    eigenvalues : Array
        Generalised eigenvalues of the last decomposition, stable ones
        first.  Reset to an empty array at the start of every solve.
    g1 : Array, shape (n_backward, n_backward)
        Transition of the backward block.
    g2 : Array, shape (n - n_backward, n_backward)
        Forward block of the stable subspace.
    """

    def __init__(self, n: int, n_backward: int, *, singular_tol: float = 1e-12):
        self.n = n
        self.n_backward = n_backward
        self.singular_tol = singular_tol
        self.eigenvalues = np.empty(0, dtype=complex)
        self.g1 = np.zeros((n_backward, n_backward), dtype=float)
        self.g2 = np.zeros((n - n_backward, n_backward), dtype=float)

    def solve(self, d: Array, e: Array, criterium: float) -> tuple[Array, Array]:
        """Decompose the pencil and compute ``g1`` and ``g2``.

        Eigenvalues with ``|alpha| < criterium * |beta|`` are stable,
        except those reported as infinite (``|beta| < singular_tol``).

        Raises
        ------
        BlanchardKahnError
            If the number of stable eigenvalues differs from
            ``n_backward`` or the stable block of ``Z`` is singular.
        """
        self.eigenvalues = np.empty(0, dtype=complex)
        n_b = self.n_backward
        if self.n == 0:
            return self.g1, self.g2

        singular_tol = self.singular_tol

        # infinite eigenvalues (|beta| < singular_tol) are never stable
        def stable(alpha: Array, beta: Array) -> Array:
            beta_abs = np.abs(beta)
            return (np.abs(alpha) < criterium * beta_abs) & (beta_abs >= singular_tol)

        stable_selector: Any = stable
        s, t, alpha, beta, _, z = linalg.ordqz(e, d, sort=stable_selector, output="real")

        self.eigenvalues = compute_generalized_eigenvalues(alpha, beta, self.singular_tol)
        stable_count = int(np.sum(stable(alpha, beta)))
        if stable_count != n_b:
            raise BlanchardKahnError(
                BKDiagnostics(
                    stable_count=stable_count,
                    expected_stable=n_b,
                    reason=classify_bk_failure(stable_count, n_b),
                    eigenvalues=self.eigenvalues,
                )
            )
        if n_b == 0:
            return self.g1, self.g2

        z11 = z[:n_b, :n_b]
        z21 = z[n_b:, :n_b]
        s11 = s[:n_b, :n_b]
        t11 = t[:n_b, :n_b]
        for block in (z11, t11):
            cond = np.linalg.cond(block)
            if not np.isfinite(cond) or cond > 1.0 / self.singular_tol:
                raise BlanchardKahnError(
                    BKDiagnostics(
                        stable_count=stable_count,
                        expected_stable=n_b,
                        reason="rank_failure",
                        eigenvalues=self.eigenvalues,
                    )
                )

        # g1 = Z11 T11^{-1} S11 Z11^{-1},  g2 = Z21 Z11^{-1}
        z11_m = z11 @ linalg.solve(t11, s11)
        self.g1[...] = linalg.solve(z11.T, z11_m.T).T
        self.g2[...] = linalg.solve(z11.T, z21.T).T
        return self.g1, self.g2
