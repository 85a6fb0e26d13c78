"""Cyclic reduction for the quadratic matrix equation ``a X^2 + b X + c = 0``.

Cyclic reduction (Bini, Latouche and Meini, 2005) computes the minimal
solvent of the quadratic matrix equation, i.e. the solution whose
eigenvalues are the ``n`` smallest roots in modulus of
``det(a z^2 + b z + c)``.  For a model with a unique stable solution this
is the stable decision rule, ``y_t = X y_{t-1}``.

Each step replaces the triple ``(A0, A1, A2) = (c, b, a)`` by

.. math::

    A_0' = -A_0 A_1^{-1} A_0, \\quad
    A_2' = -A_2 A_1^{-1} A_2, \\quad
    A_1' = A_1 - A_0 A_1^{-1} A_2 - A_2 A_1^{-1} A_0

and accumulates :math:`\\hat{A}_1' = \\hat{A}_1 - A_2 A_1^{-1} A_0`.  The
iteration stops once either :math:`A_0` or :math:`A_2` vanishes, after
which :math:`X = -\\hat{A}_1^{-1} c`.

References
----------
Bini, D. A., Latouche, G. and Meini, B. (2005). *Numerical Methods for
    Structured Markov Chains*. Oxford University Press.
"""

from __future__ import annotations

import numpy as np
from scipy import sparse

from .exceptions import CyclicReductionError
from .linalg_ops import as_dense, lu_factor_checked, lu_solve

Array = np.ndarray


class CyclicReductionSolver:
    """Workspace of the cyclic reduction iteration.

    Attributes
    ----------
    x : Array, shape (n, n)
        Solution of the last successful call.
    iterations : int
        Number of reduction steps taken by the last call.
    crit : float
        Final convergence criterion of the last call.
    """

    def __init__(self, n: int):
        self.n = n
        self.x = np.zeros((n, n), dtype=float)
        self.iterations = 0
        self.crit = np.inf

    def solve(
        self,
        a: Array | sparse.spmatrix,
        b: Array | sparse.spmatrix,
        c: Array | sparse.spmatrix,
        *,
        tolerance: float,
        max_iterations: int,
    ) -> Array:
        """Return the minimal solution of ``a X^2 + b X + c = 0``.

        The inputs are copied to dense iteration matrices and never
        modified.  Only ``x`` is written in place.

        Parameters
        ----------
        a, b, c : Array or sparse matrix, shape (n, n)
            Coefficients on future, current and past values.
        tolerance : float
            Convergence threshold on ``min(|A0|_1, |A2|_1)``.
        max_iterations : int
            Maximum number of reduction steps.

        Raises
        ------
        CyclicReductionError
            If the criterion is not met within *max_iterations* steps or
            the iteration produces non-finite values.
        SingularSystemError
            If ``A1`` or the accumulated ``A1_hat`` becomes singular.
        """
        c_dense = as_dense(c)
        a0 = c_dense.copy()
        a1 = as_dense(b).copy()
        a2 = as_dense(a).copy()
        a1_hat = a1.copy()

        self.iterations = 0
        self.crit = np.inf
        for iteration in range(1, max_iterations + 1):
            factor = lu_factor_checked(a1, "cyclic reduction A1")
            a1_inv_a0 = lu_solve(factor, a0)
            a1_inv_a2 = lu_solve(factor, a2)
            a2_a1_inv_a0 = a2 @ a1_inv_a0

            a1 = a1 - a0 @ a1_inv_a2 - a2_a1_inv_a0
            a1_hat -= a2_a1_inv_a0
            a0 = -(a0 @ a1_inv_a0)
            a2 = -(a2 @ a1_inv_a2)

            self.iterations = iteration
            self.crit = min(np.linalg.norm(a0, 1), np.linalg.norm(a2, 1))
            if not np.isfinite(self.crit):
                raise CyclicReductionError(iteration, self.crit)
            if self.crit < tolerance:
                break
        else:
            raise CyclicReductionError(max_iterations, self.crit)

        self.x[...] = -lu_solve(lu_factor_checked(a1_hat, "cyclic reduction A1_hat"), c_dense)
        return self.x
