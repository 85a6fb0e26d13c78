"""Shared test helpers for the linear_re test suite.

Provides factory functions that build small, analytically tractable linear
rational-expectations models as full Jacobians ``[y(t-1) | y(t) | y(t+1) |
u(t)]`` together with their lead-lag incidence.  Keeping them in a single
helpers module avoids duplicating model definitions across test modules.
"""

from dataclasses import dataclass

import numpy as np

from linear_re.indices import Indices, build_indices_from_incidence, compact_jacobian


@dataclass(frozen=True)
class LinearModel:
    """A linear model given by its full Jacobian and lead-lag incidence."""

    full_jacobian: np.ndarray
    lead_lag_incidence: np.ndarray
    n_exogenous: int

    @property
    def ids(self) -> Indices:
        return build_indices_from_incidence(self.lead_lag_incidence, self.n_exogenous)

    @property
    def compact_jacobian(self) -> np.ndarray:
        return compact_jacobian(self.full_jacobian, self.ids)


def make_scalar_model(
    rho: float = 0.9, beta: float = 0.95, kappa: float = 0.1, sigma: float = 0.01
) -> LinearModel:
    """Build an AR(1) state with a linear Euler equation and two static variables.

    Variables are ``(c, k, s1, s2)`` and the single shock is ``eps``:

        k  = rho * k(-1) + sigma * eps
        c  = beta * c(+1) + kappa * k
        s1 = c + k
        s2 = 2 * s1 - k(-1)

    With ``P = kappa / (1 - beta * rho)`` the exact decision rule is

        k  = rho k(-1)                  + sigma eps
        c  = P rho k(-1)                + P sigma eps
        s1 = (P + 1) rho k(-1)          + (P + 1) sigma eps
        s2 = (2 (P + 1) rho - 1) k(-1)  + 2 (P + 1) sigma eps

    The classification is ``forward=[0]``, ``current=[0, 1, 2, 3]``,
    ``backward=[1]`` and ``static=[2, 3]``.
    """
    n = 4
    jac = np.zeros((n, 3 * n + 1))
    c, k, s1, s2 = range(n)
    lag, cur, lead, exo = 0, n, 2 * n, 3 * n

    jac[0, cur + k] = 1.0
    jac[0, lag + k] = -rho
    jac[0, exo] = -sigma

    jac[1, cur + c] = 1.0
    jac[1, lead + c] = -beta
    jac[1, cur + k] = -kappa

    jac[2, cur + s1] = 1.0
    jac[2, cur + c] = -1.0
    jac[2, cur + k] = -1.0

    jac[3, cur + s2] = 1.0
    jac[3, cur + s1] = -2.0
    jac[3, lag + k] = 1.0

    lli = np.array(
        [
            [0, 1, 0, 0],
            [1, 1, 1, 1],
            [1, 0, 0, 0],
        ]
    )
    return LinearModel(full_jacobian=jac, lead_lag_incidence=lli, n_exogenous=1)


def scalar_model_decision_rule(
    rho: float = 0.9, beta: float = 0.95, kappa: float = 0.1, sigma: float = 0.01
) -> np.ndarray:
    """Exact ``g1 = [g1_1 | g1_2]`` of :func:`make_scalar_model`."""
    p = kappa / (1.0 - beta * rho)
    return np.array(
        [
            [p * rho, p * sigma],
            [rho, sigma],
            [(p + 1.0) * rho, (p + 1.0) * sigma],
            [2.0 * (p + 1.0) * rho - 1.0, 2.0 * (p + 1.0) * sigma],
        ]
    )


def make_hybrid_model(a: float = 0.5, b: float = 0.3) -> LinearModel:
    """Build ``x = a x(-1) + b x(+1) + eps``, a variable both forward and backward.

    The stable root of ``b z^2 - z + a = 0`` is

        lambda = (1 - sqrt(1 - 4 a b)) / (2 b)

    and the decision rule is ``x = lambda x(-1) + eps / (1 - b lambda)``.
    """
    jac = np.array([[-a, 1.0, -b, -1.0]])
    lli = np.array([[1], [1], [1]])
    return LinearModel(full_jacobian=jac, lead_lag_incidence=lli, n_exogenous=1)


def hybrid_model_root(a: float = 0.5, b: float = 0.3) -> float:
    return (1.0 - np.sqrt(1.0 - 4.0 * a * b)) / (2.0 * b)


def make_nk_model() -> LinearModel:
    """Build a small New Keynesian model with habit, smoothing and static variables.

    Variables are ``(pi, y, i, s, w)``, shocks ``(e_y, e_i)``:

        y  = 0.3 y(-1) + 0.3 y(+1) - 0.05 (i - pi(+1)) + e_y
        pi = 0.9 pi(+1) + 0.05 y
        i  = 0.5 i(-1) + 0.75 pi + 0.25 y + e_i
        s  = i - pi
        w  = y + 0.5 s

    ``y`` is both forward and backward, ``pi`` purely forward, ``i``
    backward and ``s``, ``w`` static.  The Taylor rule satisfies the Taylor
    principle, so the model has a unique stable solution.
    """
    n = 5
    jac = np.zeros((n, 3 * n + 2))
    pi, y, i, s, w = range(n)
    lag, cur, lead, exo = 0, n, 2 * n, 3 * n

    jac[0, cur + y] = 1.0
    jac[0, lag + y] = -0.3
    jac[0, lead + y] = -0.3
    jac[0, cur + i] = 0.05
    jac[0, lead + pi] = -0.05
    jac[0, exo] = -1.0

    jac[1, cur + pi] = 1.0
    jac[1, lead + pi] = -0.9
    jac[1, cur + y] = -0.05

    jac[2, cur + i] = 1.0
    jac[2, lag + i] = -0.5
    jac[2, cur + pi] = -0.75
    jac[2, cur + y] = -0.25
    jac[2, exo + 1] = -1.0

    jac[3, cur + s] = 1.0
    jac[3, cur + i] = -1.0
    jac[3, cur + pi] = 1.0

    jac[4, cur + w] = 1.0
    jac[4, cur + y] = -1.0
    jac[4, cur + s] = -0.5

    lli = np.array(
        [
            [0, 1, 1, 0, 0],
            [1, 1, 1, 1, 1],
            [1, 1, 0, 0, 0],
        ]
    )
    return LinearModel(full_jacobian=jac, lead_lag_incidence=lli, n_exogenous=2)


def make_random_walk_model() -> LinearModel:
    """Build ``x = x(-1) + eps`` with the static first difference ``d = x - x(-1)``.

    ``x`` has a unit root and is nonstationary, ``d`` equals ``eps`` and is
    stationary with unit variance.
    """
    jac = np.array(
        [
            [-1.0, 0.0, 1.0, 0.0, 0.0, 0.0, -1.0],
            [1.0, 0.0, -1.0, 1.0, 0.0, 0.0, 0.0],
        ]
    )
    lli = np.array(
        [
            [1, 0],
            [1, 1],
            [0, 0],
        ]
    )
    return LinearModel(full_jacobian=jac, lead_lag_incidence=lli, n_exogenous=1)
