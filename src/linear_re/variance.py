"""Unconditional second moments implied by a first-order decision rule.

The decision rule stored in :class:`~linear_re.results.LinearRationalExpectationsResults`
gives the linear state-space representation::

    x_t = gs1  x_{t-1} + hs1  u_t          (backward variables)
    y_t = g1_1 x_{t-1} + g1_2 u_t          (all endogenous variables)

**Unit roots.**  The state transition ``gs1`` is brought to ordered real
Schur form ``Z^T gs1 Z = S`` with the roots on (or within ``unit_root_tol``
of) the unit circle first.  The trailing block ``S22`` then drives an
autonomous stationary process ``z2 = Z_2^T x``.  A variable is stationary
when its row of ``g1_1 Z`` has no weight on the unit-root directions.

**Variance (discrete Lyapunov equation).**  The covariance of ``z2``
satisfies::

    Sigma_z = S22 Sigma_z S22^T + Q2 Sigma_u Q2^T,     Q2 = Z_2^T hs1

solved by ``scipy.linalg.solve_discrete_lyapunov``, and for the stationary
variables ``Sigma_y = M2 Sigma_z M2^T + g1_2 Sigma_u g1_2^T`` with
``M2 = g1_1 Z_2``.  Rows and columns of nonstationary variables are NaN.

**Autocovariance.**  For lag ``k >= 1``::

    Cov(y_t, y_{t-k}) = M2 S22^{k-1} (S22 Sigma_z M2^T + Q2 Sigma_u g1_2^T)

References
----------
Hamilton (1994), *Time Series Analysis*, Ch. 10 (discrete Lyapunov
equation for covariance of linear state-space models).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy import linalg
from scipy.linalg import solve_discrete_lyapunov

from .results import LinearRationalExpectationsResults

Array = np.ndarray


@dataclass(frozen=True)
class _StationaryBlock:
    loading: Array
    transition: Array
    shock_loading: Array
    impact: Array
    variance: Array
    stationary: Array


def is_stationary(gs1: Array, *, tol: float = 1e-8) -> bool:
    """Return True if every eigenvalue of *gs1* has modulus below ``1 - tol``."""
    gs1 = np.asarray(gs1, dtype=float)
    if gs1.size == 0:
        return True
    return float(np.max(np.abs(np.linalg.eigvals(gs1)))) < 1.0 - tol


def _shock_covariance(results: LinearRationalExpectationsResults, shock_covariance: Array | None) -> Array:
    n_e = results.n_exogenous
    if shock_covariance is None:
        return np.eye(n_e, dtype=float)
    sigma_u = np.asarray(shock_covariance, dtype=float)
    if sigma_u.shape != (n_e, n_e):
        raise ValueError(f"Expected a shock covariance of shape {(n_e, n_e)}, got {sigma_u.shape}")
    return sigma_u


def _stationary_block(
    results: LinearRationalExpectationsResults, sigma_u: Array, unit_root_tol: float
) -> _StationaryBlock:
    gs1 = results.gs1
    g = results.g1_1
    h = results.g1_2
    n_b = gs1.shape[0]

    if n_b == 0:
        z = np.zeros((0, 0), dtype=float)
        s = np.zeros((0, 0), dtype=float)
        n_unit = 0
    else:
        def unit_root(alpha: Array, beta: Array) -> Array:
            return np.abs(alpha) >= (1.0 - unit_root_tol) * np.abs(beta)

        unit_selector: Any = unit_root
        # with B = I, Z^T gs1 Z = BB^{-1} AA is quasi upper triangular
        aa, bb, alpha, beta, _, z = linalg.ordqz(
            gs1, np.eye(n_b), sort=unit_selector, output="real"
        )
        s = linalg.solve_triangular(bb, aa)
        n_unit = int(np.sum(unit_root(alpha, beta)))

    gz = g @ z
    scale = max(float(np.max(np.abs(g), initial=0.0)), 1.0)
    stationary = ~np.any(np.abs(gz[:, :n_unit]) > unit_root_tol * scale, axis=1)

    s22 = s[n_unit:, n_unit:]
    q2 = (z.T @ results.hs1)[n_unit:, :]
    if s22.size == 0:
        sigma_z = np.zeros_like(s22)
    else:
        sigma_z = solve_discrete_lyapunov(s22, q2 @ sigma_u @ q2.T)

    return _StationaryBlock(
        loading=gz[:, n_unit:],
        transition=s22,
        shock_loading=q2,
        impact=h,
        variance=sigma_z,
        stationary=stationary,
    )


def _mask_nonstationary(matrix: Array, stationary: Array) -> Array:
    out = np.array(matrix, dtype=float)
    out[~stationary, :] = np.nan
    out[:, ~stationary] = np.nan
    return out


def _variance_from_block(block: _StationaryBlock, sigma_u: Array) -> Array:
    m2 = block.loading
    return m2 @ block.variance @ m2.T + block.impact @ sigma_u @ block.impact.T


def _cross_from_block(block: _StationaryBlock, sigma_u: Array) -> Array:
    # Cov(z2_t, y_t)
    return (
        block.transition @ block.variance @ block.loading.T
        + block.shock_loading @ sigma_u @ block.impact.T
    )


def compute_variance(
    results: LinearRationalExpectationsResults,
    shock_covariance: Array | None = None,
    *,
    unit_root_tol: float = 1e-8,
) -> Array:
    """Compute the unconditional variance of the endogenous variables.

    Fills ``results.endogenous_variance`` and
    ``results.stationary_variables`` in place.

    Parameters
    ----------
    results : LinearRationalExpectationsResults
        A solved decision rule.
    shock_covariance : ndarray, shape (n_exogenous, n_exogenous), optional
        Covariance of the shocks.  Defaults to the identity matrix.
    unit_root_tol : float
        Roots of ``gs1`` with modulus at least ``1 - unit_root_tol`` are
        treated as unit roots.

    Returns
    -------
    Array, shape (n_endogenous, n_endogenous)
        ``results.endogenous_variance``; NaN in the rows and columns of
        nonstationary variables.
    """
    sigma_u = _shock_covariance(results, shock_covariance)
    block = _stationary_block(results, sigma_u, unit_root_tol)
    variance = _variance_from_block(block, sigma_u)

    results.endogenous_variance[...] = _mask_nonstationary(variance, block.stationary)
    results.stationary_variables[...] = block.stationary
    return results.endogenous_variance


def autocovariance(
    results: LinearRationalExpectationsResults,
    shock_covariance: Array | None = None,
    *,
    lag: int = 1,
    unit_root_tol: float = 1e-8,
) -> Array:
    """Return ``Cov(y_t, y_{t-lag})`` for the endogenous variables.

    ``lag=0`` gives the variance.  Entries involving nonstationary
    variables are NaN.
    """
    if lag < 0:
        raise ValueError(f"lag must be >= 0, got {lag}")
    sigma_u = _shock_covariance(results, shock_covariance)
    block = _stationary_block(results, sigma_u, unit_root_tol)
    if lag == 0:
        cov = _variance_from_block(block, sigma_u)
    else:
        power = np.linalg.matrix_power(block.transition, lag - 1)
        cov = block.loading @ power @ _cross_from_block(block, sigma_u)
    return _mask_nonstationary(cov, block.stationary)


def autocorrelation(
    results: LinearRationalExpectationsResults,
    shock_covariance: Array | None = None,
    *,
    max_lag: int = 5,
    unit_root_tol: float = 1e-8,
) -> Array:
    """Autocorrelations at lags ``1, ..., max_lag``.

    The stationary block is decomposed once and ``S22^{k-1}`` is
    accumulated across lags.

    Returns
    -------
    Array, shape (max_lag, n_endogenous)
        ``Cov(y_i,t, y_i,t-k) / Var(y_i)``; zero for variables with zero
        variance and NaN for nonstationary variables.
    """
    sigma_u = _shock_covariance(results, shock_covariance)
    block = _stationary_block(results, sigma_u, unit_root_tol)
    variance = np.diag(_variance_from_block(block, sigma_u))
    cross = _cross_from_block(block, sigma_u)

    out = np.zeros((max_lag, results.n_endogenous), dtype=float)
    s22_power = np.eye(block.transition.shape[0], dtype=float)
    for k in range(1, max_lag + 1):
        cov_k = np.einsum("ij,ji->i", block.loading @ s22_power, cross)
        with np.errstate(divide="ignore", invalid="ignore"):
            out[k - 1] = np.where(variance > 1e-16, cov_k / variance, 0.0)
        s22_power = s22_power @ block.transition
    out[:, ~block.stationary] = np.nan
    return out


def correlation(variance: Array) -> Array:
    """Correlation matrix of a covariance matrix; NaN where a variance is zero."""
    variance = np.asarray(variance, dtype=float)
    std = np.sqrt(np.diag(variance))
    with np.errstate(divide="ignore", invalid="ignore"):
        corr = variance / np.outer(std, std)
    zero = std <= 0.0
    corr[zero, :] = np.nan
    corr[:, zero] = np.nan
    return corr


def variance_decomposition(
    results: LinearRationalExpectationsResults,
    shock_covariance: Array | None = None,
    *,
    unit_root_tol: float = 1e-8,
) -> Array:
    """Share of each shock in the unconditional variance of each variable.

    Each shock contributes the variance obtained with its own diagonal
    entry of *shock_covariance* and all other shocks switched off.
    Off-diagonal shock covariances are ignored.

    Returns
    -------
    Array, shape (n_endogenous, n_exogenous)
        Rows sum to one for stationary variables with positive variance;
        NaN rows for nonstationary variables and zero-variance variables.
    """
    sigma_u = _shock_covariance(results, shock_covariance)
    n_e = results.n_exogenous
    contributions = np.zeros((results.n_endogenous, n_e), dtype=float)
    stationary = np.ones(results.n_endogenous, dtype=bool)
    for j in range(n_e):
        sigma_j = np.zeros_like(sigma_u)
        sigma_j[j, j] = sigma_u[j, j]
        block = _stationary_block(results, sigma_j, unit_root_tol)
        var_j = _variance_from_block(block, sigma_j)
        contributions[:, j] = np.diag(var_j)
        stationary = block.stationary

    total = contributions.sum(axis=1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        shares = contributions / total
    shares[(total[:, 0] <= 0.0) | ~stationary, :] = np.nan
    return shares
