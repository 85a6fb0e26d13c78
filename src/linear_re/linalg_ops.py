"""Small dense linear-algebra helpers shared by the solvers."""

from __future__ import annotations

import warnings

import numpy as np
from scipy import linalg, sparse

from .exceptions import SingularSystemError

Array = np.ndarray


def as_dense(matrix: Array | sparse.spmatrix) -> Array:
    """Return *matrix* as a float ndarray, densifying ``scipy.sparse`` input."""
    if sparse.issparse(matrix):
        return matrix.toarray()
    return np.asarray(matrix, dtype=float)


def lu_factor_checked(
    matrix: Array, name: str, *, singular_tol: float = 1e-12
) -> tuple[Array, Array]:
    """LU-factorise *matrix*, raising if a pivot is numerically zero.

    A pivot is considered zero when its modulus is below ``singular_tol``
    times the largest absolute entry of the matrix.

    Raises
    ------
    SingularSystemError
        If the matrix is numerically singular or contains non-finite
        entries.
    """
    if not np.all(np.isfinite(matrix)):
        raise SingularSystemError(name)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", linalg.LinAlgWarning)
        lu, piv = linalg.lu_factor(matrix)
    scale = max(float(np.max(np.abs(matrix), initial=0.0)), 1.0)
    pivot = float(np.min(np.abs(np.diag(lu)), initial=np.inf))
    if pivot <= singular_tol * scale:
        raise SingularSystemError(name, pivot)
    return lu, piv


def lu_solve(factor: tuple[Array, Array], rhs: Array) -> Array:
    return linalg.lu_solve(factor, rhs)
